# -- Visualization Theme -- #

'''
Centralized dark-mode theme for the particle animations.

Change colors or template here to restyle every figure at once.
'''

# Plotly template
TEMPLATE = 'plotly_dark'

# Particle and wall colors (Material Design, visible on dark backgrounds)
BLUE = '#42A5F5'
CYAN = '#26C6DA'
REFERENCE_LINE = '#888888'

# Particle marker color per solver
PARTICLE_COLORS = {
    'classical': BLUE,
    'viscoelastic': CYAN,
}

# Animation frame duration [ms]
FRAME_DURATION_MS = 33
