# -- Visualization Package -- #

'''Plotly animation of solver output.'''
