# -- Scenarios Package -- #

'''Initial particle layouts.'''

from sphFluid2D.scenarios.initialLayouts import jitteredColumn, squareBlock
