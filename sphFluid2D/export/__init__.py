# -- Export Package -- #

'''Position stream writer and reader.'''

from sphFluid2D.export.positionWriter import PositionWriter, readPositions
