# -- SPH Engine Package -- #

'''
Core SPH engine.

Provides kernel functions, particle systems, the uniform neighbor
grid, boundary walls, time integration and the two solvers.
'''

from sphFluid2D.sph.protocols import (
    ClassicalSphConfig, ViscoelasticSphConfig, SimulationState, RenderView,
)
from sphFluid2D.sph.kernels import Poly6Kernel, SpikyKernel, ViscosityKernel
from sphFluid2D.sph.neighborSearch import GridNeighborhood
from sphFluid2D.sph.boundaryHandling import BoundaryHandler
