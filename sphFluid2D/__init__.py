# -- sphFluid2D Package -- #

'''
2D fluid simulation using Smoothed Particle Hydrodynamics (SPH).

Two solvers share particle storage, boundary walls and output sinks:
a classical pressure/viscosity solver and a viscoelastic double
density relaxation solver.
'''

__version__ = '0.1.0'

from sphFluid2D.sph.sphSolver import ClassicalSphSolver
from sphFluid2D.sph.viscoelasticSolver import ViscoelasticSphSolver
from sphFluid2D.sph.protocols import ClassicalSphConfig, ViscoelasticSphConfig
