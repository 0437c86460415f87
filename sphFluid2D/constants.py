# -- Physical Constants for 2D SPH Fluid Simulation -- #

'''
Physical and numerical constants shared by the classical and
viscoelastic 2D SPH solvers.

Units are simulation units (the classical solver works in a
pixel-like view space, the viscoelastic solver in a ~10 unit box),
so these are not SI values.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for
    interactive applications
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

import numpy as np

#--------------------------------------------------------------------#
# -- Fluid Properties -- #
#--------------------------------------------------------------------#

# Gravitational acceleration vector
gravity2D: np.ndarray = np.array([0.0, -9.8])

# Rest density used by the classical equation of state
restDensity: float = 300.0

# Rest density used by the double density relaxation
elasticRestDensity: float = 45.0

# Gas constant for the classical equation of state
# p = k * (rho - rho_0), negative pressure allowed
gasConstant: float = 2000.0

# Default particle mass
particleMass: float = 1.0

#--------------------------------------------------------------------#
# -- Numerical Parameters -- #
#--------------------------------------------------------------------#

# Error tolerance (squared distances below this are coincident points).
# Files written in single precision used 0.00001f, which widens to
# 9.99999974737875e-06; the exact double 1e-5 is used here.
eps: float = 1.0e-5

# Neighbor list capacity per particle; extra neighbors are dropped
maxNeighbors: int = 64
