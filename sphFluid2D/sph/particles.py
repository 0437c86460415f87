# -- SPH Particle Systems -- #

'''
Per-particle state and density/pressure models for the 2D solvers.

Positions, velocities and forces are stored as (N, 2) NumPy arrays;
densities and pressures as (N,) arrays. Two implementations of the
ParticleSystem protocol are provided:

    ClassicalParticleSystem      brute-force Poly6 density, linear EOS
    ViscoelasticParticleSystem   double density relaxation over the
                                 neighbor grid it owns

The viscoelastic system additionally stores projected positions,
last positions, density variations (near-density) and pressure
variations. Adding particles appends to every array in one swap, so
all arrays always have the same length.
'''

from __future__ import annotations

import numpy as np

from sphFluid2D.sph.kernels import (
    Poly6Kernel, SpikyKernel, ViscosityKernel,
    densityKernelFactor, nearDensityKernelFactor,
)
from sphFluid2D.sph.neighborSearch import GridNeighborhood
from sphFluid2D.sph.protocols import ClassicalSphConfig, ViscoelasticSphConfig


######################################################################
# -- Helpers -- #
######################################################################

def asPositionArray(positions: np.ndarray) -> np.ndarray:
    '''
    Coerce input to a float (N, 2) array.

    Raises:
    -------
    ValueError : If the input cannot be read as (N, 2) positions
    '''
    positions = np.array(positions, dtype=float)
    if positions.ndim == 1 and positions.shape[0] == 2:
        positions = positions.reshape(1, 2)
    elif positions.size == 0:
        positions = positions.reshape(0, 2)
    if positions.ndim != 2 or positions.shape[1] != 2:
        raise ValueError(f'positions must have shape (N, 2), got {positions.shape}')
    return positions


def pairwiseOffsets(positions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    '''
    All-pairs offsets and squared distances.

    Returns:
    --------
    tuple[np.ndarray, np.ndarray] :
        offsets[i, j] = x_j - x_i, shape (N, N, 2), and
        distSq[i, j] = |x_j - x_i|^2, shape (N, N)
    '''
    offsets = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    distSq = np.einsum('ijk,ijk->ij', offsets, offsets)
    return (offsets, distSq)


def safeReciprocal(values: np.ndarray) -> np.ndarray:
    '''1 / values where values > 0, and 0 elsewhere.'''
    positive = values > 0.0
    result = np.zeros_like(values)
    np.divide(1.0, values, out=result, where=positive)
    return result


######################################################################
# -- Shared Storage -- #
######################################################################

class _ParticleArrays:
    '''
    Shared per-particle storage.

    Subclasses extend vectorFields / scalarFields and override
    _initialValues for fields that do not start at zero.
    '''

    vectorFields: tuple[str, ...] = ('positions', 'velocities', 'forces')
    scalarFields: tuple[str, ...] = ('densities', 'pressures')

    def __init__(self, particleMass: float, particleRadius: float) -> None:
        self._mass = particleMass
        self._particleRadius = particleRadius
        for name in self.vectorFields:
            setattr(self, name, np.zeros((0, 2)))
        for name in self.scalarFields:
            setattr(self, name, np.zeros(0))

    @property
    def nParticles(self) -> int:
        '''Number of particles.'''
        return self.positions.shape[0]

    def addParticle(self, position: np.ndarray) -> None:
        '''
        Append one particle at rest.

        Parameters:
        -----------
        position : np.ndarray
            Position of the new particle, shape (2,)
        '''
        position = np.asarray(position, dtype=float)
        if position.shape != (2,):
            raise ValueError(f'position must have shape (2,), got {position.shape}')
        self.addParticles(position.reshape(1, 2))

    def addParticles(self, positions: np.ndarray) -> None:
        '''
        Append several particles at rest.

        Every new array is built before any is replaced.

        Parameters:
        -----------
        positions : np.ndarray
            Positions of the new particles, shape (K, 2)
        '''
        positions = asPositionArray(positions)
        grown = {
            name: np.concatenate([getattr(self, name), self._initialValues(name, positions)])
            for name in self.vectorFields + self.scalarFields
        }
        for name, values in grown.items():
            setattr(self, name, values)

    def _initialValues(self, name: str, positions: np.ndarray) -> np.ndarray:
        if name == 'positions':
            return positions.copy()
        if name in self.vectorFields:
            return np.zeros((len(positions), 2))
        return np.zeros(len(positions))

    def inverseDensities(self) -> np.ndarray:
        '''1 / rho per particle, 0 where the density is not positive.'''
        return safeReciprocal(self.densities)

    def kineticEnergy(self) -> float:
        '''
        Total kinetic energy.

        KE = (1/2) * m * sum_i |v_i|^2

        Returns:
        --------
        float : Kinetic energy
        '''
        return 0.5 * self._mass * float(np.sum(self.velocities * self.velocities))

    def maxSpeed(self) -> float:
        '''Maximum velocity magnitude (0 for an empty system).'''
        if self.nParticles == 0:
            return 0.0
        return float(np.max(np.linalg.norm(self.velocities, axis=1)))

    @property
    def mass(self) -> float:
        '''Mass of every particle.'''
        return self._mass

    @mass.setter
    def mass(self, newMass: float) -> None:
        self._mass = newMass

    @property
    def particleRadius(self) -> float:
        '''Particle radius used for wall clearance.'''
        return self._particleRadius

    @particleRadius.setter
    def particleRadius(self, newParticleRadius: float) -> None:
        self._particleRadius = newParticleRadius


######################################################################
# -- Classical Particle System -- #
######################################################################

class ClassicalParticleSystem(_ParticleArrays):
    '''
    Particle state for the classical SPH solver.

    Density is a brute-force O(N^2) Poly6 sum over every particle
    within the kernel radius, including the particle itself:

        rho_i = sum_j m * W(h^2 - d_ij^2),  d_ij < h
        p_i   = k * (rho_i - rho_0)

    Pressure is negative wherever the density is below rest density.

    Parameters:
    -----------
    config : ClassicalSphConfig
        Solver configuration (kernel radius, mass, EOS constants)
    '''

    def __init__(self, config: ClassicalSphConfig) -> None:
        super().__init__(config.particleMass, config.particleRadius)
        self._viscosityConstant = config.viscosityConstant
        self._restDensity = config.restDensity
        self._gasConstant = config.gasConstant
        self.kernelRadius = config.kernelRadius

    def computeDensityPressure(self) -> None:
        '''Recompute densities and pressures from current positions.'''
        h2 = self._kernelRadius * self._kernelRadius
        _, distSq = pairwiseOffsets(self.positions)

        inside = distSq < h2
        weights = np.where(inside, self._poly6.evaluate(np.where(inside, h2 - distSq, 0.0)), 0.0)

        self.densities = self._mass * weights.sum(axis=1)
        self.pressures = self._gasConstant * (self.densities - self._restDensity)

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        return self._kernelRadius

    @kernelRadius.setter
    def kernelRadius(self, newKernelRadius: float) -> None:
        self._kernelRadius = newKernelRadius
        self._poly6 = Poly6Kernel(newKernelRadius)
        self._spiky = SpikyKernel(newKernelRadius)
        self._viscosityKernel = ViscosityKernel(newKernelRadius)

    @property
    def poly6(self) -> Poly6Kernel:
        return self._poly6

    @property
    def spiky(self) -> SpikyKernel:
        return self._spiky

    @property
    def viscosityKernel(self) -> ViscosityKernel:
        return self._viscosityKernel

    @property
    def viscosityConstant(self) -> float:
        '''Viscosity coefficient.'''
        return self._viscosityConstant

    @viscosityConstant.setter
    def viscosityConstant(self, newViscosityConstant: float) -> None:
        self._viscosityConstant = newViscosityConstant

    @property
    def restDensity(self) -> float:
        return self._restDensity

    @property
    def gasConstant(self) -> float:
        return self._gasConstant


######################################################################
# -- Viscoelastic Particle System -- #
######################################################################

class ViscoelasticParticleSystem(_ParticleArrays):
    '''
    Particle state for the viscoelastic (double density relaxation) solver.

    Owns the GridNeighborhood handed to it at construction. Density
    and near-density are sums over the grid's bounded neighbor lists,
    with a = 1 - r / h:

        rho_i      = sum_j m * a^3 * kernelFactor
        rhoNear_i  = sum_j m * a^4 * kernelFactorNorm
        p_i        = k * (rho_i - m * rho_0)
        pNear_i    = kNear * rhoNear_i

    The grid must have been built from the current positions before
    computeDensityPressure() is called.

    Parameters:
    -----------
    config : ViscoelasticSphConfig
        Solver configuration
    neighborhood : GridNeighborhood
        Neighbor grid; this system becomes its sole owner
    '''

    vectorFields = _ParticleArrays.vectorFields + ('projectedPositions', 'lastPositions')
    scalarFields = _ParticleArrays.scalarFields + ('densityVariations', 'pressureVariations')

    def __init__(self, config: ViscoelasticSphConfig, neighborhood: GridNeighborhood) -> None:
        super().__init__(config.particleMass, config.particleRadius)
        self._neighborhood = neighborhood
        self._elasticRestDensity = config.elasticRestDensity
        self._stiffness = config.stiffness
        self._stiffnessAtProximity = config.stiffnessAtProximity
        self._linearViscosity = config.linearViscosity
        self._quadraticViscosity = config.quadraticViscosity
        self._surfaceTension = config.surfaceTension
        self.kernelRadius = config.kernelRadius

    def _initialValues(self, name: str, positions: np.ndarray) -> np.ndarray:
        if name == 'lastPositions':
            return positions.copy()
        return super()._initialValues(name, positions)

    def buildNeighborhood(self) -> None:
        '''Rebuild the owned grid from the current positions.'''
        self._neighborhood.build(self.positions)

    def computeDensityPressure(self) -> None:
        '''Recompute density, near-density and both pressures.'''
        iIdx, _, distances = self._neighborhood.neighborPairs()
        n = self.nParticles
        m = self._mass

        a = 1.0 - distances / self._kernelRadius
        a3 = a * a * a

        self.densities = np.bincount(iIdx, weights=m * a3 * self._kernelFactor, minlength=n)
        self.densityVariations = np.bincount(
            iIdx, weights=m * a3 * a * self._kernelFactorNorm, minlength=n,
        )

        self.pressures = self._stiffness * (self.densities - m * self._elasticRestDensity)
        self.pressureVariations = self._stiffnessAtProximity * self.densityVariations

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def neighborhood(self) -> GridNeighborhood:
        '''The owned neighbor grid.'''
        return self._neighborhood

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        return self._kernelRadius

    @kernelRadius.setter
    def kernelRadius(self, newKernelRadius: float) -> None:
        self._kernelRadius = newKernelRadius
        self._kernelFactor = densityKernelFactor(newKernelRadius)
        self._kernelFactorNorm = nearDensityKernelFactor(newKernelRadius)

    @property
    def kernelFactor(self) -> float:
        return self._kernelFactor

    @property
    def kernelFactorNorm(self) -> float:
        return self._kernelFactorNorm

    @property
    def elasticRestDensity(self) -> float:
        return self._elasticRestDensity

    @property
    def stiffness(self) -> float:
        return self._stiffness

    @property
    def stiffnessAtProximity(self) -> float:
        return self._stiffnessAtProximity

    @property
    def linearViscosity(self) -> float:
        return self._linearViscosity

    @property
    def quadraticViscosity(self) -> float:
        return self._quadraticViscosity

    @property
    def surfaceTension(self) -> float:
        return self._surfaceTension
