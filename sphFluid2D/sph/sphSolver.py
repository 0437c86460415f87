# -- Classical SPH Solver -- #

'''
Classical pressure/viscosity SPH solver for 2D free-surface flows.

Each particle interacts with every other particle inside the kernel
radius (brute force, O(N^2)). Pair sums are evaluated as dense
N x N NumPy arrays, masked to pairs with i != j and d < h.

Algorithm per update():
    1. Density by Poly6 summation (self term included), p = k(rho - rho_0)
    2. Forces:
         pressure   -sum_j n_ij * m (p_i + p_j) / (2 rho_j) * gradW(h - d)
         viscosity   sum_j mu * m (v_j - v_i) / rho_j * lapW(h - d)
         gravity     g * m / rho_i
       where n_ij is the unit vector from i to j
    3. Integrate (Symplectic Euler, a = F / rho)
    4. Enforce the four domain walls
    5. Append positions to the output file, if one was given

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for
    interactive applications
Monaghan (1992) -- Smoothed Particle Hydrodynamics
'''

from __future__ import annotations

import numpy as np

from sphFluid2D.export.positionWriter import PositionWriter
from sphFluid2D.scenarios.initialLayouts import jitteredColumn
from sphFluid2D.sph.boundaryHandling import BoundaryHandler
from sphFluid2D.sph.particles import ClassicalParticleSystem, pairwiseOffsets, safeReciprocal
from sphFluid2D.sph.protocols import ClassicalSphConfig, RenderView, SimulationState
from sphFluid2D.sph.timeIntegration import SymplecticEuler


class ClassicalSphSolver:
    '''
    Classical SPH solver with a fixed time step.

    The constructor seeds up to numberOfParticles particles in a
    jittered column (see initialLayouts.jitteredColumn). Every
    update() advances one time step.

    Parameters:
    -----------
    numberOfParticles : int
        Number of particles to seed (fewer if the column is full)
    config : ClassicalSphConfig | None
        Solver configuration (defaults to ClassicalSphConfig())
    outputPath : str | None
        Position file; truncated now, one line appended per update()
    '''

    def __init__(
        self,
        numberOfParticles: int = 0,
        config: ClassicalSphConfig | None = None,
        outputPath: str | None = None,
    ) -> None:
        if numberOfParticles < 0:
            raise ValueError(f'numberOfParticles must be non-negative, got {numberOfParticles}')

        self._config = config or ClassicalSphConfig()
        self._particles = ClassicalParticleSystem(self._config)
        self._boundaryHandler = BoundaryHandler.rectangle(
            self._config.viewWidth, self._config.viewHeight, self._config.boundaryDamping,
        )
        self._integrator = SymplecticEuler()
        self._writer = PositionWriter(outputPath) if outputPath else None

        self._dt: float = self._config.timeStep
        self._time: float = 0.0
        self._frame: int = 0

        rng = np.random.default_rng(self._config.jitterSeed)
        self._particles.addParticles(jitteredColumn(
            numberOfParticles,
            self._config.viewWidth,
            self._config.viewHeight,
            self._config.kernelRadius,
            rng,
        ))

    ######################################################################
    # -- Main Time Step -- #
    ######################################################################

    def update(self) -> None:
        '''Advance one time step and emit positions.'''
        p = self._particles

        # 1. Density and pressure
        p.computeDensityPressure()

        # 2. Pressure, viscosity and gravity forces
        self._computeForces()

        # 3. Integrate
        self._integrator.integrate(p, self._dt)

        # 4. Walls
        self._boundaryHandler.enforceBoundary(p.positions, p.velocities, p.particleRadius, self._dt)

        self._time += self._dt
        self._frame += 1

        # 5. Emit
        if self._writer is not None:
            self._writer.write(p.positions)

    ######################################################################
    # -- Force Computation (Vectorized) -- #
    ######################################################################

    def _computeForces(self) -> None:
        '''
        Accumulate pressure, viscosity and gravity forces.

        Coincident pairs (d = 0) get a zero direction and so no
        pressure force. Any division by a non-positive density
        contributes zero instead.
        '''
        p = self._particles
        h = p.kernelRadius
        m = p.mass
        n = p.nParticles
        if n == 0:
            return

        offsets, distSq = pairwiseOffsets(p.positions)
        dist = np.sqrt(distSq)

        inside = dist < h
        np.fill_diagonal(inside, False)
        x = np.where(inside, h - dist, 0.0)

        inverseDensity = safeReciprocal(p.densities)

        # Unit vectors from i to j
        direction = np.zeros_like(offsets)
        np.divide(offsets, dist[:, :, np.newaxis], out=direction, where=dist[:, :, np.newaxis] > 0.0)

        # --- Pressure --- #
        pressureSum = p.pressures[:, np.newaxis] + p.pressures[np.newaxis, :]
        pressureCoeff = np.where(
            inside,
            m * pressureSum * 0.5 * inverseDensity[np.newaxis, :] * p.spiky.gradientAt(x),
            0.0,
        )
        fPressure = -np.einsum('ij,ijk->ik', pressureCoeff, direction)

        # --- Viscosity --- #
        # sum_j w_ij (v_j - v_i) = W v - (sum_j w_ij) v_i
        viscWeights = np.where(
            inside,
            p.viscosityConstant * m * inverseDensity[np.newaxis, :] * p.viscosityKernel.laplacianAt(x),
            0.0,
        )
        fViscosity = viscWeights @ p.velocities - viscWeights.sum(axis=1)[:, np.newaxis] * p.velocities

        # --- Gravity --- #
        fGravity = (m * inverseDensity)[:, np.newaxis] * self._config.gravity[np.newaxis, :]

        p.forces = fPressure + fViscosity + fGravity

    ######################################################################
    # -- Particles -- #
    ######################################################################

    def addParticle(self, position: np.ndarray) -> None:
        '''
        Add one particle at rest.

        Parameters:
        -----------
        position : np.ndarray
            Position, shape (2,)
        '''
        self._particles.addParticle(position)

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def positions(self) -> np.ndarray:
        '''Current particle positions, shape (N, 2).'''
        return self._particles.positions

    @property
    def particles(self) -> ClassicalParticleSystem:
        '''Access the particle system.'''
        return self._particles

    @property
    def config(self) -> ClassicalSphConfig:
        return self._config

    @property
    def kernelRadius(self) -> float:
        return self._particles.kernelRadius

    @property
    def particleRadius(self) -> float:
        return self._particles.particleRadius

    @property
    def timeStep(self) -> float:
        '''Fixed time step size.'''
        return self._dt

    @property
    def time(self) -> float:
        '''Simulated time.'''
        return self._time

    @property
    def frame(self) -> int:
        '''Number of completed update() calls.'''
        return self._frame

    @property
    def renderView(self) -> RenderView:
        '''Window, view and point size hints for a render sink.'''
        c = self._config
        return RenderView(
            windowWidth=c.windowWidth,
            windowHeight=c.windowHeight,
            viewWidth=c.viewWidth,
            viewHeight=c.viewHeight,
            pointSize=c.pointSize,
        )

    @property
    def currentState(self) -> SimulationState:
        '''Current simulation state snapshot.'''
        p = self._particles
        densities = p.densities
        return SimulationState(
            frame=self._frame,
            time=self._time,
            kineticEnergy=p.kineticEnergy(),
            maxVelocity=p.maxSpeed(),
            meanDensity=float(np.mean(densities)) if len(densities) else 0.0,
            maxDensity=float(np.max(densities)) if len(densities) else 0.0,
        )
