# -- Viscoelastic SPH Solver -- #

'''
Double density relaxation solver for 2D viscoelastic fluids.

Positions are predicted first and then relaxed, so the density used
for the pressure displacement is that of the predicted state. This
keeps the fluid close to incompressible without solving a pressure
system.

Algorithm per sub-step (solverSteps sub-steps per update()):
    1. v += dt * g
    2. x_last = x, x += dt * v                     (predict)
    3. Rebuild the neighbor grid from predicted x
    4. Density, near-density and both pressures
    5. Project: relaxation, surface tension, viscosity impulses
    6. x = x_projected, v = (x - x_last) / dt       (correct)
    7. Enforce the four domain walls

Positions are appended to the output file once per update(),
after the last sub-step.

Grid ordering: step 3 must complete before step 4 reads any
neighbor list.

References:
-----------
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

from __future__ import annotations

import numpy as np

from sphFluid2D.export.positionWriter import PositionWriter
from sphFluid2D.scenarios.initialLayouts import squareBlock
from sphFluid2D.sph.boundaryHandling import BoundaryHandler
from sphFluid2D.sph.neighborSearch import GridNeighborhood
from sphFluid2D.sph.particles import ViscoelasticParticleSystem
from sphFluid2D.sph.protocols import RenderView, SimulationState, ViscoelasticSphConfig
from sphFluid2D.sph.timeIntegration import PositionPredictor


class ViscoelasticSphSolver:
    '''
    Viscoelastic SPH solver (predict, relax, correct).

    The constructor seeds a floor(sqrt(N)) x floor(sqrt(N)) block
    with its top-left particle at (W/4, H/2), sizes the neighbor grid
    from the integer part of the view extent and builds it once.

    Parameters:
    -----------
    numberOfParticles : int
        Requested particle count (rounded down to a square)
    config : ViscoelasticSphConfig | None
        Solver configuration (defaults to ViscoelasticSphConfig())
    outputPath : str | None
        Position file; truncated now, one line appended per update()
    '''

    def __init__(
        self,
        numberOfParticles: int = 0,
        config: ViscoelasticSphConfig | None = None,
        outputPath: str | None = None,
    ) -> None:
        if numberOfParticles < 0:
            raise ValueError(f'numberOfParticles must be non-negative, got {numberOfParticles}')

        self._config = config or ViscoelasticSphConfig()
        c = self._config

        self._particles = ViscoelasticParticleSystem(c, GridNeighborhood(c.maxNeighbors))
        self._boundaryHandler = BoundaryHandler.rectangle(c.viewWidth, c.viewHeight, c.boundaryDamping)
        self._predictor = PositionPredictor()
        self._writer = PositionWriter(outputPath) if outputPath else None

        self._dt: float = c.timeStep
        self._solverSteps: int = c.solverSteps
        self._time: float = 0.0
        self._frame: int = 0

        start = (0.25 * c.viewWidth, 0.5 * c.viewHeight)
        self._particles.addParticles(squareBlock(numberOfParticles, start, c.particleRadius))

        self._particles.neighborhood.setResolution(
            int(c.viewWidth), int(c.viewHeight), c.kernelRadius,
        )
        self._particles.buildNeighborhood()

    ######################################################################
    # -- Main Frame -- #
    ######################################################################

    def update(self) -> None:
        '''Advance one frame (solverSteps sub-steps) and emit positions.'''
        p = self._particles

        for _ in range(self._solverSteps):
            self._applyExternalForces()
            self._predictor.integrate(p, self._dt)
            p.buildNeighborhood()
            p.computeDensityPressure()
            self._project()
            self._correct()
            self._boundaryHandler.enforceBoundary(
                p.positions, p.velocities, p.particleRadius, self._dt,
            )
            self._time += self._dt

        self._frame += 1

        if self._writer is not None:
            self._writer.write(p.positions)

    ######################################################################
    # -- Sub-step Phases -- #
    ######################################################################

    def _applyExternalForces(self) -> None:
        '''v += dt * g for every particle.'''
        self._particles.velocities += self._dt * self._config.gravity

    def _project(self) -> None:
        '''
        Compute projected positions from the current neighbor lists.

        For each recorded pair (i, j) with a = 1 - r / h and
        dx = x_j - x_i:

            D = dt^2 * ((pNear_i + pNear_j) a^3 kNorm
                        + (p_i + p_j) a^2 k) / 2
            x_i' -= D * dx / (r * m)
            x_i' += sigma_st * a^2 * k * dx

        and, for approaching pairs (u = (v_i - v_j) . dx / r > 0),

            I = 0.5 * dt * a * (sigma * u + beta * u^2)
            x_i' -= I * dx * dt

        Only particle i is displaced by a pair; j receives its own
        contribution from its own list.
        '''
        p = self._particles
        dt = self._dt
        h = p.kernelRadius
        m = p.mass

        iIdx, jIdx, r = p.neighborhood.neighborPairs()
        projected = p.positions.copy()
        if len(iIdx) == 0:
            p.projectedPositions = projected
            return

        dx = p.positions[jIdx] - p.positions[iIdx]
        a = 1.0 - r / h
        a2 = a * a

        # Relaxation
        displacement = dt * dt * (
            (p.pressureVariations[iIdx] + p.pressureVariations[jIdx]) * a2 * a * p.kernelFactorNorm
            + (p.pressures[iIdx] + p.pressures[jIdx]) * a2 * p.kernelFactor
        ) / 2.0
        coeff = -displacement / (r * m)

        # Surface tension
        coeff += p.surfaceTension * a2 * p.kernelFactor

        # Linear and quadratic viscosity
        dv = p.velocities[iIdx] - p.velocities[jIdx]
        u = np.einsum('ij,ij->i', dv, dx) / r
        approaching = u > 0.0
        impulse = 0.5 * dt * a * (p.linearViscosity * u + p.quadraticViscosity * u * u)
        coeff -= np.where(approaching, impulse * dt, 0.0)

        np.add.at(projected, iIdx, coeff[:, np.newaxis] * dx)
        p.projectedPositions = projected

    def _correct(self) -> None:
        '''x = x_projected, v = (x - x_last) / dt.'''
        p = self._particles
        p.positions = p.projectedPositions.copy()
        p.velocities = (p.positions - p.lastPositions) / self._dt

    ######################################################################
    # -- Particles -- #
    ######################################################################

    def addParticle(self, position: np.ndarray) -> None:
        '''
        Add one particle at rest.

        The grid picks it up at the next rebuild.
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
    def particles(self) -> ViscoelasticParticleSystem:
        '''Access the particle system.'''
        return self._particles

    @property
    def neighborhood(self) -> GridNeighborhood:
        return self._particles.neighborhood

    @property
    def config(self) -> ViscoelasticSphConfig:
        return self._config

    @property
    def kernelRadius(self) -> float:
        return self._particles.kernelRadius

    @property
    def particleRadius(self) -> float:
        return self._particles.particleRadius

    @property
    def timeStep(self) -> float:
        '''Sub-step size dt.'''
        return self._dt

    @property
    def solverSteps(self) -> int:
        return self._solverSteps

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
