# -- SPH Simulation Protocols -- #

'''
Configuration dataclasses, state snapshots and protocols for the
2D SPH solvers.

Defines the solver configurations (ClassicalSphConfig,
ViscoelasticSphConfig), the diagnostics snapshot (SimulationState),
the rendering hints (RenderView), and the ParticleSystem and
SphSolver protocols both solver variants satisfy.
'''

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Protocol

import numpy as np

from sphFluid2D import constants as const


######################################################################
# -- Config Loading Helpers -- #
######################################################################

def _filterConfigData(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    '''Check keys against the dataclass fields and convert gravity.'''
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f'Unknown {cls.__name__} keys: {", ".join(unknown)}')

    kwargs = dict(data)
    if 'gravity' in kwargs:
        kwargs['gravity'] = np.asarray(kwargs['gravity'], dtype=float)
    return kwargs


def _requirePositive(config: object, *names: str) -> None:
    for name in names:
        value = getattr(config, name)
        if value is None or value <= 0:
            raise ValueError(f'{type(config).__name__}.{name} must be positive, got {value}')


######################################################################
# -- Classical Solver Configuration -- #
######################################################################

@dataclass
class ClassicalSphConfig:
    '''
    Configuration for the classical pressure/viscosity SPH solver.

    The view is the simulation domain; its walls are the four
    boundary half-planes.

    Parameters:
    -----------
    kernelRadius : float
        Kernel support radius h
    particleMass : float
        Mass of every particle
    particleRadius : float
        Wall clearance used by boundary enforcement
    viscosityConstant : float
        Viscosity coefficient
    restDensity : float
        Rest density rho_0 of the equation of state
    gasConstant : float
        Gas constant k of p = k * (rho - rho_0)
    gravity : np.ndarray
        Gravity vector
    timeStep : float
        Time step size
    boundaryDamping : float
        Velocity multiplier applied after each wall correction
    windowWidth : int
        Render window width [px]
    windowHeight : int
        Render window height [px]
    viewWidth : float
        Domain width (simulation units)
    viewHeight : float
        Domain height (simulation units)
    jitterSeed : int | None
        Seed for the initial jitter (None draws fresh entropy)
    '''

    kernelRadius: float = 16.0
    particleMass: float = 2.5
    particleRadius: float = 16.0
    viscosityConstant: float = 200.0
    restDensity: float = const.restDensity
    gasConstant: float = const.gasConstant
    gravity: np.ndarray = field(default_factory=lambda: const.gravity2D.copy())
    timeStep: float = 0.0007
    boundaryDamping: float = 1.0
    windowWidth: int = 800
    windowHeight: int = 600
    viewWidth: float = 1.5 * 800.0
    viewHeight: float = 1.5 * 600.0
    jitterSeed: int | None = 0

    def __post_init__(self) -> None:
        self.gravity = np.asarray(self.gravity, dtype=float)
        _requirePositive(
            self, 'kernelRadius', 'particleMass', 'particleRadius',
            'timeStep', 'viewWidth', 'viewHeight',
        )

    @property
    def pointSize(self) -> float:
        '''Render point size hint: h / 2.'''
        return self.kernelRadius / 2.0

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> ClassicalSphConfig:
        '''
        Build a configuration from a flat dict of field values.

        Raises:
        -------
        ValueError : If data contains unknown keys or invalid values
        '''
        return cls(**_filterConfigData(cls, data))

    @classmethod
    def fromJson(cls, configPath: str) -> ClassicalSphConfig:
        '''
        Load configuration from the 'classical' section of a JSON file.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        ClassicalSphConfig : Loaded configuration
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)
        return cls.fromDict(data.get('classical', {}))


######################################################################
# -- Viscoelastic Solver Configuration -- #
######################################################################

@dataclass
class ViscoelasticSphConfig:
    '''
    Configuration for the viscoelastic (double density relaxation) solver.

    Parameters:
    -----------
    particleRadius : float
        Particle radius; also the wall clearance and seeding spacing
    kernelRadius : float | None
        Kernel support radius h (default 6 * particleRadius)
    particleMass : float
        Mass of every particle
    elasticRestDensity : float
        Rest density used as pressure = k * (rho - m * rho_0)
    stiffness : float
        Pressure stiffness k
    stiffnessAtProximity : float
        Near-pressure stiffness k_near
    linearViscosity : float
        Linear viscosity impulse coefficient (sigma)
    quadraticViscosity : float
        Quadratic viscosity impulse coefficient (beta)
    surfaceTension : float
        Surface tension coefficient
    gravity : np.ndarray
        Gravity vector
    fps : int
        Frames per simulated second
    solverSteps : int
        Sub-steps per frame; dt = 1 / fps / solverSteps
    boundaryDamping : float
        Velocity multiplier applied after each wall correction
    windowWidth : int
        Render window width [px]
    windowHeight : int
        Render window height [px]
    viewWidth : float
        Domain width (simulation units)
    viewHeight : float | None
        Domain height (default windowHeight * viewWidth / windowWidth)
    maxNeighbors : int
        Neighbor list capacity per particle
    '''

    particleRadius: float = 0.03
    kernelRadius: float | None = None
    particleMass: float = const.particleMass
    elasticRestDensity: float = const.elasticRestDensity
    stiffness: float = 0.08
    stiffnessAtProximity: float = 0.1
    linearViscosity: float = 0.25
    quadraticViscosity: float = 0.5
    surfaceTension: float = 0.0001
    gravity: np.ndarray = field(default_factory=lambda: const.gravity2D.copy())
    fps: int = 30
    solverSteps: int = 10
    boundaryDamping: float = 0.5
    windowWidth: int = 800
    windowHeight: int = 600
    viewWidth: float = 12.5
    viewHeight: float | None = None
    maxNeighbors: int = const.maxNeighbors

    def __post_init__(self) -> None:
        self.gravity = np.asarray(self.gravity, dtype=float)
        if self.kernelRadius is None:
            self.kernelRadius = 6.0 * self.particleRadius
        if self.viewHeight is None:
            self.viewHeight = self.windowHeight * self.viewWidth / self.windowWidth
        _requirePositive(
            self, 'particleRadius', 'kernelRadius', 'particleMass', 'fps',
            'solverSteps', 'viewWidth', 'viewHeight', 'maxNeighbors',
        )

    @property
    def timeStep(self) -> float:
        '''Sub-step size dt = 1 / fps / solverSteps.'''
        return (1.0 / self.fps) / self.solverSteps

    @property
    def pointSize(self) -> float:
        '''Render point size hint: 2.5 * r * windowWidth / viewHeight.'''
        return 2.5 * self.particleRadius * self.windowWidth / self.viewHeight

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> ViscoelasticSphConfig:
        '''
        Build a configuration from a flat dict of field values.

        Raises:
        -------
        ValueError : If data contains unknown keys or invalid values
        '''
        return cls(**_filterConfigData(cls, data))

    @classmethod
    def fromJson(cls, configPath: str) -> ViscoelasticSphConfig:
        '''Load configuration from the 'viscoelastic' section of a JSON file.'''
        with open(configPath, 'r') as f:
            data = json.load(f)
        return cls.fromDict(data.get('viscoelastic', {}))


######################################################################
# -- Simulation State -- #
######################################################################

@dataclass
class SimulationState:
    '''
    Snapshot of the simulation after a frame.

    Parameters:
    -----------
    frame : int
        Number of completed update() calls
    time : float
        Simulated time
    kineticEnergy : float
        Total kinetic energy, (1/2) * sum m |v|^2
    maxVelocity : float
        Maximum particle speed
    meanDensity : float
        Mean particle density
    maxDensity : float
        Maximum particle density
    '''

    frame: int
    time: float
    kineticEnergy: float
    maxVelocity: float
    meanDensity: float
    maxDensity: float


######################################################################
# -- Render View -- #
######################################################################

@dataclass(frozen=True)
class RenderView:
    '''
    Rendering hints a solver hands to a render sink.

    Parameters:
    -----------
    windowWidth : int
        Window width [px]
    windowHeight : int
        Window height [px]
    viewWidth : float
        Visible domain width (simulation units)
    viewHeight : float
        Visible domain height (simulation units)
    pointSize : float
        Suggested point size [px]
    '''

    windowWidth: int
    windowHeight: int
    viewWidth: float
    viewHeight: float
    pointSize: float


######################################################################
# -- Particle System Protocol -- #
######################################################################

class ParticleSystem(Protocol):
    '''Protocol for per-particle state with a density/pressure model.'''

    positions: np.ndarray
    velocities: np.ndarray
    forces: np.ndarray
    densities: np.ndarray
    pressures: np.ndarray

    @property
    def nParticles(self) -> int:
        '''Number of particles.'''
        ...

    def addParticle(self, position: np.ndarray) -> None:
        '''Append one particle at rest to every per-particle array.'''
        ...

    def computeDensityPressure(self) -> None:
        '''Recompute densities and pressures from current positions.'''
        ...


######################################################################
# -- Solver Protocol -- #
######################################################################

class SphSolver(Protocol):
    '''Protocol for the 2D SPH solvers.'''

    def update(self) -> None:
        '''Advance one frame and emit positions to the sink, if any.'''
        ...

    def addParticle(self, position: np.ndarray) -> None:
        '''Add a particle at rest.'''
        ...

    @property
    def positions(self) -> np.ndarray:
        '''Current particle positions, shape (N, 2).'''
        ...

    @property
    def renderView(self) -> RenderView:
        '''Rendering hints.'''
        ...

    @property
    def currentState(self) -> SimulationState:
        '''Diagnostics snapshot.'''
        ...

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        ...

    @property
    def particleRadius(self) -> float:
        '''Wall clearance radius.'''
        ...

    @property
    def timeStep(self) -> float:
        '''Time step (sub-step for the viscoelastic solver).'''
        ...

    @property
    def frame(self) -> int:
        '''Number of completed update() calls.'''
        ...
