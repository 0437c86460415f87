# -- SPH Boundary Conditions -- #

'''
Half-plane wall enforcement for the 2D SPH solvers.

Each wall is a half-plane (n, c): a normal n = (nx, ny) and a
signed offset c. For a particle at x the penetration measure is

    d = max(0, n . x - c)

and whenever d < particleRadius the wall pushes back:

    v += (particleRadius - d) * n / dt
    v *= boundaryDamping

Walls are applied one after another, so a particle in a corner
gets two sequential corrections rather than one joint solve.

A rectangular domain [0, W] x [0, H] uses the four walls
(1, 0, 0), (0, 1, 0), (-1, 0, -W), (0, -1, -H).
'''

from __future__ import annotations

import numpy as np


class BoundaryHandler:
    '''
    Fixed set of half-plane walls with velocity-impulse enforcement.

    Parameters:
    -----------
    planes : np.ndarray
        Walls as rows (nx, ny, c), shape (K, 3)
    boundaryDamping : float
        Velocity multiplier applied after each wall correction
    '''

    def __init__(self, planes: np.ndarray, boundaryDamping: float = 1.0) -> None:
        planes = np.array(planes, dtype=float)
        if planes.ndim != 2 or planes.shape[1] != 3:
            raise ValueError(f'planes must have shape (K, 3), got {planes.shape}')
        self._planes = planes
        self._boundaryDamping = boundaryDamping

    @classmethod
    def rectangle(
        cls, width: float, height: float, boundaryDamping: float = 1.0,
    ) -> BoundaryHandler:
        '''
        Walls of the box [0, width] x [0, height].

        Order: left, bottom, right, top.
        '''
        planes = np.array([
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [-1.0, 0.0, -width],
            [0.0, -1.0, -height],
        ])
        return cls(planes, boundaryDamping)

    def enforceBoundary(
        self,
        positions: np.ndarray,
        velocities: np.ndarray,
        particleRadius: float,
        dt: float,
    ) -> None:
        '''
        Push particles near or beyond a wall back, in place.

        Positions are not modified; only velocities change.

        Parameters:
        -----------
        positions : np.ndarray
            Particle positions, shape (N, 2)
        velocities : np.ndarray
            Particle velocities, shape (N, 2), updated in place
        particleRadius : float
            Required wall clearance
        dt : float
            Time step size
        '''
        for nx, ny, offset in self._planes:
            penetration = np.maximum(0.0, positions[:, 0] * nx + positions[:, 1] * ny - offset)
            hit = penetration < particleRadius
            if not np.any(hit):
                continue

            push = (particleRadius - penetration[hit]) / dt
            velocities[hit] += push[:, np.newaxis] * np.array([nx, ny])
            velocities[hit] *= self._boundaryDamping

    @property
    def planes(self) -> np.ndarray:
        '''Walls as rows (nx, ny, c).'''
        return self._planes.copy()

    @property
    def boundaryDamping(self) -> float:
        '''Velocity multiplier applied after each wall correction.'''
        return self._boundaryDamping
