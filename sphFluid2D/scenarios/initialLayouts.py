# -- Initial Particle Layouts -- #

'''
Initial particle seeding patterns for the two solvers.

jitteredColumn
    Rows spaced one kernel radius apart, filling x in
    [W/4, W/2] from y = h upward, with a small shared jitter on both
    coordinates so the column is not perfectly symmetric.

squareBlock
    A floor(sqrt(count)) x floor(sqrt(count)) block laid out left to
    right and top to bottom from a start corner, with pitch
    3 * particleRadius.

Both patterns are deterministic for a given seed, which the
trajectory regression files depend on.
'''

from __future__ import annotations

import math

import numpy as np


def jitteredColumn(
    count: int,
    viewWidth: float,
    viewHeight: float,
    kernelRadius: float,
    rng: np.random.Generator,
) -> np.ndarray:
    '''
    Seed up to count particles in a jittered column.

    For y = h, 2h, ... while y < viewHeight - 2h and
    x = W/4, W/4 + h, ... while x <= W/2, place (x + j, y + j)
    with j ~ U[0, 1) drawn once per particle.

    Parameters:
    -----------
    count : int
        Maximum number of particles
    viewWidth : float
        Domain width W
    viewHeight : float
        Domain height
    kernelRadius : float
        Kernel radius h, also the grid pitch
    rng : np.random.Generator
        Source of jitter

    Returns:
    --------
    np.ndarray : Positions, shape (K, 2) with K <= count
    '''
    positions: list[tuple[float, float]] = []

    y = kernelRadius
    while y < viewHeight - kernelRadius * 2.0 and len(positions) < count:
        x = viewWidth / 4.0
        while x <= viewWidth / 2.0 and len(positions) < count:
            jitter = rng.random()
            positions.append((x + jitter, y + jitter))
            x += kernelRadius
        y += kernelRadius

    return np.array(positions, dtype=float).reshape(-1, 2)


def squareBlock(
    count: int,
    start: tuple[float, float],
    particleRadius: float,
) -> np.ndarray:
    '''
    Seed a square block of floor(sqrt(count))^2 particles.

    Parameters:
    -----------
    count : int
        Requested number of particles
    start : tuple[float, float]
        Top-left particle position
    particleRadius : float
        Particle radius r; pitch is 3r

    Returns:
    --------
    np.ndarray : Positions, shape (n*n, 2), row-major from the top
    '''
    nSide = math.isqrt(max(count, 0))
    pitch = 3.0 * particleRadius

    columns = start[0] + pitch * np.arange(nSide)
    rows = start[1] - pitch * np.arange(nSide)
    xx, yy = np.meshgrid(columns, rows, indexing='xy')
    return np.column_stack([xx.ravel(), yy.ravel()])
