# -- Uniform Grid Neighbor Search -- #

'''
Uniform-grid neighbor search with capacity-bounded neighbor lists.

The domain is divided into square cells whose size equals the kernel
radius. Each particle is binned into a cell (clamped away from the
outermost ring of cells), and its neighbors are gathered from the
3x3 block of cells around it. Only pairs with
EPS <= d^2 <= cellSize^2 are kept, and at most maxNeighbors (64)
are recorded per particle. Extra neighbors are dropped in scan order.

Cell buckets are built with a counting sort: particles are ordered
cell-major and, inside a cell, by descending particle index. This
matches a linked list where each new particle is pushed onto the
head of its cell, so truncation always drops the same neighbors.

Scan order for particle i:
    x-offset -1, 0, +1 (outer) -> y-offset -1, 0, +1 (inner)
    -> bucket order inside the cell

The neighbor lists describe the positions passed to the most recent
build() call. Rebuild after every position update.

References:
-----------
Ihmsen et al. (2011) -- Parallel Neighbor-Search for SPH
Green (2010) -- Particle Simulation using CUDA
'''

from __future__ import annotations

from typing import Callable

import numpy as np

from sphFluid2D import constants as const


# Stencil in scan order: x offset outer, y offset inner
_STENCIL: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)
)


class GridNeighborhood:
    '''
    Uniform grid spatial index for 2D particle systems.

    Call setResolution() once, then build() whenever positions
    change, then query with forEachNeighbor(), getDistances(),
    getNeighbors() or neighborPairs().

    Parameters:
    -----------
    maxNeighbors : int
        Capacity of each particle's neighbor list (default 64)
    '''

    def __init__(self, maxNeighbors: int = const.maxNeighbors) -> None:
        if maxNeighbors < 1:
            raise ValueError(f'maxNeighbors must be positive, got {maxNeighbors}')

        self._maxNeighbors = maxNeighbors
        self._cellSize: float | None = None
        self._gridWidth = 0
        self._gridHeight = 0
        self._built = False

        # Per-cell buckets (counting sort)
        self._sortedIndices = np.empty(0, dtype=np.int64)
        self._cellStarts = np.empty(0, dtype=np.int64)
        self._cellCounts = np.empty(0, dtype=np.int64)
        self._cellIndices = np.empty((0, 2), dtype=np.int64)

        # Bounded neighborhoods
        self._neighbors = np.empty((0, maxNeighbors), dtype=np.int64)
        self._distances = np.empty((0, maxNeighbors))
        self._counts = np.empty(0, dtype=np.int64)

        # The same neighborhoods, flattened in scan order
        self._pairI = np.empty(0, dtype=np.int64)
        self._pairJ = np.empty(0, dtype=np.int64)
        self._pairDistances = np.empty(0)

    ######################################################################
    # -- Setup -- #
    ######################################################################

    def setResolution(self, width: float, height: float, cellSize: float) -> None:
        '''
        Allocate a (width / cellSize) x (height / cellSize) grid.

        Parameters:
        -----------
        width : float
            Domain width
        height : float
            Domain height
        cellSize : float
            Cell size, equal to the kernel radius

        Raises:
        -------
        ValueError : If cellSize is not positive or the grid has
            fewer than 3 cells along an axis
        '''
        if cellSize <= 0.0:
            raise ValueError(f'cellSize must be positive, got {cellSize}')

        gridWidth = int(width / cellSize)
        gridHeight = int(height / cellSize)
        if gridWidth < 3 or gridHeight < 3:
            raise ValueError(
                f'Grid of {gridWidth}x{gridHeight} cells is too small; '
                f'at least 3x3 cells are required'
            )

        self._cellSize = float(cellSize)
        self._gridWidth = gridWidth
        self._gridHeight = gridHeight
        self._cellCounts = np.zeros(gridWidth * gridHeight, dtype=np.int64)
        self._cellStarts = np.zeros(gridWidth * gridHeight, dtype=np.int64)
        self._built = False

    ######################################################################
    # -- Build -- #
    ######################################################################

    def build(self, positions: np.ndarray) -> None:
        '''
        Rebuild all buckets and neighbor lists from scratch.

        Parameters:
        -----------
        positions : np.ndarray
            Particle positions, shape (N, 2)

        Raises:
        -------
        RuntimeError : If setResolution() has not been called
        ValueError : If positions is not an (N, 2) array
        '''
        if self._cellSize is None:
            raise RuntimeError('setResolution() must be called before build()')

        positions = np.asarray(positions, dtype=float)
        if positions.size == 0:
            positions = positions.reshape(0, 2)
        if positions.ndim != 2 or positions.shape[1] != 2:
            raise ValueError(f'positions must have shape (N, 2), got {positions.shape}')

        nParticles = len(positions)
        cellSize = self._cellSize
        gridWidth = self._gridWidth
        particleIds = np.arange(nParticles, dtype=np.int64)

        #--------------------------------------------------------------------#
        # Bin particles into cells, clamped to [1, size - 2]
        #--------------------------------------------------------------------#
        rawCells = np.nan_to_num(np.trunc(positions / cellSize), nan=0.0)
        cellX = np.clip(rawCells[:, 0], 1, gridWidth - 2).astype(np.int64)
        cellY = np.clip(rawCells[:, 1], 1, self._gridHeight - 2).astype(np.int64)
        cellIds = cellX + cellY * gridWidth

        # Cell-major, descending particle index inside a cell
        sortedIndices = np.lexsort((-particleIds, cellIds))
        cellCounts = np.bincount(cellIds, minlength=gridWidth * self._gridHeight)
        cellStarts = np.cumsum(cellCounts) - cellCounts

        self._sortedIndices = sortedIndices
        self._cellCounts = cellCounts
        self._cellStarts = cellStarts
        self._cellIndices = np.column_stack([cellX, cellY])

        #--------------------------------------------------------------------#
        # Gather candidates from the 3x3 block in scan order
        #--------------------------------------------------------------------#
        nStencil = len(_STENCIL)
        stencilCounts = np.empty((nStencil, nParticles), dtype=np.int64)
        stencilStarts = np.empty((nStencil, nParticles), dtype=np.int64)
        for k, (dx, dy) in enumerate(_STENCIL):
            neighborCells = (cellX + dx) + (cellY + dy) * gridWidth
            stencilCounts[k] = cellCounts[neighborCells]
            stencilStarts[k] = cellStarts[neighborCells]

        candidatesPerParticle = stencilCounts.sum(axis=0)
        particleOffsets = np.cumsum(candidatesPerParticle) - candidatesPerParticle
        stencilOffsets = np.cumsum(stencilCounts, axis=0) - stencilCounts
        nCandidates = int(candidatesPerParticle.sum())

        owners = np.empty(nCandidates, dtype=np.int64)
        candidates = np.empty(nCandidates, dtype=np.int64)
        for k in range(nStencil):
            counts = stencilCounts[k]
            total = int(counts.sum())
            if total == 0:
                continue
            owner = np.repeat(particleIds, counts)
            within = np.arange(total) - np.repeat(np.cumsum(counts) - counts, counts)
            slots = particleOffsets[owner] + stencilOffsets[k, owner] + within
            owners[slots] = owner
            candidates[slots] = sortedIndices[stencilStarts[k, owner] + within]

        #--------------------------------------------------------------------#
        # Distance filter and capacity bound
        #--------------------------------------------------------------------#
        dr = positions[candidates] - positions[owners]
        distSq = np.einsum('ij,ij->i', dr, dr)
        valid = (distSq >= const.eps) & (distSq <= cellSize * cellSize)

        owners = owners[valid]
        candidates = candidates[valid]
        distances = np.sqrt(distSq[valid])

        validCounts = np.bincount(owners, minlength=nParticles)
        rank = np.arange(len(owners)) - np.repeat(np.cumsum(validCounts) - validCounts, validCounts)
        kept = rank < self._maxNeighbors

        self._pairI = owners[kept]
        self._pairJ = candidates[kept]
        self._pairDistances = distances[kept]

        self._counts = np.minimum(validCounts, self._maxNeighbors)
        self._neighbors = np.full((nParticles, self._maxNeighbors), -1, dtype=np.int64)
        self._distances = np.zeros((nParticles, self._maxNeighbors))
        self._neighbors[self._pairI, rank[kept]] = self._pairJ
        self._distances[self._pairI, rank[kept]] = self._pairDistances

        self._built = True

    ######################################################################
    # -- Queries -- #
    ######################################################################

    def forEachNeighbor(self, index: int, callback: Callable[[int, float], None]) -> None:
        '''
        Invoke callback(j, distance) for each recorded neighbor of a particle.

        Parameters:
        -----------
        index : int
            Particle index
        callback : Callable[[int, float], None]
            Called once per neighbor, in scan order
        '''
        self._requireBuilt()
        count = self._counts[index]
        for j, distance in zip(self._neighbors[index, :count], self._distances[index, :count]):
            callback(int(j), float(distance))

    def getDistances(self, index: int) -> np.ndarray:
        '''Distances to the recorded neighbors of a particle, in scan order.'''
        self._requireBuilt()
        return self._distances[index, :self._counts[index]].copy()

    def getNeighbors(self, index: int) -> np.ndarray:
        '''Indices of the recorded neighbors of a particle, in scan order.'''
        self._requireBuilt()
        return self._neighbors[index, :self._counts[index]].copy()

    def neighborPairs(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        '''
        All recorded neighbor pairs, flattened.

        Pairs are grouped by particle i (ascending), each group in
        scan order. Every (i, j) appears from i's side only; the
        reverse pair (j, i) is present only if j recorded i.

        Returns:
        --------
        tuple[np.ndarray, np.ndarray, np.ndarray] :
            (iIndices, jIndices, distances)
        '''
        self._requireBuilt()
        return (self._pairI, self._pairJ, self._pairDistances)

    def cellMembers(self, cellX: int, cellY: int) -> np.ndarray:
        '''Particle indices in a cell's bucket, in bucket order.'''
        self._requireBuilt()
        cellId = cellX + cellY * self._gridWidth
        start = self._cellStarts[cellId]
        return self._sortedIndices[start:start + self._cellCounts[cellId]].copy()

    def cellOf(self, index: int) -> tuple[int, int]:
        '''Clamped (cellX, cellY) of a particle at the last build.'''
        self._requireBuilt()
        cellX, cellY = self._cellIndices[index]
        return (int(cellX), int(cellY))

    def _requireBuilt(self) -> None:
        if not self._built:
            raise RuntimeError('Neighborhood queried before setResolution() and build()')

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def cellSize(self) -> float | None:
        '''Cell size (None until setResolution() is called).'''
        return self._cellSize

    @property
    def gridShape(self) -> tuple[int, int]:
        '''Number of cells (width, height).'''
        return (self._gridWidth, self._gridHeight)

    @property
    def maxNeighbors(self) -> int:
        '''Capacity of each neighbor list.'''
        return self._maxNeighbors

    @property
    def neighborCounts(self) -> np.ndarray:
        '''Number of recorded neighbors per particle.'''
        self._requireBuilt()
        return self._counts.copy()

    @property
    def isBuilt(self) -> bool:
        '''True once build() has run since the last setResolution().'''
        return self._built
