# -- Uniform Grid Neighbor Search Tests -- #

import numpy as np
import pytest

from sphFluid2D import constants as const
from sphFluid2D.sph.neighborSearch import GridNeighborhood


def _grid(positions, width=10.0, height=10.0, cellSize=1.0, maxNeighbors=64):
    grid = GridNeighborhood(maxNeighbors)
    grid.setResolution(width, height, cellSize)
    grid.build(np.asarray(positions, dtype=float))
    return grid


def _bruteForce(positions, i, cellSize):
    d2 = np.sum((positions - positions[i]) ** 2, axis=1)
    return {j for j in range(len(positions)) if const.eps <= d2[j] <= cellSize * cellSize}


######################################################################
# -- Setup and Errors -- #
######################################################################

def testGridShapeTruncatesExtent():
    grid = GridNeighborhood()
    grid.setResolution(12, 9, 0.18)
    assert grid.gridShape == (66, 50)
    assert grid.cellSize == 0.18


def testRejectsTinyGrid():
    grid = GridNeighborhood()
    with pytest.raises(ValueError):
        grid.setResolution(2.0, 10.0, 1.0)
    with pytest.raises(ValueError):
        grid.setResolution(10.0, 10.0, 0.0)


def testRejectsNonPositiveCapacity():
    with pytest.raises(ValueError):
        GridNeighborhood(0)


def testBuildBeforeSetResolutionRaises():
    with pytest.raises(RuntimeError):
        GridNeighborhood().build(np.zeros((3, 2)))


def testQueryBeforeBuildRaises():
    grid = GridNeighborhood()
    grid.setResolution(10.0, 10.0, 1.0)
    assert not grid.isBuilt
    with pytest.raises(RuntimeError):
        grid.getNeighbors(0)
    with pytest.raises(RuntimeError):
        grid.neighborPairs()


def testRejectsBadPositionShape():
    grid = GridNeighborhood()
    grid.setResolution(10.0, 10.0, 1.0)
    with pytest.raises(ValueError):
        grid.build(np.zeros((4, 3)))


######################################################################
# -- Neighbor Lists -- #
######################################################################

def testMatchesBruteForceAwayFromEdges():
    rng = np.random.default_rng(7)
    positions = rng.uniform(1.0, 9.0, size=(200, 2))
    grid = _grid(positions)

    for i in range(len(positions)):
        assert set(grid.getNeighbors(i).tolist()) == _bruteForce(positions, i, 1.0)


def testDistancesWithinBounds():
    rng = np.random.default_rng(3)
    positions = rng.uniform(0.0, 10.0, size=(300, 2))
    grid = _grid(positions)

    for i in range(len(positions)):
        distances = grid.getDistances(i)
        neighbors = grid.getNeighbors(i)
        assert len(distances) <= 64
        assert np.all(distances ** 2 >= const.eps)
        assert np.all(distances ** 2 <= 1.0 + 1e-12)
        expected = np.linalg.norm(positions[neighbors] - positions[i], axis=1)
        np.testing.assert_allclose(distances, expected)


def testCoincidentParticlesAreNotNeighbors():
    grid = _grid([[5.5, 5.5], [5.5, 5.5]])
    assert grid.neighborCounts.tolist() == [0, 0]


def testScanOrderXOuterYInner():
    # 0 in cell (5, 5), 1 in cell (5, 4), 2 in cell (4, 6)
    positions = [[5.5, 5.5], [5.5, 4.9], [4.9, 6.1]]
    grid = _grid(positions)
    assert grid.getNeighbors(0).tolist() == [2, 1]


def testOverflowTruncatesDeterministically():
    # 100 particles sharing cell (5, 5), all mutual neighbors
    xs, ys = np.meshgrid(5.2 + 0.05 * np.arange(10), 5.2 + 0.05 * np.arange(10))
    positions = np.column_stack([xs.ravel(), ys.ravel()])
    grid = _grid(positions)

    assert np.all(grid.neighborCounts == 64)
    for i in (0, 37, 99):
        # Bucket order inside a cell is descending particle index
        expected = [j for j in range(99, -1, -1) if j != i][:64]
        assert grid.getNeighbors(i).tolist() == expected

    again = _grid(positions)
    for i in range(len(positions)):
        np.testing.assert_array_equal(grid.getNeighbors(i), again.getNeighbors(i))


def testCapacityIsConfigurable():
    positions = [[5.5, 5.5], [5.6, 5.5], [5.7, 5.5], [5.8, 5.5]]
    grid = _grid(positions, maxNeighbors=2)
    assert grid.maxNeighbors == 2
    assert np.all(grid.neighborCounts == 2)


def testCellsAreClampedAwayFromTheRim():
    grid = _grid([[0.5, 0.5], [9.7, 9.7], [-3.0, 2.5]])
    assert grid.cellOf(0) == (1, 1)
    assert grid.cellOf(1) == (8, 8)
    assert grid.cellOf(2) == (1, 2)


def testCellMembersInDescendingOrder():
    grid = _grid([[5.1, 5.1], [2.5, 2.5], [5.2, 5.2], [5.3, 5.3]])
    assert grid.cellMembers(5, 5).tolist() == [3, 2, 0]
    assert grid.cellMembers(2, 2).tolist() == [1]


def testForEachNeighborMatchesLists():
    rng = np.random.default_rng(11)
    positions = rng.uniform(2.0, 8.0, size=(50, 2))
    grid = _grid(positions)

    visited = []
    grid.forEachNeighbor(4, lambda j, d: visited.append((j, d)))

    assert [j for j, _ in visited] == grid.getNeighbors(4).tolist()
    np.testing.assert_allclose([d for _, d in visited], grid.getDistances(4))


def testNeighborPairsGroupedByParticle():
    rng = np.random.default_rng(5)
    positions = rng.uniform(2.0, 8.0, size=(80, 2))
    grid = _grid(positions)

    iIdx, jIdx, distances = grid.neighborPairs()
    assert np.all(np.diff(iIdx) >= 0)
    assert len(iIdx) == int(grid.neighborCounts.sum())
    for i in (0, 40, 79):
        np.testing.assert_array_equal(jIdx[iIdx == i], grid.getNeighbors(i))
        np.testing.assert_allclose(distances[iIdx == i], grid.getDistances(i))


def testEmptyBuild():
    grid = _grid(np.zeros((0, 2)))
    iIdx, jIdx, distances = grid.neighborPairs()
    assert len(iIdx) == len(jIdx) == len(distances) == 0
