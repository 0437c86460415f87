# -- Boundary Enforcement Tests -- #

import numpy as np
import pytest

from sphFluid2D.sph.boundaryHandling import BoundaryHandler


def testRectanglePlanes():
    walls = BoundaryHandler.rectangle(1200.0, 900.0)
    np.testing.assert_array_equal(walls.planes, [
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [-1.0, 0.0, -1200.0],
        [0.0, -1.0, -900.0],
    ])
    assert walls.boundaryDamping == 1.0


def testRejectsBadPlanes():
    with pytest.raises(ValueError):
        BoundaryHandler(np.zeros((4, 2)))


def testInteriorParticleUnaffected():
    walls = BoundaryHandler.rectangle(1200.0, 900.0, 0.5)
    positions = np.array([[600.0, 450.0]])
    velocities = np.array([[1.0, -2.0]])

    walls.enforceBoundary(positions, velocities, 16.0, 0.01)
    np.testing.assert_array_equal(velocities, [[1.0, -2.0]])


def testLeftWallPushesRight():
    walls = BoundaryHandler.rectangle(1200.0, 900.0)
    positions = np.array([[5.0, 450.0]])
    velocities = np.zeros((1, 2))

    walls.enforceBoundary(positions, velocities, 16.0, 0.5)
    np.testing.assert_allclose(velocities, [[(16.0 - 5.0) / 0.5, 0.0]])
    np.testing.assert_array_equal(positions, [[5.0, 450.0]])


def testPenetrationClampedAtZero():
    walls = BoundaryHandler.rectangle(100.0, 100.0)
    positions = np.array([[50.0, -3.0]])
    velocities = np.zeros((1, 2))

    walls.enforceBoundary(positions, velocities, 2.0, 1.0)
    np.testing.assert_allclose(velocities, [[0.0, 2.0]])


def testDampingAppliedAfterPush():
    walls = BoundaryHandler.rectangle(100.0, 100.0, 0.5)
    positions = np.array([[99.0, 50.0]])
    velocities = np.array([[4.0, 2.0]])

    walls.enforceBoundary(positions, velocities, 2.0, 1.0)
    np.testing.assert_allclose(velocities, [[(4.0 - 1.0) * 0.5, 1.0]])


def testCornerCorrectionsAreSequential():
    walls = BoundaryHandler.rectangle(100.0, 100.0, 0.5)
    positions = np.array([[5.0, 5.0]])
    velocities = np.zeros((1, 2))

    walls.enforceBoundary(positions, velocities, 16.0, 1.0)
    # Left wall: (11, 0) * 0.5, then bottom wall: ((5.5, 0) + (0, 11)) * 0.5
    np.testing.assert_allclose(velocities, [[2.75, 5.5]])


def testIdempotentForClearParticles():
    walls = BoundaryHandler.rectangle(1200.0, 900.0, 0.5)
    rng = np.random.default_rng(2)
    positions = rng.uniform(20.0, 880.0, size=(100, 2))
    velocities = rng.normal(size=(100, 2))

    once = velocities.copy()
    walls.enforceBoundary(positions, once, 16.0, 0.001)
    twice = once.copy()
    walls.enforceBoundary(positions, twice, 16.0, 0.001)

    np.testing.assert_array_equal(once, velocities)
    np.testing.assert_array_equal(twice, once)
