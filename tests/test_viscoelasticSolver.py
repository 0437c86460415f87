# -- Viscoelastic SPH Solver Tests -- #

import numpy as np
import pytest

from sphFluid2D.export.positionWriter import readPositions
from sphFluid2D.sph.protocols import ViscoelasticSphConfig
from sphFluid2D.sph.viscoelasticSolver import ViscoelasticSphSolver


def testSeedsSquareBlock():
    solver = ViscoelasticSphSolver(2500)
    positions = solver.positions
    assert positions.shape == (2500, 2)
    np.testing.assert_allclose(positions[0], [3.125, 4.6875])
    np.testing.assert_allclose(positions[1], [3.125 + 0.09, 4.6875])
    np.testing.assert_allclose(positions[50], [3.125, 4.6875 - 0.09])


def testRoundsCountDownToSquare():
    assert ViscoelasticSphSolver(10).positions.shape == (9, 2)


def testGridSizedFromTruncatedView():
    solver = ViscoelasticSphSolver(4)
    assert solver.neighborhood.gridShape == (66, 50)
    assert solver.neighborhood.isBuilt


def testSingleParticleAtRestWithoutGravity(weightlessViscoelasticConfig):
    solver = ViscoelasticSphSolver(1, weightlessViscoelasticConfig)
    start = solver.positions.copy()

    for _ in range(3):
        solver.update()

    np.testing.assert_allclose(solver.positions, start, atol=1e-12)
    np.testing.assert_allclose(solver.particles.velocities, 0.0, atol=1e-12)


def testIsolatedParticleFallsBallistically():
    config = ViscoelasticSphConfig()
    solver = ViscoelasticSphSolver(1, config)
    y0 = solver.positions[0, 1]
    dt = config.timeStep

    solver.update()

    # Ten sub-steps of v += dt g, x += dt v
    assert solver.particles.velocities[0, 1] == pytest.approx(-9.8 * 10 * dt)
    assert solver.positions[0, 1] == pytest.approx(y0 - 9.8 * dt * dt * 55)
    assert solver.positions[0, 0] == pytest.approx(3.125)


def testRelaxationSeparatesCrowdedPair(weightlessViscoelasticConfig):
    solver = ViscoelasticSphSolver(0, weightlessViscoelasticConfig)
    solver.addParticle(np.array([6.0, 4.0]))
    solver.addParticle(np.array([6.05, 4.0]))

    solver.update()

    separation = np.linalg.norm(solver.positions[1] - solver.positions[0])
    assert separation > 0.05
    # Symmetric pair stays on its axis
    assert solver.positions[0, 1] == pytest.approx(4.0)
    assert solver.positions[0, 0] < 6.0
    assert solver.positions[1, 0] > 6.05


def testArraysStayAlignedAcrossUpdates():
    solver = ViscoelasticSphSolver(16)
    solver.update()
    solver.addParticle(np.array([2.0, 2.0]))
    solver.update()

    p = solver.particles
    for name in p.vectorFields:
        assert getattr(p, name).shape == (17, 2)
    for name in p.scalarFields:
        assert getattr(p, name).shape == (17,)


def testEmitsOncePerFrame(tmp_path):
    outputPath = tmp_path / 'viscoelastic.csv'
    solver = ViscoelasticSphSolver(9, outputPath=str(outputPath))

    solver.update()
    solver.update()

    frames = list(readPositions(str(outputPath)))
    assert len(frames) == 2
    np.testing.assert_allclose(frames[-1], solver.positions, atol=1e-9)


def testCountersAndTimeStep():
    solver = ViscoelasticSphSolver(4)
    assert solver.timeStep == pytest.approx(1.0 / 300.0)
    assert solver.solverSteps == 10

    solver.update()
    assert solver.frame == 1
    assert solver.time == pytest.approx(1.0 / 30.0)
    assert solver.currentState.frame == 1


def testRenderView():
    view = ViscoelasticSphSolver(0).renderView
    assert view.viewWidth == 12.5
    assert view.viewHeight == pytest.approx(9.375)
    assert view.pointSize == pytest.approx(2.5 * 0.03 * 800 / 9.375)


def testAccessors():
    solver = ViscoelasticSphSolver(0)
    assert solver.kernelRadius == pytest.approx(0.18)
    assert solver.particleRadius == 0.03


######################################################################
# -- Projection Terms (single sub-step, two particles) -- #
######################################################################

def _pairSolver(velocities=None, **overrides):
    '''Two particles 0.05 apart on a horizontal line, one sub-step per frame.'''
    config = ViscoelasticSphConfig(gravity=np.zeros(2), solverSteps=1, **overrides)
    solver = ViscoelasticSphSolver(0, config)
    solver.addParticle(np.array([6.0, 4.0]))
    solver.addParticle(np.array([6.05, 4.0]))
    if velocities is not None:
        solver.particles.velocities = np.array(velocities, dtype=float)
    return solver


def testSurfaceTensionPullsPairTogether():
    solver = _pairSolver(stiffness=0.0, stiffnessAtProximity=0.0, surfaceTension=0.01)
    h = solver.kernelRadius
    kf = 20.0 / (2.0 * np.pi * h * h)

    solver.update()

    r = 6.05 - 6.0
    a = 1.0 - r / h
    shift = 0.01 * a * a * kf * r
    assert solver.positions[0, 0] == pytest.approx(6.0 + shift, rel=1e-12)
    assert solver.positions[1, 0] == pytest.approx(6.05 - shift, rel=1e-12)


def testRelaxationWithSurfaceTension():
    config = ViscoelasticSphConfig()
    solver = _pairSolver(surfaceTension=0.01)
    h = solver.kernelRadius
    dt = solver.timeStep
    kf = 20.0 / (2.0 * np.pi * h * h)
    kfn = 30.0 / (2.0 * np.pi * h * h)

    solver.update()

    r = 6.05 - 6.0
    a = 1.0 - r / h
    m = config.particleMass
    rho = m * a ** 3 * kf
    rhoNear = m * a ** 4 * kfn
    pressure = config.stiffness * (rho - m * config.elasticRestDensity)
    pressureNear = config.stiffnessAtProximity * rhoNear

    relaxation = dt * dt * (2.0 * pressureNear * a ** 3 * kfn + 2.0 * pressure * a ** 2 * kf) / 2.0
    coeff = -relaxation / (r * m) + 0.01 * a * a * kf
    assert solver.positions[0, 0] == pytest.approx(6.0 + coeff * r, rel=1e-12)
    assert solver.positions[1, 0] == pytest.approx(6.05 - coeff * r, rel=1e-12)
    assert solver.particles.velocities[0, 0] == pytest.approx(coeff * r / dt, rel=1e-9)


def testViscosityImpulseSlowsApproachingPair():
    config = ViscoelasticSphConfig()
    solver = _pairSolver(
        velocities=[[0.5, 0.0], [-0.5, 0.0]],
        stiffness=0.0, stiffnessAtProximity=0.0, surfaceTension=0.0,
    )
    h = solver.kernelRadius
    dt = solver.timeStep

    solver.update()

    # Predicted positions, then u = (v_i - v_j) . dx / r = 1
    x0 = 6.0 + 0.5 * dt
    x1 = 6.05 - 0.5 * dt
    r = x1 - x0
    a = 1.0 - r / h
    impulse = 0.5 * dt * a * (config.linearViscosity * 1.0 + config.quadraticViscosity * 1.0)

    assert solver.positions[0, 0] == pytest.approx(x0 - impulse * r * dt, rel=1e-12)
    assert solver.positions[1, 0] == pytest.approx(x1 + impulse * r * dt, rel=1e-12)
    assert solver.particles.velocities[0, 0] < 0.5


def testViscosityImpulseSkipsRecedingPair():
    solver = _pairSolver(
        velocities=[[-0.5, 0.0], [0.5, 0.0]],
        stiffness=0.0, stiffnessAtProximity=0.0, surfaceTension=0.0,
    )
    dt = solver.timeStep

    solver.update()

    assert solver.positions[0, 0] == pytest.approx(6.0 - 0.5 * dt, rel=1e-12)
    assert solver.positions[1, 0] == pytest.approx(6.05 + 0.5 * dt, rel=1e-12)
    np.testing.assert_allclose(solver.particles.velocities, [[-0.5, 0.0], [0.5, 0.0]], rtol=1e-9)
