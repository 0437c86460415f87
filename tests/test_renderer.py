# -- Particle Renderer Tests -- #

import plotly.graph_objects as go

from sphFluid2D.sph.sphSolver import ClassicalSphSolver
from sphFluid2D.sph.viscoelasticSolver import ViscoelasticSphSolver
from sphFluid2D.visualization import theme
from sphFluid2D.visualization.renderer import ParticleRenderer


def testCaptureAdvancesOneUpdatePerFrame():
    solver = ClassicalSphSolver(10)
    renderer = ParticleRenderer(solver)

    renderer.captureFrames(3)

    assert solver.frame == 3
    assert renderer.nFrames == 4
    assert renderer.frames[-1].shape == (10, 2)


def testFigureUsesRenderView():
    solver = ClassicalSphSolver(10)
    renderer = ParticleRenderer(solver, color=theme.CYAN)
    renderer.captureFrames(2)

    fig = renderer.buildFigure()

    assert isinstance(fig, go.Figure)
    assert len(fig.frames) == 3
    assert fig.layout.width == 800
    assert fig.layout.height == 600
    assert list(fig.layout.xaxis.range) == [0.0, 1200.0]
    assert list(fig.layout.yaxis.range) == [0.0, 900.0]
    assert fig.data[0].marker.size == 8.0
    assert fig.data[0].marker.color == theme.CYAN


def testWriteHtml(tmp_path):
    solver = ViscoelasticSphSolver(9)
    renderer = ParticleRenderer(solver)
    renderer.captureFrame()

    htmlPath = tmp_path / 'fluid.html'
    renderer.writeHtml(str(htmlPath), title='Viscoelastic')

    assert htmlPath.exists()
    assert htmlPath.stat().st_size > 0
