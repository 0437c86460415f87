# -- Particle Renderer -- #

'''
Plotly render sink for the 2D SPH solvers.

The renderer is handed the solver it draws. It advances the solver
by exactly one update() per captured frame, records the positions,
and builds an animated scatter figure sized from the solver's
RenderView (window in pixels, view in simulation units, marker size
from the point size hint).
'''

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from sphFluid2D.sph.protocols import RenderView, SphSolver
from sphFluid2D.visualization import theme


class ParticleRenderer:
    '''
    Captures solver frames and turns them into a Plotly animation.

    Parameters:
    -----------
    solver : SphSolver
        Solver to advance and draw
    color : str
        Marker color
    '''

    def __init__(self, solver: SphSolver, color: str = theme.BLUE) -> None:
        self._solver = solver
        self._color = color
        self._frames: list[np.ndarray] = [solver.positions.copy()]

    def captureFrames(self, nFrames: int) -> None:
        '''
        Advance the solver nFrames times, recording each frame.

        Parameters:
        -----------
        nFrames : int
            Number of update() calls
        '''
        for _ in range(nFrames):
            self.captureFrame()

    def captureFrame(self) -> np.ndarray:
        '''Advance the solver one update() and record its positions.'''
        self._solver.update()
        positions = self._solver.positions.copy()
        self._frames.append(positions)
        return positions

    def buildFigure(self, title: str = 'SPH Fluid 2D') -> go.Figure:
        '''
        Build an animated scatter plot of all captured frames.

        Returns:
        --------
        go.Figure : Figure with one animation frame per capture,
            the initial state first
        '''
        view = self._solver.renderView
        # Point size is in window pixels; plotly marker size is a diameter
        markerSize = max(1.0, view.pointSize)

        frames = [
            go.Frame(data=[self._scatter(positions, markerSize)], name=str(k))
            for k, positions in enumerate(self._frames)
        ]

        fig = go.Figure(data=[self._scatter(self._frames[0], markerSize)], frames=frames)
        fig.update_layout(
            template=theme.TEMPLATE,
            title=title,
            width=view.windowWidth,
            height=view.windowHeight,
            showlegend=False,
            xaxis=dict(range=[0.0, view.viewWidth], showgrid=False, zeroline=False),
            yaxis=dict(range=[0.0, view.viewHeight], showgrid=False, zeroline=False),
            shapes=[_domainOutline(view)],
            updatemenus=[dict(
                type='buttons',
                showactive=False,
                buttons=[
                    dict(
                        label='Play',
                        method='animate',
                        args=[None, dict(
                            frame=dict(duration=theme.FRAME_DURATION_MS, redraw=False),
                            fromcurrent=True,
                        )],
                    ),
                    dict(
                        label='Pause',
                        method='animate',
                        args=[[None], dict(mode='immediate', frame=dict(duration=0, redraw=False))],
                    ),
                ],
            )],
        )
        return fig

    def writeHtml(self, filePath: str, title: str = 'SPH Fluid 2D') -> go.Figure:
        '''Build the figure and write it as a standalone HTML file.'''
        fig = self.buildFigure(title)
        fig.write_html(filePath)
        return fig

    def _scatter(self, positions: np.ndarray, markerSize: float) -> go.Scatter:
        return go.Scatter(
            x=positions[:, 0],
            y=positions[:, 1],
            mode='markers',
            marker=dict(size=markerSize, color=self._color),
        )

    @property
    def frames(self) -> list[np.ndarray]:
        '''Captured positions, initial state first.'''
        return self._frames

    @property
    def nFrames(self) -> int:
        return len(self._frames)


def _domainOutline(view: RenderView) -> dict:
    '''Rectangle shape along the domain walls.'''
    return dict(
        type='rect',
        x0=0.0, y0=0.0, x1=view.viewWidth, y1=view.viewHeight,
        line=dict(color=theme.REFERENCE_LINE, width=1),
    )
