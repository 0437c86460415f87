# -- SPH Fluid 2D Runner -- #

'''
Command-line entry point for running the 2D SPH solvers.

Builds a classical or viscoelastic solver, advances it for a number
of frames with a progress bar, and optionally writes the position
stream, an HTML animation, or the two regression reference files.

Usage:
    python -m sphFluid2D.runner                                  # 500 classical particles
    python -m sphFluid2D.runner --solver viscoelastic --particles 2500
    python -m sphFluid2D.runner --config configs/fluid.json --output out/positions.csv
    python -m sphFluid2D.runner --render out/fluid.html --frames 200
    python -m sphFluid2D.runner --write-reference tests/data --reference-frames 10
'''

from __future__ import annotations

import argparse
import os
import time as timeModule

from tqdm import tqdm

from sphFluid2D.sph.protocols import ClassicalSphConfig, SphSolver, ViscoelasticSphConfig
from sphFluid2D.sph.sphSolver import ClassicalSphSolver
from sphFluid2D.sph.viscoelasticSolver import ViscoelasticSphSolver
from sphFluid2D.visualization import theme
from sphFluid2D.visualization.renderer import ParticleRenderer


# Regression scenarios: file name -> (solver, particle count)
CLASSICAL_REFERENCE_FILE = 'SphSolver2DData.csv'
VISCOELASTIC_REFERENCE_FILE = 'VSphSolver2DData.csv'
CLASSICAL_REFERENCE_PARTICLES = 500
VISCOELASTIC_REFERENCE_PARTICLES = 50 * 50
REFERENCE_ITERATIONS = 500

# Length of the reference files kept under tests/data
STORED_REFERENCE_ITERATIONS = 10


#--------------------------------------------------------------------#
# -- CLI Argument Parser -- #
#--------------------------------------------------------------------#

def buildParser() -> argparse.ArgumentParser:
    '''Build the CLI argument parser.'''
    parser = argparse.ArgumentParser(
        description='sphFluid2D -- 2D SPH fluid simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--solver', type=str, default='classical',
        choices=['classical', 'viscoelastic'],
        help='Solver variant (default: classical)',
    )
    parser.add_argument(
        '--particles', type=int, default=None,
        help='Number of particles (default: 500 classical, 2500 viscoelastic)',
    )
    parser.add_argument(
        '--frames', type=int, default=100,
        help='Number of update() calls (default: 100)',
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to JSON configuration file with "classical"/"viscoelastic" sections',
    )
    parser.add_argument(
        '--output', type=str, default=None,
        help='Position stream file, one line per frame',
    )
    parser.add_argument(
        '--render', type=str, default=None,
        help='Write a Plotly HTML animation of the run',
    )
    parser.add_argument(
        '--write-reference', type=str, default=None, metavar='DIR',
        help='Regenerate the regression reference files in DIR and exit',
    )
    parser.add_argument(
        '--reference-frames', type=int, default=REFERENCE_ITERATIONS,
        help=f'Frames per reference file (default: {REFERENCE_ITERATIONS})',
    )

    return parser


#--------------------------------------------------------------------#
# -- Solver Factory -- #
#--------------------------------------------------------------------#

def createSolver(
    solverName: str,
    numberOfParticles: int | None = None,
    configPath: str | None = None,
    outputPath: str | None = None,
) -> SphSolver:
    '''
    Build a solver by name.

    Parameters:
    -----------
    solverName : str
        'classical' or 'viscoelastic'
    numberOfParticles : int | None
        Particle count (None uses the regression scenario count)
    configPath : str | None
        JSON configuration file
    outputPath : str | None
        Position stream file

    Returns:
    --------
    SphSolver : Constructed solver

    Raises:
    -------
    ValueError : If solverName is unknown
    '''
    if solverName == 'classical':
        config = ClassicalSphConfig.fromJson(configPath) if configPath else ClassicalSphConfig()
        count = CLASSICAL_REFERENCE_PARTICLES if numberOfParticles is None else numberOfParticles
        return ClassicalSphSolver(count, config, outputPath)

    if solverName == 'viscoelastic':
        config = ViscoelasticSphConfig.fromJson(configPath) if configPath else ViscoelasticSphConfig()
        count = VISCOELASTIC_REFERENCE_PARTICLES if numberOfParticles is None else numberOfParticles
        return ViscoelasticSphSolver(count, config, outputPath)

    raise ValueError(f'Unknown solver: {solverName!r} (expected classical or viscoelastic)')


#--------------------------------------------------------------------#
# -- Runner Class -- #
#--------------------------------------------------------------------#

class SphFluidRunner:
    '''
    Runs a 2D SPH simulation with progress reporting.

    Handles the full pipeline: solver setup, the frame loop, and
    optional HTML rendering.
    '''

    def run(
        self,
        solverName: str = 'classical',
        numberOfParticles: int | None = None,
        nFrames: int = 100,
        configPath: str | None = None,
        outputPath: str | None = None,
        renderPath: str | None = None,
    ) -> dict:
        '''
        Run one simulation.

        Parameters:
        -----------
        solverName : str
            'classical' or 'viscoelastic'
        numberOfParticles : int | None
            Particle count
        nFrames : int
            Number of update() calls
        configPath : str | None
            JSON configuration file
        outputPath : str | None
            Position stream file
        renderPath : str | None
            HTML animation file

        Returns:
        --------
        dict : Simulation results summary
        '''
        print()
        print('=' * 62)
        print(f'  SPHFLUID2D -- {solverName.upper()} SPH SIMULATION')
        print('=' * 62)
        print()

        #--------------------------------------------------------------------#
        # Solver Setup
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  SOLVER SETUP')
        print('-' * 62)

        solver = createSolver(solverName, numberOfParticles, configPath, outputPath)
        view = solver.renderView

        print(f'  Particles:         {len(solver.positions):8d}')
        print(f'  Kernel Radius:     {solver.kernelRadius:8.4f}')
        print(f'  Particle Radius:   {solver.particleRadius:8.4f}')
        print(f'  Time Step:         {solver.timeStep:8.2e}')
        print(f'  View:              {view.viewWidth:8.3f} x {view.viewHeight:.3f}')
        print(f'  Frames:            {nFrames:8d}')
        if outputPath:
            print(f'  Position Stream:   {outputPath}')
        print()

        #--------------------------------------------------------------------#
        # Simulation Loop
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  RUNNING SIMULATION')
        print('-' * 62)

        renderer = None
        if renderPath:
            color = theme.PARTICLE_COLORS.get(solverName, theme.BLUE)
            renderer = ParticleRenderer(solver, color=color)

        wallClockStart = timeModule.time()
        for _ in tqdm(range(nFrames), desc='  Frames', unit='frame'):
            if renderer is not None:
                renderer.captureFrame()
            else:
                solver.update()
        wallClockSeconds = timeModule.time() - wallClockStart

        finalState = solver.currentState

        print()
        print(f'  Simulation complete.')
        print(f'  Frames:            {finalState.frame:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print()

        #--------------------------------------------------------------------#
        # Render
        #--------------------------------------------------------------------#
        if renderer is not None:
            print('-' * 62)
            print('  WRITING ANIMATION')
            print('-' * 62)

            directory = os.path.dirname(renderPath)
            if directory:
                os.makedirs(directory, exist_ok=True)
            renderer.writeHtml(renderPath, title=f'{solverName.capitalize()} SPH')
            print(f'  Written to: {renderPath}')
            print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        print('=' * 62)
        print('  SIMULATION SUMMARY')
        print('=' * 62)
        print(f'  Simulated Time:    {finalState.time:10.6f}')
        print(f'  Final KE:          {finalState.kineticEnergy:10.6f}')
        print(f'  Max Velocity:      {finalState.maxVelocity:10.6f}')
        print(f'  Mean Density:      {finalState.meanDensity:10.6f}')
        print(f'  Max Density:       {finalState.maxDensity:10.6f}')
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': nFrames,
            'outputPath': outputPath,
            'renderPath': renderPath,
        }


#--------------------------------------------------------------------#
# -- Reference Data -- #
#--------------------------------------------------------------------#

def writeReferenceData(directory: str, iterations: int = REFERENCE_ITERATIONS) -> tuple[str, str]:
    '''
    Regenerate the two regression reference files.

    Classical: 500 particles, viscoelastic: 50 x 50 particles, both
    with default configuration, iterations update() calls each.

    Parameters:
    -----------
    directory : str
        Output directory
    iterations : int
        Number of update() calls per solver

    Returns:
    --------
    tuple[str, str] : (classical file, viscoelastic file)
    '''
    os.makedirs(directory, exist_ok=True)
    classicalPath = os.path.join(directory, CLASSICAL_REFERENCE_FILE)
    viscoelasticPath = os.path.join(directory, VISCOELASTIC_REFERENCE_FILE)

    scenarios = [
        ('classical', CLASSICAL_REFERENCE_PARTICLES, classicalPath),
        ('viscoelastic', VISCOELASTIC_REFERENCE_PARTICLES, viscoelasticPath),
    ]
    for solverName, count, filePath in scenarios:
        solver = createSolver(solverName, count, outputPath=filePath)
        for _ in tqdm(range(iterations), desc=f'  {solverName}', unit='frame'):
            solver.update()

    return (classicalPath, viscoelasticPath)


#--------------------------------------------------------------------#
# -- CLI Entry Point -- #
#--------------------------------------------------------------------#

def main() -> None:
    '''CLI entry point.'''
    parser = buildParser()
    args = parser.parse_args()

    if args.write_reference:
        print()
        print('-' * 62)
        print('  WRITING REFERENCE DATA')
        print('-' * 62)
        paths = writeReferenceData(args.write_reference, args.reference_frames)
        for path in paths:
            print(f'  Written to: {path}')
        print()
        return

    runner = SphFluidRunner()
    runner.run(
        solverName=args.solver,
        numberOfParticles=args.particles,
        nFrames=args.frames,
        configPath=args.config,
        outputPath=args.output,
        renderPath=args.render,
    )


if __name__ == '__main__':
    main()
