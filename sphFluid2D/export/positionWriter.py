# -- Particle Position Stream Writer -- #

'''
Writes particle trajectories as one text line per frame.

Line format (N particles, 10 fixed-point decimals):

    x0 y0;x1 y1;...;xN-1 yN-1

The destination is truncated once when the writer is created; every
write() appends exactly one line. readPositions() parses the same
format back, one (N, 2) array per line, for golden-file comparison.
'''

from __future__ import annotations

import os
from typing import Iterator

import numpy as np


FIELD_SEPARATOR = ';'
COORDINATE_SEPARATOR = ' '
DECIMALS = 10


class PositionWriter:
    '''
    Append-only per-frame position sink.

    Usage:
        writer = PositionWriter('trajectory.csv')   # truncates the file
        writer.write(solver.positions)              # one line per call

    Parameters:
    -----------
    filePath : str
        Destination file; parent directories are created as needed
    '''

    def __init__(self, filePath: str) -> None:
        self._filePath = filePath
        self._nFrames = 0

        directory = os.path.dirname(filePath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filePath, 'w'):
            pass

    def write(self, positions: np.ndarray) -> None:
        '''
        Append one frame.

        Parameters:
        -----------
        positions : np.ndarray
            Particle positions, shape (N, 2)
        '''
        line = formatPositions(positions)
        with open(self._filePath, 'a') as f:
            f.write(line + '\n')
        self._nFrames += 1

    @property
    def filePath(self) -> str:
        '''Destination file path.'''
        return self._filePath

    @property
    def nFrames(self) -> int:
        '''Number of frames written since creation.'''
        return self._nFrames


def formatPositions(positions: np.ndarray) -> str:
    '''Format (N, 2) positions as a single line without newline.'''
    fmt = f'{{:.{DECIMALS}f}}{COORDINATE_SEPARATOR}{{:.{DECIMALS}f}}'
    return FIELD_SEPARATOR.join(fmt.format(x, y) for x, y in np.asarray(positions, dtype=float))


def parsePositions(line: str) -> np.ndarray:
    '''
    Parse one frame line back into an (N, 2) array.

    Raises:
    -------
    ValueError : If a field is not an 'x y' pair of numbers
    '''
    line = line.strip()
    if not line:
        return np.zeros((0, 2))

    pairs = []
    for fieldText in line.split(FIELD_SEPARATOR):
        parts = fieldText.split()
        if len(parts) != 2:
            raise ValueError(f'Expected "x y" position field, got {fieldText!r}')
        pairs.append((float(parts[0]), float(parts[1])))
    return np.array(pairs)


def readPositions(filePath: str) -> Iterator[np.ndarray]:
    '''
    Iterate over the frames stored in a position file.

    Parameters:
    -----------
    filePath : str
        File written by PositionWriter

    Yields:
    -------
    np.ndarray : Positions of one frame, shape (N, 2)
    '''
    with open(filePath, 'r') as f:
        for line in f:
            if line.strip():
                yield parsePositions(line)
