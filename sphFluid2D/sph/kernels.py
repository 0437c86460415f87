# -- SPH Smoothing Kernels -- #

'''
Smoothing kernel functions for the classical 2D SPH solver.

Each kernel is parameterized by a fixed kernel radius h and is a
function of a single scalar argument. The argument is NOT the pair
distance itself; call sites pass the kernel-specific form:

    Poly6 (density)          W(x)    = 4 / (pi * h^8) * x^3,   x = h^2 - d^2
    Spiky (pressure)         gradW(x) = -10 / (pi * h^5) * x^3, x = h - d
    Viscosity (laplacian)    lapW(x)  = 40 / (pi * h^5) * x,    x = h - d

Callers only evaluate a kernel when d < h, so x is never negative.
All evaluators accept floats or NumPy arrays.

The viscoelastic solver does not use these kernels; it uses the
normalization factors at the bottom of this module.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for
    interactive applications
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

from __future__ import annotations

import math
from typing import Protocol

import numpy as np


######################################################################
# -- Kernel Protocol -- #
######################################################################

class SphKernel(Protocol):
    '''Protocol for fixed-radius SPH kernels.'''

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        ...


######################################################################
# -- Poly6 Kernel (Density) -- #
######################################################################

class Poly6Kernel:
    '''
    Poly6 density kernel in 2D.

    W(x) = 4 / (pi * h^8) * x^3, with x = h^2 - d^2

    Parameters:
    -----------
    kernelRadius : float
        Kernel support radius h
    '''

    def __init__(self, kernelRadius: float) -> None:
        self._kernelRadius = kernelRadius
        self._coefficient = 4.0 / (math.pi * kernelRadius ** 8)

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        return self._kernelRadius

    def evaluate(self, distanceSquaredDifference: float | np.ndarray) -> float | np.ndarray:
        '''
        Evaluate W at x = h^2 - d^2.

        Parameters:
        -----------
        distanceSquaredDifference : float | np.ndarray
            h^2 - d^2 for one or many pairs

        Returns:
        --------
        float | np.ndarray : Kernel value(s)
        '''
        return self._coefficient * distanceSquaredDifference ** 3

    __call__ = evaluate


######################################################################
# -- Spiky Kernel (Pressure Gradient) -- #
######################################################################

class SpikyKernel:
    '''
    Spiky kernel gradient in 2D.

    gradW(x) = -10 / (pi * h^5) * x^3, with x = h - d

    Parameters:
    -----------
    kernelRadius : float
        Kernel support radius h
    '''

    def __init__(self, kernelRadius: float) -> None:
        self._kernelRadius = kernelRadius
        self._coefficient = -10.0 / (math.pi * kernelRadius ** 5)

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        return self._kernelRadius

    def gradientAt(self, distanceDifference: float | np.ndarray) -> float | np.ndarray:
        '''
        Evaluate the gradient magnitude at x = h - d.

        Parameters:
        -----------
        distanceDifference : float | np.ndarray
            h - d for one or many pairs

        Returns:
        --------
        float | np.ndarray : Gradient value(s), non-positive
        '''
        return self._coefficient * distanceDifference ** 3


######################################################################
# -- Viscosity Kernel (Laplacian) -- #
######################################################################

class ViscosityKernel:
    '''
    Viscosity kernel laplacian in 2D.

    lapW(x) = 40 / (pi * h^5) * x, with x = h - d

    Parameters:
    -----------
    kernelRadius : float
        Kernel support radius h
    '''

    def __init__(self, kernelRadius: float) -> None:
        self._kernelRadius = kernelRadius
        self._coefficient = 40.0 / (math.pi * kernelRadius ** 5)

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius h.'''
        return self._kernelRadius

    def laplacianAt(self, distanceDifference: float | np.ndarray) -> float | np.ndarray:
        '''
        Evaluate the laplacian at x = h - d.

        Parameters:
        -----------
        distanceDifference : float | np.ndarray
            h - d for one or many pairs

        Returns:
        --------
        float | np.ndarray : Laplacian value(s)
        '''
        return self._coefficient * distanceDifference


######################################################################
# -- Double Density Relaxation Factors -- #
######################################################################

def densityKernelFactor(kernelRadius: float) -> float:
    '''Normalization of the (1 - r/h)^n density weights: 20 / (2 pi h^2).'''
    return 20.0 / (2.0 * math.pi * kernelRadius * kernelRadius)


def nearDensityKernelFactor(kernelRadius: float) -> float:
    '''Normalization of the near-density weights: 30 / (2 pi h^2).'''
    return 30.0 / (2.0 * math.pi * kernelRadius * kernelRadius)
