"""
Smoothing Basis
===============
Basis functions and penalty for the two-dimensional smooth.

Note: This package is pure NumPy/SciPy/Numba and holds no fitted state.
"""
from gamsurface.basis.gp import GaussianProcessBasis

__all__ = ["GaussianProcessBasis"]
