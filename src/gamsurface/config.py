"""
Configuration & Numerical Constants
===================================
This module serves as the central registry for default fit options and the
constants that control the smoother and the solver.

Why is this file needed?
------------------------
1. Defaults: The user-facing options (k, extrapolate, force_positive, dist)
   are defined once and validated in one place.
2. Tuning: Knot limits, the smoothing-parameter search range and row
   block sizes are numerical choices, not user input. Keeping them here
   prevents magic numbers scattered across the basis and solver modules.

Exports:
    SurfaceFitConfig: Validated set of options for one pipeline call.
    get_worker_count: Resolves the size of the solver thread pool.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# User-facing defaults
DEFAULT_K: int = 100
DEFAULT_DIST: float = 0.05

# Gaussian process basis
MAX_KNOTS: int = 2000  # unique coordinates above this are subsampled
KNOT_SEED: int = 1
NULL_SPACE_DIM: int = 3  # linear trend: 1, x, y
EIGENVALUE_RTOL: float = 1e-12

# REML smoothing-parameter search (log lambda, relative to the scaled penalty)
LOG_LAMBDA_MIN: float = -12.0
LOG_LAMBDA_MAX: float = 12.0
LOG_LAMBDA_GRID_SIZE: int = 25

# Rows per design-matrix block, in fitting and prediction
ROW_CHUNK_SIZE: int = 10000


def get_worker_count(n_threads: Optional[int] = None) -> int:
    """
    Number of worker threads for the penalized solve.

    Args:
        n_threads: Explicit override. If None, uses the detected hardware
            parallelism minus one.

    Returns:
        A worker count of at least 1.
    """
    if n_threads is not None:
        return max(1, int(n_threads))
    return max(1, (os.cpu_count() or 1) - 1)


@dataclass(frozen=True)
class SurfaceFitConfig:
    """Options for one call of the fit-predict-mask pipeline."""
    k: int = DEFAULT_K
    extrapolate: bool = False
    force_positive: bool = True
    dist: float = DEFAULT_DIST
    n_threads: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.k, bool) or int(self.k) != self.k:
            raise ValueError(f"'k' must be an integer, got {self.k!r}.")
        if self.k < 1:
            raise ValueError(f"'k' must be positive, got {self.k}.")
        object.__setattr__(self, "k", int(self.k))
        if not self.dist >= 0.0:
            raise ValueError(f"'dist' must be a non-negative number, got {self.dist!r}.")
        if self.n_threads is not None and self.n_threads < 1:
            raise ValueError(f"'n_threads' must be at least 1, got {self.n_threads}.")

    @property
    def workers(self) -> int:
        """Resolved size of the solver thread pool."""
        return get_worker_count(self.n_threads)
