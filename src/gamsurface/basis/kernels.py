# kernels.py
from __future__ import annotations

import numpy as np
import numpy.typing as npt
import numba as nb

# ---- JIT'd covariance kernels ----

@nb.njit(cache=True, fastmath=True)
def matern32(r: float) -> float:
    """Matérn covariance with smoothness 1.5 at scaled distance r = d / rho."""
    return (1.0 + r) * np.exp(-r)

@nb.njit(cache=True, fastmath=True)
def matern32_covariance(
    xa: npt.NDArray[np.float64],
    ya: npt.NDArray[np.float64],
    xb: npt.NDArray[np.float64],
    yb: npt.NDArray[np.float64],
    rho: float,
) -> npt.NDArray[np.float64]:
    """
    Cross-covariance matrix between two point sets.

    Args:
        xa, ya: Coordinates of the first set, shape (n_a,).
        xb, yb: Coordinates of the second set, shape (n_b,).
        rho:    Range parameter of the covariance function.

    Returns:
        C: Covariance matrix, shape (n_a, n_b).
    """
    n_a = xa.size
    n_b = xb.size
    inv_rho = 1.0 / rho
    out = np.empty((n_a, n_b), np.float64)
    for i in range(n_a):
        for j in range(n_b):
            dx = xa[i] - xb[j]
            dy = ya[i] - yb[j]
            out[i, j] = matern32(np.sqrt(dx * dx + dy * dy) * inv_rho)
    return out

@nb.njit(cache=True, fastmath=True)
def max_pairwise_distance(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
) -> float:
    """Largest Euclidean distance between any two points of the set."""
    n = x.size
    best = 0.0
    for i in range(n):
        for j in range(i + 1, n):
            dx = x[i] - x[j]
            dy = y[i] - y[j]
            d2 = dx * dx + dy * dy
            if d2 > best:
                best = d2
    return np.sqrt(best)
