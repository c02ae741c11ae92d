"""
Wind Vector Helpers
===================
Prepares the coordinates a concentration surface is usually fitted over.

Why is this file needed?
------------------------
1. Coordinates: Air quality surfaces are fitted over the wind vector (u, v)
   rather than over speed and direction, so that calm conditions sit at the
   origin and the surface is continuous across north.
2. Extrapolation: `fit_gam_surface(extrapolate=True)` predicts every row of
   the table. Appending a regular grid of rows without a response turns the
   result into a gridded surface ready for plotting.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def wind_to_uv(
    ws: npt.ArrayLike,
    wd: npt.ArrayLike,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Convert wind speed and direction into vector components.

    The direction is the meteorological "from" direction in degrees, and the vector
    points towards it: u = ws sin(wd), v = ws cos(wd). A measurement taken during a
    northerly wind therefore lands at positive v, in the sector the air came from.

    Args:
        ws: Wind speed.
        wd: Wind direction in degrees (0 = north, 90 = east).

    Returns:
        (u, v): East and north components. NaN where either input is missing.
    """
    ws = np.asarray(ws, dtype=np.float64)
    theta = np.deg2rad(np.asarray(wd, dtype=np.float64))
    return ws * np.sin(theta), ws * np.cos(theta)


def add_wind_components(
    data: pd.DataFrame,
    ws: str = "ws",
    wd: str = "wd",
    u: str = "u",
    v: str = "v",
) -> pd.DataFrame:
    """
    Return a copy of `data` with u, v wind components computed from `ws` and `wd`.

    Raises:
        KeyError: If `ws` or `wd` is not a column of `data`.
    """
    for column in (ws, wd):
        if column not in data.columns:
            raise KeyError(f"Column '{column}' not found in data.")
    result = data.copy()
    result[u], result[v] = wind_to_uv(
        data[ws].to_numpy(dtype=np.float64, na_value=np.nan),
        data[wd].to_numpy(dtype=np.float64, na_value=np.nan),
    )
    return result


def expand_grid(
    data: pd.DataFrame,
    x: str,
    y: str,
    z: str,
    n: int = 101,
    extent: Optional[tuple[float, float, float, float]] = None,
) -> pd.DataFrame:
    """
    Append an n x n regular grid of coordinate rows with a missing response.

    Args:
        data: Table with the measured rows.
        x: Name of the x coordinate column.
        y: Name of the y coordinate column.
        z: Name of the response column; set to NaN on the grid rows.
        n: Number of grid nodes per axis.
        extent: (x_min, x_max, y_min, y_max) of the grid. Defaults to the bounding box
            of the finite coordinates in `data`.

    Raises:
        KeyError: If a named column is missing.
        ValueError: If `n` < 2 or no extent can be derived.

    Returns:
        A new table: the rows of `data` followed by the grid rows, with a fresh
        RangeIndex. Columns other than x, y, z are missing on the grid rows.
    """
    for column in (x, y, z):
        if column not in data.columns:
            raise KeyError(f"Column '{column}' not found in data.")
    if n < 2:
        raise ValueError(f"'n' must be at least 2, got {n}.")

    if extent is None:
        xs = data[x].to_numpy(dtype=np.float64, na_value=np.nan)
        ys = data[y].to_numpy(dtype=np.float64, na_value=np.nan)
        ok = np.isfinite(xs) & np.isfinite(ys)
        if not ok.any():
            raise ValueError("Cannot derive a grid extent: no row has finite coordinates.")
        extent = (xs[ok].min(), xs[ok].max(), ys[ok].min(), ys[ok].max())

    x_min, x_max, y_min, y_max = extent
    gx, gy = np.meshgrid(np.linspace(x_min, x_max, n), np.linspace(y_min, y_max, n))
    grid = pd.DataFrame({x: gx.ravel(), y: gy.ravel(), z: np.nan})

    logger.debug(f"Appending a {n} x {n} grid over x [{x_min:.4g}, {x_max:.4g}], "
                 f"y [{y_min:.4g}, {y_max:.4g}].")
    return pd.concat([data, grid], ignore_index=True)
