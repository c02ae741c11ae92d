"""
Surface Fitting Pipeline
========================
Fits a smooth surface z = f(x, y) to scattered, noisy samples and optionally
extends it to rows without a measured response.

Why is this file needed?
------------------------
1. Orchestration: It runs the stages in order: transform the response, fit
   the penalized smooth, predict, mask unsupported extrapolation, write the
   values back.
2. Validation: Column names, weights and the training set are checked here,
   before any numerical work is started.
3. Row identity: Rows are tracked by position, so the returned table has the
   same index, columns and order as the input.

Note: Table I/O and plotting are the caller's job; this module only takes and
returns pandas DataFrames.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np
import pandas as pd

from gamsurface.analysis import FittedSurface, predict_rows
from gamsurface.basis import GaussianProcessBasis
from gamsurface.config import DEFAULT_DIST, DEFAULT_K, SurfaceFitConfig, get_worker_count
from gamsurface.errors import EmptyTrainingSetError, WeightMismatchError
from gamsurface.post import assemble_result, exclude_too_far
from gamsurface.solvers import PenalizedSolver
from gamsurface.transform import PowerTransform

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def _validate_weights(
    weights: Optional[npt.ArrayLike],
    n_present: int,
) -> Optional[npt.NDArray[np.float64]]:
    """Check that weights align with the present-response rows."""
    if weights is None:
        return None
    w = np.asarray(weights, dtype=np.float64).ravel()
    if w.size != n_present:
        raise WeightMismatchError(
            f"Got {w.size} weights for {n_present} rows with a present response. "
            f"Weights must align one-to-one with those rows."
        )
    if not np.all(np.isfinite(w)) or np.any(w < 0.0):
        raise ValueError("Weights must be finite and non-negative.")
    return w


def fit_surface(
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    z: npt.ArrayLike,
    weights: Optional[npt.ArrayLike] = None,
    k: int = DEFAULT_K,
    n_threads: Optional[int] = None,
) -> FittedSurface:
    """
    Fit a penalized Gaussian process smooth of z over (x, y).

    Only rows with a present (finite) z participate. The smoothing parameter is chosen
    by REML, assuming Gaussian residuals.

    Args:
        x: x coordinates, shape (n,).
        y: y coordinates, shape (n,).
        z: Response on the scale the surface is fitted on, shape (n,). NaN marks rows
            without a response.
        weights: Optional prior weights, one per row with a present z (in row order).
        k: Smoothing capacity, the basis dimension of the surface.
        n_threads: Size of the solver thread pool. Defaults to the number of CPUs - 1.

    Raises:
        WeightMismatchError: If the weight count differs from the number of rows with
            a present z.
        EmptyTrainingSetError: If no row has a present z and finite coordinates.
        RankDeficiencyError: If `k` exceeds what the training coordinates support.

    Returns:
        The fitted surface.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    y = np.asarray(y, dtype=np.float64).ravel()
    z = np.asarray(z, dtype=np.float64).ravel()
    if not x.size == y.size == z.size:
        raise ValueError(f"x, y and z must have the same length, got {x.size}, {y.size} and {z.size}.")

    present = np.isfinite(z)
    w = _validate_weights(weights, int(present.sum()))

    coords_ok = np.isfinite(x) & np.isfinite(y)
    train = present & coords_ok
    if not train.any():
        raise EmptyTrainingSetError("No row has a present response and finite coordinates.")
    if w is not None:
        w = w[coords_ok[present]]
    n_dropped = int((present & ~coords_ok).sum())
    if n_dropped:
        logger.warning(f"Ignoring {n_dropped} rows with a response but missing coordinates.")

    xt, yt, zt = x[train], y[train], z[train]
    logger.info(f"Fitting surface to {xt.size} observations (k = {k}).")

    basis = GaussianProcessBasis.build(xt, yt, k=k)
    blocks = (
        (design, zt[rows], None if w is None else w[rows])
        for rows, design in basis.design_blocks(xt, yt)
    )
    solver = PenalizedSolver.from_blocks(
        blocks,
        penalty=basis.penalty_matrix(),
        penalty_rank=basis.penalty_rank,
    )
    fit = solver.solve(n_workers=get_worker_count(n_threads))

    surface = FittedSurface(basis=basis, fit=fit, n_obs=xt.size)
    logger.info(f"Surface fitted: edf = {surface.edf:.2f}, lambda = {surface.lambda_:.4g}, "
                f"scale = {surface.scale:.4g}.")
    return surface


def fit_gam_surface(
    data: pd.DataFrame,
    x: str,
    y: str,
    z: str,
    weights: Optional[npt.ArrayLike] = None,
    k: int = DEFAULT_K,
    extrapolate: bool = False,
    force_positive: bool = True,
    dist: float = DEFAULT_DIST,
    n_threads: Optional[int] = None,
) -> pd.DataFrame:
    """
    Fit a smooth surface to x, y, z data and replace z with the fitted values.

    Args:
        data: Table with one observation per row.
        x: Name of the x coordinate column (e.g. the u wind component).
        y: Name of the y coordinate column (e.g. the v wind component).
        z: Name of the response column. Missing values mark rows without a measurement.
        weights: Optional weights, one per row with a present response (in row order).
        k: Smoothing capacity of the surface.
        extrapolate: If False, only rows with a present response get a fitted value.
            If True, every row with finite coordinates is predicted and predictions too
            far from any measured coordinate are set to missing.
        force_positive: Fit on the square root of the response and square the
            predictions, so that no fitted value is negative.
        dist: How far counts as too far, as a distance in the unit square spanned by
            the evaluated and measured coordinates. Only used if `extrapolate`.
        n_threads: Size of the solver thread pool. Defaults to the number of CPUs - 1.

    Raises:
        KeyError: If a named column is missing from `data`.
        WeightMismatchError: If `weights` does not align with the present-response rows.
        EmptyTrainingSetError: If no row has a present response.
        RankDeficiencyError: If `k` is too large for the available data.

    Returns:
        A copy of `data` with the same index, columns and row order, where `z` holds
        the fitted (or extrapolated) values and NaN where masked or not modelled.
    """
    config = SurfaceFitConfig(k=k, extrapolate=extrapolate, force_positive=force_positive,
                              dist=dist, n_threads=n_threads)

    for column in (x, y, z):
        if column not in data.columns:
            raise KeyError(f"Column '{column}' not found in data.")

    xs = data[x].to_numpy(dtype=np.float64, na_value=np.nan)
    ys = data[y].to_numpy(dtype=np.float64, na_value=np.nan)
    zs = data[z].to_numpy(dtype=np.float64, na_value=np.nan)

    measured = np.isfinite(zs)
    w = _validate_weights(weights, int(measured.sum()))

    # 1. Transform
    transform = PowerTransform.from_force_positive(config.force_positive)
    zt = transform.forward(zs)
    lost = measured & ~np.isfinite(zt)
    if lost.any():
        logger.warning(f"{int(lost.sum())} negative responses have no square root and are "
                       f"left out of the fit.")
    if w is not None:
        w = w[np.isfinite(zt[measured])]

    # 2. Fit
    surface = fit_surface(xs, ys, zt, weights=w, k=config.k, n_threads=config.workers)

    # 3. Predict
    coords_ok = np.isfinite(xs) & np.isfinite(ys)
    anchors = measured & coords_ok
    rows = coords_ok if config.extrapolate else anchors
    values = predict_rows(surface, xs, ys, rows, transform)

    # 4. Mask
    if config.extrapolate:
        too_far = exclude_too_far(xs, ys, xs[anchors], ys[anchors], dist=config.dist)
        masked = too_far & np.isfinite(values)
        values[masked] = np.nan
        logger.info(f"Extrapolated {int((rows & ~anchors).sum())} rows, masked "
                    f"{int(masked.sum())} farther than {config.dist} from any measurement.")

    # 5. Assemble
    return assemble_result(data, z, values)
