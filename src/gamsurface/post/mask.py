from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial import cKDTree

from gamsurface.errors import DegenerateAxisRangeWarning

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def unit_rescale(
    values: npt.NDArray[np.float64],
    lower: float,
    span: float,
) -> npt.NDArray[np.float64]:
    """
    Map `lower` to 0 and `lower + span` to 1.

    A zero span collapses every value to 0, so distances along this axis vanish.
    """
    if span > 0.0:
        return (values - lower) / span
    return np.zeros_like(values)


def _warn_degenerate(axis: str, anchors: npt.NDArray[np.float64], span: float) -> None:
    if np.ptp(anchors) > 0.0:
        return
    msg = (f"Anchor coordinates have zero range on axis '{axis}' (all {anchors[0]:.6g}). "
           f"Support along this axis is judged only from the rescale range {span:.6g}"
           + ("; distances along it collapse to 0." if span == 0.0 else "."))
    logger.warning(msg)
    warnings.warn(msg, DegenerateAxisRangeWarning, stacklevel=3)


def exclude_too_far(
    gx: npt.ArrayLike,
    gy: npt.ArrayLike,
    dx: npt.ArrayLike,
    dy: npt.ArrayLike,
    dist: float,
) -> npt.NDArray[np.bool_]:
    """
    Flag points that are too far from every anchor to be trusted.

    Both the evaluated points (gx, gy) and the anchors (dx, dy) are rescaled per axis
    into the unit square spanned by their joint bounding box. A point is flagged when
    the Euclidean distance to its nearest anchor in that space exceeds `dist`. This is
    a nearest-neighbour support test, not a hull test: a point inside the bounding box
    between sparse anchor clusters is flagged when no anchor is within `dist`.

    Args:
        gx, gy: Coordinates of the evaluated points, shape (n,).
        dx, dy: Coordinates of the anchors (rows with a measured response), shape (m,).
        dist: Distance threshold in the rescaled space.

    Raises:
        ValueError: If there are no anchors or `dist` is negative.

    Returns:
        Boolean array of shape (n,), True where the point is too far. Points with
        non-finite coordinates are always flagged.
    """
    gx = np.asarray(gx, dtype=np.float64).ravel()
    gy = np.asarray(gy, dtype=np.float64).ravel()
    dx = np.asarray(dx, dtype=np.float64).ravel()
    dy = np.asarray(dy, dtype=np.float64).ravel()

    if not dist >= 0.0:
        raise ValueError(f"'dist' must be a non-negative number, got {dist!r}.")

    keep = np.isfinite(dx) & np.isfinite(dy)
    dx, dy = dx[keep], dy[keep]
    if dx.size == 0:
        raise ValueError("At least one anchor with finite coordinates is required.")

    too_far = np.ones(gx.shape, dtype=bool)
    valid = np.isfinite(gx) & np.isfinite(gy)
    if not valid.any():
        return too_far

    scaled = []
    for axis, g, d in (("x", gx[valid], dx), ("y", gy[valid], dy)):
        lower = min(g.min(), d.min())
        span = max(g.max(), d.max()) - lower
        _warn_degenerate(axis, d, span)
        scaled.append((unit_rescale(g, lower, span), unit_rescale(d, lower, span)))

    (sgx, sdx), (sgy, sdy) = scaled
    tree = cKDTree(np.column_stack((sdx, sdy)))
    nearest, _ = tree.query(np.column_stack((sgx, sgy)), k=1)

    too_far[valid] = nearest > dist
    logger.debug(f"{int(too_far[valid].sum())} of {int(valid.sum())} points farther than "
                 f"{dist} from the nearest anchor.")
    return too_far
