from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from gamsurface.analysis.model import FittedSurface
    from gamsurface.transform import PowerTransform

logger = logging.getLogger(__name__)


def predict_rows(
    surface: FittedSurface,
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
    rows: npt.NDArray[np.bool_],
    transform: PowerTransform,
) -> npt.NDArray[np.float64]:
    """
    Evaluate the surface at the selected rows and return values in original units.

    Args:
        surface: The fitted surface.
        x: x coordinates of every input row, shape (n,).
        y: y coordinates of every input row, shape (n,).
        rows: Boolean selection of the rows to predict, shape (n,). Selected rows must
            have finite coordinates.
        transform: Response transform whose inverse is applied to the predictions.

    Returns:
        Array of shape (n,) holding the inverse-transformed prediction at every selected
        row and NaN elsewhere.
    """
    values = np.full(x.shape, np.nan, dtype=np.float64)
    if rows.any():
        values[rows] = transform.inverse(surface.predict(x[rows], y[rows]))
    logger.debug(f"Predicted {int(rows.sum())} of {rows.size} rows.")
    return values
