from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from gamsurface.errors import JoinMismatchError

if TYPE_CHECKING:
    import numpy.typing as npt


def assemble_result(
    data: pd.DataFrame,
    z: str,
    values: npt.NDArray[np.float64],
) -> pd.DataFrame:
    """
    Write computed response values back onto a copy of the input table.

    Values are aligned positionally, so the index, the column order and the row order
    of `data` are preserved.

    Args:
        data: The original input table. Not modified.
        z: Name of the response column to replace.
        values: One value per row of `data`, NaN where there is no prediction.

    Raises:
        JoinMismatchError: If `values` does not have one entry per input row.

    Returns:
        A new table with the response column replaced.
    """
    values = np.asarray(values, dtype=np.float64)
    if values.ndim != 1 or values.size != len(data):
        raise JoinMismatchError(
            f"Cannot align {values.size} computed values with {len(data)} input rows."
        )
    result = data.copy()
    result[z] = values
    return result
