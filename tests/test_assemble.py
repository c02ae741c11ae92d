"""Tests for writing predictions back onto the input table."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from gamsurface.errors import JoinMismatchError
from gamsurface.post import assemble_result


@pytest.fixture
def table() -> pd.DataFrame:
    return pd.DataFrame(
        {"x": [3.0, 1.0, 2.0], "z": [1, 2, 3], "y": [0.5, 0.1, 0.9]},
        index=["c", "a", "b"],
    )


def test_replaces_response_in_place_of_order(table) -> None:
    result = assemble_result(table, "z", np.array([10.0, np.nan, 30.0]))
    assert list(result.columns) == ["x", "z", "y"]
    assert list(result.index) == ["c", "a", "b"]
    np.testing.assert_array_equal(result["z"].to_numpy(), [10.0, np.nan, 30.0])
    pd.testing.assert_series_equal(result["x"], table["x"])


def test_does_not_modify_input(table) -> None:
    before = table.copy()
    assemble_result(table, "z", np.zeros(3))
    pd.testing.assert_frame_equal(table, before)


@pytest.mark.parametrize("values", [np.zeros(2), np.zeros(4), np.zeros((3, 1))])
def test_length_mismatch_is_an_internal_fault(table, values) -> None:
    with pytest.raises(JoinMismatchError):
        assemble_result(table, "z", values)
