"""Tests for wind vector helpers and grid expansion."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from gamsurface import add_wind_components, expand_grid, fit_gam_surface, wind_to_uv


def test_cardinal_directions() -> None:
    u, v = wind_to_uv([2.0, 2.0, 2.0, 2.0], [0.0, 90.0, 180.0, 270.0])
    np.testing.assert_allclose(u, [0.0, 2.0, 0.0, -2.0], atol=1e-12)
    np.testing.assert_allclose(v, [2.0, 0.0, -2.0, 0.0], atol=1e-12)


def test_speed_is_vector_length() -> None:
    ws = np.array([0.5, 1.0, 3.3])
    u, v = wind_to_uv(ws, [33.0, 200.0, 301.0])
    np.testing.assert_allclose(np.hypot(u, v), ws)


def test_missing_inputs_give_missing_components() -> None:
    u, v = wind_to_uv([np.nan, 1.0], [10.0, np.nan])
    assert np.isnan(u).all() and np.isnan(v).all()


def test_add_wind_components() -> None:
    data = pd.DataFrame({"ws": [1.0, 2.0], "wd": [90.0, 180.0], "no2": [10.0, 20.0]})
    result = add_wind_components(data)
    assert list(result.columns) == ["ws", "wd", "no2", "u", "v"]
    np.testing.assert_allclose(result["u"], [1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(result["v"], [0.0, -2.0], atol=1e-12)
    assert "u" not in data.columns


def test_add_wind_components_missing_column() -> None:
    with pytest.raises(KeyError):
        add_wind_components(pd.DataFrame({"ws": [1.0]}))


def test_expand_grid_appends_missing_response_rows() -> None:
    data = pd.DataFrame({"u": [-1.0, 2.0], "v": [0.0, 3.0], "conc": [1.0, 2.0]}, index=[10, 20])
    result = expand_grid(data, "u", "v", "conc", n=5)
    assert len(result) == 2 + 25
    assert result.index.equals(pd.RangeIndex(27))
    grid = result.iloc[2:]
    assert grid["conc"].isna().all()
    assert grid["u"].min() == -1.0 and grid["u"].max() == 2.0
    assert grid["v"].min() == 0.0 and grid["v"].max() == 3.0
    pd.testing.assert_frame_equal(result.iloc[:2].reset_index(drop=True), data.reset_index(drop=True))


def test_expand_grid_custom_extent() -> None:
    data = pd.DataFrame({"u": [0.0], "v": [0.0], "conc": [1.0]})
    result = expand_grid(data, "u", "v", "conc", n=3, extent=(-5.0, 5.0, -1.0, 1.0))
    np.testing.assert_allclose(np.unique(result["u"].iloc[1:]), [-5.0, 0.0, 5.0])
    np.testing.assert_allclose(np.unique(result["v"].iloc[1:]), [-1.0, 0.0, 1.0])


def test_expand_grid_rejects_tiny_grid() -> None:
    data = pd.DataFrame({"u": [0.0], "v": [0.0], "conc": [1.0]})
    with pytest.raises(ValueError):
        expand_grid(data, "u", "v", "conc", n=1)


def test_gridded_surface_from_wind_data() -> None:
    rng = np.random.default_rng(21)
    n = 150
    data = pd.DataFrame({
        "ws": rng.gamma(2.0, 1.5, n),
        "wd": rng.uniform(0.0, 360.0, n),
    })
    data = add_wind_components(data)
    data["pm10"] = 20.0 + 5.0 * data["u"] + rng.normal(0.0, 1.0, n)
    data["pm10"] = data["pm10"].clip(lower=0.0)

    gridded = expand_grid(data, "u", "v", "pm10", n=21)
    result = fit_gam_surface(gridded, "u", "v", "pm10", k=20, extrapolate=True, dist=0.1)

    grid = result.iloc[n:]
    assert len(result) == n + 21 * 21
    assert grid["pm10"].notna().any()
    assert grid["pm10"].isna().any()
    assert result.iloc[:n]["pm10"].notna().all()
    assert (result["pm10"].dropna() >= 0).all()
