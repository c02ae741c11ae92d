from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def grid_data() -> pd.DataFrame:
    """20 observations on a regular 4 x 5 grid in the unit square, z = x + y + tiny noise."""
    rng = np.random.default_rng(42)
    gx, gy = np.meshgrid(np.linspace(0.0, 1.0, 4), np.linspace(0.0, 1.0, 5))
    x = gx.ravel()
    y = gy.ravel()
    z = x + y + rng.normal(0.0, 1e-3, size=x.size)
    return pd.DataFrame({"x": x, "y": y, "z": z})


@pytest.fixture
def scattered_data() -> pd.DataFrame:
    """Noisy positive concentration-like surface over wind components, some responses missing."""
    rng = np.random.default_rng(7)
    n = 80
    u = rng.uniform(-3.0, 3.0, size=n)
    v = rng.uniform(-3.0, 3.0, size=n)
    conc = 5.0 + 2.0 * np.sin(u) + 0.3 * v ** 2 + rng.normal(0.0, 0.2, size=n)
    conc[::8] = np.nan
    return pd.DataFrame({
        "site": [f"S{i % 3}" for i in range(n)],
        "u": u,
        "v": v,
        "conc": conc,
    })
