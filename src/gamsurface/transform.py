from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class PowerTransform:
    """
    Monotone power transform applied to the response before fitting.

    With exponent 0.5 the surface is fitted on the square root of the response and
    predictions are squared on the way back, so the returned values cannot be negative.
    """
    exponent: float = 1.0

    @classmethod
    def from_force_positive(cls, force_positive: bool) -> PowerTransform:
        """Square-root transform if `force_positive`, identity otherwise."""
        return cls(exponent=0.5 if force_positive else 1.0)

    @property
    def is_identity(self) -> bool:
        return self.exponent == 1.0

    def forward(self, values: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Raise every present value to `exponent`. NaN entries pass through.

        Negative values under a fractional exponent have no real image and become NaN.
        """
        v = np.asarray(values, dtype=np.float64)
        if self.is_identity:
            return v.copy()
        with np.errstate(invalid="ignore"):
            return np.power(v, self.exponent)

    def inverse(self, values: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Raise every present value to `1 / exponent`. NaN entries pass through."""
        v = np.asarray(values, dtype=np.float64)
        if self.is_identity:
            return v.copy()
        return np.power(v, 1.0 / self.exponent)
