from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from gamsurface.basis import GaussianProcessBasis
    from gamsurface.solvers import PenalizedFit


class FittedSurface:
    """
    Class represents a fitted smooth surface z_t = f(x, y) on the transformed response scale.

    It is closed over the basis built from the training coordinates and the coefficients
    of the REML-selected penalized fit. Evaluating it never changes its state.
    """
    def __init__(
        self,
        basis: GaussianProcessBasis,
        fit: PenalizedFit,
        n_obs: int,
    ) -> None:
        """
        Initialize the FittedSurface object.

        Args:
            basis: The smoothing basis the coefficients refer to.
            fit: Coefficients and diagnostics of the penalized solve.
            n_obs: Number of observations the surface was fitted to.
        """
        self.basis = basis
        self.coefficients: npt.NDArray[np.float64] = fit.coefficients
        self.lambda_: float = fit.lambda_
        self.edf: float = fit.edf
        self.scale: float = fit.scale
        self.reml_score: float = fit.reml_score
        self.n_obs = n_obs

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(k={self.k}, n_obs={self.n_obs}, "
                f"edf={self.edf:.2f}, lambda={self.lambda_:.4g})")

    @property
    def k(self) -> int:
        """Basis dimension (smoothing capacity) of the surface."""
        return self.basis.k

    def predict(
        self,
        x: npt.ArrayLike,
        y: npt.ArrayLike,
    ) -> npt.NDArray[np.float64]:
        """
        Evaluate the surface at the given coordinates.

        Rows are processed in blocks so that large prediction grids do not materialise
        one full (n x knots) covariance matrix.

        Args:
            x: x coordinates, shape (n,). Must be finite.
            y: y coordinates, shape (n,). Must be finite.

        Returns:
            Surface values on the transformed scale, shape (n,).
        """
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).ravel()
        if x.shape != y.shape:
            raise ValueError(f"x and y must have the same length, got {x.size} and {y.size}.")

        out = np.empty(x.size, dtype=np.float64)
        for rows, design in self.basis.design_blocks(x, y):
            out[rows] = design @ self.coefficients
        return out
