from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

import numpy as np
import scipy as sp

from gamsurface.basis.kernels import matern32_covariance, max_pairwise_distance
from gamsurface.config import EIGENVALUE_RTOL, KNOT_SEED, MAX_KNOTS, NULL_SPACE_DIM, ROW_CHUNK_SIZE
from gamsurface.errors import RankDeficiencyError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def null_space_matrix(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Unpenalized linear trend columns [1, x, y]."""
    return np.column_stack((np.ones_like(x), x, y))


def unique_coordinates(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Distinct (x, y) pairs, shape (m, 2)."""
    return np.unique(np.column_stack((x, y)), axis=0)


class GaussianProcessBasis:
    """
    Reduced-rank Gaussian process smooth of two coordinates.

    The smooth is f(p) = sum_j delta_j C(p, knot_j) + alpha_0 + alpha_1 x + alpha_2 y,
    where C is a Matérn (1.5) covariance whose range is the largest distance between
    knots. The covariance part is truncated to the `k` leading eigenvectors of the knot
    covariance matrix, the coefficients are scaled by the inverse square root of their
    eigenvalues so the roughness penalty becomes the identity, and the constraint that
    keeps the covariance part orthogonal to the linear trend is absorbed by a QR step.

    Column layout of the design matrix: k - 3 penalized columns, then [1, x, y].
    """

    n_null: int = NULL_SPACE_DIM

    def __init__(
        self,
        knots: npt.NDArray[np.float64],
        rho: float,
        coefficient_map: npt.NDArray[np.float64],
        eigenvalues: npt.NDArray[np.float64],
    ) -> None:
        """
        Initialize the basis from precomputed pieces. Use `build` to construct one from data.

        Args:
            knots: Knot coordinates, shape (m, 2).
            rho: Covariance range.
            coefficient_map: Maps covariance columns C(p, knots) onto the constrained,
                penalty-normalised basis, shape (m, k - 3).
            eigenvalues: The kept eigenvalues of the knot covariance matrix, descending.
        """
        self.knots = knots
        self.rho = rho
        self.coefficient_map = coefficient_map
        self.eigenvalues = eigenvalues

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(k={self.k}, n_knots={self.n_knots}, rho={self.rho:.4g})"

    @property
    def k(self) -> int:
        """Total basis dimension, penalized plus null space."""
        return self.coefficient_map.shape[1] + self.n_null

    @property
    def n_knots(self) -> int:
        return self.knots.shape[0]

    @property
    def penalty_rank(self) -> int:
        return self.k - self.n_null

    @classmethod
    def build(
        cls,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
        k: int,
    ) -> GaussianProcessBasis:
        """
        Construct the basis from training coordinates.

        Args:
            x: Training x coordinates, finite.
            y: Training y coordinates, finite.
            k: Smoothing capacity (basis dimension).

        Raises:
            RankDeficiencyError: If `k` exceeds the number of unique coordinates, if the
                coordinates are collinear, or if the knot covariance is numerically
                singular within the leading `k` eigenvalues.

        Returns:
            The constructed basis.
        """
        x = np.ascontiguousarray(x, dtype=np.float64)
        y = np.ascontiguousarray(y, dtype=np.float64)

        if k < cls.n_null + 1:
            logger.warning(f"k = {k} is too small for a 2-d smooth with a linear trend, "
                           f"using k = {cls.n_null + 1}.")
            k = cls.n_null + 1

        unique = unique_coordinates(x, y)
        n_unique = unique.shape[0]
        if k > n_unique:
            raise RankDeficiencyError(
                f"Smoothing capacity k = {k} exceeds the number of unique coordinate "
                f"pairs with a present response ({n_unique}). Reduce 'k'."
            )

        if np.linalg.matrix_rank(null_space_matrix(unique[:, 0], unique[:, 1])) < cls.n_null:
            raise RankDeficiencyError("Training coordinates are collinear; a 2-d surface "
                                      "cannot be identified.")

        # never fewer knots than basis functions
        max_knots = max(MAX_KNOTS, k)
        knots = unique
        if n_unique > max_knots:
            rng = np.random.default_rng(KNOT_SEED)
            pick = np.sort(rng.choice(n_unique, size=max_knots, replace=False))
            knots = unique[pick]
            logger.debug(f"Subsampled {max_knots} knots from {n_unique} unique coordinates.")

        kx = np.ascontiguousarray(knots[:, 0])
        ky = np.ascontiguousarray(knots[:, 1])
        m = knots.shape[0]

        rho = float(max_pairwise_distance(kx, ky))
        cov = matern32_covariance(kx, ky, kx, ky, rho)

        # eigh returns ascending order; keep the k largest, descending
        d, u = sp.linalg.eigh(cov, subset_by_index=[m - k, m - 1])
        d = d[::-1]
        u = u[:, ::-1]
        if d[-1] <= d[0] * EIGENVALUE_RTOL:
            raise RankDeficiencyError(
                f"Knot covariance is numerically singular within the leading {k} "
                f"eigenvalues (smallest {d[-1]:.3e}). Reduce 'k'."
            )

        scaled = u / np.sqrt(d)

        # Absorb T' delta = 0: delta = scaled @ Z theta, Z spans the null space of (scaled' T)'
        t_knots = null_space_matrix(kx, ky)
        q, _ = np.linalg.qr(scaled.T @ t_knots, mode="complete")
        z = q[:, cls.n_null:]

        logger.debug(f"GP basis: k={k}, knots={m}, rho={rho:.4g}, "
                     f"eigenvalues [{d[0]:.3e} .. {d[-1]:.3e}]")
        return cls(knots=knots, rho=rho, coefficient_map=scaled @ z, eigenvalues=d)

    def design_matrix(
        self,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
    ) -> npt.NDArray[np.float64]:
        """
        Evaluate the basis functions at the given coordinates.

        Returns:
            X: Design matrix, shape (n, k).
        """
        x = np.ascontiguousarray(x, dtype=np.float64)
        y = np.ascontiguousarray(y, dtype=np.float64)
        cov = matern32_covariance(
            x, y,
            np.ascontiguousarray(self.knots[:, 0]),
            np.ascontiguousarray(self.knots[:, 1]),
            self.rho,
        )
        return np.hstack((cov @ self.coefficient_map, null_space_matrix(x, y)))

    def design_blocks(
        self,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
        chunk_size: Optional[int] = None,
    ) -> Iterator[tuple[slice, npt.NDArray[np.float64]]]:
        """
        Evaluate the design matrix in row blocks.

        Only one (chunk_size x n_knots) covariance block is held at a time, so memory does
        not grow with the number of rows.

        Args:
            x: x coordinates, shape (n,).
            y: y coordinates, shape (n,).
            chunk_size: Rows per block. Defaults to `ROW_CHUNK_SIZE`.

        Yields:
            (rows, X_block): The row slice and its design matrix block, shape (rows, k).
        """
        step = ROW_CHUNK_SIZE if chunk_size is None else chunk_size
        for start in range(0, x.size, step):
            rows = slice(start, start + step)
            yield rows, self.design_matrix(x[rows], y[rows])

    def penalty_matrix(self) -> npt.NDArray[np.float64]:
        """
        Roughness penalty S in the basis coordinates: identity on the penalized block,
        zero on the linear trend.
        """
        diag = np.zeros(self.k, dtype=np.float64)
        diag[:self.penalty_rank] = 1.0
        return np.diag(diag)
