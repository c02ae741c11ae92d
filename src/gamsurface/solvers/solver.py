from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np
import scipy as sp

from gamsurface.config import LOG_LAMBDA_GRID_SIZE, LOG_LAMBDA_MAX, LOG_LAMBDA_MIN
from gamsurface.errors import EmptyTrainingSetError, RankDeficiencyError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PenalizedFit:
    """Result of one penalized least squares solve at the selected smoothing parameter."""
    coefficients: npt.NDArray[np.float64]
    lambda_: float
    edf: float
    scale: float
    reml_score: float


class PenalizedSolver:
    """
    Gaussian penalized regression with the smoothing parameter chosen by REML.

    Minimizes ||sqrt(W)(y - X beta)||^2 + lambda beta' S beta. For a given lambda the
    coefficients come from a Cholesky solve of (X'WX + lambda S) beta = X'Wy. The
    negative restricted log-likelihood, with the residual scale profiled out, is

        V(lambda) = (n - Mp)/2 (log(2 pi phi) + 1) + 1/2 log|X'WX + lambda S| - r/2 log(lambda)

    where phi = (||sqrt(W)(y - X beta)||^2 + lambda beta' S beta) / (n - Mp), Mp is the
    dimension of the unpenalized space and r the rank of S.
    """

    def __init__(
        self,
        r_factor: npt.NDArray[np.float64],
        n_obs: int,
        penalty: npt.NDArray[np.float64],
        penalty_rank: int,
    ) -> None:
        """
        Initialize the solver from the triangular factor of the weighted data.

        Only R is kept, not the (n x p) design, so the solver's memory does not depend on
        the number of observations. Every worker reads the same cross-products.

        Args:
            r_factor: Upper triangular R from the QR decomposition of [sqrt(W) X, sqrt(W) y],
                shape (m, p + 1) with m <= p + 1.
            n_obs: Number of observations behind `r_factor`.
            penalty: Penalty matrix S, shape (p, p).
            penalty_rank: Rank of S.
        """
        self.n_obs = n_obs
        self.n_coef = r_factor.shape[1] - 1
        self.penalty_rank = penalty_rank
        self.null_dim = self.n_coef - penalty_rank
        if self.n_obs <= self.null_dim:
            raise RankDeficiencyError(
                f"{self.n_obs} observations cannot identify a model with "
                f"{self.null_dim} unpenalized coefficients."
            )

        self.r_design: npt.NDArray[np.float64] = r_factor[:, :-1]
        self.r_response: npt.NDArray[np.float64] = r_factor[:, -1]
        self.xtwx: npt.NDArray[np.float64] = self.r_design.T @ self.r_design
        self.xtwy: npt.NDArray[np.float64] = self.r_design.T @ self.r_response

        # Put S on the scale of X'WX so one lambda range suits any data scale
        s_norm = np.linalg.norm(penalty)
        self.penalty_scale = np.linalg.norm(self.xtwx) / s_norm if s_norm > 0 else 1.0
        self.penalty: npt.NDArray[np.float64] = penalty * self.penalty_scale

    @classmethod
    def from_blocks(
        cls,
        blocks: Iterable[tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64] | None]],
        penalty: npt.NDArray[np.float64],
        penalty_rank: int,
    ) -> PenalizedSolver:
        """
        Build the solver from row blocks of the data.

        Each block (X_b, y_b, w_b) is stacked under the current R and re-triangularized,
        so at most one block and one (p + 1) x (p + 1) factor are held at a time.

        Args:
            blocks: Iterable of (design block, response block, weights block or None).
            penalty: Penalty matrix S, shape (p, p).
            penalty_rank: Rank of S.

        Raises:
            EmptyTrainingSetError: If `blocks` is empty.

        Returns:
            The solver.
        """
        r_factor = None
        n_obs = 0
        for design, response, weights in blocks:
            sqrt_w = np.ones_like(response) if weights is None else np.sqrt(weights)
            stacked = np.column_stack((design, response)) * sqrt_w[:, None]
            if r_factor is not None:
                stacked = np.vstack((r_factor, stacked))
            r_factor = np.linalg.qr(stacked, mode="r")
            n_obs += response.size

        if r_factor is None:
            raise EmptyTrainingSetError("No observations were passed to the solver.")
        return cls(r_factor=r_factor, n_obs=n_obs, penalty=penalty, penalty_rank=penalty_rank)

    @classmethod
    def from_design(
        cls,
        design: npt.NDArray[np.float64],
        response: npt.NDArray[np.float64],
        penalty: npt.NDArray[np.float64],
        penalty_rank: int,
        weights: npt.NDArray[np.float64] | None = None,
    ) -> PenalizedSolver:
        """Build the solver from a full design matrix X, shape (n, p)."""
        return cls.from_blocks([(design, response, weights)], penalty=penalty, penalty_rank=penalty_rank)

    def _factor(self, lam: float) -> tuple[npt.NDArray[np.float64], bool]:
        return sp.linalg.cho_factor(self.xtwx + lam * self.penalty, lower=False)

    def weighted_rss(self, beta: npt.NDArray[np.float64]) -> float:
        """||sqrt(W)(y - X beta)||^2, evaluated through R."""
        resid = self.r_response - self.r_design @ beta
        return float(resid @ resid)

    def _penalized_deviance(self, beta: npt.NDArray[np.float64], lam: float) -> float:
        return self.weighted_rss(beta) + float(lam * beta @ self.penalty @ beta)

    def reml_criterion(self, log_lambda: float) -> float:
        """
        Negative restricted log-likelihood at lambda = exp(log_lambda).

        Returns inf where the penalized system is not positive definite.
        """
        lam = math.exp(log_lambda)
        try:
            factor = self._factor(lam)
        except np.linalg.LinAlgError:
            return math.inf

        beta = sp.linalg.cho_solve(factor, self.xtwy)
        dof = self.n_obs - self.null_dim
        phi = max(self._penalized_deviance(beta, lam) / dof, np.finfo(np.float64).tiny)
        log_det = 2.0 * float(np.sum(np.log(np.diag(factor[0]))))

        return (0.5 * dof * (math.log(2.0 * math.pi * phi) + 1.0)
                + 0.5 * log_det
                - 0.5 * self.penalty_rank * log_lambda)

    def select_smoothing_parameter(self, n_workers: int = 1) -> tuple[float, float]:
        """
        Minimize the REML criterion over log lambda.

        A coarse grid is evaluated in parallel on a thread pool (the LAPACK calls release
        the GIL; every worker reads the same cross-products and factors its own system),
        then the best bracket is refined with a bounded scalar search.

        Args:
            n_workers: Size of the thread pool used for the grid.

        Raises:
            RankDeficiencyError: If no smoothing parameter yields a positive definite system.

        Returns:
            The selected log lambda and its REML score.
        """
        grid = np.linspace(LOG_LAMBDA_MIN, LOG_LAMBDA_MAX, LOG_LAMBDA_GRID_SIZE)

        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            scores = np.fromiter(pool.map(self.reml_criterion, grid), dtype=np.float64, count=grid.size)

        if not np.isfinite(scores).any():
            raise RankDeficiencyError("Penalized system is singular for every smoothing "
                                      "parameter. Reduce 'k'.")

        best = int(np.argmin(scores))
        lo = grid[max(best - 1, 0)]
        hi = grid[min(best + 1, grid.size - 1)]
        res = sp.optimize.minimize_scalar(self.reml_criterion, bounds=(lo, hi), method="bounded")

        if np.isfinite(res.fun) and res.fun <= scores[best]:
            log_lambda, score = float(res.x), float(res.fun)
        else:
            log_lambda, score = float(grid[best]), float(scores[best])

        logger.debug(f"REML grid minimum at log(lambda) = {grid[best]:.2f}, "
                     f"refined to {log_lambda:.3f} (score {score:.4f}).")
        return log_lambda, score

    def solve(self, n_workers: int = 1) -> PenalizedFit:
        """
        Select lambda by REML and compute the coefficients and fit diagnostics.

        Args:
            n_workers: Size of the thread pool used for the smoothing parameter search.

        Returns:
            The penalized fit.
        """
        log_lambda, score = self.select_smoothing_parameter(n_workers=n_workers)
        lam = math.exp(log_lambda)

        factor = self._factor(lam)
        beta = sp.linalg.cho_solve(factor, self.xtwy)
        edf = float(np.trace(sp.linalg.cho_solve(factor, self.xtwx)))

        scale = self.weighted_rss(beta) / max(self.n_obs - edf, 1.0)

        return PenalizedFit(
            coefficients=beta,
            lambda_=lam * self.penalty_scale,
            edf=edf,
            scale=scale,
            reml_score=score,
        )
