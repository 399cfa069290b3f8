# src/transdist/estimate/kernel.py
"""
Weighted estimate of the transmission kernel's mean and standard deviation
from observed case-pair distances and the theta weight tensor.

For cases separated by theta generations of a kernel with mu_k = sigma_k,
the expected pair distance is mu_k * sqrt(2 * pi * theta) / 2, so each time
pair (a, b) contributes 2 * mu_obs(a, b) / E[sqrt(2 * pi * theta)] per pair.
"""
from dataclasses import asdict, dataclass
import logging
import math
from typing import Optional

import numpy as np
from scipy.spatial.distance import cdist

from ..cases import as_case_table, filter_cases, time_index, time_span
from ..errors import DomainError, InsufficientDataError, ShapeMismatchError
from ..generation.generation_time import as_generation_time
from ..theta.sample_theta import ThetaWeights
from ..theta.theta_weights import est_transdist_theta_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KernelEstimate:
    """Transmission kernel estimate for the window [t1, t_end].

    ``mu`` and ``sigma`` assume the kernel mean equals its standard deviation;
    ``mu_bound`` and ``sigma_bound`` are the sqrt(2) upper bounds used when
    that assumption is dropped.
    """

    mu: float
    sigma: float
    mu_bound: float
    sigma_bound: float
    n_cases: int
    n_pairs: int
    t1: float
    t_end: float

    def point(self, mean_equals_sd=True):
        """(mu, sigma), or the bounded pair when mean_equals_sd is False."""
        if mean_equals_sd:
            return self.mu, self.sigma
        return self.mu_bound, self.sigma_bound

    def as_dict(self):
        return asdict(self)


def check_theta_weights(theta_weights: ThetaWeights, unique_times: np.ndarray):
    """Raise ShapeMismatchError unless theta_weights is indexed by unique_times."""
    if theta_weights.times.shape != unique_times.shape or not np.allclose(theta_weights.times, unique_times):
        raise ShapeMismatchError(
            f"Theta weights cover {theta_weights.times.size} times, "
            f"case table has {unique_times.size} unique times"
        )


def expected_sqrt_theta(theta_weights: ThetaWeights) -> np.ndarray:
    """(U, U) matrix of sum_theta w(theta) * sqrt(2 * pi * theta); NaN where undefined."""
    scale = np.sqrt(2.0 * math.pi * theta_weights.thetas)
    return np.sum(theta_weights.weights * scale[None, None, :], axis=2)


def est_transdist(
    cases,
    gen_t_mean: Optional[float] = None,
    gen_t_sd: Optional[float] = None,
    t1: Optional[float] = None,
    max_sep: Optional[int] = None,
    max_dist: Optional[float] = None,
    n_transtree_reps: int = 10,
    theta_weights: Optional[ThetaWeights] = None,
    gen_t_dist=None,
    seed=None,
    pool=None,
) -> KernelEstimate:
    """Estimate the mean and sd of the transmission kernel

    Args:
        cases: case table with x, y, t
        gen_t_mean, gen_t_sd: generation-time mean and sd (time-step units)
        t1: earliest onset time included
        max_sep: largest theta considered (None means effectively unbounded)
        max_dist: largest pair distance included (None means unbounded)
        n_transtree_reps: number of sampled transmission trees
        theta_weights: optional precomputed ThetaWeights for the filtered cases
        gen_t_dist: GenerationTime, explicit vector, or density callable g(lag)
            (evaluated up to the case-time span) instead of mean/sd
        seed: int, SeedSequence or None
        pool: WorkerPool for the tree repetitions
    Returns:
        KernelEstimate
    Raises:
        InsufficientDataError, ShapeMismatchError, DomainError
    """
    if max_dist is not None and max_dist < 0:
        raise DomainError("max_dist must be non-negative")

    df = filter_cases(as_case_table(cases), t1=t1)
    unique_times, idx = time_index(df["t"].to_numpy())
    if unique_times.size < 2:
        raise InsufficientDataError(f"Need at least 2 unique case times, found {unique_times.size}")

    if theta_weights is None:
        gen_t = as_generation_time(gen_t_mean, gen_t_sd, gen_t_dist, max_lag=time_span(unique_times))
        theta_weights = est_transdist_theta_weights(
            df["t"].to_numpy(),
            gen_t,
            max_sep=max_sep,
            n_transtree_reps=n_transtree_reps,
            seed=seed,
            pool=pool,
        )
    else:
        check_theta_weights(theta_weights, unique_times)

    n_times = unique_times.size
    xy = df[["x", "y"]].to_numpy()
    dist = cdist(xy, xy)

    # Ordered pairs of distinct cases whose time pair has a valid chain
    valid = theta_weights.defined()[idx[:, None], idx[None, :]]
    valid[np.diag_indices(len(df))] = False
    if max_dist is not None:
        valid &= dist <= max_dist

    pair = (idx[:, None] * n_times + idx[None, :])[valid]
    n_ab = np.bincount(pair, minlength=n_times * n_times)
    sum_ab = np.bincount(pair, weights=dist[valid], minlength=n_times * n_times)
    n_pairs = int(n_ab.sum())
    if n_pairs == 0:
        raise InsufficientDataError("No case pairs within max_dist and max_sep")

    used = n_ab > 0
    expect = expected_sqrt_theta(theta_weights).reshape(-1)
    # sum_ab = mu_obs(a, b) * n_ab
    mu = float(np.sum(2.0 * sum_ab[used] / expect[used]) / n_pairs)
    if not math.isfinite(mu):
        raise InsufficientDataError("Kernel estimate is not finite")

    est = KernelEstimate(
        mu=mu,
        sigma=mu,
        mu_bound=math.sqrt(2.0) * mu,
        sigma_bound=math.sqrt(2.0) * mu,
        n_cases=len(df),
        n_pairs=n_pairs,
        t1=float(unique_times[0]),
        t_end=float(unique_times[-1]),
    )
    logger.info(
        "Kernel estimate mu=%.4f from %d cases (%d pairs, t=%g..%g)",
        est.mu, est.n_cases, est.n_pairs, est.t1, est.t_end,
    )
    return est
