# src/transdist/estimate/bootstrap.py
# Bootstrap confidence intervals for the kernel estimate: resample cases
# with replacement and rerun the whole pipeline for each iteration.
from dataclasses import dataclass, field
from functools import partial
import logging

import numpy as np
from numpy.random import default_rng

from ..cases import as_case_table, filter_cases, time_span
from ..errors import DomainError
from ..generation.generation_time import as_generation_time
from ..parallel import child_seeds, resolve_pool
from .kernel import KernelEstimate, est_transdist

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class BootstrapResult:
    estimate: KernelEstimate
    mu: float
    mu_ci_low: float
    mu_ci_high: float
    sigma: float
    sigma_ci_low: float
    sigma_ci_high: float
    ci_low: float
    ci_high: float
    mean_equals_sd: bool
    boot_mu: np.ndarray = field(repr=False)
    boot_sigma: np.ndarray = field(repr=False)

    @property
    def boot_iter(self):
        return self.boot_mu.size

    def as_dict(self):
        return {
            "mu": self.mu,
            "mu_ci_low": self.mu_ci_low,
            "mu_ci_high": self.mu_ci_high,
            "sigma": self.sigma,
            "sigma_ci_low": self.sigma_ci_low,
            "sigma_ci_high": self.sigma_ci_high,
            "n_cases": self.estimate.n_cases,
        }


def _boot_rep(seed_seq, cases, est_kwargs):
    resample_seed, tree_seed = child_seeds(seed_seq, 2)
    rows = default_rng(resample_seed).integers(0, len(cases), size=len(cases))
    return est_transdist(cases.iloc[rows].reset_index(drop=True), seed=tree_seed, **est_kwargs)


def est_transdist_bootstrap_ci(
    cases,
    gen_t_mean=None,
    gen_t_sd=None,
    t1=None,
    max_sep=None,
    max_dist=None,
    n_transtree_reps=10,
    boot_iter=100,
    ci_low=0.025,
    ci_high=0.975,
    mean_equals_sd=True,
    gen_t_dist=None,
    seed=None,
    pool=None,
) -> BootstrapResult:
    """Kernel estimate with bootstrap confidence intervals

    Every iteration resamples the filtered case table to its own size and
    reruns est_transdist end to end with an independent child seed. A
    failure in any iteration fails the whole call. Quantiles are taken only
    after all iterations have completed.
    Args:
        boot_iter (int): number of bootstrap iterations
        ci_low, ci_high (float): quantiles reported as the interval
        mean_equals_sd (bool): report the bounded estimates when False
        pool: WorkerPool over bootstrap iterations
        (remaining arguments as for est_transdist)
    Returns:
        BootstrapResult
    """
    if boot_iter < 1:
        raise DomainError("boot_iter must be >= 1")
    if not 0.0 <= ci_low < ci_high <= 1.0:
        raise DomainError("Need 0 <= ci_low < ci_high <= 1")

    df = filter_cases(as_case_table(cases), t1=t1)
    est_kwargs = dict(
        gen_t_dist=as_generation_time(gen_t_mean, gen_t_sd, gen_t_dist, max_lag=time_span(df["t"])),
        max_sep=max_sep,
        max_dist=max_dist,
        n_transtree_reps=n_transtree_reps,
    )

    point_seed, *boot_seeds = child_seeds(seed, int(boot_iter) + 1)
    estimate = est_transdist(df, seed=point_seed, **est_kwargs)

    rep = partial(_boot_rep, cases=df, est_kwargs=est_kwargs)
    boots = resolve_pool(pool).map(rep, boot_seeds)

    pairs = np.array([b.point(mean_equals_sd) for b in boots], dtype=float)
    boot_mu, boot_sigma = pairs[:, 0], pairs[:, 1]
    mu, sigma = estimate.point(mean_equals_sd)
    mu_q = np.quantile(boot_mu, [ci_low, ci_high])
    sigma_q = np.quantile(boot_sigma, [ci_low, ci_high])

    logger.info(
        "Bootstrap (%d iterations): mu=%.4f [%.4f, %.4f]",
        boot_iter, mu, mu_q[0], mu_q[1],
    )
    return BootstrapResult(
        estimate=estimate,
        mu=mu,
        mu_ci_low=float(mu_q[0]),
        mu_ci_high=float(mu_q[1]),
        sigma=sigma,
        sigma_ci_low=float(sigma_q[0]),
        sigma_ci_high=float(sigma_q[1]),
        ci_low=ci_low,
        ci_high=ci_high,
        mean_equals_sd=mean_equals_sd,
        boot_mu=boot_mu,
        boot_sigma=boot_sigma,
    )
