# src/transdist/config.py
"""
Estimator options bundled in one dataclass, and a dispatcher that runs
the point, bootstrap or temporal estimators from it.
"""
from dataclasses import dataclass
import logging
from typing import Callable, Optional, Sequence, Union

from .estimate.bootstrap import est_transdist_bootstrap_ci
from .estimate.kernel import est_transdist
from .estimate.temporal import est_transdist_temporal, est_transdist_temporal_bootstrap_ci
from .parallel import WorkerPool

logger = logging.getLogger(__name__)

MODES = ("point", "bootstrap", "temporal", "temporal_bootstrap")


@dataclass
class EstimatorConfig:
    gen_t_mean: Optional[float] = None
    gen_t_sd: Optional[float] = None
    gen_t_dist: Optional[Union[Sequence[float], Callable[[int], float]]] = None
    t1: Optional[float] = None
    max_sep: Optional[int] = None
    max_dist: Optional[float] = None
    n_transtree_reps: int = 10
    boot_iter: int = 100
    ci_low: float = 0.025
    ci_high: float = 0.975
    mean_equals_sd: bool = True
    min_cases: int = 10
    parallel: bool = False
    n_cores: Optional[int] = None
    seed: Optional[int] = None

    def pool(self):
        return WorkerPool.from_options(parallel=self.parallel, n_cores=self.n_cores)


def run_estimation(cases, cfg: EstimatorConfig, mode: str = "point"):
    """Run one of the estimators with the options in ``cfg``.

    mode is one of "point", "bootstrap", "temporal", "temporal_bootstrap".
    """
    if mode not in MODES:
        raise ValueError(f"Unknown estimation mode: {mode!r}")

    common = dict(
        gen_t_mean=cfg.gen_t_mean,
        gen_t_sd=cfg.gen_t_sd,
        gen_t_dist=cfg.gen_t_dist,
        t1=cfg.t1,
        max_sep=cfg.max_sep,
        max_dist=cfg.max_dist,
        n_transtree_reps=cfg.n_transtree_reps,
        seed=cfg.seed,
        pool=cfg.pool(),
    )
    boot = dict(boot_iter=cfg.boot_iter, ci_low=cfg.ci_low, ci_high=cfg.ci_high)
    logger.debug("Running %s estimation with %r", mode, cfg)

    if mode == "point":
        return est_transdist(cases, **common)
    if mode == "bootstrap":
        return est_transdist_bootstrap_ci(cases, mean_equals_sd=cfg.mean_equals_sd, **common, **boot)
    if mode == "temporal":
        return est_transdist_temporal(
            cases, mean_equals_sd=cfg.mean_equals_sd, min_cases=cfg.min_cases, **common
        )
    return est_transdist_temporal_bootstrap_ci(
        cases, mean_equals_sd=cfg.mean_equals_sd, min_cases=cfg.min_cases, **common, **boot
    )
