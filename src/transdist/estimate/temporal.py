# src/transdist/estimate/temporal.py
# Kernel estimates over cumulative windows ending at each unique onset time.
from functools import partial
import logging

import numpy as np
import pandas as pd

from ..cases import as_case_table, filter_cases, time_index, time_span
from ..errors import InsufficientDataError
from ..generation.generation_time import as_generation_time
from ..parallel import SEQUENTIAL, child_seeds, resolve_pool
from .bootstrap import est_transdist_bootstrap_ci
from .kernel import est_transdist

logger = logging.getLogger(__name__)

POINT_COLUMNS = ["mu", "sigma", "n_cases", "n_pairs"]
BOOTSTRAP_COLUMNS = ["mu", "mu_ci_low", "mu_ci_high", "sigma", "sigma_ci_low", "sigma_ci_high", "n_cases"]


def _point_window(cases, seed, mean_equals_sd, est_kwargs):
    est = est_transdist(cases, seed=seed, **est_kwargs)
    mu, sigma = est.point(mean_equals_sd)
    return {"mu": mu, "sigma": sigma, "n_cases": est.n_cases, "n_pairs": est.n_pairs}


def _bootstrap_window(cases, seed, mean_equals_sd, est_kwargs):
    res = est_transdist_bootstrap_ci(
        cases, seed=seed, mean_equals_sd=mean_equals_sd, pool=SEQUENTIAL, **est_kwargs
    )
    return res.as_dict()


def _run_window(task, cases, window_func, min_cases, mean_equals_sd, est_kwargs):
    tau, seed_seq = task
    window = cases.loc[cases["t"].to_numpy() <= tau].reset_index(drop=True)
    if len(window) < min_cases:
        logger.debug("Window t<=%g skipped: %d cases < min_cases=%d", tau, len(window), min_cases)
        return None
    try:
        return window_func(window, seed_seq, mean_equals_sd, est_kwargs)
    except InsufficientDataError as exc:
        logger.warning("Window t<=%g has insufficient data: %s", tau, exc)
        return None


def _temporal_series(cases, window_func, columns, t1, min_cases, mean_equals_sd, seed, pool, gen_t, est_kwargs):
    df = filter_cases(as_case_table(cases), t1=t1)
    unique_times, _ = time_index(df["t"].to_numpy())
    # a density callable is evaluated over the span of the full series
    est_kwargs = dict(est_kwargs, gen_t_dist=as_generation_time(*gen_t, max_lag=time_span(unique_times)))

    run = partial(
        _run_window,
        cases=df,
        window_func=window_func,
        min_cases=min_cases,
        mean_equals_sd=mean_equals_sd,
        est_kwargs=est_kwargs,
    )
    rows = resolve_pool(pool).map(run, zip(unique_times, child_seeds(seed, unique_times.size)))

    empty = {c: np.nan for c in columns}
    out = pd.DataFrame([r if r is not None else empty for r in rows], columns=columns, dtype=float)
    out.index = pd.Index(unique_times, name="t")
    logger.info(
        "Temporal series: %d of %d windows estimated", int(out["mu"].notna().sum()), len(out)
    )
    return out


def est_transdist_temporal(
    cases,
    gen_t_mean=None,
    gen_t_sd=None,
    t1=None,
    max_sep=None,
    max_dist=None,
    n_transtree_reps=10,
    mean_equals_sd=True,
    min_cases=10,
    gen_t_dist=None,
    seed=None,
    pool=None,
) -> pd.DataFrame:
    """Kernel estimates for cumulative windows {t <= tau}

    One row per unique onset time tau of the filtered case table. Windows
    with fewer than ``min_cases`` cases, or too few times/pairs to estimate,
    are NaN rows.
    Returns:
        DataFrame indexed by t with columns mu, sigma, n_cases, n_pairs
    """
    est_kwargs = dict(
        max_sep=max_sep,
        max_dist=max_dist,
        n_transtree_reps=n_transtree_reps,
    )
    return _temporal_series(
        cases, _point_window, POINT_COLUMNS, t1, min_cases, mean_equals_sd, seed, pool,
        (gen_t_mean, gen_t_sd, gen_t_dist), est_kwargs,
    )


def est_transdist_temporal_bootstrap_ci(
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
    min_cases=10,
    gen_t_dist=None,
    seed=None,
    pool=None,
) -> pd.DataFrame:
    """Bootstrap confidence intervals for cumulative windows {t <= tau}

    The pool runs windows in parallel; the bootstrap iterations inside each
    window run sequentially.
    Returns:
        DataFrame indexed by t with columns mu, mu_ci_low, mu_ci_high,
        sigma, sigma_ci_low, sigma_ci_high, n_cases
    """
    est_kwargs = dict(
        max_sep=max_sep,
        max_dist=max_dist,
        n_transtree_reps=n_transtree_reps,
        boot_iter=boot_iter,
        ci_low=ci_low,
        ci_high=ci_high,
    )
    return _temporal_series(
        cases, _bootstrap_window, BOOTSTRAP_COLUMNS, t1, min_cases, mean_equals_sd, seed, pool,
        (gen_t_mean, gen_t_sd, gen_t_dist), est_kwargs,
    )
