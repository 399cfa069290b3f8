# src/transdist/theta/theta_weights.py
# Average theta weights over many independently sampled transmission trees.
from functools import partial
import logging

import numpy as np
from numpy.random import default_rng

from ..cases import time_index
from ..errors import DomainError
from ..parallel import child_seeds, resolve_pool
from ..weights.wallinga_teunis import est_wt_matrix
from .sample_theta import ThetaWeights, default_max_sep, get_transdist_theta

logger = logging.getLogger(__name__)


def _theta_rep(seed_seq, wal_teun_mat, case_times, max_sep):
    return get_transdist_theta(wal_teun_mat, case_times, max_sep, rng=default_rng(seed_seq))


def average_theta_weights(reps):
    """Per-slice mean over the repetitions in which each time pair was linked."""
    reps = list(reps)
    if not reps:
        raise DomainError("No theta weights to average")
    times = reps[0].times
    total = np.zeros_like(reps[0].weights)
    n_defined = np.zeros(total.shape[:2])

    for r in reps:
        d = r.defined()
        total[d] += r.weights[d]
        n_defined[d] += 1

    weights = np.full_like(total, np.nan)
    linked = n_defined > 0
    weights[linked] = total[linked] / n_defined[linked][:, None]
    return ThetaWeights(times=times, weights=weights)


def est_transdist_theta_weights(
    case_times,
    gen_t_dist=None,
    max_sep=None,
    n_transtree_reps=10,
    seed=None,
    pool=None,
    basic_wt_weights=None,
    strict=True,
):
    """Estimate the (time, time, theta) weight tensor

    Builds the pairwise infector matrix once, then samples
    ``n_transtree_reps`` transmission trees, each with its own child seed,
    and averages their theta weights.
    Args:
        case_times: onset time of every case
        gen_t_dist: GenerationTime, explicit vector over lags, or density
            callable g(lag)
        max_sep (int): largest theta; None means 2 * (U - 1)
        n_transtree_reps (int): number of sampled trees
        seed: int, SeedSequence or None
        pool: WorkerPool (sequential when None)
        basic_wt_weights: optional precomputed time-by-time Wallinga-Teunis matrix
    Returns:
        ThetaWeights
    """
    if n_transtree_reps < 1:
        raise DomainError("n_transtree_reps must be >= 1")
    case_times = np.asarray(case_times, dtype=float)
    unique_times, _ = time_index(case_times)
    if max_sep is None:
        max_sep = default_max_sep(unique_times.size)

    wal_teun_mat = est_wt_matrix(
        case_times, gen_t_dist, basic_wt_weights=basic_wt_weights, strict=strict
    )

    rep = partial(_theta_rep, wal_teun_mat=wal_teun_mat, case_times=case_times, max_sep=int(max_sep))
    reps = resolve_pool(pool).map(rep, child_seeds(seed, int(n_transtree_reps)))

    out = average_theta_weights(reps)
    logger.debug(
        "Theta weights from %d trees: %d of %d time pairs linked",
        n_transtree_reps, int(out.defined().sum()), unique_times.size ** 2,
    )
    return out
