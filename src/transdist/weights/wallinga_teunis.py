# src/transdist/weights/wallinga_teunis.py
# Wallinga-Teunis infector attribution: relative likelihood that a case
# at one time infected a case at another, from onset times alone.
import logging

import numpy as np

from ..cases import time_index, time_span
from ..errors import DomainError, InsufficientDataError, ShapeMismatchError
from ..generation.generation_time import as_generation_time

logger = logging.getLogger(__name__)


def _normalise_columns(m):
    """Scale each column to sum to 1; all-zero columns are left as zero."""
    col = m.sum(axis=0)
    linked = col > 0
    m[:, linked] = m[:, linked] / col[linked]
    return m


def est_wt_matrix_weights(case_times, gen_t_dist, strict=True):
    """Time-by-time Wallinga-Teunis matrix

    Args:
        case_times: onset time of every case (duplicates allowed)
        gen_t_dist: GenerationTime, explicit vector over lags 0..L, or a
            density callable g(lag) evaluated up to the case-time span
        strict: if True only strictly earlier times can infect, otherwise
            same-time infection (lag 0) is allowed too
    Returns:
        w (nparray(U, U)): w[a, b] is the relative likelihood that a case at
        unique time a infected a case at unique time b. Columns sum to 1,
        or to 0 when no earlier time can be an infector.
    Raises:
        DomainError, InsufficientDataError
    """
    gen_t_dist = as_generation_time(gen_t_dist=gen_t_dist, max_lag=time_span(case_times))

    unique_times, _ = time_index(case_times)
    if unique_times.size == 0:
        raise InsufficientDataError("No case times supplied")

    # lags[a, b] = t_b - t_a
    lags = unique_times[None, :] - unique_times[:, None]
    valid = lags > 0 if strict else lags >= 0
    w = np.where(valid, gen_t_dist.pmf(lags), 0.0)
    w = _normalise_columns(w)

    logger.debug("Wallinga-Teunis weights: %d unique times", unique_times.size)
    return w


def est_wt_matrix(case_times, gen_t_dist=None, basic_wt_weights=None, strict=True):
    """Case-by-case infector probability matrix

    Each case takes its time bucket's weight from the time-by-time matrix;
    columns are then renormalised over all candidate source cases, so every
    case at a given source time receives an equal share and busier times
    receive proportionally more.
    Args:
        case_times: onset time of every case
        gen_t_dist: GenerationTime, vector or density callable; unused when
            basic_wt_weights is given
        basic_wt_weights: optional precomputed output of est_wt_matrix_weights
            for exactly these case times
    Returns:
        p (nparray(N, N)): p[i, j] probability that case i infected case j
    Raises:
        ShapeMismatchError, DomainError, InsufficientDataError
    """
    unique_times, idx = time_index(case_times)
    n_times = unique_times.size

    if basic_wt_weights is None:
        if gen_t_dist is None:
            raise DomainError("gen_t_dist is required when basic_wt_weights is not supplied")
        basic = est_wt_matrix_weights(case_times, gen_t_dist, strict=strict)
    else:
        basic = np.asarray(basic_wt_weights, dtype=float)
        if basic.shape != (n_times, n_times):
            raise ShapeMismatchError(
                f"Weight matrix has shape {basic.shape}, expected ({n_times}, {n_times}) "
                "for the unique case times"
            )
        if not np.all(np.isfinite(basic)) or np.any(basic < 0):
            raise DomainError("Weight matrix must be finite and non-negative")

    p = basic[np.ix_(idx, idx)]
    np.fill_diagonal(p, 0.0)
    p = _normalise_columns(p)

    logger.debug("Pairwise infector matrix: %d cases", p.shape[0])
    return p
