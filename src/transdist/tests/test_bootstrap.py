import math

import numpy as np
import pandas as pd
import pytest

from transdist.errors import DomainError, InsufficientDataError
from transdist.estimate.bootstrap import BootstrapResult, est_transdist_bootstrap_ci
from transdist.parallel import WorkerPool

GEN_T = dict(gen_t_mean=7.0, gen_t_sd=1.5)


def test_bootstrap_shapes_and_order(sim_cases):
    res = est_transdist_bootstrap_ci(
        sim_cases, n_transtree_reps=3, boot_iter=15, seed=1, **GEN_T
    )

    assert isinstance(res, BootstrapResult)
    assert res.boot_iter == 15
    assert res.boot_mu.shape == (15,)
    assert np.all(np.isfinite(res.boot_mu))
    assert res.mu_ci_low <= res.mu_ci_high
    assert res.sigma_ci_low <= res.sigma_ci_high
    assert res.mu == res.estimate.mu


def test_point_estimate_within_full_range(sim_cases):
    """With ci_low=0 and ci_high=1 the interval is the range of bootstrap estimates."""
    res = est_transdist_bootstrap_ci(
        sim_cases, n_transtree_reps=5, boot_iter=30, ci_low=0.0, ci_high=1.0, seed=2, **GEN_T
    )
    assert res.mu_ci_low == pytest.approx(res.boot_mu.min())
    assert res.mu_ci_high == pytest.approx(res.boot_mu.max())
    assert res.mu_ci_low <= res.mu * 1.05
    assert res.mu_ci_high >= res.mu * 0.95


def test_bounded_estimates(sim_cases):
    kwargs = dict(n_transtree_reps=2, boot_iter=8, seed=3, **GEN_T)
    plain = est_transdist_bootstrap_ci(sim_cases, **kwargs)
    bounded = est_transdist_bootstrap_ci(sim_cases, mean_equals_sd=False, **kwargs)

    assert bounded.mu == pytest.approx(math.sqrt(2) * plain.mu)
    assert bounded.mu_ci_low == pytest.approx(math.sqrt(2) * plain.mu_ci_low)
    assert bounded.sigma_ci_high == pytest.approx(math.sqrt(2) * plain.sigma_ci_high)


def test_parallel_matches_sequential(sim_cases):
    kwargs = dict(n_transtree_reps=2, boot_iter=6, seed=4, **GEN_T)
    seq = est_transdist_bootstrap_ci(sim_cases, **kwargs)
    par = est_transdist_bootstrap_ci(sim_cases, pool=WorkerPool(2, backend="threading"), **kwargs)
    assert np.array_equal(seq.boot_mu, par.boot_mu)
    assert seq.mu_ci_low == par.mu_ci_low


def test_failed_iteration_is_fatal():
    """
    Two cases one step apart: roughly half the resamples contain a single
    case time, which must fail the whole call rather than be dropped.
    """
    cases = pd.DataFrame({"x": [0.0, 1.0], "y": [0.0, 0.0], "t": [0.0, 1.0]})
    with pytest.raises(InsufficientDataError):
        est_transdist_bootstrap_ci(cases, gen_t_dist=[0.0, 1.0], boot_iter=30, seed=0)


@pytest.mark.parametrize("ci", [(0.9, 0.1), (-0.1, 0.5), (0.5, 1.5)])
def test_invalid_quantiles_raise(sim_cases, ci):
    with pytest.raises(DomainError):
        est_transdist_bootstrap_ci(sim_cases, ci_low=ci[0], ci_high=ci[1], **GEN_T)


def test_invalid_boot_iter_raises(sim_cases):
    with pytest.raises(DomainError):
        est_transdist_bootstrap_ci(sim_cases, boot_iter=0, **GEN_T)
