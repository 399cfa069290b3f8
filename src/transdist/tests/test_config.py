import numpy as np
import pandas as pd
import pytest

from transdist.config import EstimatorConfig, run_estimation
from transdist.estimate.bootstrap import BootstrapResult
from transdist.estimate.kernel import KernelEstimate
from transdist.parallel import WorkerPool, child_seeds

from .helpers import CHAIN_GEN_T


def test_point_mode(chain_cases):
    cfg = EstimatorConfig(gen_t_dist=CHAIN_GEN_T, seed=0)
    assert isinstance(run_estimation(chain_cases, cfg), KernelEstimate)


def test_bootstrap_mode(sim_cases):
    cfg = EstimatorConfig(gen_t_mean=7.0, gen_t_sd=1.5, n_transtree_reps=2, boot_iter=3, seed=0)
    assert isinstance(run_estimation(sim_cases, cfg, mode="bootstrap"), BootstrapResult)


def test_temporal_mode(chain_cases):
    cfg = EstimatorConfig(gen_t_dist=CHAIN_GEN_T, min_cases=2, seed=0)
    series = run_estimation(chain_cases, cfg, mode="temporal")
    assert isinstance(series, pd.DataFrame)
    assert len(series) == 5


def test_unknown_mode_raises(chain_cases):
    with pytest.raises(ValueError):
        run_estimation(chain_cases, EstimatorConfig(gen_t_dist=CHAIN_GEN_T), mode="spatial")


def test_pool_options():
    assert EstimatorConfig().pool().n_jobs == 1
    assert EstimatorConfig(parallel=True, n_cores=3).pool().n_jobs == 3
    assert WorkerPool.from_options(parallel=True).n_jobs >= 1
    with pytest.raises(ValueError):
        WorkerPool(0)


def test_pool_keeps_order():
    pool = WorkerPool(2, backend="threading")
    assert pool.map(lambda x: x * x, range(6)) == [0, 1, 4, 9, 16, 25]


def test_child_seeds_are_reproducible():
    a = [s.generate_state(1)[0] for s in child_seeds(5, 3)]
    b = [s.generate_state(1)[0] for s in child_seeds(5, 3)]
    assert a == b
    assert len(set(a)) == 3


def test_child_seeds_leave_seed_sequence_untouched():
    ss = np.random.SeedSequence(5)
    a = [s.generate_state(1)[0] for s in child_seeds(ss, 3)]
    b = [s.generate_state(1)[0] for s in child_seeds(ss, 3)]

    assert a == b
    assert ss.n_children_spawned == 0
    # same children as an int seed
    assert a == [s.generate_state(1)[0] for s in child_seeds(5, 3)]
