import numpy as np
import pytest

from transdist.errors import DomainError, InsufficientDataError
from transdist.simulate.simulate_cases import SimConfig, simulate_cases
from transdist.simulate.simulate_epidemic import (
    exponential_kernel,
    rayleigh_kernel,
    sim_epidemic,
)


def test_zero_R_gives_only_the_seed():
    """
    With R=0 there are no new infections:
    - a single case at the origin at t=0
    """
    cases = sim_epidemic(R=0.0, gen_t_mean=7.0, gen_t_sd=2.0, min_cases=1, seed=1)
    assert len(cases) == 1
    assert cases.loc[0, ["x", "y", "t"]].tolist() == [0.0, 0.0, 0.0]
    assert cases.loc[0, "generation"] == 1


def test_unreachable_min_cases_raises():
    with pytest.raises(InsufficientDataError):
        sim_epidemic(R=0.0, gen_t_mean=7.0, gen_t_sd=2.0, min_cases=2, max_attempts=3, seed=1)


def test_invalid_parameters_raise():
    with pytest.raises(DomainError):
        sim_epidemic(R=-1.0, gen_t_mean=7.0, gen_t_sd=2.0)
    with pytest.raises(DomainError):
        sim_epidemic(R=1.5, gen_t_mean=7.0, gen_t_sd=2.0, tot_generations=0)
    with pytest.raises(DomainError):
        exponential_kernel(0.0)


def test_generations_and_times(sim_cases):
    assert list(sim_cases.columns) == ["x", "y", "t", "generation"]
    assert len(sim_cases) >= 40
    assert sim_cases["generation"].max() <= 7
    # every generation after the seed is at least one step later
    assert (sim_cases["t"] >= sim_cases["generation"] - 1).all()
    assert (sim_cases["t"] == np.round(sim_cases["t"])).all()


def test_same_seed_is_reproducible():
    a = sim_epidemic(R=2.0, gen_t_mean=5.0, gen_t_sd=1.0, tot_generations=5, min_cases=10, seed=3)
    b = sim_epidemic(R=2.0, gen_t_mean=5.0, gen_t_sd=1.0, tot_generations=5, min_cases=10, seed=3)
    assert a.equals(b)


def test_kernel_means():
    rng = np.random.default_rng(0)
    assert np.mean(exponential_kernel(50.0)(rng, 20000)) == pytest.approx(50.0, rel=0.03)
    assert np.mean(rayleigh_kernel(50.0)(rng, 20000)) == pytest.approx(50.0, rel=0.03)


def test_simulate_cases_from_config():
    cfg = SimConfig(R=2.0, tot_generations=5, min_cases=10, kernel="rayleigh", kernel_mean=5.0, seed=9)
    cases = simulate_cases(cfg)
    assert len(cases) >= 10


def test_unknown_kernel_raises():
    with pytest.raises(ValueError):
        simulate_cases(SimConfig(kernel="cauchy"))
