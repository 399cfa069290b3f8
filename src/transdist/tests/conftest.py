import pytest

from transdist.simulate.simulate_epidemic import exponential_kernel, sim_epidemic

from .helpers import chain_table


@pytest.fixture
def chain_cases():
    return chain_table(5)


@pytest.fixture(scope="session")
def sim_cases():
    return sim_epidemic(
        R=1.5,
        gen_t_mean=7.0,
        gen_t_sd=1.5,
        tot_generations=7,
        min_cases=40,
        trans_kern_func=exponential_kernel(10.0),
        seed=2024,
    )
