# src/transdist/simulate/simulate_epidemic.py
# Stochastic branching-process epidemic in discrete generations, producing
# case tables (x, y, t) for the estimators.
import logging
import math

import numpy as np
import pandas as pd
from numpy.random import default_rng

from ..errors import DomainError, InsufficientDataError
from ..generation.generation_time import GenerationTime

logger = logging.getLogger(__name__)


def exponential_kernel(mean):
    """Transmission distances ~ Exponential(mean); kernel mean equals its sd."""
    if mean <= 0:
        raise DomainError("Kernel mean must be > 0")

    def draw(rng, n):
        return rng.exponential(mean, size=n)
    return draw


def rayleigh_kernel(mean):
    """Transmission distances ~ Rayleigh with the given mean (isotropic normal steps)."""
    if mean <= 0:
        raise DomainError("Kernel mean must be > 0")
    scale = mean / math.sqrt(math.pi / 2.0)

    def draw(rng, n):
        return rng.rayleigh(scale, size=n)
    return draw


def simulate_generations(R, gen_t, tot_generations, trans_kern_func, rng):
    """Single run of the branching process seeded by one case at the origin at t=0

    Returns:
        DataFrame with columns x, y, t, generation (seed is generation 1)
    """
    current = np.zeros((1, 3))
    blocks = [np.column_stack([current, np.ones(1)])]

    for generation in range(2, tot_generations + 1):
        n_offspring = rng.poisson(R, size=len(current))
        total = int(n_offspring.sum())
        # Extinction: no new infections in this generation
        if total == 0:
            break

        parents = np.repeat(current, n_offspring, axis=0)
        dist = trans_kern_func(rng, total)
        angle = rng.uniform(0.0, 2.0 * math.pi, size=total)
        lag = gen_t.sample(rng, total, positive=True)

        current = np.column_stack([
            parents[:, 0] + dist * np.cos(angle),
            parents[:, 1] + dist * np.sin(angle),
            parents[:, 2] + lag,
        ])
        blocks.append(np.column_stack([current, np.full(total, generation)]))

    out = pd.DataFrame(np.vstack(blocks), columns=["x", "y", "t", "generation"])
    out["generation"] = out["generation"].astype(int)
    return out


def sim_epidemic(
    R,
    gen_t_mean,
    gen_t_sd,
    tot_generations=10,
    min_cases=100,
    trans_kern_func=None,
    seed=None,
    max_attempts=100,
    gen_t_family="gamma",
):
    """Simulate an epidemic with at least ``min_cases`` cases

    Reruns the branching process (up to ``max_attempts`` times) until the
    outbreak reaches ``min_cases``.
    Args:
        R (float): mean offspring per case (Poisson)
        gen_t_mean, gen_t_sd (float): generation time in time steps
        tot_generations (int): generations simulated, counting the seed
        min_cases (int): smallest outbreak accepted
        trans_kern_func: callable (rng, n) -> n distances; exponential_kernel(1.0) if None
        seed: int or None
    Returns:
        DataFrame with columns x, y, t, generation
    Raises:
        DomainError, InsufficientDataError
    """
    if R < 0:
        raise DomainError("R must be >= 0")
    if tot_generations < 1:
        raise DomainError("tot_generations must be >= 1")
    if trans_kern_func is None:
        trans_kern_func = exponential_kernel(1.0)

    rng = default_rng(seed)
    gen_t = GenerationTime.from_mean_sd(gen_t_mean, gen_t_sd, family=gen_t_family)

    for attempt in range(1, max_attempts + 1):
        cases = simulate_generations(R, gen_t, tot_generations, trans_kern_func, rng)
        if len(cases) >= min_cases:
            logger.info("Simulated %d cases on attempt %d", len(cases), attempt)
            return cases
        logger.debug("Attempt %d produced %d cases (< %d)", attempt, len(cases), min_cases)

    raise InsufficientDataError(
        f"No simulated outbreak reached {min_cases} cases in {max_attempts} attempts"
    )
