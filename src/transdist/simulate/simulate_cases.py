# src/transdist/simulate/simulate_cases.py
"""
Config-driven wrapper around sim_epidemic.
"""
from dataclasses import dataclass
import logging
from typing import Optional

from .simulate_epidemic import exponential_kernel, rayleigh_kernel, sim_epidemic

logger = logging.getLogger(__name__)

KERNELS = {"exponential": exponential_kernel, "rayleigh": rayleigh_kernel}


@dataclass
class SimConfig:
    R: float = 1.5
    gen_t_mean: float = 7.0
    gen_t_sd: float = 2.0
    gen_t_family: str = "gamma"
    tot_generations: int = 10
    min_cases: int = 100
    kernel: str = "exponential"
    kernel_mean: float = 100.0
    max_attempts: int = 100
    seed: Optional[int] = None


def simulate_cases(cfg: SimConfig):
    """Simulate one epidemic from ``cfg`` and return its case table."""
    if cfg.kernel not in KERNELS:
        raise ValueError(f"Unknown transmission kernel: {cfg.kernel!r}")

    cases = sim_epidemic(
        R=cfg.R,
        gen_t_mean=cfg.gen_t_mean,
        gen_t_sd=cfg.gen_t_sd,
        tot_generations=cfg.tot_generations,
        min_cases=cfg.min_cases,
        trans_kern_func=KERNELS[cfg.kernel](cfg.kernel_mean),
        seed=cfg.seed,
        max_attempts=cfg.max_attempts,
        gen_t_family=cfg.gen_t_family,
    )
    logger.info("Simulated case table shape: %s", cases.shape)
    return cases
