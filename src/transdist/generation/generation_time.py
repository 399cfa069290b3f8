# src/transdist/generation/generation_time.py
# Discrete generation-time distributions over lags 0..L, either
# discretised from a continuous gamma/normal density or given explicitly.
from functools import lru_cache
import logging
import math

import numpy as np
from numpy.polynomial.legendre import leggauss
from scipy.stats import gamma, norm

from ..errors import DomainError

logger = logging.getLogger(__name__)

FAMILIES = ("gamma", "normal")


@lru_cache(maxsize=64)
def compute_generation_weights(mean, std, k_max, nquad=32, step=1.0):
    """Calculates discrete generation-time weights for lags 0..k_max

    Discretises a gamma density with the given mean and std onto integer
    lags (in units of ``step``) using a triangular kernel centred on each lag.
    Args:
        mean (float): mean generation time
        std (float): std of the generation time
        k_max (int): largest lag to weight
    Returns:
        w (nparray(k_max + 1,)): array with weights that sum to one
    Raises:
        DomainError
    """
    if k_max < 1:
        raise DomainError("k_max must be >= 1")
    if mean <= 0 or std <= 0:
        raise DomainError("Mean and std of the generation time must be > 0")

    alpha = (mean / std) ** 2
    theta = std ** 2 / mean
    g = gamma(a=alpha, scale=theta)

    # w_k = int_(k-1)^(k+1)[1-|u-k|/step]g(u)du, evaluated with Gauss-Legendre
    # nodes instead of quad(); the density is zero below 0 so lag 0 only
    # picks up the right half of its kernel.
    nodes, weights = leggauss(nquad)
    w = np.zeros(k_max + 1)

    for k in range(0, k_max + 1):
        center = step * k
        left = step * (k - 1)
        right = step * (k + 1)
        half_width = 0.5 * (right - left)
        midpoint = 0.5 * (right + left)

        u = half_width * nodes + midpoint
        tri = 1.0 - np.abs(u - center) / step
        tri[tri < 0.0] = 0.0

        w[k] = half_width * np.sum(weights * tri * g.pdf(u))

    total = float(w.sum())
    if total <= 0:
        raise DomainError("Generation-time weights sum to a non-positive number")
    return w / total


def normal_generation_weights(mean, std, k_max):
    """Normal density evaluated at integer lags 0..k_max and normalised."""
    if k_max < 1:
        raise DomainError("k_max must be >= 1")
    if mean <= 0 or std <= 0:
        raise DomainError("Mean and std of the generation time must be > 0")
    w = norm.pdf(np.arange(k_max + 1), loc=mean, scale=std)
    total = float(w.sum())
    if total <= 0:
        raise DomainError("Generation-time weights sum to a non-positive number")
    return w / total


def validate_weights(pmf):
    """Check an explicit generation-time vector and return it normalised."""
    w = np.asarray(pmf, dtype=float)
    if w.ndim != 1:
        raise DomainError("Generation-time vector must be one-dimensional")
    if w.size == 0:
        raise DomainError("Generation-time vector is empty")
    if not np.all(np.isfinite(w)):
        raise DomainError("Generation-time vector contains non-finite values")
    if np.any(w < 0):
        raise DomainError("Generation-time vector contains negative values")
    total = float(w.sum())
    if total <= 0:
        raise DomainError("Generation-time vector must sum to a positive value")
    return w / total


class GenerationTime:
    """Probability mass function over non-negative integer lags.

    ``weights[k]`` is the probability of a generation time of ``k`` time
    steps. Lags beyond the stored support have probability zero.
    """

    def __init__(self, weights):
        self._weights = validate_weights(weights)
        self._weights.setflags(write=False)

    @classmethod
    def from_vector(cls, pmf):
        return cls(pmf)

    @classmethod
    def from_function(cls, density, max_lag):
        """Evaluate a density g(lag) on lags 0..max_lag and normalise."""
        max_lag = max(int(max_lag), 1)
        try:
            w = [float(density(lag)) for lag in range(max_lag + 1)]
        except (TypeError, ValueError) as exc:
            raise DomainError(f"Generation-time density could not be evaluated: {exc}") from exc
        return cls(w)

    @classmethod
    def from_mean_sd(cls, mean, sd, family="gamma", max_lag=None, nquad=32):
        if family not in FAMILIES:
            raise DomainError(f"Unknown generation-time family: {family!r}")
        if mean <= 0 or sd <= 0:
            raise DomainError("Mean and sd of the generation time must be > 0")
        if max_lag is None:
            max_lag = int(math.ceil(mean + 6.0 * sd))
        max_lag = max(int(max_lag), 1)

        if family == "gamma":
            w = compute_generation_weights(float(mean), float(sd), max_lag, nquad=nquad)
        else:
            w = normal_generation_weights(float(mean), float(sd), max_lag)
        logger.debug("Generation-time weights (%s, len=%d)", family, len(w))
        return cls(w)

    @property
    def weights(self):
        return self._weights

    @property
    def max_lag(self):
        return self._weights.size - 1

    def pmf(self, lags):
        """Look up g(lag); non-integer lags are rounded to the nearest step."""
        lags = np.rint(np.asarray(lags, dtype=float)).astype(int)
        out = np.zeros(lags.shape, dtype=float)
        inside = (lags >= 0) & (lags <= self.max_lag)
        out[inside] = self._weights[lags[inside]]
        return out

    def mean(self):
        return float(np.dot(np.arange(self._weights.size), self._weights))

    def sample(self, rng, size, positive=True):
        """Draw lags from the distribution, optionally excluding lag 0."""
        w = self._weights
        if positive:
            w = w.copy()
            w[0] = 0.0
            if w.sum() <= 0:
                raise DomainError("Generation-time distribution has no mass at positive lags")
            w = w / w.sum()
        return rng.choice(w.size, size=size, p=w)

    def __repr__(self):
        return f"GenerationTime(max_lag={self.max_lag}, mean={self.mean():.3f})"


def as_generation_time(gen_t_mean=None, gen_t_sd=None, gen_t_dist=None, family="gamma", max_lag=None):
    """Resolve the accepted generation-time parameterisations to a GenerationTime.

    ``gen_t_dist`` may be a GenerationTime, an explicit vector over lags
    0..L, or a density callable g(lag). A callable is evaluated on lags
    0..max_lag, so max_lag is required with it.
    """
    if isinstance(gen_t_dist, GenerationTime):
        return gen_t_dist
    if callable(gen_t_dist):
        if max_lag is None:
            raise DomainError("max_lag is required when gen_t_dist is a density function")
        return GenerationTime.from_function(gen_t_dist, max_lag)
    if gen_t_dist is not None:
        return GenerationTime.from_vector(gen_t_dist)
    if gen_t_mean is None or gen_t_sd is None:
        raise DomainError("Either gen_t_dist or both gen_t_mean and gen_t_sd must be provided")
    return GenerationTime.from_mean_sd(gen_t_mean, gen_t_sd, family=family)
