# src/transdist/theta/sample_theta.py
# Draw one transmission tree from the infector probability matrix and
# count the generations (theta) separating every pair of cases.
from dataclasses import dataclass
import logging

import numpy as np
from numpy.random import default_rng

from ..cases import time_index
from ..errors import DomainError, ShapeMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ThetaWeights:
    """Probability of theta generations between cases at two times.

    ``weights[a, b, k]`` is the probability that cases at ``times[a]`` and
    ``times[b]`` are separated by ``k + 1`` generations. Slices with no
    linking chain within ``max_sep`` are NaN.
    """

    times: np.ndarray
    weights: np.ndarray

    def __post_init__(self):
        if self.weights.ndim != 3 or self.weights.shape[:2] != (self.times.size, self.times.size):
            raise ShapeMismatchError(
                f"Theta weights of shape {self.weights.shape} do not match {self.times.size} times"
            )

    @property
    def max_sep(self):
        return self.weights.shape[2]

    @property
    def thetas(self):
        return np.arange(1, self.max_sep + 1)

    def defined(self):
        """Boolean (U, U) mask of time pairs with at least one valid chain."""
        return ~np.isnan(self.weights[:, :, 0])


def default_max_sep(n_times):
    """Longest possible path between two cases when infectors strictly precede infectees."""
    return max(1, 2 * (int(n_times) - 1))


def sample_infectors(wal_teun_mat, rng):
    """Sample one infector per case from its column of the pairwise matrix.

    Returns an int array of parent indices, -1 for cases with no valid infector.
    """
    p = np.asarray(wal_teun_mat, dtype=float)
    n = p.shape[0]
    cum = np.cumsum(p, axis=0)
    col = cum[-1] if n else np.zeros(0)
    linked = col > 0

    # First row whose cumulative mass exceeds the target always has p > 0
    target = rng.random(n) * col
    parent = (cum <= target[None, :]).sum(axis=0)
    parent = np.where(linked, np.minimum(parent, n - 1), -1)
    return parent


def ancestor_table(parent, max_sep):
    """Rows k = 0..K of k-th ancestors; stops early once every chain has ended."""
    n = parent.size
    anc = [np.arange(n)]
    for _ in range(max_sep):
        prev = anc[-1]
        alive = prev >= 0
        if not np.any(alive):
            break
        nxt = np.full(n, -1)
        nxt[alive] = parent[prev[alive]]
        if not np.any(nxt >= 0):
            break
        anc.append(nxt)
    return anc


def generation_separation(parent, max_sep):
    """Generations between every pair of cases in a sampled forest.

    theta[i, j] is the length of the tree path from i to j through their
    most recent common ancestor. Each chain is walked up at most max_sep
    steps, so pairs in different trees or further apart than max_sep get
    a sentinel value greater than max_sep.
    """
    parent = np.asarray(parent)
    n = parent.size
    big = 2 * max_sep + 2
    anc = ancestor_table(parent, max_sep)
    rows = np.arange(n)

    # up[j, v]: steps from case j up to its ancestor v
    up = np.full((n, n), big, dtype=np.int32)
    for b, a_b in enumerate(anc):
        m = a_b >= 0
        r, c = rows[m], a_b[m]
        up[r, c] = np.minimum(up[r, c], b)

    theta = np.full((n, n), big, dtype=np.int32)
    for a, a_a in enumerate(anc):
        m = a_a >= 0
        if not np.any(m):
            continue
        theta[m, :] = np.minimum(theta[m, :], a + up[:, a_a[m]].T)
    return theta


def tabulate_theta(theta, time_idx, n_times, max_sep):
    """Normalised (U, U, max_sep) counts of theta per pair of case times."""
    n = theta.shape[0]
    valid = (theta >= 1) & (theta <= max_sep)
    valid[np.diag_indices(n)] = False

    pair = time_idx[:, None].astype(np.int64) * n_times + time_idx[None, :]
    flat = (pair * max_sep + (theta.astype(np.int64) - 1))[valid]
    counts = np.bincount(flat, minlength=n_times * n_times * max_sep).astype(float)
    counts = counts.reshape(n_times, n_times, max_sep)

    total = counts.sum(axis=2, keepdims=True)
    weights = np.full_like(counts, np.nan)
    np.divide(counts, total, out=weights, where=total > 0)
    return weights


def get_transdist_theta(wal_teun_mat, case_times, max_sep, rng=None):
    """Theta weights for one randomly sampled transmission tree

    Args:
        wal_teun_mat (nparray(N, N)): pairwise infector probabilities from est_wt_matrix
        case_times: onset time of every case, aligned with the matrix
        max_sep (int): largest number of generations considered
        rng: numpy Generator (a fresh one is made if None)
    Returns:
        ThetaWeights for the unique case times
    Raises:
        ShapeMismatchError, DomainError
    """
    if max_sep < 1:
        raise DomainError("max_sep must be >= 1")
    max_sep = int(max_sep)
    p = np.asarray(wal_teun_mat, dtype=float)
    unique_times, idx = time_index(case_times)
    if p.shape != (idx.size, idx.size):
        raise ShapeMismatchError(
            f"Pairwise matrix has shape {p.shape}, expected ({idx.size}, {idx.size})"
        )

    if rng is None:
        rng = default_rng()

    parent = sample_infectors(p, rng)
    theta = generation_separation(parent, max_sep)
    weights = tabulate_theta(theta, idx, unique_times.size, max_sep)

    logger.debug("Sampled tree: %d roots among %d cases", int(np.sum(parent < 0)), parent.size)
    return ThetaWeights(times=unique_times, weights=weights)
