# src/transdist/parallel.py
"""
Worker pool used by the map-then-aggregate stages (theta repetitions,
bootstrap iterations, temporal windows), plus per-trial seeding.
"""
import logging

import numpy as np
from joblib import Parallel, cpu_count, delayed

logger = logging.getLogger(__name__)


class WorkerPool:
    """Map a function over independent trials, sequentially or with joblib.

    ``n_jobs=1`` (the default) runs everything in-process in order. Results
    are always returned in input order.
    """

    def __init__(self, n_jobs=1, backend=None):
        n_jobs = int(n_jobs)
        if n_jobs < 1:
            raise ValueError("n_jobs must be >= 1")
        self.n_jobs = n_jobs
        self.backend = backend

    @classmethod
    def from_options(cls, parallel=False, n_cores=None, backend=None):
        """Build a pool from the parallel toggle and worker count options.

        When ``parallel`` is set and ``n_cores`` is None, half of the
        available CPUs are used.
        """
        if not parallel:
            return cls(1)
        if n_cores is None:
            n_cores = max(1, cpu_count() // 2)
        return cls(n_cores, backend=backend)

    @property
    def parallel(self):
        return self.n_jobs > 1

    def map(self, func, items):
        items = list(items)
        if not self.parallel or len(items) < 2:
            return [func(item) for item in items]
        logger.debug("Dispatching %d tasks to %d workers", len(items), self.n_jobs)
        return Parallel(n_jobs=self.n_jobs, backend=self.backend)(delayed(func)(item) for item in items)

    def __repr__(self):
        return f"WorkerPool(n_jobs={self.n_jobs}, backend={self.backend!r})"


SEQUENTIAL = WorkerPool(1)


def resolve_pool(pool):
    return SEQUENTIAL if pool is None else pool


def child_seeds(seed, n):
    """Independent SeedSequences for n trials derived from ``seed``.

    ``seed`` may be None, an int, or a SeedSequence. A SeedSequence is not
    advanced, so passing the same one twice gives the same children.
    """
    if not isinstance(seed, np.random.SeedSequence):
        seed = np.random.SeedSequence(seed)
    return [
        np.random.SeedSequence(seed.entropy, spawn_key=tuple(seed.spawn_key) + (i,), pool_size=seed.pool_size)
        for i in range(n)
    ]
