# src/transdist/cases.py
"""
Case tables: one row per observed case with columns x, y (location) and t
(onset time step). Row position is the case index used by every matrix.
"""
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from .errors import DomainError

CASE_COLUMNS = ["x", "y", "t"]


def as_case_table(cases) -> pd.DataFrame:
    """Return a validated copy of ``cases`` as a DataFrame with x, y, t columns.

    Accepts a DataFrame containing the three columns (extra columns are
    dropped) or any array-like of shape (n, 3).
    """
    if isinstance(cases, pd.DataFrame):
        missing = [c for c in CASE_COLUMNS if c not in cases.columns]
        if missing:
            raise DomainError(f"Case table missing required columns: {missing}")
        df = cases[CASE_COLUMNS].astype(float).reset_index(drop=True)
    else:
        arr = np.asarray(cases, dtype=float)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise DomainError("Case table must have shape (n, 3) with columns x, y, t")
        df = pd.DataFrame(arr, columns=CASE_COLUMNS)

    if not np.all(np.isfinite(df.to_numpy())):
        raise DomainError("Case table contains non-finite values")
    return df


def filter_cases(cases: pd.DataFrame, t1: Optional[float] = None, t_end: Optional[float] = None) -> pd.DataFrame:
    """Keep cases with t1 <= t <= t_end (either bound may be None)."""
    keep = np.ones(len(cases), dtype=bool)
    if t1 is not None:
        keep &= cases["t"].to_numpy() >= t1
    if t_end is not None:
        keep &= cases["t"].to_numpy() <= t_end
    return cases.loc[keep].reset_index(drop=True)


def time_index(times) -> Tuple[np.ndarray, np.ndarray]:
    """Return (unique sorted times, index of each case's time in that array)."""
    unique_times, idx = np.unique(np.asarray(times, dtype=float), return_inverse=True)
    return unique_times, idx.reshape(-1)


def time_span(times) -> int:
    """Largest lag between two case times, in whole time steps (at least 1)."""
    times = np.asarray(times, dtype=float)
    if times.size == 0:
        return 1
    return max(1, int(np.ceil(times.max() - times.min())))
