import numpy as np
import pandas as pd

# With all generation-time mass at lag 1 every case's infector is the case
# one step earlier, so sampled trees are deterministic.
CHAIN_GEN_T = [0.0, 1.0]


def chain_table(n):
    """One case per time step 0..n-1, each one unit further along the x-axis."""
    t = np.arange(n, dtype=float)
    return pd.DataFrame({"x": t, "y": np.zeros(n), "t": t})
