# src/transdist/__init__.py
"""Estimate transmission distances from case locations and onset times."""
from .version_info import VERSION as __version__  # noqa: F401

from .errors import DomainError, InsufficientDataError, ShapeMismatchError, TransDistError  # noqa: F401
from .generation.generation_time import GenerationTime, compute_generation_weights  # noqa: F401
from .weights.wallinga_teunis import est_wt_matrix, est_wt_matrix_weights  # noqa: F401
from .theta.sample_theta import ThetaWeights, get_transdist_theta  # noqa: F401
from .theta.theta_weights import est_transdist_theta_weights  # noqa: F401
from .estimate.kernel import KernelEstimate, est_transdist  # noqa: F401
from .estimate.bootstrap import BootstrapResult, est_transdist_bootstrap_ci  # noqa: F401
from .estimate.temporal import est_transdist_temporal, est_transdist_temporal_bootstrap_ci  # noqa: F401
from .parallel import WorkerPool  # noqa: F401
from .config import EstimatorConfig, run_estimation  # noqa: F401
from .simulate.simulate_epidemic import sim_epidemic  # noqa: F401
