"""
Runtime environment setup.

Limits BLAS/OpenMP thread pools (random-forest searches already parallelise
through joblib), silences known-noisy library warnings and configures
logging for scripts.
"""

import logging
import os
import warnings

THREAD_LIMITS = {
    "OMP_NUM_THREADS": "1",
    "OPENBLAS_NUM_THREADS": "1",
    "MKL_NUM_THREADS": "1",
    "VECLIB_MAXIMUM_THREADS": "1",
    "NUMEXPR_NUM_THREADS": "1",
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def limit_threads() -> None:
    """Set thread-limit variables without overriding values the user exported."""
    for key, value in THREAD_LIMITS.items():
        os.environ.setdefault(key, value)


def suppress_library_warnings() -> None:
    warnings.filterwarnings("ignore", category=FutureWarning, module="sklearn")
    warnings.filterwarnings("ignore", category=FutureWarning, module="imblearn")
    warnings.filterwarnings("ignore", message=".*does not have valid feature names.*")


def setup_environment(level: int = logging.INFO) -> None:
    """
    Complete environment setup for the comparison scripts.

    This function:
    1. Limits native thread pools
    2. Filters noisy library warnings
    3. Configures logging

    Call this at the beginning of any script, before importing numpy,
    scikit-learn or matplotlib. Importing this module loads none of them.
    """
    limit_threads()
    suppress_library_warnings()

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
