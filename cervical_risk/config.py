"""
Analysis configuration for the cervical cancer risk-factor study.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from .thresholds import make_threshold_grid

DIAGNOSTIC_TARGETS = ["Hinselmann", "Schiller", "Citology", "Biopsy"]

CONTINUOUS_COLUMNS = [
    "Age",
    "Number of sexual partners",
    "First sexual intercourse",
    "Num of pregnancies",
    "Smokes (years)",
    "Smokes (packs/year)",
    "Hormonal Contraceptives (years)",
    "IUD (years)",
    "STDs (number)",
    "STDs: Number of diagnosis",
    "STDs: Time since first diagnosis",
    "STDs: Time since last diagnosis",
]


def _resolve_project_path() -> Path:
    """Resolve the project root path.
    Priority: $CERVICAL_PROJECT_PATH env var -> repo root (one level up from this package).
    """
    env_path = os.getenv("CERVICAL_PROJECT_PATH")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path(__file__).resolve().parent.parent


def _resolve_data_path() -> Path:
    """Resolve the raw CSV path with env override, fallback to data/risk_factors_cervical_cancer.csv."""
    default = _resolve_project_path() / "data" / "risk_factors_cervical_cancer.csv"
    return Path(os.getenv("CERVICAL_DATA_PATH", str(default))).expanduser().resolve()


def _resolve_results_dir() -> Path:
    default = _resolve_project_path() / "results"
    return Path(os.getenv("CERVICAL_RESULTS_DIR", str(default))).expanduser().resolve()


@dataclass
class AnalysisConfig:
    """Configuration for loading, modelling and threshold evaluation"""

    # Paths (env-overridable)
    data_path: Path = field(default_factory=_resolve_data_path)
    results_dir: Path = field(default_factory=_resolve_results_dir)

    # Dataset layout
    targets: List[str] = field(default_factory=lambda: list(DIAGNOSTIC_TARGETS))
    continuous_columns: List[str] = field(default_factory=lambda: list(CONTINUOUS_COLUMNS))
    missing_marker: str = "?"
    max_missing_fraction: float = 0.5

    # Splitting and training
    test_size: float = 0.3
    random_state: int = 42
    cv_folds: int = 5
    n_jobs: int = -1
    smote_k_neighbors: int = 5
    search_strategy: str = "grid"  # grid, random or none
    random_search_iterations: int = 20
    sensitivity_weight: float = 0.5

    # Threshold sweep
    threshold_start: float = 0.1
    threshold_stop: float = 0.5
    threshold_step: float = 0.01
    crossover_tolerance: float = 0.01

    def threshold_grid(self) -> np.ndarray:
        return make_threshold_grid(self.threshold_start, self.threshold_stop, self.threshold_step)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["data_path"] = str(self.data_path)
        payload["results_dir"] = str(self.results_dir)
        return payload
