"""
Cervical Cancer Risk-Factor Classification Package

This package contains modules for cleaning the risk-factor records,
exploring risk-factor associations, training per-target classifiers and
evaluating them across decision thresholds.

Submodules are imported on first attribute access so that
``cervical_risk.environment`` can run before numpy, scikit-learn or
matplotlib are loaded.
"""

from importlib import import_module

__version__ = "0.1.0"

_EXPORTS = {
    "AnalysisConfig": "config",
    "RiskFactorProcessor": "data_processing",
    "create_sample_data": "data_processing",
    "ModelTrainer": "model",
    "ModelEvaluator": "evaluation",
    "CrossoverResult": "thresholds",
    "DegenerateEvaluationSetError": "thresholds",
    "InvalidGridError": "thresholds",
    "MetricRow": "thresholds",
    "MetricTable": "thresholds",
    "make_threshold_grid": "thresholds",
    "sweep_scores": "thresholds",
    "sweep_thresholds": "thresholds",
}

__all__ = list(_EXPORTS)


def __getattr__(name):
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(f".{_EXPORTS[name]}", __name__), name)
