"""Tests for ModelEvaluator and the exploration helpers."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from cervical_risk.config import CONTINUOUS_COLUMNS, DIAGNOSTIC_TARGETS, AnalysisConfig
from cervical_risk.data_processing import RiskFactorProcessor, create_sample_data
from cervical_risk.evaluation import ModelEvaluator
from cervical_risk.exploration import (
    plot_risk_factor,
    plot_target_correlations,
    risk_factor_associations,
)
from cervical_risk.thresholds import sweep_scores


def clean_sample():
    return RiskFactorProcessor(AnalysisConfig()).clean(create_sample_data(n_samples=400))


def test_calculate_metrics_matches_sweep_row() -> None:
    y_true = np.array([1, 1, 1, 0, 0, 0, 0, 0, 0, 0])
    y_proba = np.array([0.9, 0.8, 0.3, 0.6, 0.4, 0.2, 0.1, 0.05, 0.7, 0.15])
    metrics = ModelEvaluator().calculate_metrics(y_true, y_proba, threshold=0.5)
    table, _ = sweep_scores(y_true, y_proba, [0.5])

    assert metrics["sensitivity"] == pytest.approx(table[0].sensitivity)
    assert metrics["specificity"] == pytest.approx(table[0].specificity)
    assert metrics["accuracy"] == pytest.approx(0.7)
    assert metrics["false_positives"] == 2
    assert 0.0 <= metrics["auc_roc"] <= 1.0


def test_calculate_metrics_single_class() -> None:
    metrics = ModelEvaluator().calculate_metrics(np.zeros(4), np.array([0.1, 0.6, 0.2, 0.3]))
    assert np.isnan(metrics["sensitivity"])
    assert metrics["specificity"] == pytest.approx(0.75)
    assert np.isnan(metrics["auc_roc"])


def test_plot_threshold_sweep_marks_crossover() -> None:
    y_true = [1, 1, 1, 0, 0, 0, 0, 0, 0, 0]
    y_proba = [0.9, 0.8, 0.3, 0.6, 0.4, 0.2, 0.1, 0.05, 0.7, 0.15]
    table, crossover = sweep_scores(y_true, y_proba, [0.1, 0.3, 0.5, 0.6, 0.8], tolerance=0.05)

    fig = ModelEvaluator().plot_threshold_sweep(table, crossover, "Biopsy / random_forest")
    labels = [line.get_label() for line in fig.axes[0].get_lines()]
    assert "Sensitivity" in labels
    assert any(label.startswith("Crossover") for label in labels)
    plt.close(fig)


def test_risk_factor_associations_covers_both_kinds() -> None:
    df = clean_sample()
    assoc = risk_factor_associations(df, DIAGNOSTIC_TARGETS, CONTINUOUS_COLUMNS)

    assert set(assoc["kind"]) == {"binary", "continuous"}
    assert set(assoc["target"]) == set(DIAGNOSTIC_TARGETS)
    assert not set(DIAGNOSTIC_TARGETS) & set(assoc["factor"])
    assert assoc["p_value"].between(0, 1).all()

    hpv = assoc[(assoc["factor"] == "Dx:HPV") & (assoc["target"] == "Biopsy")].iloc[0]
    assert hpv["test"] == "chi2"
    assert hpv["rate_exposed"] > hpv["rate_unexposed"]


def test_exploration_plots() -> None:
    df = clean_sample()
    fig = plot_target_correlations(df, DIAGNOSTIC_TARGETS)
    assert len(fig.axes) >= 1
    plt.close(fig)

    fig = plot_risk_factor(df, "Smokes", DIAGNOSTIC_TARGETS)
    assert len(fig.axes) == len(DIAGNOSTIC_TARGETS)
    plt.close(fig)

    fig = plot_risk_factor(df, "Age", DIAGNOSTIC_TARGETS, continuous=True)
    assert len(fig.axes) == len(DIAGNOSTIC_TARGETS)
    plt.close(fig)
