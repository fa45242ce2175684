"""Tests for TargetComparisonPipeline."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from cervical_risk.config import AnalysisConfig
from cervical_risk.data_processing import RiskFactorProcessor, create_sample_data
from cervical_risk.model import ModelTrainer
from cervical_risk.pipelines import TargetComparisonPipeline
from cervical_risk.pipelines.target_comparison import FALLBACK_THRESHOLD


def make_pipeline(models=("logistic_regression",), **overrides) -> TargetComparisonPipeline:
    params = dict(cv_folds=3, n_jobs=1, smote_k_neighbors=3, search_strategy="none",
                  crossover_tolerance=0.05)
    params.update(overrides)
    return TargetComparisonPipeline(config=AnalysisConfig(**params), models=list(models))


def clean_sample(n_samples: int = 500):
    return RiskFactorProcessor(AnalysisConfig()).clean(create_sample_data(n_samples=n_samples))


def test_run_produces_one_result_per_target_and_model() -> None:
    pipeline = make_pipeline(models=("logistic_regression", "random_forest"))
    results = pipeline.run(clean_sample(), targets=["Schiller", "Biopsy"])

    assert [(r.target, r.model) for r in results] == [
        ("Schiller", "logistic_regression"),
        ("Schiller", "random_forest"),
        ("Biopsy", "logistic_regression"),
        ("Biopsy", "random_forest"),
    ]
    grid_len = len(pipeline.config.threshold_grid())
    for result in results:
        assert len(result.table) == grid_len
        assert len(result.y_proba) == len(result.y_test)
        assert result.metrics["threshold"] == pytest.approx(result.operating_threshold)


def test_operating_threshold_falls_back_without_crossover() -> None:
    pipeline = make_pipeline(crossover_tolerance=0.0)
    results = pipeline.run(clean_sample(), targets=["Hinselmann"])

    assert len(results) == 1
    assert not results[0].crossover.found
    assert results[0].operating_threshold == FALLBACK_THRESHOLD
    assert results[0].to_dict()["crossover_threshold"] is None


def test_summary_and_best_target() -> None:
    pipeline = make_pipeline()
    pipeline.run(clean_sample())
    summary = pipeline.summary()

    assert list(summary["target"]) == pipeline.config.targets
    assert {"accuracy", "sensitivity", "specificity", "auc_roc"} <= set(summary.columns)
    assert pipeline.best_target() in pipeline.config.targets


def test_results_are_json_serialisable() -> None:
    pipeline = make_pipeline(models=("random_forest",), search_strategy="random",
                             random_search_iterations=1)
    pipeline.run(clean_sample(), targets=["Citology"])
    payload = json.dumps([r.to_dict() for r in pipeline.results])
    assert "n_estimators" in payload


def test_single_class_target_is_skipped() -> None:
    df = clean_sample()
    df["Citology"] = 0
    pipeline = make_pipeline()
    results = pipeline.run(df, targets=["Citology", "Biopsy"])

    assert [r.target for r in results] == ["Biopsy"]
    assert pipeline.skipped[0]["target"] == "Citology"


def test_unknown_target_is_rejected() -> None:
    with pytest.raises(ValueError):
        make_pipeline().run(clean_sample(), targets=["Colposcopy"])


def test_best_target_without_results() -> None:
    pipeline = make_pipeline()
    assert pipeline.summary().empty
    assert pipeline.best_target() is None


def test_scores_are_probabilities() -> None:
    pipeline = make_pipeline()
    result = pipeline.run(clean_sample(), targets=["Schiller"])[0]
    assert np.all((result.y_proba >= 0) & (result.y_proba <= 1))


def test_single_class_held_out_split_skips_only_that_pair(monkeypatch: pytest.MonkeyPatch) -> None:
    pipeline = make_pipeline()
    split = pipeline.processor.split_data

    def negatives_only_for_citology(X, y):
        X_train, X_test, y_train, y_test = split(X, y)
        if y.name == "Citology":
            keep = y_test == 0
            return X_train, X_test[keep], y_train, y_test[keep]
        return X_train, X_test, y_train, y_test

    monkeypatch.setattr(pipeline.processor, "split_data", negatives_only_for_citology)
    results = pipeline.run(clean_sample(), targets=["Citology", "Biopsy"])

    assert [(r.target, r.model) for r in results] == [("Biopsy", "logistic_regression")]
    assert len(pipeline.skipped) == 1
    skipped = pipeline.skipped[0]
    assert (skipped["target"], skipped["model"]) == ("Citology", "logistic_regression")
    assert "undefined" in skipped["reason"]


def test_save_models_persists_operating_threshold(tmp_path: Path) -> None:
    pipeline = make_pipeline()
    results = pipeline.run(clean_sample(), targets=["Schiller"])
    paths = pipeline.save_models(tmp_path / "models")

    assert paths == [tmp_path / "models" / "schiller_logistic_regression.pkl"]
    assert (tmp_path / "models" / "schiller_logistic_regression_threshold.pkl").exists()

    trainer = ModelTrainer(pipeline.config)
    loaded = trainer.load_model(str(paths[0]))
    assert trainer.best_threshold == pytest.approx(results[0].operating_threshold)
    X = clean_sample().drop(columns=pipeline.config.targets).head(5)
    np.testing.assert_allclose(loaded.predict_proba(X), results[0].estimator.predict_proba(X))
