"""Per-target classifier comparison: split, train, sweep thresholds, summarise."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from cervical_risk.config import AnalysisConfig
from cervical_risk.data_processing import RiskFactorProcessor
from cervical_risk.evaluation import ModelEvaluator
from cervical_risk.model import MODEL_NAMES, ModelTrainer
from cervical_risk.thresholds import (
    CrossoverResult,
    DegenerateEvaluationSetError,
    MetricTable,
    predict_positive_proba,
    sweep_scores,
)

logger = logging.getLogger(__name__)

FALLBACK_THRESHOLD = 0.5


@dataclass
class ComparisonResult:
    target: str
    model: str
    crossover: CrossoverResult
    table: MetricTable
    metrics: Dict[str, float]
    best_params: Dict[str, Any]
    cv_score: float
    y_test: np.ndarray = field(repr=False)
    y_proba: np.ndarray = field(repr=False)
    estimator: Any = field(default=None, repr=False)

    @property
    def operating_threshold(self) -> float:
        return self.crossover.threshold if self.crossover.found else FALLBACK_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "model": self.model,
            "crossover_threshold": self.crossover.threshold,
            "contributing_thresholds": list(self.crossover.contributing_thresholds),
            "operating_threshold": self.operating_threshold,
            "metrics": self.metrics,
            "best_params": {k: _jsonable(v) for k, v in self.best_params.items()},
            "cv_score": self.cv_score,
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


@dataclass
class TargetComparisonPipeline:
    """Trains every model family on every target and sweeps thresholds on held-out data."""

    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    models: Sequence[str] = field(default_factory=lambda: list(MODEL_NAMES))
    results: List[ComparisonResult] = field(default_factory=list)
    skipped: List[Dict[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.processor = RiskFactorProcessor(self.config)
        self.trainer = ModelTrainer(self.config)
        self.evaluator = ModelEvaluator()

    def run(self, df: pd.DataFrame, targets: Optional[Sequence[str]] = None) -> List[ComparisonResult]:
        """Run the comparison on a cleaned frame; returns and stores the results."""
        targets = list(targets or self.config.targets)
        unknown = [t for t in targets if t not in self.config.targets]
        if unknown:
            raise ValueError(f"Unknown targets {unknown}; configured: {self.config.targets}")

        grid = self.config.threshold_grid()
        self.results = []
        self.skipped = []

        for target in targets:
            try:
                X, y = self.processor.prepare_features_target(df, target)
            except ValueError as e:
                logger.warning(f"Skipping target {target}: {e}")
                self.skipped.append({"target": target, "model": "*", "reason": str(e)})
                continue

            X_train, X_test, y_train, y_test = self.processor.split_data(X, y)

            for model_name in self.models:
                search = self.config.search_strategy if model_name == "random_forest" else "none"
                model, params, cv_score = self.trainer.train_model(
                    model_name, X_train, y_train, search=search
                )
                y_proba = predict_positive_proba(model, X_test)
                try:
                    table, crossover = sweep_scores(
                        y_test, y_proba, grid, self.config.crossover_tolerance
                    )
                except DegenerateEvaluationSetError as e:
                    logger.warning(f"Skipping {target}/{model_name}: {e}")
                    self.skipped.append({"target": target, "model": model_name, "reason": str(e)})
                    continue

                if not crossover.found:
                    logger.info(f"{target}/{model_name}: no crossover found, "
                                f"reporting metrics at {FALLBACK_THRESHOLD}")
                threshold = crossover.threshold if crossover.found else FALLBACK_THRESHOLD
                metrics = self.evaluator.calculate_metrics(y_test, y_proba, threshold)

                self.results.append(ComparisonResult(
                    target=target,
                    model=model_name,
                    crossover=crossover,
                    table=table,
                    metrics=metrics,
                    best_params=params,
                    cv_score=cv_score,
                    y_test=np.asarray(y_test),
                    y_proba=y_proba,
                    estimator=model,
                ))
                logger.info(f"{target}/{model_name}: sensitivity={metrics['sensitivity']:.3f} "
                            f"specificity={metrics['specificity']:.3f} at {threshold:.3f}")

        return self.results

    def save_models(self, directory: Union[str, Path]) -> List[Path]:
        """
        Persist every fitted model with its operating threshold alongside.

        Files are named ``<target>_<model>.pkl``; the threshold lands in
        ``<target>_<model>_threshold.pkl``.

        Args:
            directory: Output directory (created if missing)

        Returns:
            Paths of the saved model files
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for result in self.results:
            path = directory / f"{result.target.lower()}_{result.model}.pkl"
            self.trainer.best_threshold = result.operating_threshold
            self.trainer.save_model(result.estimator, str(path))
            paths.append(path)
        return paths

    def summary(self) -> pd.DataFrame:
        """One row per (target, model) with the operating point metrics."""
        rows = []
        for result in self.results:
            row = {
                "target": result.target,
                "model": result.model,
                "crossover_threshold": result.crossover.threshold,
                "operating_threshold": result.operating_threshold,
                "cv_score": result.cv_score,
            }
            row.update({k: result.metrics[k] for k in
                        ("accuracy", "sensitivity", "specificity", "auc_roc")})
            rows.append(row)
        return pd.DataFrame(rows)

    def best_target(self) -> Optional[str]:
        """
        Target whose best model reaches the highest balanced operating point.

        Ranked by min(sensitivity, specificity) at the operating threshold,
        ties broken by AUC.
        """
        summary = self.summary()
        if summary.empty:
            return None
        summary["balance"] = summary[["sensitivity", "specificity"]].min(axis=1)
        ranked = summary.sort_values(["balance", "auc_roc"], ascending=False)
        return str(ranked.iloc[0]["target"])
