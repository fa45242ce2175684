"""
Threshold Sweep Module

Sweeps a grid of decision thresholds over fixed probability scores and
locates the point where sensitivity and specificity cross.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterator, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01


class InvalidGridError(ValueError):
    """Threshold grid is empty, out of (0, 1) or not strictly increasing."""


class DegenerateEvaluationSetError(ValueError):
    """Evaluation labels lack the class variety needed for sensitivity/specificity."""


@dataclass(frozen=True)
class MetricRow:
    threshold: float
    accuracy: float
    sensitivity: float
    specificity: float
    true_positives: int
    false_negatives: int
    true_negatives: int
    false_positives: int

    @property
    def predicted_positives(self) -> int:
        return self.true_positives + self.false_positives

    @property
    def is_defined(self) -> bool:
        return not (np.isnan(self.sensitivity) or np.isnan(self.specificity))


@dataclass(frozen=True)
class MetricTable:
    rows: Tuple[MetricRow, ...]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[MetricRow]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> MetricRow:
        return self.rows[index]

    @property
    def thresholds(self) -> Tuple[float, ...]:
        return tuple(row.threshold for row in self.rows)

    def row_at(self, threshold: float) -> MetricRow:
        """Return the row whose threshold is closest to ``threshold``."""
        idx = int(np.argmin([abs(t - threshold) for t in self.thresholds]))
        return self.rows[idx]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(row) for row in self.rows])


@dataclass(frozen=True)
class CrossoverResult:
    threshold: Optional[float]
    contributing_thresholds: Tuple[float, ...]
    tolerance: float = DEFAULT_TOLERANCE

    @property
    def found(self) -> bool:
        return self.threshold is not None


def make_threshold_grid(start: float = 0.1, stop: float = 0.5,
                        step: float = 0.01) -> np.ndarray:
    """
    Build an evenly spaced threshold grid including both end points.

    Values are rounded so that e.g. 0.3 is exactly 0.3 and not
    0.30000000000000004, which would flip ties at the boundary.

    Args:
        start: First threshold
        stop: Last threshold
        step: Spacing between thresholds

    Returns:
        Validated threshold grid
    """
    if step <= 0:
        raise InvalidGridError(f"Grid step must be positive, got {step}")
    n_steps = int(np.floor((stop - start) / step + 1e-9)) + 1
    grid = np.round(start + step * np.arange(n_steps), 10)
    return validate_threshold_grid(grid)


def validate_threshold_grid(thresholds: Sequence[float]) -> np.ndarray:
    """Return ``thresholds`` as a float array or raise InvalidGridError."""
    try:
        grid = np.asarray(thresholds, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidGridError(f"Threshold grid is not numeric: {e}") from e

    if grid.ndim != 1:
        raise InvalidGridError(f"Threshold grid must be one-dimensional, got shape {grid.shape}")
    if grid.size == 0:
        raise InvalidGridError("Threshold grid is empty")
    if not np.all(np.isfinite(grid)):
        raise InvalidGridError("Threshold grid contains non-finite values")
    if np.any(grid <= 0.0) or np.any(grid >= 1.0):
        raise InvalidGridError(
            f"Thresholds must lie in (0, 1), got range [{grid.min()}, {grid.max()}]"
        )
    if np.any(np.diff(grid) <= 0):
        raise InvalidGridError("Threshold grid must be strictly increasing")
    return grid


def predict_positive_proba(classifier: Any, X: Any) -> np.ndarray:
    """Score every record once and return positive-class probabilities."""
    proba = np.asarray(classifier.predict_proba(X), dtype=float)
    if proba.ndim != 2 or proba.shape[1] != 2:
        raise ValueError(
            f"Expected predict_proba to return two class columns, got shape {proba.shape}; "
            "was the classifier fitted on a single class?"
        )
    return proba[:, 1]


def _rate(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else float("nan")


def _metric_row(threshold: float, y_true: np.ndarray, scores: np.ndarray) -> MetricRow:
    y_pred = scores >= threshold
    tp = int(np.sum(y_pred & y_true))
    fn = int(np.sum(~y_pred & y_true))
    tn = int(np.sum(~y_pred & ~y_true))
    fp = int(np.sum(y_pred & ~y_true))
    return MetricRow(
        threshold=float(threshold),
        accuracy=(tp + tn) / (tp + tn + fp + fn),
        sensitivity=_rate(tp, tp + fn),
        specificity=_rate(tn, tn + fp),
        true_positives=tp,
        false_negatives=fn,
        true_negatives=tn,
        false_positives=fp,
    )


def find_crossover(table: MetricTable,
                   tolerance: float = DEFAULT_TOLERANCE) -> CrossoverResult:
    """
    Locate thresholds where sensitivity and specificity agree within tolerance.

    Rows with an undefined metric are ignored. The crossover threshold is the
    mean of all contributing thresholds, or None when none qualify.
    """
    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")

    contributing = tuple(
        row.threshold for row in table
        if row.is_defined and abs(row.sensitivity - row.specificity) < tolerance
    )
    threshold = float(np.mean(contributing)) if contributing else None
    return CrossoverResult(threshold, contributing, tolerance)


def sweep_scores(y_true: Sequence[int], scores: Sequence[float],
                 thresholds: Optional[Sequence[float]] = None,
                 tolerance: float = DEFAULT_TOLERANCE) -> Tuple[MetricTable, CrossoverResult]:
    """
    Sweep thresholds over precomputed positive-class scores.

    A record counts as positive when its score is greater than or equal to
    the threshold.

    Args:
        y_true: Binary ground-truth labels
        scores: Positive-class probabilities, aligned with ``y_true``
        thresholds: Strictly increasing grid in (0, 1); defaults to 0.10..0.50
        tolerance: Maximum |sensitivity - specificity| for a crossover row

    Returns:
        Metric table in grid order and the crossover result
    """
    grid = make_threshold_grid() if thresholds is None else validate_threshold_grid(thresholds)
    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")

    raw_labels = np.asarray(y_true).ravel()
    probs = np.asarray(scores, dtype=float).ravel()
    if raw_labels.size == 0:
        raise DegenerateEvaluationSetError("Evaluation set is empty")
    if not np.all(np.isin(raw_labels, [0, 1])):
        unexpected = sorted(set(raw_labels[~np.isin(raw_labels, [0, 1])].tolist()))
        raise ValueError(f"Labels must be binary 0/1, got unexpected values {unexpected}")
    labels = raw_labels.astype(int)
    if labels.size != probs.size:
        raise DegenerateEvaluationSetError(
            f"Got {labels.size} labels but {probs.size} scores"
        )

    positives = labels == 1
    table = MetricTable(tuple(_metric_row(t, positives, probs) for t in grid))

    if not any(row.is_defined for row in table):
        raise DegenerateEvaluationSetError(
            f"Sensitivity or specificity is undefined at every threshold "
            f"({int(positives.sum())} positives, {int((~positives).sum())} negatives)"
        )

    crossover = find_crossover(table, tolerance)
    if crossover.found:
        logger.info(f"Crossover at threshold {crossover.threshold:.3f} "
                    f"({len(crossover.contributing_thresholds)} contributing thresholds)")
    else:
        logger.info("No sensitivity/specificity crossover found within tolerance "
                    f"{tolerance}")
    return table, crossover


def sweep_thresholds(classifier: Any, X: Any, y: Sequence[int],
                     thresholds: Optional[Sequence[float]] = None,
                     tolerance: float = DEFAULT_TOLERANCE) -> Tuple[MetricTable, CrossoverResult]:
    """
    Score ``X`` once with a fitted classifier and sweep the threshold grid.

    Args:
        classifier: Fitted estimator exposing ``predict_proba``
        X: Evaluation features
        y: Evaluation labels
        thresholds: Strictly increasing grid in (0, 1); defaults to 0.10..0.50
        tolerance: Maximum |sensitivity - specificity| for a crossover row

    Returns:
        Metric table in grid order and the crossover result
    """
    # Validate before scoring, which can be expensive.
    grid = make_threshold_grid() if thresholds is None else validate_threshold_grid(thresholds)
    scores = predict_positive_proba(classifier, X)
    return sweep_scores(y, scores, grid, tolerance)
