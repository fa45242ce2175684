"""
Model Training Module

Logistic-regression and random-forest classifiers for each diagnostic
target, with SMOTE oversampling of the training folds and grid or random
hyperparameter search.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import joblib
import numpy as np
import pandas as pd
from imblearn.over_sampling import SMOTE
from imblearn.pipeline import Pipeline
from scipy.stats import randint
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import make_scorer, recall_score
from sklearn.model_selection import (GridSearchCV, RandomizedSearchCV,
                                     StratifiedKFold, cross_val_score)
from sklearn.preprocessing import StandardScaler

from .config import AnalysisConfig

logger = logging.getLogger(__name__)

MODEL_NAMES = ["logistic_regression", "random_forest"]
SEARCH_STRATEGIES = ["grid", "random", "none"]


def sensitivity_specificity_score(y_true, y_pred, sensitivity_weight: float = 0.5) -> float:
    """
    Weighted combination of sensitivity and specificity.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        sensitivity_weight: Weight for sensitivity (1 - weight for specificity)

    Returns:
        Weighted score
    """
    sensitivity = recall_score(y_true, y_pred, pos_label=1, zero_division=0)
    specificity = recall_score(y_true, y_pred, pos_label=0, zero_division=0)
    return sensitivity_weight * sensitivity + (1 - sensitivity_weight) * specificity


class ModelTrainer:
    """Main class for model training and tuning."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize ModelTrainer.

        Args:
            config: Analysis configuration (seed, folds, SMOTE neighbours, search)
        """
        self.config = config or AnalysisConfig()
        self.random_state = self.config.random_state
        self.best_threshold = 0.5

    def _make_estimator(self, model_name: str) -> Any:
        if model_name == 'logistic_regression':
            return LogisticRegression(random_state=self.random_state, max_iter=1000)
        if model_name == 'random_forest':
            return RandomForestClassifier(random_state=self.random_state, n_estimators=200,
                                          n_jobs=self.config.n_jobs)
        raise ValueError(f"Unknown model: {model_name}")

    def build_pipeline(self, model_name: str, balance: bool = True) -> Pipeline:
        """
        Build a model pipeline whose SMOTE step only runs while fitting.

        Args:
            model_name: 'logistic_regression' or 'random_forest'
            balance: Whether to oversample the minority class

        Returns:
            Unfitted imblearn Pipeline
        """
        estimator = self._make_estimator(model_name)
        steps = []
        if model_name == 'logistic_regression':
            steps.append(('scale', StandardScaler()))
        if balance:
            steps.append(('balance', SMOTE(random_state=self.random_state,
                                           k_neighbors=self.config.smote_k_neighbors)))
        steps.append(('model', estimator))
        return Pipeline(steps)

    def get_param_grids(self) -> Dict[str, Dict[str, List]]:
        """
        Parameter grids for exhaustive search.

        Returns:
            Dictionary of model names and their parameter grids
        """
        return {
            'random_forest': {
                'model__n_estimators': [100, 300],
                'model__max_features': ['sqrt', 'log2', 0.5],
                'model__min_samples_leaf': [1, 3, 5],
                'model__max_depth': [None, 10],
            },
        }

    def get_param_distributions(self) -> Dict[str, Dict[str, Any]]:
        """Parameter distributions for randomized search."""
        return {
            'random_forest': {
                'model__n_estimators': randint(100, 500),
                'model__max_features': ['sqrt', 'log2', 0.3, 0.5],
                'model__min_samples_leaf': randint(1, 10),
                'model__max_depth': [None, 5, 10, 20],
            },
        }

    def _cv(self) -> StratifiedKFold:
        return StratifiedKFold(n_splits=self.config.cv_folds, shuffle=True,
                               random_state=self.random_state)

    def _scorer(self):
        return make_scorer(sensitivity_specificity_score,
                           sensitivity_weight=self.config.sensitivity_weight)

    def train_model(self, model_name: str, X_train: pd.DataFrame, y_train: pd.Series,
                    search: Optional[str] = None,
                    balance: bool = True) -> Tuple[Any, Dict, float]:
        """
        Train a single model with optional hyperparameter search.

        Args:
            model_name: Name of the model to train
            X_train: Training features
            y_train: Training labels
            search: 'grid', 'random' or 'none' (defaults to config.search_strategy)
            balance: Whether to oversample the training folds with SMOTE

        Returns:
            Trained model, best parameters, and cross-validation score
        """
        search = search or self.config.search_strategy
        if search not in SEARCH_STRATEGIES:
            raise ValueError(f"Unknown search strategy: {search}")

        logger.info(f"Training {model_name} (search={search})...")
        pipeline = self.build_pipeline(model_name, balance=balance)
        scorer = self._scorer()

        if search == 'grid' and model_name in self.get_param_grids():
            searcher = GridSearchCV(
                pipeline,
                self.get_param_grids()[model_name],
                scoring=scorer,
                cv=self._cv(),
                n_jobs=self.config.n_jobs,
            )
        elif search == 'random' and model_name in self.get_param_distributions():
            searcher = RandomizedSearchCV(
                pipeline,
                self.get_param_distributions()[model_name],
                n_iter=self.config.random_search_iterations,
                scoring=scorer,
                cv=self._cv(),
                random_state=self.random_state,
                n_jobs=self.config.n_jobs,
            )
        else:
            searcher = None

        if searcher is not None:
            searcher.fit(X_train, y_train)
            best_model = searcher.best_estimator_
            best_params = {k.replace('model__', ''): v for k, v in searcher.best_params_.items()}
            best_score = float(searcher.best_score_)

            logger.info(f"{model_name} - Best params: {best_params}")
            logger.info(f"{model_name} - Best CV score: {best_score:.4f}")
        else:
            cv_scores = cross_val_score(pipeline, X_train, y_train, scoring=scorer, cv=self._cv())
            best_score = float(np.mean(cv_scores))
            best_model = pipeline.fit(X_train, y_train)
            best_params = {}

            logger.info(f"{model_name} - CV score: {best_score:.4f}")

        return best_model, best_params, best_score

    def save_model(self, model: Any, file_path: str):
        """
        Save trained model to disk, with its operating threshold alongside.

        Args:
            model: Trained model
            file_path: Path to save the model
        """
        logger.info(f"Saving model to {file_path}")
        joblib.dump(model, file_path)
        joblib.dump(self.best_threshold, self._threshold_path(file_path))

    def load_model(self, file_path: str) -> Any:
        """
        Load trained model from disk.

        Args:
            file_path: Path to the saved model

        Returns:
            Loaded model
        """
        logger.info(f"Loading model from {file_path}")
        model = joblib.load(file_path)

        try:
            self.best_threshold = joblib.load(self._threshold_path(file_path))
        except FileNotFoundError:
            logger.warning(f"No saved threshold next to {file_path}; using 0.5")
            self.best_threshold = 0.5

        return model

    @staticmethod
    def _threshold_path(file_path: str) -> str:
        path = Path(file_path)
        return str(path.with_name(f"{path.stem}_threshold.pkl"))

    def predict_with_threshold(self, model: Any, X: pd.DataFrame,
                               threshold: Optional[float] = None) -> np.ndarray:
        """
        Make predictions using a custom threshold (score >= threshold is positive).

        Args:
            model: Trained model
            X: Features to predict
            threshold: Probability threshold (uses best_threshold if None)

        Returns:
            Binary predictions
        """
        if threshold is None:
            threshold = self.best_threshold

        y_proba = model.predict_proba(X)[:, 1]
        return (y_proba >= threshold).astype(int)
