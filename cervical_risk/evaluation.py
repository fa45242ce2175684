"""
Evaluation Module

Threshold-dependent evaluation and plotting for the per-target classifiers,
with focus on sensitivity and specificity.
"""

import logging
from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from sklearn.metrics import (balanced_accuracy_score, confusion_matrix,
                             precision_score, roc_auc_score, roc_curve)

from .thresholds import CrossoverResult, MetricTable

logger = logging.getLogger(__name__)


class ModelEvaluator:
    """Main class for model evaluation and visualization."""

    def calculate_metrics(self, y_true: np.ndarray, y_proba: np.ndarray,
                          threshold: float = 0.5) -> Dict[str, float]:
        """
        Calculate evaluation metrics at one decision threshold.

        Args:
            y_true: True labels
            y_proba: Predicted positive-class probabilities
            threshold: Decision threshold (score >= threshold is positive)

        Returns:
            Dictionary of evaluation metrics
        """
        y_true = np.asarray(y_true).astype(int)
        y_pred = (np.asarray(y_proba) >= threshold).astype(int)

        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
        metrics = {
            'threshold': float(threshold),
            'accuracy': float((tp + tn) / len(y_true)),
            'sensitivity': float(tp / (tp + fn)) if (tp + fn) > 0 else float('nan'),
            'specificity': float(tn / (tn + fp)) if (tn + fp) > 0 else float('nan'),
            'precision': float(precision_score(y_true, y_pred, zero_division=0)),
            'balanced_accuracy': float(balanced_accuracy_score(y_true, y_pred)),
            'true_positives': int(tp),
            'true_negatives': int(tn),
            'false_positives': int(fp),
            'false_negatives': int(fn),
        }

        if len(np.unique(y_true)) == 2:
            metrics['auc_roc'] = float(roc_auc_score(y_true, y_proba))
        else:
            metrics['auc_roc'] = float('nan')

        return metrics

    def plot_threshold_sweep(self, table: MetricTable, crossover: CrossoverResult,
                             model_name: str = "Model",
                             figsize: Tuple[int, int] = (9, 6)) -> plt.Figure:
        """
        Plot accuracy, sensitivity and specificity against the threshold.

        Args:
            table: Metric table from a threshold sweep
            crossover: Crossover result from the same sweep
            model_name: Name of the model for display
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        frame = table.to_frame()

        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(frame['threshold'], frame['sensitivity'], label='Sensitivity', marker='o')
        ax.plot(frame['threshold'], frame['specificity'], label='Specificity', marker='s')
        ax.plot(frame['threshold'], frame['accuracy'], label='Accuracy', linestyle='--')

        if crossover.found:
            ax.axvline(crossover.threshold, color='gray', linestyle=':',
                       label=f'Crossover ({crossover.threshold:.3f})')
        else:
            ax.text(0.5, 0.02, 'No crossover found', transform=ax.transAxes,
                    ha='center', color='gray')

        ax.set_xlabel('Threshold')
        ax.set_ylabel('Score')
        ax.set_ylim([0.0, 1.05])
        ax.set_title(f'Threshold Sweep - {model_name}')
        ax.legend(loc='best')
        ax.grid(alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_roc_curve(self, y_true: np.ndarray, y_proba: np.ndarray,
                       model_name: str = "Model",
                       figsize: Tuple[int, int] = (8, 6)) -> plt.Figure:
        """
        Plot ROC curve.

        Args:
            y_true: True labels
            y_proba: Predicted probabilities
            model_name: Name of the model for display
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        fpr, tpr, _ = roc_curve(y_true, y_proba)
        roc_auc = roc_auc_score(y_true, y_proba)

        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(fpr, tpr, color='darkorange', lw=2,
                label=f'ROC curve (AUC = {roc_auc:.3f})')
        ax.plot([0, 1], [0, 1], color='navy', lw=2, linestyle='--',
                label='Random Classifier')
        ax.set_xlim([0.0, 1.0])
        ax.set_ylim([0.0, 1.05])
        ax.set_xlabel('False Positive Rate (1 - Specificity)')
        ax.set_ylabel('True Positive Rate (Sensitivity)')
        ax.set_title(f'ROC Curve - {model_name}')
        ax.legend(loc="lower right")
        ax.grid(alpha=0.3)

        plt.tight_layout()
        return fig

    def compare_results(self, summary: pd.DataFrame,
                        metrics: Optional[list] = None,
                        figsize: Tuple[int, int] = (12, 6)) -> plt.Figure:
        """
        Compare target/model pairs visually.

        Args:
            summary: Frame with 'target', 'model' and metric columns
            metrics: Metric columns to plot
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        metrics = metrics or ['accuracy', 'sensitivity', 'specificity', 'auc_roc']
        comparison_df = summary.set_index(['target', 'model'])[metrics]

        fig, ax = plt.subplots(figsize=figsize)
        comparison_df.plot(kind='bar', ax=ax)
        ax.set_title('Target / Model Comparison')
        ax.set_xlabel('Target, Model')
        ax.set_ylabel('Score')
        ax.legend(loc='center left', bbox_to_anchor=(1, 0.5))
        ax.grid(alpha=0.3, axis='y')

        for container in ax.containers:
            ax.bar_label(container, fmt='%.2f', fontsize=7)

        plt.tight_layout()
        return fig
