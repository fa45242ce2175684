"""Risk-factor vs diagnostic-target association analysis."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy import stats

logger = logging.getLogger(__name__)


def _binary_association(factor: pd.Series, target: pd.Series) -> Dict[str, float]:
    table = pd.crosstab(factor, target)
    chi2, p_value, _, _ = stats.chi2_contingency(table)
    rates = target.groupby(factor).mean()
    return {
        "test": "chi2",
        "statistic": float(chi2),
        "p_value": float(p_value),
        "rate_unexposed": float(rates.get(0, np.nan)),
        "rate_exposed": float(rates.get(1, np.nan)),
    }


def _continuous_association(factor: pd.Series, target: pd.Series) -> Dict[str, float]:
    pos = factor[target == 1]
    neg = factor[target == 0]
    statistic, p_value = stats.mannwhitneyu(pos, neg, alternative="two-sided")
    return {
        "test": "mannwhitneyu",
        "statistic": float(statistic),
        "p_value": float(p_value),
        "median_negative": float(neg.median()),
        "median_positive": float(pos.median()),
    }


def risk_factor_associations(
    df: pd.DataFrame,
    targets: Sequence[str],
    continuous_columns: Sequence[str],
    factors: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Test every risk factor against every target.

    Binary factors get a chi-square test of independence and the positive
    rate among exposed and unexposed patients; continuous factors get a
    Mann-Whitney U test and the median per class. Factors with a single
    level and targets with a single class are skipped.
    """
    targets = [t for t in targets if t in df.columns]
    if factors is None:
        factors = [c for c in df.columns if c not in targets]
    continuous = set(continuous_columns)

    rows: List[Dict[str, object]] = []
    for target in targets:
        y = df[target]
        if y.nunique() < 2:
            logger.warning(f"Skipping target {target}: single class")
            continue
        for factor in factors:
            x = df[factor]
            if x.nunique() < 2:
                continue
            if factor in continuous:
                result = _continuous_association(x, y)
                kind = "continuous"
            else:
                result = _binary_association(x, y)
                kind = "binary"
            rows.append({"factor": factor, "target": target, "kind": kind, **result})

    associations = pd.DataFrame(rows)
    if not associations.empty:
        associations = associations.sort_values(["target", "p_value"]).reset_index(drop=True)
    logger.info(f"Computed {len(associations)} factor/target associations")
    return associations


def plot_target_correlations(df: pd.DataFrame, targets: Sequence[str],
                             figsize=(6, 5)) -> plt.Figure:
    """Heatmap of pairwise correlations between the diagnostic targets."""
    corr = df[list(targets)].corr()
    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(corr, annot=True, fmt=".2f", cmap="RdBu", vmin=-1, vmax=1, ax=ax)
    ax.set_title("Diagnostic Target Correlation")
    plt.tight_layout()
    return fig


def plot_risk_factor(df: pd.DataFrame, factor: str, targets: Sequence[str],
                     continuous: bool = False, figsize=(14, 4)) -> plt.Figure:
    """Positive rate by factor level, or factor distribution by class, per target."""
    fig, axes = plt.subplots(1, len(targets), figsize=figsize, squeeze=False)
    for ax, target in zip(axes[0], targets):
        if continuous:
            sns.boxplot(x=df[target], y=df[factor], ax=ax, color="skyblue")
            ax.set_xlabel(target)
            ax.set_ylabel(factor)
        else:
            rates = df.groupby(factor)[target].mean().reset_index()
            sns.barplot(data=rates, x=factor, y=target, ax=ax, color="steelblue")
            ax.set_ylabel(f"{target} positive rate")
        ax.set_title(target)
        ax.grid(alpha=0.3, axis="y")
    fig.suptitle(f"{factor} vs diagnostic targets")
    plt.tight_layout()
    return fig
