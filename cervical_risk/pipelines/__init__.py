"""Workflow pipelines."""

from .target_comparison import ComparisonResult, TargetComparisonPipeline

__all__ = ["ComparisonResult", "TargetComparisonPipeline"]
