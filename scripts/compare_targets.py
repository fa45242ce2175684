#!/usr/bin/env python3
"""
Compare diagnostic targets by how predictable they are from risk factors.
- Cleans the risk-factor CSV (or a synthetic sample with --sample)
- Tests risk-factor / target associations
- Trains logistic regression and a tuned random forest per target (SMOTE on training folds only)
- Sweeps decision thresholds on the held-out split and locates the sensitivity/specificity crossover
Outputs JSON summary to <results-dir>/target_comparison_results.json, PNG plots and,
with --save-models, fitted models plus their operating thresholds.

Usage:
  python scripts/compare_targets.py --data data/risk_factors_cervical_cancer.csv --search random
"""
import argparse
import json
import logging
import time
from pathlib import Path

from cervical_risk.environment import setup_environment

setup_environment()

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from cervical_risk.config import AnalysisConfig
from cervical_risk.data_processing import RiskFactorProcessor, create_sample_data
from cervical_risk.evaluation import ModelEvaluator
from cervical_risk.exploration import (plot_risk_factor, plot_target_correlations,
                                       risk_factor_associations)
from cervical_risk.model import MODEL_NAMES
from cervical_risk.pipelines import TargetComparisonPipeline

logger = logging.getLogger("compare_targets")

PLOTTED_FACTORS = ["Dx:HPV", "Smokes", "Hormonal Contraceptives", "STDs"]


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument('--data', type=str, default=None, help='Risk-factor CSV (default: $CERVICAL_DATA_PATH)')
    ap.add_argument('--sample', action='store_true', help='Use synthetic records instead of a CSV')
    ap.add_argument('--targets', type=str, default=None, help='Comma list among: Hinselmann, Schiller, Citology, Biopsy')
    ap.add_argument('--models', type=str, default=','.join(MODEL_NAMES), help='Comma list among: logistic_regression, random_forest')
    ap.add_argument('--search', type=str, default='grid', choices=['grid', 'random', 'none'])
    ap.add_argument('--search-iterations', type=int, default=20)
    ap.add_argument('--cv-folds', type=int, default=5)
    ap.add_argument('--tolerance', type=float, default=0.01)
    ap.add_argument('--grid-start', type=float, default=0.1)
    ap.add_argument('--grid-stop', type=float, default=0.5)
    ap.add_argument('--grid-step', type=float, default=0.01)
    ap.add_argument('--seed', type=int, default=42)
    ap.add_argument('--results-dir', type=str, default=None)
    ap.add_argument('--no-plots', action='store_true')
    ap.add_argument('--save-models', action='store_true', help='Save each fitted model and its operating threshold under <results-dir>/models')
    ap.add_argument('--out-name', type=str, default='target_comparison_results.json')
    return ap.parse_args()


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    cfg = AnalysisConfig(
        search_strategy=args.search,
        random_search_iterations=args.search_iterations,
        cv_folds=args.cv_folds,
        crossover_tolerance=args.tolerance,
        threshold_start=args.grid_start,
        threshold_stop=args.grid_stop,
        threshold_step=args.grid_step,
        random_state=args.seed,
    )
    if args.data:
        cfg.data_path = Path(args.data).expanduser().resolve()
    if args.results_dir:
        cfg.results_dir = Path(args.results_dir).expanduser().resolve()
    return cfg


def save_figure(fig, path: Path) -> None:
    fig.savefig(path, dpi=150)
    plt.close(fig)


def main() -> None:
    args = parse_args()
    cfg = build_config(args)
    t0 = time.time()

    processor = RiskFactorProcessor(cfg)
    raw = create_sample_data(random_state=cfg.random_state) if args.sample else processor.load_data()
    df = processor.clean(raw)

    balance = processor.class_balance(df)
    logger.info(f"Class balance after cleaning:\n{balance}")

    associations = risk_factor_associations(df, cfg.targets, cfg.continuous_columns)

    models = [m.strip() for m in args.models.split(',') if m.strip()]
    targets = [t.strip() for t in args.targets.split(',')] if args.targets else None
    pipeline = TargetComparisonPipeline(config=cfg, models=models)
    pipeline.run(df, targets)
    summary = pipeline.summary()
    best = pipeline.best_target()

    cfg.results_dir.mkdir(parents=True, exist_ok=True)
    if not args.no_plots:
        plots_dir = cfg.results_dir / 'plots'
        plots_dir.mkdir(exist_ok=True)
        save_figure(plot_target_correlations(df, cfg.targets), plots_dir / 'target_correlations.png')
        for factor in PLOTTED_FACTORS:
            if factor in df.columns:
                fname = factor.replace(':', '_').replace(' ', '_').lower()
                save_figure(plot_risk_factor(df, factor, cfg.targets), plots_dir / f'factor_{fname}.png')
        evaluator = pipeline.evaluator
        for result in pipeline.results:
            stem = f"{result.target.lower()}_{result.model}"
            save_figure(evaluator.plot_threshold_sweep(result.table, result.crossover,
                                                       f"{result.target} / {result.model}"),
                        plots_dir / f'{stem}_threshold_sweep.png')
            save_figure(evaluator.plot_roc_curve(result.y_test, result.y_proba,
                                                 f"{result.target} / {result.model}"),
                        plots_dir / f'{stem}_roc.png')
        if not summary.empty:
            save_figure(evaluator.compare_results(summary), plots_dir / 'comparison.png')

    saved_models = []
    if args.save_models:
        saved_models = [str(p) for p in pipeline.save_models(cfg.results_dir / 'models')]
        logger.info(f"Saved {len(saved_models)} models")

    out = {
        'config': cfg.to_dict(),
        'n_records': int(len(df)),
        'dropped_columns': processor.dropped_columns,
        'class_balance': balance.reset_index().rename(columns={'index': 'target'}).to_dict(orient='records'),
        'significant_associations': associations[associations['p_value'] < 0.05].to_dict(orient='records')
        if not associations.empty else [],
        'results': [r.to_dict() for r in pipeline.results],
        'skipped': pipeline.skipped,
        'best_target': best,
        'saved_models': saved_models,
        'elapsed_sec': round(time.time() - t0, 2),
    }
    out_path = cfg.results_dir / args.out_name
    with open(out_path, 'w') as f:
        json.dump(out, f, indent=2, default=str)

    print(summary.to_string(index=False) if not summary.empty else "No results")
    print(f"\nMost predictable target: {best}")
    print(f"Results written to {out_path}")


if __name__ == '__main__':
    main()
