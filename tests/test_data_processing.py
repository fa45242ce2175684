"""Tests for loading and cleaning the risk-factor records."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from cervical_risk.config import DIAGNOSTIC_TARGETS, AnalysisConfig
from cervical_risk.data_processing import RiskFactorProcessor, create_sample_data


def make_processor(**overrides) -> RiskFactorProcessor:
    return RiskFactorProcessor(AnalysisConfig(**overrides))


def test_sample_data_uses_missing_marker() -> None:
    raw = create_sample_data(n_samples=300)
    assert (raw == "?").any().any()
    assert set(DIAGNOSTIC_TARGETS) <= set(raw.columns)


def test_clean_produces_complete_numeric_frame() -> None:
    processor = make_processor()
    df = processor.clean(create_sample_data(n_samples=400))

    assert not df.isnull().any().any()
    assert all(np.issubdtype(dtype, np.number) for dtype in df.dtypes)
    for col in processor.categorical_columns(df) + DIAGNOSTIC_TARGETS:
        assert df[col].dtype.kind == "i"


def test_clean_drops_sparse_and_constant_columns() -> None:
    processor = make_processor()
    df = processor.clean(create_sample_data(n_samples=400))

    assert "STDs: Time since first diagnosis" in processor.dropped_columns
    assert "STDs: Time since last diagnosis" in processor.dropped_columns
    assert "STDs:AIDS" in processor.dropped_columns
    assert not set(processor.dropped_columns) & set(df.columns)
    assert set(DIAGNOSTIC_TARGETS) <= set(df.columns)


def test_continuous_missing_values_are_median_imputed() -> None:
    processor = make_processor()
    raw = pd.DataFrame({
        "Age": ["20", "?", "40", "30"],
        "Smokes": ["0", "1", "0", "1"],
        "Biopsy": ["0", "1", "0", "1"],
    })
    df = processor.clean(raw)
    assert len(df) == 4
    assert df.loc[1, "Age"] == 30.0


def test_rows_with_missing_categorical_values_are_removed() -> None:
    processor = make_processor()
    raw = pd.DataFrame({
        "Age": ["20", "25", "40", "30"],
        "Smokes": ["0", "?", "0", "1"],
        "Biopsy": ["0", "1", "0", "1"],
    })
    df = processor.clean(raw)
    assert len(df) == 3
    assert list(df["Smokes"]) == [0, 0, 1]


def test_load_data_reads_marker_as_nan(tmp_path: Path) -> None:
    csv_file = tmp_path / "risk.csv"
    create_sample_data(n_samples=100).to_csv(csv_file, index=False)

    processor = make_processor(data_path=csv_file)
    df = processor.load_data()
    assert len(df) == 100
    assert not (df == "?").any().any()
    assert df["STDs: Time since first diagnosis"].isnull().mean() > 0.5


def test_load_data_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        make_processor().load_data(tmp_path / "missing.csv")


def test_prepare_features_excludes_all_targets() -> None:
    processor = make_processor()
    df = processor.clean(create_sample_data(n_samples=300))
    X, y = processor.prepare_features_target(df, "Schiller")

    assert not set(DIAGNOSTIC_TARGETS) & set(X.columns)
    assert set(y.unique()) == {0, 1}
    assert processor.feature_names == X.columns.tolist()


def test_prepare_features_rejects_bad_targets() -> None:
    processor = make_processor()
    df = processor.clean(create_sample_data(n_samples=300))
    with pytest.raises(ValueError):
        processor.prepare_features_target(df, "Colposcopy")

    df["Biopsy"] = 0
    with pytest.raises(ValueError):
        processor.prepare_features_target(df, "Biopsy")


def test_split_is_stratified() -> None:
    processor = make_processor(test_size=0.3)
    df = processor.clean(create_sample_data(n_samples=500))
    X, y = processor.prepare_features_target(df, "Hinselmann")
    X_train, X_test, y_train, y_test = processor.split_data(X, y)

    assert len(X_train) + len(X_test) == len(X)
    assert abs(y_train.mean() - y_test.mean()) < 0.05


def test_class_balance_reports_each_target() -> None:
    processor = make_processor()
    df = processor.clean(create_sample_data(n_samples=400))
    balance = processor.class_balance(df)

    assert list(balance.index) == DIAGNOSTIC_TARGETS
    assert (balance["positive_rate"] > 0).all()
    assert (balance["positives"] == df[DIAGNOSTIC_TARGETS].sum()).all()
