"""
Data Processing Module

Handles loading, type coercion, missing-value handling and splitting of the
cervical cancer risk-factor records.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.impute import SimpleImputer
from sklearn.model_selection import train_test_split

from .config import DIAGNOSTIC_TARGETS, AnalysisConfig

logger = logging.getLogger(__name__)

STD_COLUMNS = [
    "STDs:condylomatosis",
    "STDs:cervical condylomatosis",
    "STDs:vaginal condylomatosis",
    "STDs:vulvo-perineal condylomatosis",
    "STDs:syphilis",
    "STDs:pelvic inflammatory disease",
    "STDs:genital herpes",
    "STDs:molluscum contagiosum",
    "STDs:AIDS",
    "STDs:HIV",
    "STDs:Hepatitis B",
    "STDs:HPV",
]


class RiskFactorProcessor:
    """Main class for data processing operations."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize RiskFactorProcessor.

        Args:
            config: Analysis configuration (defaults to AnalysisConfig())
        """
        self.config = config or AnalysisConfig()
        self.imputer = None
        self.dropped_columns: List[str] = []
        self.feature_names: Optional[List[str]] = None

    def load_data(self, file_path: Union[str, Path, None] = None) -> pd.DataFrame:
        """
        Load raw records from CSV, treating the missing marker as NaN.

        Args:
            file_path: Path to the data file (defaults to config.data_path)

        Returns:
            Loaded DataFrame
        """
        file_path = file_path or self.config.data_path
        logger.info(f"Loading data from {file_path}")

        try:
            df = pd.read_csv(file_path, na_values=[self.config.missing_marker])
            logger.info(f"Data loaded successfully: {df.shape[0]} rows, {df.shape[1]} columns")
            return df
        except Exception as e:
            logger.error(f"Error loading data: {e}")
            raise

    def coerce_types(self, df: pd.DataFrame) -> pd.DataFrame:
        """Strip column names and convert every column to a numeric dtype."""
        df = df.copy()
        df.columns = [str(c).strip() for c in df.columns]
        df = df.replace(self.config.missing_marker, np.nan)
        return df.apply(pd.to_numeric, errors="coerce")

    def drop_sparse_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop columns that are mostly missing or carry a single value.

        Targets are never dropped.
        """
        missing_fraction = df.isnull().mean()
        sparse = [
            c for c in df.columns
            if missing_fraction[c] > self.config.max_missing_fraction
            and c not in self.config.targets
        ]
        constant = [
            c for c in df.columns
            if c not in sparse and c not in self.config.targets
            and df[c].nunique(dropna=True) <= 1
        ]
        self.dropped_columns = sparse + constant

        if sparse:
            logger.info(f"Dropping sparse columns (>{self.config.max_missing_fraction:.0%} missing): {sparse}")
        if constant:
            logger.info(f"Dropping constant columns: {constant}")
        return df.drop(columns=self.dropped_columns)

    def impute_continuous(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Median-impute the continuous covariates present in ``df``.

        Args:
            df: Numeric DataFrame

        Returns:
            DataFrame with continuous columns imputed
        """
        continuous = self.continuous_columns(df)
        missing_info = df[continuous].isnull().sum()
        if missing_info.sum() == 0:
            logger.info("No missing continuous values found")
            return df

        logger.info(f"Median-imputing continuous columns:\n{missing_info[missing_info > 0]}")
        df = df.copy()
        self.imputer = SimpleImputer(strategy="median")
        df[continuous] = self.imputer.fit_transform(df[continuous])
        return df

    def drop_incomplete_rows(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove rows that still have missing (categorical) values."""
        before = len(df)
        df = df.dropna()
        if len(df) < before:
            logger.info(f"Removed {before - len(df)} rows with missing categorical values")
        return df

    def cast_categorical(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        categorical = [c for c in df.columns if c not in self.continuous_columns(df)]
        df[categorical] = df[categorical].astype(int)
        return df

    def continuous_columns(self, df: pd.DataFrame) -> List[str]:
        return [c for c in self.config.continuous_columns if c in df.columns]

    def categorical_columns(self, df: pd.DataFrame) -> List[str]:
        """Non-continuous, non-target columns (binary risk factors)."""
        continuous = set(self.continuous_columns(df))
        return [c for c in df.columns if c not in continuous and c not in self.config.targets]

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Complete cleaning pipeline: coerce, drop sparse columns, impute,
        drop incomplete rows and re-type categorical columns.

        Args:
            df: Raw DataFrame

        Returns:
            Clean, fully numeric DataFrame
        """
        logger.info("Starting cleaning pipeline")
        df = self.coerce_types(df)
        df = self.drop_sparse_columns(df)
        df = self.impute_continuous(df)
        df = self.drop_incomplete_rows(df)
        df = self.cast_categorical(df)
        logger.info(f"Cleaning completed: {df.shape[0]} rows, {df.shape[1]} columns")
        return df.reset_index(drop=True)

    def prepare_features_target(self, df: pd.DataFrame,
                                target_column: str) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Separate features and one diagnostic target.

        All configured targets are removed from the features, since another
        test's result would leak the diagnosis.

        Args:
            df: Clean DataFrame
            target_column: Name of the target column

        Returns:
            Features DataFrame and target Series
        """
        if target_column not in df.columns:
            raise ValueError(f"Target column '{target_column}' not found in data")

        y = df[target_column].astype(int)
        if y.nunique() < 2:
            raise ValueError(f"Target column '{target_column}' has a single class")

        X = df.drop(columns=[c for c in self.config.targets if c in df.columns])
        self.feature_names = X.columns.tolist()
        return X, y

    def split_data(self, X: pd.DataFrame, y: pd.Series) -> Tuple[pd.DataFrame, pd.DataFrame,
                                                                  pd.Series, pd.Series]:
        """
        Split data into stratified training and testing sets.

        Args:
            X: Features DataFrame
            y: Target Series

        Returns:
            X_train, X_test, y_train, y_test
        """
        logger.info(f"Splitting data with test_size={self.config.test_size}")

        X_train, X_test, y_train, y_test = train_test_split(
            X, y, test_size=self.config.test_size, random_state=self.config.random_state,
            stratify=y
        )

        logger.info(f"Training set: {X_train.shape[0]} samples ({int(y_train.sum())} positive)")
        logger.info(f"Testing set: {X_test.shape[0]} samples ({int(y_test.sum())} positive)")

        return X_train, X_test, y_train, y_test

    def class_balance(self, df: pd.DataFrame) -> pd.DataFrame:
        """Positive counts and rates for each target present in ``df``."""
        targets = [t for t in self.config.targets if t in df.columns]
        return pd.DataFrame({
            "positives": df[targets].sum().astype(int),
            "positive_rate": df[targets].mean(),
        })


def create_sample_data(n_samples: int = 858,
                       positive_rates: Optional[Dict[str, float]] = None,
                       random_state: int = 42) -> pd.DataFrame:
    """
    Create synthetic records in the raw risk-factor CSV format.

    Missing values are written as '?', the two "time since diagnosis"
    columns are mostly missing and the STD block is missing for a subset of
    rows, as in the published dataset. Targets share a latent risk driven by
    HPV diagnosis, STDs, smoking and age.

    Args:
        n_samples: Number of records
        positive_rates: Positive rate per target
        random_state: Random seed

    Returns:
        Raw DataFrame with object columns
    """
    rng = np.random.default_rng(random_state)
    rates = positive_rates or {"Hinselmann": 0.15, "Schiller": 0.25,
                               "Citology": 0.18, "Biopsy": 0.2}

    df = pd.DataFrame({
        "Age": rng.integers(13, 70, n_samples).astype(float),
        "Number of sexual partners": rng.integers(1, 8, n_samples).astype(float),
        "First sexual intercourse": rng.integers(12, 30, n_samples).astype(float),
        "Num of pregnancies": rng.integers(0, 8, n_samples).astype(float),
        "Smokes": rng.binomial(1, 0.15, n_samples).astype(float),
    })
    df["Smokes (years)"] = df["Smokes"] * rng.gamma(2.0, 3.0, n_samples)
    df["Smokes (packs/year)"] = df["Smokes"] * rng.gamma(1.5, 1.0, n_samples)
    df["Hormonal Contraceptives"] = rng.binomial(1, 0.65, n_samples).astype(float)
    df["Hormonal Contraceptives (years)"] = df["Hormonal Contraceptives"] * rng.gamma(1.5, 2.0, n_samples)
    df["IUD"] = rng.binomial(1, 0.1, n_samples).astype(float)
    df["IUD (years)"] = df["IUD"] * rng.gamma(2.0, 1.5, n_samples)

    std_flags = {col: rng.binomial(1, 0.02, n_samples) for col in STD_COLUMNS}
    std_flags["STDs:condylomatosis"] = rng.binomial(1, 0.06, n_samples)
    std_flags["STDs:cervical condylomatosis"] = np.zeros(n_samples, dtype=int)
    std_flags["STDs:AIDS"] = np.zeros(n_samples, dtype=int)
    std_number = np.sum(list(std_flags.values()), axis=0)
    df["STDs"] = (std_number > 0).astype(float)
    df["STDs (number)"] = std_number.astype(float)
    for col in STD_COLUMNS:
        df[col] = std_flags[col].astype(float)
    df["STDs: Number of diagnosis"] = np.minimum(std_number, 1).astype(float)
    df["STDs: Time since first diagnosis"] = np.where(std_number > 0, rng.integers(1, 20, n_samples), np.nan)
    df["STDs: Time since last diagnosis"] = df["STDs: Time since first diagnosis"]

    df["Dx:Cancer"] = rng.binomial(1, 0.03, n_samples)
    df["Dx:CIN"] = rng.binomial(1, 0.02, n_samples)
    df["Dx:HPV"] = rng.binomial(1, 0.05, n_samples)
    df["Dx"] = ((df["Dx:Cancer"] + df["Dx:CIN"] + df["Dx:HPV"]) > 0).astype(int)

    risk = (1.5 * df["Dx:HPV"] + 1.2 * df["Dx:Cancer"] + 0.8 * df["STDs"]
            + 0.6 * df["Smokes"] + 0.03 * (df["Age"] - 27)
            + 0.2 * df["Number of sexual partners"])
    for target in DIAGNOSTIC_TARGETS:
        noisy = risk + rng.normal(0.0, 1.0, n_samples)
        cutoff = np.quantile(noisy, 1.0 - rates.get(target, 0.1))
        df[target] = (noisy > cutoff).astype(int)

    raw = df.astype(object)

    # Missing markers
    for col in ["Number of sexual partners", "First sexual intercourse", "Num of pregnancies"]:
        raw.loc[rng.random(n_samples) < 0.05, col] = "?"
    smoke_missing = rng.random(n_samples) < 0.02
    raw.loc[smoke_missing, ["Smokes", "Smokes (years)", "Smokes (packs/year)"]] = "?"
    std_missing = rng.random(n_samples) < 0.1
    raw.loc[std_missing, ["STDs", "STDs (number)"] + STD_COLUMNS] = "?"
    raw = raw.where(pd.notnull(raw), "?")

    return raw[[c for c in _RAW_COLUMN_ORDER if c in raw.columns]]


_RAW_COLUMN_ORDER = (
    ["Age", "Number of sexual partners", "First sexual intercourse", "Num of pregnancies",
     "Smokes", "Smokes (years)", "Smokes (packs/year)",
     "Hormonal Contraceptives", "Hormonal Contraceptives (years)", "IUD", "IUD (years)",
     "STDs", "STDs (number)"]
    + STD_COLUMNS
    + ["STDs: Number of diagnosis", "STDs: Time since first diagnosis",
       "STDs: Time since last diagnosis", "Dx:Cancer", "Dx:CIN", "Dx:HPV", "Dx"]
    + DIAGNOSTIC_TARGETS
)
