from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import SchemaError
from .imputer import MultipleImputer
from .utils.logger import get_logger


class Cleaner:
    """
    Turns the raw table into an imputed one with no missing cells.

    Steps:
      1. Replace the ``missing_token`` sentinel with NaN in categorical columns
      2. Cast categorical columns to ``category`` dtype
      3. Run multiple imputation and collapse to one completed table
      4. Cast categorical columns back to plain strings
    """

    def __init__(
        self,
        categorical_cols: Sequence[str],
        missing_token: str = "Unknown",
        imputer: Optional[MultipleImputer] = None,
    ):
        self.categorical_cols = list(categorical_cols)
        self.missing_token = missing_token
        self.imputer = imputer or MultipleImputer()
        self.logger = get_logger(self.__class__.__name__)

    def normalize_missing(self, df: pd.DataFrame) -> pd.DataFrame:
        """Replace the sentinel token by NaN and cast categoricals to ``category``."""
        missing = [c for c in self.categorical_cols if c not in df.columns]
        if missing:
            raise SchemaError(missing, context="categorical columns")

        out = df.copy()
        for col in self.categorical_cols:
            out[col] = out[col].replace(self.missing_token, np.nan).astype("category")
        return out

    @staticmethod
    def missing_summary(df: pd.DataFrame) -> pd.DataFrame:
        counts = df.isna().sum()
        summary = pd.DataFrame(
            {"missing": counts, "percent": (counts / max(len(df), 1) * 100).round(2)}
        )
        return summary[summary["missing"] > 0].sort_values("missing", ascending=False)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        normalized = self.normalize_missing(df)

        summary = self.missing_summary(normalized)
        if summary.empty:
            self.logger.info("No missing cells after sentinel normalization")
        else:
            lines = "\n".join(
                f"    {col}: {int(row.missing)} ({row.percent}%)" for col, row in summary.iterrows()
            )
            self.logger.info(f"Missing cells before imputation:\n{lines}")

        completed = self.imputer.fit_transform(normalized)

        for col in self.categorical_cols:
            completed[col] = completed[col].astype(str)

        remaining = int(completed.isna().sum().sum())
        if remaining:
            raise RuntimeError(f"{remaining} cells still missing after imputation")
        return completed
