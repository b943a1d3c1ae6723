from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.feature_selection import VarianceThreshold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .exceptions import SchemaError
from .utils.logger import get_logger


class FeatureEncoder:
    """
    Fitted feature recipe shared by batch evaluation and single-record prediction.

    fit() learns:
      - the observed levels of every categorical column (full one-hot, no
        reference level dropped; unseen levels encode as all zeros)
      - mean / standard deviation of every numeric column
      - which expanded columns have zero variance on the training data (dropped)

    transform() only applies those parameters, so the output columns and their
    order are identical for any input with the raw schema.
    """

    def __init__(
        self,
        numeric_cols: Sequence[str],
        categorical_cols: Sequence[str],
        verbose: bool = False,
    ):
        self.numeric_cols = list(numeric_cols)
        self.categorical_cols = list(categorical_cols)
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.pipeline: Optional[Pipeline] = None
        self.feature_names_: List[str] = []

    @property
    def input_cols(self) -> List[str]:
        return self.numeric_cols + self.categorical_cols

    def _build(self) -> Pipeline:
        columns = ColumnTransformer(
            transformers=[
                ("num", StandardScaler(), self.numeric_cols),
                (
                    "cat",
                    OneHotEncoder(handle_unknown="ignore", sparse_output=False),
                    self.categorical_cols,
                ),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )
        return Pipeline(
            steps=[("columns", columns), ("zero_variance", VarianceThreshold(threshold=0.0))]
        ).set_output(transform="pandas")

    def _check_columns(self, df: pd.DataFrame) -> None:
        missing = [c for c in self.input_cols if c not in df.columns]
        if missing:
            raise SchemaError(missing, context="encoder input")

    def _prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df[self.input_cols].copy()
        for col in self.categorical_cols:
            out[col] = out[col].astype(str)
        for col in self.numeric_cols:
            out[col] = pd.to_numeric(out[col], errors="raise").astype(float)
        return out

    def fit(self, df: pd.DataFrame) -> "FeatureEncoder":
        self._check_columns(df)
        pipeline = self._build()
        pipeline.fit(self._prepare(df))
        self.pipeline = pipeline
        self.feature_names_ = list(pipeline.get_feature_names_out())

        if self.verbose:
            self.logger.info(
                f"Encoder fit: {len(self.numeric_cols)} numeric, "
                f"{len(self.categorical_cols)} categorical -> {len(self.feature_names_)} features"
            )
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.pipeline is None:
            raise RuntimeError("Call fit() before transform().")
        self._check_columns(df)

        encoded = self.pipeline.transform(self._prepare(df))
        encoded.index = df.index
        return encoded[self.feature_names_]

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    @property
    def levels_(self) -> Dict[str, List[str]]:
        encoder = self.pipeline.named_steps["columns"].named_transformers_["cat"]
        return {
            col: [str(level) for level in cats]
            for col, cats in zip(self.categorical_cols, encoder.categories_)
        }

    @property
    def means_(self) -> Dict[str, float]:
        scaler = self.pipeline.named_steps["columns"].named_transformers_["num"]
        return dict(zip(self.numeric_cols, map(float, scaler.mean_)))

    @property
    def scales_(self) -> Dict[str, float]:
        scaler = self.pipeline.named_steps["columns"].named_transformers_["num"]
        return dict(zip(self.numeric_cols, map(float, scaler.scale_)))
