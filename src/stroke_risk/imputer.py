from __future__ import annotations

import warnings
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from .exceptions import ImputationError
from .utils.logger import get_logger


class MultipleImputer:
    """
    Multiple imputation by chained equations.

    Each of the ``n_imputations`` completed datasets starts from a random draw of
    observed values and is refined for ``max_iter`` sweeps over the incomplete
    columns. Numeric columns use predictive mean matching: a linear model fit on a
    bootstrap sample of the observed rows predicts the missing rows, and each
    missing cell copies the observed value of a donor drawn from the
    ``n_donors`` rows whose predictions are closest. Categorical columns
    (``category`` dtype) are drawn from a multinomial logistic model.

    ``complete()`` collapses the imputations into one table:
      - ``"first"``: the first completed dataset
      - ``"mean"``: per-cell mean for numeric columns, per-cell most frequent
        level for categorical columns (ties go to the lexically smallest level)
    """

    COLLAPSE_RULES = ("first", "mean")

    def __init__(
        self,
        n_imputations: int = 5,
        max_iter: int = 5,
        n_donors: int = 5,
        collapse: str = "first",
        exclude: Sequence[str] = (),
        random_state: int = 123,
    ):
        if n_imputations < 1:
            raise ValueError("n_imputations must be at least 1")
        if collapse not in self.COLLAPSE_RULES:
            raise ValueError(f"Unknown collapse rule: {collapse}")
        self.n_imputations = n_imputations
        self.max_iter = max_iter
        self.n_donors = n_donors
        self.collapse = collapse
        self.exclude = list(exclude)
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)
        self.imputations_: list[pd.DataFrame] = []
        self.incomplete_cols_: list[str] = []

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Generate all imputations and return the collapsed completed table."""
        candidates = [c for c in df.columns if c not in self.exclude]
        all_missing = [c for c in candidates if df[c].isna().all()]
        if all_missing:
            raise ImputationError(
                f"Cannot impute columns with no observed values: {', '.join(all_missing)}"
            )

        self.incomplete_cols_ = [c for c in candidates if df[c].isna().any()]
        if not self.incomplete_cols_:
            self.logger.info("No missing values found; imputation skipped")
            self.imputations_ = [df.copy()]
            return df.copy()

        self.logger.info(
            f"Imputing {self.incomplete_cols_} with m={self.n_imputations}, "
            f"{self.max_iter} sweeps each"
        )
        seeds = np.random.SeedSequence(self.random_state).spawn(self.n_imputations)
        self.imputations_ = [
            self._impute_once(df, np.random.default_rng(seed)) for seed in seeds
        ]
        return self.complete()

    def complete(self, action: Optional[str | int] = None) -> pd.DataFrame:
        """Return one completed dataset, by index (1-based) or collapse rule."""
        if not self.imputations_:
            raise RuntimeError("Call fit_transform() before complete().")

        action = self.collapse if action is None else action
        if isinstance(action, int):
            return self.imputations_[action - 1].copy()
        if action == "first":
            return self.imputations_[0].copy()
        if action != "mean":
            raise ValueError(f"Unknown collapse rule: {action}")

        out = self.imputations_[0].copy()
        for col in self.incomplete_cols_:
            stacked = pd.concat(
                [imp[col] for imp in self.imputations_],
                axis=1,
                keys=range(len(self.imputations_)),
            )
            if isinstance(out[col].dtype, pd.CategoricalDtype):
                modes = stacked.astype(object).mode(axis=1)[0]
                out[col] = pd.Categorical(modes, categories=out[col].cat.categories)
            else:
                out[col] = stacked.mean(axis=1)
        return out

    def _impute_once(self, df: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
        data = df.copy()
        masks = {col: data[col].isna().to_numpy() for col in self.incomplete_cols_}

        for col, mask in masks.items():
            observed = data.loc[~mask, col].to_numpy()
            data.loc[mask, col] = rng.choice(observed, size=int(mask.sum()), replace=True)

        for _ in range(self.max_iter):
            for col, mask in masks.items():
                X = self._design_matrix(data, col)
                if isinstance(data[col].dtype, pd.CategoricalDtype):
                    data.loc[mask, col] = self._draw_categorical(X, data[col], mask, rng)
                else:
                    data.loc[mask, col] = self._predictive_mean_match(X, data[col], mask, rng)
        return data

    def _design_matrix(self, data: pd.DataFrame, target: str) -> np.ndarray:
        predictors = [c for c in data.columns if c != target and c not in self.exclude]
        X = pd.get_dummies(data[predictors], drop_first=True, dtype=float)
        return X.to_numpy(dtype=float)

    def _predictive_mean_match(
        self,
        X: np.ndarray,
        y: pd.Series,
        mask: np.ndarray,
        rng: np.random.Generator,
    ) -> np.ndarray:
        X_obs, X_mis = X[~mask], X[mask]
        y_obs = y.to_numpy(dtype=float)[~mask]

        boot = rng.integers(0, len(y_obs), size=len(y_obs))
        try:
            fit_obs = LinearRegression().fit(X_obs, y_obs)
            fit_boot = LinearRegression().fit(X_obs[boot], y_obs[boot])
        except ValueError as exc:
            raise ImputationError(f"Regression model failed for '{y.name}': {exc}") from exc

        yhat_obs = fit_obs.predict(X_obs)
        yhat_mis = fit_boot.predict(X_mis)

        k = min(self.n_donors, len(y_obs))
        distances = np.abs(yhat_mis[:, None] - yhat_obs[None, :])
        pools = np.argpartition(distances, k - 1, axis=1)[:, :k]
        picks = pools[np.arange(len(yhat_mis)), rng.integers(0, k, size=len(yhat_mis))]
        return y_obs[picks]

    def _draw_categorical(
        self,
        X: np.ndarray,
        y: pd.Series,
        mask: np.ndarray,
        rng: np.random.Generator,
    ) -> np.ndarray:
        y_obs = y.to_numpy(dtype=object)[~mask]
        levels = pd.unique(y_obs)
        if len(levels) == 1:
            return np.repeat(levels[0], int(mask.sum()))

        model = make_pipeline(StandardScaler(), LogisticRegression(max_iter=1000))
        with warnings.catch_warnings():
            warnings.simplefilter("error", category=ConvergenceWarning)
            try:
                model.fit(X[~mask], y_obs)
            except ConvergenceWarning as exc:
                raise ImputationError(
                    f"Classification model did not converge for '{y.name}'"
                ) from exc
            except ValueError as exc:
                raise ImputationError(f"Classification model failed for '{y.name}': {exc}") from exc

        proba = model.predict_proba(X[mask])
        cumulative = np.cumsum(proba, axis=1)
        draws = rng.random(len(proba))[:, None]
        idx = np.minimum((cumulative < draws).sum(axis=1), len(model.classes_) - 1)
        return model.classes_[idx]
