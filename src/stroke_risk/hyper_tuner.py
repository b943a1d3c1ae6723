from typing import Any, Sequence

import numpy as np
import optuna
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import StratifiedKFold

from .balancer import Balancer
from .encoder import FeatureEncoder
from .utils.logger import get_logger


class HyperTuner:
    """
    Optuna tuning for the deployed random forest with leakage-safe CV:
    balancing and encoding are fit only on training folds, then the untouched
    validation fold is scored.
    """

    def __init__(
        self,
        numeric_cols: Sequence[str],
        categorical_cols: Sequence[str],
        target_col: str = "stroke",
        balance_strategy: str = "oversample",
        n_trials: int = 20,
        n_splits: int = 5,
        random_state: int = 123,
    ):
        self.numeric_cols = list(numeric_cols)
        self.categorical_cols = list(categorical_cols)
        self.target_col = target_col
        self.balance_strategy = balance_strategy
        self.n_trials = n_trials
        self.n_splits = n_splits
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)
        self.best_params_: dict[str, Any] | None = None
        self.best_value_: float | None = None

    def _suggest_params(self, trial: optuna.Trial) -> dict[str, Any]:
        """Define Optuna search space."""
        return {
            "n_estimators": trial.suggest_int("n_estimators", 100, 800, step=100),
            "max_depth": trial.suggest_int("max_depth", 3, 20),
            "min_samples_leaf": trial.suggest_int("min_samples_leaf", 1, 20),
            "max_features": trial.suggest_categorical("max_features", ["sqrt", "log2"]),
        }

    def cross_validate(self, df: pd.DataFrame, params: dict[str, Any]) -> float:
        """Mean ROC-AUC of a random forest across stratified folds of the raw training rows."""
        y = df[self.target_col].astype(int).to_numpy()
        skf = StratifiedKFold(n_splits=self.n_splits, shuffle=True, random_state=self.random_state)
        aucs: list[float] = []

        for fold, (train_idx, val_idx) in enumerate(skf.split(df, y), start=1):
            # Balance only the training fold
            fold_train = Balancer(
                target_col=self.target_col,
                strategy=self.balance_strategy,
                random_state=self.random_state + fold,
            ).balance(df.iloc[train_idx])
            fold_val = df.iloc[val_idx]

            encoder = FeatureEncoder(self.numeric_cols, self.categorical_cols, verbose=False)
            X_train = encoder.fit_transform(fold_train)
            X_val = encoder.transform(fold_val)

            model = RandomForestClassifier(**params)
            model.fit(X_train, fold_train[self.target_col].astype(int).to_numpy())
            proba = model.predict_proba(X_val)[:, 1]
            aucs.append(float(roc_auc_score(y[val_idx], proba)))

        return float(np.mean(aucs))

    def tune(self, df: pd.DataFrame, base_params: dict[str, Any]) -> dict[str, Any]:
        """Run Optuna optimization and return base params updated with the best trial."""
        self.logger.info(
            f"Starting Optuna tuning ({self.n_trials} trials, {self.n_splits}-fold CV)"
        )

        sampler = optuna.samplers.TPESampler(seed=self.random_state)
        study = optuna.create_study(direction="maximize", sampler=sampler)

        def objective(trial: optuna.Trial) -> float:
            params = dict(base_params)
            params.update(self._suggest_params(trial))
            params.setdefault("random_state", self.random_state)
            return self.cross_validate(df, params)

        study.optimize(objective, n_trials=self.n_trials)

        self.best_params_ = study.best_params
        self.best_value_ = float(study.best_value)

        self.logger.info(f"Best CV ROC-AUC: {self.best_value_:.4f}")
        self.logger.info(f"Best parameters: {self.best_params_}")

        tuned = dict(base_params)
        tuned.update(self.best_params_)
        return tuned
