import os
from dataclasses import dataclass, field, replace
from textwrap import indent
from typing import Dict, Optional, Tuple

import joblib
import numpy as np
import pandas as pd

from .balancer import Balancer
from .cleaner import Cleaner
from .config import Config
from .data_loader import DataLoader
from .encoder import FeatureEncoder
from .evaluator import EvaluationResult, Evaluator
from .hyper_tuner import HyperTuner
from .imputer import MultipleImputer
from .model_bank import MODEL_FACTORIES, ModelBank
from .splitter import stratified_split
from .utils.logger import get_logger

DEFAULT_NUMERIC = ["age", "hypertension", "heart_disease", "avg_glucose_level", "bmi"]
DEFAULT_CATEGORICAL = ["gender", "ever_married", "work_type", "Residence_type", "smoking_status"]


@dataclass(frozen=True)
class PipelineContext:
    """Fitted encoder and models from one training run. They are only valid together."""
    encoder: FeatureEncoder
    models: ModelBank
    deployed_model: str = "random_forest"
    results: Dict[str, EvaluationResult] = field(default_factory=dict)

    def predict_frame(
        self, df: pd.DataFrame, model_name: Optional[str] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Encode raw rows with the fitted encoder and predict with one model."""
        X = self.encoder.transform(df)
        return self.models.predict(model_name or self.deployed_model, X)

    def save(self, path: str) -> str:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        joblib.dump(self, path)
        return path

    @classmethod
    def load(cls, path: str) -> "PipelineContext":
        context = joblib.load(path)
        if not isinstance(context, cls):
            raise TypeError(f"{path} does not contain a {cls.__name__}")
        return context


class PipelineRunner:
    """End-to-end stroke risk pipeline.

    Steps:
      1. Load the CSV and check its header
      2. Normalize the missing-value sentinel and run multiple imputation
      3. Stratified train/test split
      4. Balance classes in the training partition only
      5. Fit the feature encoder on the balanced training set
      6. Optionally tune the random forest with Optuna
      7. Fit KNN, linear SVM, random forest and decision tree
      8. Evaluate every model on the encoded test partition and compare"""

    def __init__(self, config: Config):
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self.imputed_df: Optional[pd.DataFrame] = None
        self.train_df: Optional[pd.DataFrame] = None
        self.test_df: Optional[pd.DataFrame] = None
        self.balanced_df: Optional[pd.DataFrame] = None

    @classmethod
    def from_yaml(cls, config_path: str) -> "PipelineRunner":
        return cls(Config.from_yaml(config_path))

    @property
    def numeric_cols(self) -> list:
        return list(self.config.preprocessing.get("numeric_cols", DEFAULT_NUMERIC))

    @property
    def categorical_cols(self) -> list:
        return list(self.config.preprocessing.get("categorical_cols", DEFAULT_CATEGORICAL))

    def load(self) -> pd.DataFrame:
        cfg = self.config
        df = DataLoader(
            cfg.data["path"],
            sample_size=cfg.data.get("sample_size"),
            na_values=cfg.data.get("na_values", ["N/A", ""]),
            random_state=cfg.random_state,
        ).load()
        self.logger.info(f"Loaded dataset: {df.shape[0]:,} rows x {df.shape[1]} cols")
        return df

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        prep = self.config.preprocessing
        imputer = MultipleImputer(
            n_imputations=prep.get("n_imputations", 5),
            max_iter=prep.get("max_iter", 5),
            n_donors=prep.get("n_donors", 5),
            collapse=prep.get("collapse", "first"),
            exclude=[c for c in [self.config.id_col] if c in df.columns],
            random_state=self.config.random_state,
        )
        cleaner = Cleaner(
            categorical_cols=self.categorical_cols,
            missing_token=prep.get("missing_token", "Unknown"),
            imputer=imputer,
        )
        return cleaner.transform(df)

    def fit(self, imputed: pd.DataFrame) -> PipelineContext:
        cfg = self.config
        target = cfg.target_col
        deployed = cfg.model.get("deploy", "random_forest")
        if deployed not in MODEL_FACTORIES:
            raise ValueError(f"Unknown deployed model: {deployed}")

        train, test = stratified_split(
            imputed,
            target_col=target,
            train_fraction=cfg.validation.get("train_fraction", 0.8),
            random_state=cfg.random_state,
        )
        self.logger.info(
            f"Split: train={len(train):,} {train[target].value_counts().to_dict()}, "
            f"test={len(test):,} {test[target].value_counts().to_dict()}"
        )

        balanced = Balancer(
            target_col=target,
            strategy=cfg.preprocessing.get("balance_strategy", "oversample"),
            random_state=cfg.random_state,
        ).balance(train)
        self.logger.info(f"Balanced train: {balanced[target].value_counts().to_dict()}")

        encoder = FeatureEncoder(self.numeric_cols, self.categorical_cols, verbose=True)
        X_train = encoder.fit_transform(balanced)
        y_train = balanced[target].astype(int).to_numpy()

        params = {k: dict(cfg.model.get(k) or {}) for k in MODEL_FACTORIES}
        if cfg.model.get("tune", False):
            tuner = HyperTuner(
                self.numeric_cols,
                self.categorical_cols,
                target_col=target,
                balance_strategy=cfg.preprocessing.get("balance_strategy", "oversample"),
                n_trials=cfg.model.get("n_trials", 20),
                n_splits=cfg.validation.get("n_splits", 5),
                random_state=cfg.random_state,
            )
            params["random_forest"] = tuner.tune(train, params["random_forest"])
            self.logger.info("Random forest parameters updated with tuned values")
        else:
            self.logger.info("Hyperparameter tuning disabled")

        models = ModelBank(params, random_state=cfg.random_state).fit(X_train, y_train)

        self.train_df, self.test_df, self.balanced_df = train, test, balanced
        context = PipelineContext(encoder=encoder, models=models, deployed_model=deployed)
        return replace(context, results=self.evaluate(context, test))

    def evaluate(self, context: PipelineContext, test: pd.DataFrame) -> Dict[str, EvaluationResult]:
        out = self.config.output
        evaluator = Evaluator(
            metrics_path=out.get("metrics_path"),
            figures_dir=out.get("figures_dir") if out.get("save_figures", False) else None,
        )
        y_test = test[self.config.target_col].astype(int).to_numpy()

        results: Dict[str, EvaluationResult] = {}
        for name in context.models.names:
            y_pred, y_proba = context.predict_frame(test, name)
            results[name] = evaluator.evaluate(name, y_test, y_pred, y_proba)

        table = evaluator.compare(results.values())
        self.logger.info(f"Test metrics:\n{indent(table.round(4).to_string(), ' ' * 4)}")
        for name, result in results.items():
            self.logger.info(
                f"Confusion matrix ({name}):\n{indent(result.confusion.to_string(), ' ' * 4)}"
            )
        evaluator.save(results.values())
        return results

    def run(self, df: Optional[pd.DataFrame] = None) -> PipelineContext:
        self.logger.info("Starting stroke risk pipeline")

        if df is None:
            df = self.load()
        self.imputed_df = self.clean(df)
        context = self.fit(self.imputed_df)

        context_path = self.config.output.get("context_path")
        if context_path:
            context.save(context_path)
            self.logger.info(f"Saved encoder and models: {context_path}")

        self.logger.info("Pipeline finished")
        return context
