from __future__ import annotations

import warnings
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.calibration import CalibratedClassifierCV
from sklearn.ensemble import RandomForestClassifier
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from .exceptions import AlignmentError
from .utils.logger import get_logger


def calibrated_svm(kernel: str = "linear", cv: int = 5, **svc_params) -> CalibratedClassifierCV:
    """SVC whose probabilities come from a sigmoid calibration fit on held-out folds."""
    return CalibratedClassifierCV(
        SVC(kernel=kernel, **svc_params), method="sigmoid", cv=cv, ensemble=False
    )


MODEL_FACTORIES = {
    "knn": KNeighborsClassifier,
    "svm": calibrated_svm,
    "random_forest": RandomForestClassifier,
    "decision_tree": DecisionTreeClassifier,
}

DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    "knn": {},
    "svm": {"kernel": "linear"},
    "random_forest": {"n_estimators": 500},
    "decision_tree": {},
}

SEEDED_MODELS = ("random_forest", "decision_tree")


class ModelBank:
    """
    Fits KNN, linear SVM, random forest and decision tree on the same encoded
    training set and target.

    Models with internal randomness receive ``random_state`` so refits are
    reproducible. ``predict`` always returns one label and one positive-class
    probability per input row.
    """

    def __init__(
        self,
        params: Optional[Mapping[str, Mapping[str, Any]]] = None,
        random_state: int = 123,
    ):
        self.params: Dict[str, Dict[str, Any]] = {
            name: dict(DEFAULT_PARAMS[name]) for name in MODEL_FACTORIES
        }
        for name, overrides in (params or {}).items():
            if name not in MODEL_FACTORIES:
                raise ValueError(f"Unknown model: {name}")
            self.params[name].update(overrides or {})

        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)
        self.models: Dict[str, ClassifierMixin] = {}
        self.feature_names_: list[str] = []

    @property
    def names(self) -> list[str]:
        return list(MODEL_FACTORIES)

    def _make(self, name: str) -> ClassifierMixin:
        params = dict(self.params[name])
        if name in SEEDED_MODELS:
            params.setdefault("random_state", self.random_state)
        return MODEL_FACTORIES[name](**params)

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> "ModelBank":
        y = np.asarray(y).astype(int)
        if len(X) != len(y):
            raise AlignmentError(f"{len(X)} training rows but {len(y)} labels")

        self.feature_names_ = list(X.columns)
        self.models = {}
        for name in MODEL_FACTORIES:
            model = self._make(name)
            model.fit(X, y)
            self.models[name] = model
            self.logger.info(f"Fitted {name}: {model}")
        return self

    def get(self, name: str) -> ClassifierMixin:
        if name not in self.models:
            raise ValueError(
                f"Model '{name}' is not fitted; choose one of {list(MODEL_FACTORIES)}"
            )
        return self.models[name]

    def predict(self, name: str, X: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray]:
        """Return (predicted labels, probability of label 1) for every row of X."""
        model = self.get(name)
        if list(X.columns) != self.feature_names_:
            raise AlignmentError(f"Feature columns for '{name}' differ from the training columns")

        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="X does not have valid feature names")
            labels = np.asarray(model.predict(X)).astype(int)
            proba = model.predict_proba(X)

        positive = list(model.classes_).index(1) if 1 in model.classes_ else None
        proba_pos = proba[:, positive] if positive is not None else np.zeros(len(X))

        if len(labels) != len(X) or len(proba_pos) != len(X):
            raise AlignmentError(
                f"'{name}' returned {len(labels)} predictions for {len(X)} rows"
            )
        return labels, proba_pos.astype(float)
