import json
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .exceptions import AlignmentError
from .utils.logger import get_logger

LABELS = [0, 1]


@dataclass(frozen=True)
class EvaluationResult:
    """Confusion matrix and metric table for one model on the test partition."""
    model_name: str
    confusion: pd.DataFrame
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def n_rows(self) -> int:
        return int(self.confusion.to_numpy().sum())


class Evaluator:
    """Evaluate binary classifier predictions, save metrics and confusion matrices."""

    def __init__(
        self,
        metrics_path: Optional[str] = None,
        figures_dir: Optional[str] = None,
        verbose: bool = True,
    ):
        self.metrics_path = metrics_path
        self.figures_dir = figures_dir
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _check_labels(values: np.ndarray, what: str) -> None:
        invalid = sorted(set(np.unique(values).tolist()) - set(LABELS))
        if invalid:
            raise ValueError(f"{what} contains values outside {{0, 1}}: {invalid}")

    def _plot_confusion_matrix(self, name: str, cm: np.ndarray) -> str:
        """Plot confusion matrix counts and save to figures_dir. Returns saved path."""
        plt.figure(figsize=(6, 5))
        sns.heatmap(
            cm,
            annot=True,
            fmt="d",
            cmap="Blues",
            xticklabels=["No Stroke", "Stroke"],
            yticklabels=["No Stroke", "Stroke"],
        )
        plt.xlabel("Predicted")
        plt.ylabel("Actual")
        plt.title(f"Confusion Matrix ({name})")

        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, f"confusion_matrix_{name}.png")

        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved confusion matrix: {path}")

        return path

    def evaluate(
        self,
        name: str,
        y_true,
        y_pred,
        y_proba=None,
    ) -> EvaluationResult:
        """Compare predictions with ground truth; mismatched lengths are fatal."""
        y_true = np.asarray(y_true)
        y_pred = np.asarray(y_pred)

        if len(y_true) != len(y_pred):
            raise AlignmentError(
                f"{name}: {len(y_pred)} predictions for {len(y_true)} ground-truth labels"
            )
        if y_proba is not None and len(np.asarray(y_proba)) != len(y_true):
            raise AlignmentError(
                f"{name}: {len(y_proba)} probabilities for {len(y_true)} ground-truth labels"
            )
        self._check_labels(y_true, "Ground truth")
        self._check_labels(y_pred, "Predictions")

        y_true = y_true.astype(int)
        y_pred = y_pred.astype(int)

        cm = confusion_matrix(y_true, y_pred, labels=LABELS)
        tn, fp, fn, tp = cm.ravel()

        metrics: Dict[str, float] = {
            "Accuracy": float(accuracy_score(y_true, y_pred)),
            "Balanced_Accuracy": float(balanced_accuracy_score(y_true, y_pred)),
            "Precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "Recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "Specificity": float(tn / (tn + fp)) if (tn + fp) else 0.0,
            "F1": float(f1_score(y_true, y_pred, zero_division=0)),
        }
        if y_proba is not None and len(np.unique(y_true)) == 2:
            metrics["ROC_AUC"] = float(roc_auc_score(y_true, np.asarray(y_proba, dtype=float)))

        confusion = pd.DataFrame(
            cm,
            index=pd.Index(LABELS, name="actual"),
            columns=pd.Index(LABELS, name="predicted"),
        )

        if self.figures_dir:
            self._plot_confusion_matrix(name, cm)

        return EvaluationResult(model_name=name, confusion=confusion, metrics=metrics)

    @staticmethod
    def compare(results: Iterable[EvaluationResult]) -> pd.DataFrame:
        """One row per model, sorted by accuracy."""
        table = pd.DataFrame({r.model_name: r.metrics for r in results}).T
        table.index.name = "model"
        return table.sort_values("Accuracy", ascending=False)

    def save(self, results: Iterable[EvaluationResult]) -> Optional[str]:
        if not self.metrics_path:
            return None

        payload = {
            r.model_name: {
                "metrics": r.metrics,
                "confusion_matrix": r.confusion.to_numpy().tolist(),
            }
            for r in results
        }
        os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
        with open(self.metrics_path, "w") as f:
            json.dump(payload, f, indent=4)

        if self.verbose:
            self.logger.info(f"Saved metrics: {self.metrics_path}")
        return self.metrics_path
