from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .pipeline import PipelineContext
from .schemas import PatientRecord
from .utils.logger import get_logger


@dataclass(frozen=True)
class Prediction:
    label: int
    probability: float

    @property
    def risk(self) -> str:
        return "High Risk" if self.label == 1 else "Low Risk"


class StrokePredictor:
    """Predicts stroke for one raw record through the fitted encoder and deployed model."""

    def __init__(self, context: PipelineContext, model_name: Optional[str] = None):
        self.context = context
        self.model_name = model_name or context.deployed_model
        self.logger = get_logger(self.__class__.__name__)

    def predict(self, record: Mapping[str, Any]) -> Prediction:
        validated = PatientRecord.from_mapping(record)
        labels, proba = self.context.predict_frame(validated.to_frame(), self.model_name)
        prediction = Prediction(label=int(labels[0]), probability=float(proba[0]))
        self.logger.info(
            f"{self.model_name}: label={prediction.label} probability={prediction.probability:.4f}"
        )
        return prediction
