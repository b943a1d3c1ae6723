"""Error taxonomy shared by the pipeline, the predictor and the CLI."""

from typing import Iterable


class StrokeRiskError(Exception):
    """Base class for all errors raised by this package."""


class SchemaError(StrokeRiskError, ValueError):
    """Required columns or fields are missing from the input."""

    def __init__(self, missing: Iterable[str], context: str = "input"):
        self.missing = list(missing)
        super().__init__(f"Missing required fields in {context}: {', '.join(self.missing)}")


class EncodingError(StrokeRiskError, ValueError):
    """A value falls outside a closed choice set."""


class ImputationError(StrokeRiskError, ValueError):
    """Imputation is undefined for the data or a per-column model failed."""


class AlignmentError(StrokeRiskError, RuntimeError):
    """Predictions and ground truth do not line up one-to-one."""
