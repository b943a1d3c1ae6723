from typing import Any, Literal, Mapping

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import EncodingError, SchemaError


class PatientRecord(BaseModel):
    """One raw patient observation, as entered for single-record prediction."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    age: float = Field(..., ge=0, le=120)
    hypertension: Literal[0, 1]
    heart_disease: Literal[0, 1]
    ever_married: Literal["Yes", "No"]
    work_type: str = Field(..., min_length=1)
    residence_type: Literal["Urban", "Rural"]
    avg_glucose_level: float = Field(..., gt=0)
    bmi: float = Field(..., gt=0)
    smoking_status: str = Field(..., min_length=1)
    gender: str = Field(..., min_length=1)

    @field_validator("hypertension", "heart_disease", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Any:
        # text input arrives as "0"/"1"
        if isinstance(value, str) and value.strip() in ("0", "1"):
            return int(value.strip())
        return value

    @classmethod
    def required_fields(cls) -> list[str]:
        return list(cls.model_fields)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PatientRecord":
        missing = [
            name for name in cls.required_fields()
            if data.get(name) is None or (isinstance(data.get(name), str) and not data[name].strip())
        ]
        if missing:
            raise SchemaError(missing, context="patient record")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise EncodingError(f"Invalid patient record: {problems}") from exc

    def to_frame(self) -> pd.DataFrame:
        """One-row frame using the column names of the source CSV."""
        row = self.model_dump()
        row["Residence_type"] = row.pop("residence_type")
        return pd.DataFrame([row])
