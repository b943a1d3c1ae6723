from typing import Optional, Sequence

import pandas as pd

from .exceptions import SchemaError

RAW_COLUMNS = [
    "id",
    "gender",
    "age",
    "hypertension",
    "heart_disease",
    "ever_married",
    "work_type",
    "Residence_type",
    "avg_glucose_level",
    "bmi",
    "smoking_status",
    "stroke",
]


class DataLoader:
    """Loads the stroke CSV, checks its header and optionally samples rows."""

    def __init__(
        self,
        path: str,
        sample_size: Optional[int] = None,
        na_values: Sequence[str] = ("N/A", ""),
        required_columns: Sequence[str] = tuple(RAW_COLUMNS),
        random_state: int = 123,
    ):
        self.path = path
        self.sample_size = sample_size
        self.na_values = list(na_values)
        self.required_columns = list(required_columns)
        self.random_state = random_state

    def load(self) -> pd.DataFrame:
        df = pd.read_csv(self.path, na_values=self.na_values, keep_default_na=True)
        missing = [c for c in self.required_columns if c not in df.columns]
        if missing:
            raise SchemaError(missing, context=self.path)
        if self.sample_size:
            df = df.sample(self.sample_size, random_state=self.random_state)
        return df
