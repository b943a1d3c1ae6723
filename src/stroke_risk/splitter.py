from typing import Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

from .exceptions import SchemaError


def stratified_split(
    df: pd.DataFrame,
    target_col: str,
    train_fraction: float = 0.8,
    random_state: int = 123,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split rows into train/test, sampling each label stratum at the same ratio."""
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    if target_col not in df.columns:
        raise SchemaError([target_col], context="split input")

    train, test = train_test_split(
        df,
        train_size=train_fraction,
        stratify=df[target_col],
        random_state=random_state,
    )
    return train, test
