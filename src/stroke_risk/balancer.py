import pandas as pd
from typing import Literal
from sklearn.utils import resample

from .exceptions import SchemaError
from .utils.logger import get_logger


class Balancer:
    """
    Handles class imbalance in the training partition via oversampling or undersampling.

    Oversampling keeps every original row and appends minority rows drawn with
    replacement until each label matches the majority count. Undersampling draws
    each label without replacement down to the minority count.

    Example:
        balancer = Balancer(target_col="stroke", strategy="oversample")
        train_balanced = balancer.balance(train)
    """

    def __init__(
        self,
        target_col: str,
        strategy: Literal["none", "oversample", "undersample"] = "oversample",
        random_state: int = 123,
    ):
        self.target_col = target_col
        self.strategy = strategy
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def balance(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.target_col not in df.columns:
            raise SchemaError([self.target_col], context="balancer input")

        if self.strategy == "none":
            return df

        counts = df[self.target_col].value_counts()
        if len(counts) < 2:
            self.logger.warning("Only one class present. Skipping balancing.")
            return df

        self.logger.info(f"Applying class balancing: {self.strategy} {counts.to_dict()}")

        if self.strategy == "oversample":
            target = int(counts.max())
            extras = []
            for label, n in counts.items():
                if n < target:
                    extras.append(
                        resample(
                            df[df[self.target_col] == label],
                            replace=True,
                            n_samples=target - int(n),
                            random_state=self.random_state,
                        )
                    )
            return pd.concat([df, *extras], ignore_index=True)

        elif self.strategy == "undersample":
            target = int(counts.min())
            parts = [
                resample(
                    df[df[self.target_col] == label],
                    replace=False,
                    n_samples=target,
                    random_state=self.random_state,
                )
                for label in counts.index
            ]
            return pd.concat(parts, ignore_index=True)

        else:
            raise ValueError(f"Unknown balancing strategy: {self.strategy}")
