import numpy as np
import pandas as pd
import pytest

from stroke_risk.config import Config

WORK_TYPES = ["Private", "Self-employed", "Govt_job", "children", "Never_worked"]
SMOKING = ["formerly smoked", "never smoked", "smokes", "Unknown"]


def make_stroke_frame(
    n_negative: int = 150,
    n_positive: int = 30,
    bmi_missing: float = 0.1,
    seed: int = 0,
) -> pd.DataFrame:
    """Synthetic table with the raw stroke CSV schema; positives skew older."""
    rng = np.random.default_rng(seed)
    n = n_negative + n_positive
    stroke = np.array([0] * n_negative + [1] * n_positive)

    age = np.where(stroke == 1, rng.uniform(55, 85, n), rng.uniform(5, 75, n)).round(1)
    bmi = rng.normal(29, 6, n).clip(12, 60).round(1)
    bmi[rng.random(n) < bmi_missing] = np.nan

    df = pd.DataFrame(
        {
            "id": np.arange(1, n + 1),
            "gender": rng.choice(["Male", "Female"], n),
            "age": age,
            "hypertension": (rng.random(n) < np.where(stroke == 1, 0.4, 0.1)).astype(int),
            "heart_disease": (rng.random(n) < np.where(stroke == 1, 0.3, 0.05)).astype(int),
            "ever_married": np.where(age > 25, "Yes", "No"),
            "work_type": rng.choice(WORK_TYPES, n, p=[0.5, 0.2, 0.15, 0.1, 0.05]),
            "Residence_type": rng.choice(["Urban", "Rural"], n),
            "avg_glucose_level": np.where(
                stroke == 1, rng.uniform(90, 260, n), rng.uniform(55, 200, n)
            ).round(2),
            "bmi": bmi,
            "smoking_status": rng.choice(SMOKING, n, p=[0.2, 0.35, 0.15, 0.3]),
            "stroke": stroke,
        }
    )
    return df.sample(frac=1, random_state=seed).reset_index(drop=True)


@pytest.fixture
def stroke_frame_factory():
    return make_stroke_frame


@pytest.fixture
def stroke_df():
    return make_stroke_frame()


@pytest.fixture
def small_config(tmp_path):
    return Config(
        data={"path": str(tmp_path / "stroke.csv"), "target_col": "stroke", "id_col": "id"},
        preprocessing={
            "n_imputations": 2,
            "max_iter": 2,
            "collapse": "first",
            "balance_strategy": "oversample",
        },
        model={"tune": False, "random_forest": {"n_estimators": 50}},
        validation={"train_fraction": 0.8, "random_state": 123},
        output={
            "metrics_path": str(tmp_path / "artifacts" / "metrics.json"),
            "save_figures": False,
            "context_path": str(tmp_path / "artifacts" / "context.joblib"),
        },
    )
