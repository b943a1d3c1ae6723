import pandas as pd
import pytest

from stroke_risk.balancer import Balancer
from stroke_risk.exceptions import SchemaError


def _make_train():
    return pd.DataFrame(
        {
            "age": [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0],
            "work_type": ["Private"] * 4 + ["Govt_job"] * 4,
            "stroke": [0, 0, 0, 0, 0, 0, 1, 1],
        }
    )


def test_oversample_equalizes_label_counts():
    out = Balancer("stroke", strategy="oversample").balance(_make_train())
    counts = out["stroke"].value_counts()
    assert counts[0] == counts[1] == 6


def test_oversample_keeps_majority_rows_unchanged():
    df = _make_train()
    out = Balancer("stroke", strategy="oversample").balance(df)

    majority_before = df[df["stroke"] == 0].reset_index(drop=True)
    majority_after = out[out["stroke"] == 0].reset_index(drop=True)
    pd.testing.assert_frame_equal(majority_before, majority_after)


def test_oversample_minority_is_superset_with_repetition():
    df = _make_train()
    out = Balancer("stroke", strategy="oversample").balance(df)

    original = set(map(tuple, df[df["stroke"] == 1].to_numpy().tolist()))
    after = list(map(tuple, out[out["stroke"] == 1].to_numpy().tolist()))
    assert original.issubset(after)
    assert set(after) == original


def test_oversample_is_reproducible():
    a = Balancer("stroke", strategy="oversample", random_state=1).balance(_make_train())
    b = Balancer("stroke", strategy="oversample", random_state=1).balance(_make_train())
    pd.testing.assert_frame_equal(a, b)


def test_undersample_shrinks_to_minority_count():
    out = Balancer("stroke", strategy="undersample").balance(_make_train())
    assert out["stroke"].value_counts().to_dict() == {0: 2, 1: 2}


def test_none_strategy_returns_input():
    df = _make_train()
    assert Balancer("stroke", strategy="none").balance(df) is df


def test_single_class_is_left_alone():
    df = _make_train()
    df = df[df["stroke"] == 0]
    out = Balancer("stroke", strategy="oversample").balance(df)
    assert len(out) == len(df)


def test_unknown_strategy_raises():
    with pytest.raises(ValueError):
        Balancer("stroke", strategy="smote").balance(_make_train())


def test_missing_label_column_raises():
    with pytest.raises(SchemaError):
        Balancer("stroke").balance(_make_train().drop(columns=["stroke"]))
