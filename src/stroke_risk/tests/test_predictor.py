import pandas as pd
import pytest

from stroke_risk.exceptions import EncodingError, SchemaError
from stroke_risk.pipeline import PipelineRunner
from stroke_risk.predictor import Prediction, StrokePredictor

RECORD = {
    "age": 67,
    "hypertension": 0,
    "heart_disease": 1,
    "ever_married": "Yes",
    "work_type": "Private",
    "residence_type": "Urban",
    "avg_glucose_level": 228.69,
    "bmi": 36.6,
    "smoking_status": "formerly smoked",
    "gender": "Male",
}


@pytest.fixture
def fitted(small_config, stroke_df):
    small_config.output["metrics_path"] = None
    small_config.output["context_path"] = None
    runner = PipelineRunner(small_config)
    context = runner.fit(runner.clean(stroke_df))
    return runner, context


def _raw_row(record):
    row = dict(record)
    row["Residence_type"] = row.pop("residence_type")
    row.update({"id": 99999, "stroke": 0})
    return pd.DataFrame([row])


def test_single_record_prediction_is_well_formed(fitted):
    _, context = fitted
    prediction = StrokePredictor(context).predict(RECORD)

    assert prediction.label in (0, 1)
    assert 0.0 <= prediction.probability <= 1.0


def test_single_record_matches_batch_test_pipeline(fitted):
    runner, context = fitted
    batch = pd.concat([runner.test_df, _raw_row(RECORD)], ignore_index=True)

    labels, proba = context.predict_frame(batch)
    prediction = StrokePredictor(context).predict(RECORD)

    assert prediction.label == labels[-1]
    assert prediction.probability == pytest.approx(proba[-1])


def test_test_row_predicts_identically_as_record(fitted):
    runner, context = fitted
    row = runner.test_df.iloc[0]
    record = {
        "age": row["age"],
        "hypertension": int(row["hypertension"]),
        "heart_disease": int(row["heart_disease"]),
        "ever_married": row["ever_married"],
        "work_type": row["work_type"],
        "residence_type": row["Residence_type"],
        "avg_glucose_level": row["avg_glucose_level"],
        "bmi": row["bmi"],
        "smoking_status": row["smoking_status"],
        "gender": row["gender"],
    }

    labels, proba = context.predict_frame(runner.test_df)
    prediction = StrokePredictor(context).predict(record)

    assert prediction.label == labels[0]
    assert prediction.probability == pytest.approx(proba[0])


def test_predictor_can_use_another_model(fitted):
    _, context = fitted
    prediction = StrokePredictor(context, model_name="decision_tree").predict(RECORD)
    assert prediction.label in (0, 1)


def test_predictor_reports_missing_fields(fitted):
    _, context = fitted
    record = dict(RECORD)
    del record["age"]
    with pytest.raises(SchemaError, match="age"):
        StrokePredictor(context).predict(record)


def test_predictor_rejects_closed_set_violations(fitted):
    _, context = fitted
    with pytest.raises(EncodingError):
        StrokePredictor(context).predict(dict(RECORD, ever_married="Sometimes"))


def test_risk_label_mapping():
    assert Prediction(label=1, probability=0.8).risk == "High Risk"
    assert Prediction(label=0, probability=0.1).risk == "Low Risk"
