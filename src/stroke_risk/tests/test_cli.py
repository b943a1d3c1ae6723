import pytest

from stroke_risk.cli import PromptInput, build_parser, format_prediction, interactive_loop
from stroke_risk.encoder import FeatureEncoder
from stroke_risk.exceptions import SchemaError
from stroke_risk.model_bank import ModelBank
from stroke_risk.pipeline import DEFAULT_CATEGORICAL, DEFAULT_NUMERIC, PipelineContext
from stroke_risk.predictor import Prediction, StrokePredictor

ANSWERS = [
    "67",
    "No",
    "Yes",
    "Yes",
    "Private",
    "Urban",
    "228.69",
    "36.6",
    "formerly smoked",
    "Male",
]


class _ScriptedInput:
    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


class _FakePredictor:
    def __init__(self, fail=False):
        self.fail = fail
        self.records = []

    def predict(self, record):
        self.records.append(record)
        if self.fail:
            raise SchemaError(["bmi"], context="patient record")
        return Prediction(label=1, probability=0.734)


def test_prompt_input_parses_all_fields():
    scripted = _ScriptedInput(ANSWERS)
    record = PromptInput(input_fn=scripted, output_fn=lambda _: None).gather()

    assert record == {
        "age": 67.0,
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
    assert scripted.prompts[1] == "Hypertension (Yes/No): "


def test_prompt_input_rejects_non_numeric_age():
    scripted = _ScriptedInput(["sixty"] + ANSWERS[1:])
    with pytest.raises(ValueError, match="number"):
        PromptInput(input_fn=scripted, output_fn=lambda _: None).gather()


def test_format_prediction_rounds_to_two_decimals_as_percent():
    lines = format_prediction(Prediction(label=1, probability=0.734))
    assert lines == ["Prediction: High Risk", "Probability of stroke: 73%"]
    assert format_prediction(Prediction(label=0, probability=0.05))[0] == "Prediction: Low Risk"


def test_interactive_loop_prints_prediction_and_stops_on_no():
    printed = []
    scripted = _ScriptedInput(ANSWERS + ["No"])
    predictor = _FakePredictor()

    count = interactive_loop(predictor, PromptInput(input_fn=scripted, output_fn=printed.append))

    assert count == 1
    assert "Prediction: High Risk" in printed
    assert "Probability of stroke: 73%" in printed


def test_interactive_loop_reports_errors_and_continues():
    printed = []
    scripted = _ScriptedInput(ANSWERS + ["Yes"] + ANSWERS + ["No"])
    predictor = _FakePredictor(fail=True)

    count = interactive_loop(predictor, PromptInput(input_fn=scripted, output_fn=printed.append))

    assert count == 0
    assert len(predictor.records) == 2
    assert sum(line.startswith("Error:") for line in printed) == 2


def test_interactive_loop_ends_on_eof():
    scripted = _ScriptedInput(ANSWERS[:3])
    count = interactive_loop(_FakePredictor(), PromptInput(input_fn=scripted, output_fn=lambda _: None))
    assert count == 0


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
    args = build_parser().parse_args(["predict", "--model", "svm"])
    assert args.command == "predict" and args.model == "svm"


def test_parser_rejects_unknown_model_names(capsys):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["predict", "--model", "xgboost"])
    assert "invalid choice" in capsys.readouterr().err


@pytest.fixture
def context(stroke_frame_factory):
    df = stroke_frame_factory(bmi_missing=0.0)
    encoder = FeatureEncoder(DEFAULT_NUMERIC, DEFAULT_CATEGORICAL)
    X = encoder.fit_transform(df)
    models = ModelBank({"random_forest": {"n_estimators": 20}}).fit(X, df["stroke"].to_numpy())
    return PipelineContext(encoder=encoder, models=models)


def test_interactive_loop_reports_unknown_model_and_keeps_running(context):
    printed = []
    scripted = _ScriptedInput(ANSWERS + ["No"])

    count = interactive_loop(
        StrokePredictor(context, "xgboost"),
        PromptInput(input_fn=scripted, output_fn=printed.append),
    )

    assert count == 0
    errors = [line for line in printed if line.startswith("Error:")]
    assert len(errors) == 1 and "xgboost" in errors[0]


def test_interactive_loop_predicts_with_a_fitted_context(context):
    printed = []
    scripted = _ScriptedInput(ANSWERS + ["No"])

    count = interactive_loop(
        StrokePredictor(context, "svm"),
        PromptInput(input_fn=scripted, output_fn=printed.append),
    )

    assert count == 1
    assert any(line.startswith("Probability of stroke: ") for line in printed)
