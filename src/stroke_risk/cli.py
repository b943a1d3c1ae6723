import argparse
import os
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import Config
from .evaluator import Evaluator
from .exceptions import StrokeRiskError
from .model_bank import MODEL_FACTORIES
from .pipeline import PipelineContext, PipelineRunner
from .predictor import Prediction, StrokePredictor
from .utils.logger import get_logger

YES_NO = ("Yes", "No")


def _yes_no_flag(value: str) -> int:
    normalized = value.strip().capitalize()
    if normalized not in YES_NO:
        raise ValueError(f"Expected Yes or No, got '{value}'")
    return 1 if normalized == "Yes" else 0


def _yes_no(value: str) -> str:
    return YES_NO[1 - _yes_no_flag(value)]


def _number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Expected a number, got '{value}'") from None


# (field, prompt, allowed choices shown to the user, parser)
FIELDS: List[tuple] = [
    ("age", "Age", None, _number),
    ("hypertension", "Hypertension", YES_NO, _yes_no_flag),
    ("heart_disease", "Heart disease", YES_NO, _yes_no_flag),
    ("ever_married", "Ever married", YES_NO, _yes_no),
    ("work_type", "Work type", ("Private", "Self-employed", "Govt_job", "children", "Never_worked"), str.strip),
    ("residence_type", "Residence type", ("Urban", "Rural"), str.strip),
    ("avg_glucose_level", "Average glucose level", None, _number),
    ("bmi", "BMI", None, _number),
    ("smoking_status", "Smoking status", ("formerly smoked", "never smoked", "smokes"), str.strip),
    ("gender", "Gender", ("Male", "Female", "Other"), str.strip),
]


class PromptInput:
    """Gathers one raw record from the terminal. I/O functions are injectable."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def ask(self, prompt: str, choices: Optional[Sequence[str]] = None) -> str:
        suffix = f" ({'/'.join(choices)})" if choices else ""
        return self.input_fn(f"{prompt}{suffix}: ")

    def gather(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for name, prompt, choices, parse in FIELDS:
            record[name] = parse(self.ask(prompt, choices))
        return record

    def confirm(self, prompt: str) -> bool:
        return self.ask(prompt, YES_NO).strip().lower().startswith("y")


def format_prediction(prediction: Prediction) -> List[str]:
    percent = round(prediction.probability, 2) * 100
    return [
        f"Prediction: {prediction.risk}",
        f"Probability of stroke: {percent:.0f}%",
    ]


def interactive_loop(predictor: StrokePredictor, prompt: PromptInput) -> int:
    """Prompt, predict and print until the user stops. Returns the number of predictions."""
    count = 0
    while True:
        try:
            record = prompt.gather()
            for line in format_prediction(predictor.predict(record)):
                prompt.output_fn(line)
            count += 1
        except (StrokeRiskError, ValueError) as exc:
            prompt.output_fn(f"Error: {exc}")
        except (EOFError, KeyboardInterrupt):
            prompt.output_fn("")
            return count

        try:
            if not prompt.confirm("Predict another patient?"):
                return count
        except (EOFError, KeyboardInterrupt):
            return count


def _load_or_train(config: Config) -> PipelineContext:
    logger = get_logger("cli")
    path = config.output.get("context_path")
    if path and os.path.exists(path):
        logger.info(f"Loading encoder and models: {path}")
        return PipelineContext.load(path)
    return PipelineRunner(config).run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stroke-risk",
        description="Stroke risk pipeline: impute, balance, encode, train, evaluate and predict.",
    )
    parser.add_argument("--config", default="config/default.yaml", help="Path to the YAML config.")
    sub = parser.add_subparsers(dest="command", required=True)

    train = sub.add_parser("train", help="Run the batch pipeline and print the model comparison.")
    train.add_argument("--data", help="Override data.path from the config.")

    predict = sub.add_parser("predict", help="Interactive single-patient prediction.")
    predict.add_argument(
        "--model",
        default=None,
        choices=list(MODEL_FACTORIES),
        help="Model to use instead of the deployed one.",
    )
    predict.add_argument("--retrain", action="store_true", help="Ignore any saved context and retrain.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.from_yaml(args.config)

    if args.command == "train":
        if args.data:
            config.data["path"] = args.data
        context = PipelineRunner(config).run()
        print(Evaluator.compare(context.results.values()).round(4).to_string())
        return 0

    context = PipelineRunner(config).run() if args.retrain else _load_or_train(config)
    interactive_loop(StrokePredictor(context, args.model), PromptInput())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
