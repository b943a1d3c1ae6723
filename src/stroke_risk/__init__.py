"""
Stroke Risk — Modular Machine Learning Pipeline

This package loads the healthcare stroke dataset, imputes missing values with
multiple imputation, balances the training classes, encodes features with one
fitted recipe, trains four classical classifiers, compares them on a held-out
test set and serves single-patient predictions from the deployed model.

Modules:
    config          — Load YAML configuration safely.
    data_loader     — Read the CSV and check its header.
    cleaner         — Normalize missing-value sentinels and drive imputation.
    imputer         — Multiple imputation with predictive mean matching.
    splitter        — Stratified train/test split.
    balancer        — Oversample or undersample the training partition.
    encoder         — One-hot, zero-variance removal and z-score normalization.
    model_bank      — KNN, linear SVM, random forest and decision tree.
    hyper_tuner     — Tune the random forest with Optuna.
    evaluator       — Confusion matrices and metric tables.
    schemas         — Validation of one raw patient record.
    predictor       — Single-record prediction with the deployed model.
    pipeline        — Orchestrates all components.
    cli             — Training and interactive prediction entry point.
    utils.logger    — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader
from .cleaner import Cleaner
from .imputer import MultipleImputer
from .splitter import stratified_split
from .balancer import Balancer
from .encoder import FeatureEncoder
from .model_bank import ModelBank
from .evaluator import EvaluationResult, Evaluator
from .hyper_tuner import HyperTuner
from .schemas import PatientRecord
from .pipeline import PipelineContext, PipelineRunner
from .predictor import Prediction, StrokePredictor

__all__ = [
    "Config",
    "DataLoader",
    "Cleaner",
    "MultipleImputer",
    "stratified_split",
    "Balancer",
    "FeatureEncoder",
    "ModelBank",
    "EvaluationResult",
    "Evaluator",
    "HyperTuner",
    "PatientRecord",
    "PipelineContext",
    "PipelineRunner",
    "Prediction",
    "StrokePredictor",
]
