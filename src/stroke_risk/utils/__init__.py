"""Shared helpers for the stroke risk pipeline."""

from .logger import get_logger

__all__ = ["get_logger"]
