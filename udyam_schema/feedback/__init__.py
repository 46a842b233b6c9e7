"""Observability of per-field extraction failures."""
from .failure_logger import ExtractionFailure, FailureLogger

__all__ = ["ExtractionFailure", "FailureLogger"]
