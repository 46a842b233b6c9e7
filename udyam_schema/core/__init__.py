"""Core utilities: configuration and logging."""
from .config import Settings, ExtractionConfig, SchemaConfig, StepConfig
from .logging import setup_logging

__all__ = ["Settings", "ExtractionConfig", "SchemaConfig", "StepConfig", "setup_logging"]
