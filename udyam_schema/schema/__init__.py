"""Schema document synthesis."""
from .models import (
    CanonicalRule,
    FormSchema,
    RuleStatistics,
    SchemaMetadata,
    SchemaStatistics,
    StepDescription,
)
from .synthesizer import SchemaStructureError, SchemaSynthesizer, build_ui_hints

__all__ = [
    "CanonicalRule",
    "FormSchema",
    "RuleStatistics",
    "SchemaMetadata",
    "SchemaStatistics",
    "SchemaStructureError",
    "SchemaSynthesizer",
    "StepDescription",
    "build_ui_hints",
]
