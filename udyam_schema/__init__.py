"""Udyam form schema extraction: normalize, infer validation rules, synthesize."""
from .pipeline import ExtractionAborted, ExtractionContext, ExtractionPipeline
from .schema import FormSchema, SchemaStructureError, SchemaSynthesizer

__all__ = [
    "ExtractionAborted",
    "ExtractionContext",
    "ExtractionPipeline",
    "FormSchema",
    "SchemaStructureError",
    "SchemaSynthesizer",
]
