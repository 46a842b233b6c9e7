"""Data models for the synthesized form schema document."""
from datetime import datetime
from typing import Any

from pydantic import Field

from ..extractor.models import CamelModel, NormalizedField


class StepDescription(CamelModel):
    """Metadata entry describing one step."""

    name: str
    description: str = ""
    field_count: int = 0


class SchemaMetadata(CamelModel):
    """Document-level counts and descriptions."""

    total_steps: int
    total_fields: int
    scraping_method: str
    last_updated: datetime
    description: str
    steps: dict[str, StepDescription] = Field(default_factory=dict)


class CanonicalRule(CamelModel):
    """Reference validation rule shipped with every schema."""

    pattern: str
    message: str
    description: str = ""


class RuleStatistics(CamelModel):
    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


class SchemaStatistics(CamelModel):
    """Aggregate counts across all steps."""

    total_steps: int = 0
    total_fields: int = 0
    fields_by_kind: dict[str, int] = Field(default_factory=dict)
    fields_by_category: dict[str, int] = Field(default_factory=dict)
    validation_rules: RuleStatistics = Field(default_factory=RuleStatistics)


class FormSchema(CamelModel):
    """Versioned, step-organized description of the registration form."""

    version: str
    generated_at: datetime
    source_identifier: str
    metadata: SchemaMetadata
    steps: dict[str, list[NormalizedField]]
    global_validation_rules: dict[str, CanonicalRule]
    field_categories: dict[str, list[NormalizedField]]
    statistics: SchemaStatistics

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready document with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
