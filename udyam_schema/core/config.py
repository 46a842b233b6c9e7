"""Application configuration using pydantic-settings."""
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionConfig(BaseModel):
    """Field normalization and hint lookup configuration."""

    hint_workers: int = Field(default=4, ge=1)
    hint_timeout: float = Field(default=2.0, gt=0)
    deny_list: list[str] = [
        "captcha",
        "csrf",
        "token",
        "__viewstate",
        "__eventvalidation",
        "search",
        "menu",
        "nav",
    ]
    submit_keywords: list[str] = ["submit", "validate", "verify", "proceed"]
    # Controls whose markup mentions one of these words are taken as the step's
    # fields when the page does not separate steps on its own.
    step_keywords: dict[str, list[str]] = {"step2": ["pan", "step", "personal"]}


class StepConfig(BaseModel):
    """Human-readable description of one form step."""

    name: str
    description: str = ""


class SchemaConfig(BaseModel):
    """Schema document stamping configuration."""

    version: str = "1.0.0"
    source_url: str = "https://udyamregistration.gov.in/UdyamRegistration.aspx"
    scraping_method: str = "playwright"
    description: str = "Udyam Registration Portal - Steps 1 & 2 Form Schema"
    steps: dict[str, StepConfig] = {
        "step1": StepConfig(
            name="Aadhaar Verification",
            description="Aadhaar number verification with OTP",
        ),
        "step2": StepConfig(
            name="PAN Verification",
            description="PAN verification and personal details",
        ),
    }


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(env_prefix="UDYAM_", env_nested_delimiter="__")

    extraction: ExtractionConfig = ExtractionConfig()
    synthesis: SchemaConfig = SchemaConfig()
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
