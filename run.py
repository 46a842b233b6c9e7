"""CLI entry point for the Udyam form schema extractor.

Usage:
    python run.py snapshot.json
    python run.py snapshot.yaml --config config/settings.yaml --summary > schema.json
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError

from udyam_schema.core.config import Settings
from udyam_schema.core.logging import setup_logging
from udyam_schema.extractor.models import PageSnapshot
from udyam_schema.pipeline import ExtractionContext, ExtractionPipeline
from udyam_schema.schema import FormSchema, SchemaStructureError

logger = logging.getLogger(__name__)


def load_snapshot(path: Path) -> PageSnapshot:
    """Load a snapshot document (JSON or YAML).

    Args:
        path: Snapshot file with ``steps`` and optional ``hints``/``scripts``.

    Returns:
        Validated PageSnapshot.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return PageSnapshot.model_validate(data)


def print_summary(schema: FormSchema) -> None:
    stats = schema.statistics
    print("\n=== Extraction Summary ===", file=sys.stderr)
    print(f"Total Steps: {stats.total_steps}", file=sys.stderr)
    print(f"Total Fields: {stats.total_fields}", file=sys.stderr)
    for step_name, fields in schema.steps.items():
        print(f"{step_name} Fields: {len(fields)}", file=sys.stderr)
    print(f"Validation Rules: {stats.validation_rules.total}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Extract the form schema from a snapshot file."""
    parser = argparse.ArgumentParser(
        description="Synthesize the Udyam registration form schema from a page snapshot"
    )
    parser.add_argument(
        "snapshot",
        type=Path,
        help="Path to the snapshot document (JSON or YAML)"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to settings YAML file"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a summary to stderr after the document"
    )

    args = parser.parse_args(argv)

    settings = Settings.from_yaml(args.config) if args.config else Settings()
    setup_logging("DEBUG" if args.debug else settings.log_level)

    try:
        snapshot = load_snapshot(args.snapshot)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error(f"Could not read snapshot {args.snapshot}: {e}")
        return 1

    logger.info(f"Loaded snapshot with steps: {', '.join(snapshot.steps) or 'none'}")

    pipeline = ExtractionPipeline(settings)
    context = ExtractionContext(hint_provider=snapshot)
    try:
        schema = pipeline.run(snapshot.steps, context=context)
    except SchemaStructureError as e:
        logger.error(f"Malformed snapshot: {e}")
        return 1

    print(schema.to_json())

    if args.summary:
        print_summary(schema)
    return 0


if __name__ == "__main__":
    sys.exit(main())
