"""Extraction pipeline: normalize, infer rules, synthesize.

Attribute hints are fetched from the page collaborator through a bounded
thread pool with a per-field timeout. Any failure to obtain hints only
disables the attribute stage of rule inference for that field.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Mapping, Optional, Protocol, Sequence

from .core.config import Settings
from .extractor.models import AttributeHints, NormalizedField
from .extractor.normalizer import FieldNormalizer, RawInput
from .extractor.rules import FieldResult, ValidationRuleInferencer
from .feedback.failure_logger import FailureLogger
from .schema.models import FormSchema
from .schema.synthesizer import SchemaSynthesizer

logger = logging.getLogger(__name__)


class HintProvider(Protocol):
    """Page-side source of live validation attributes.

    Lookups run on pool threads and are abandoned after the configured
    timeout, but a worker stuck inside a call that never returns is still
    joined when the interpreter exits. Implementations must eventually
    return or raise.
    """

    def get_attribute_hints(self, identifier: str, name: str) -> Optional[AttributeHints]:
        ...

    def get_script_sources(self) -> list[str]:
        ...


class ExtractionAborted(RuntimeError):
    """Raised when the caller aborts a run while hint lookups are pending."""


class ExtractionContext:
    """State scoped to a single extraction run.

    Holds the hint provider, the memoized lookups, the abort flag and the
    failure log. Create one per run.
    """

    def __init__(
        self,
        hint_provider: Optional[HintProvider] = None,
        failures: Optional[FailureLogger] = None,
    ) -> None:
        self.hint_provider = hint_provider
        self.failures = failures or FailureLogger()
        self._hint_cache: dict[tuple[str, str], Optional[AttributeHints]] = {}
        self._cache_lock = threading.Lock()
        self._scripts: Optional[list[str]] = None
        self._aborted = threading.Event()

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()

    def abort(self) -> None:
        """Abandon the remaining hint lookups of this run."""
        logger.warning("Extraction aborted, abandoning pending hint lookups")
        self._aborted.set()

    def lookup_hints(self, identifier: str, name: str) -> Optional[AttributeHints]:
        """Fetch attribute hints, memoized per (identifier, name).

        Exceptions from the provider propagate and are not cached.
        """
        if self.hint_provider is None or self.aborted:
            return None

        key = (identifier, name)
        with self._cache_lock:
            if key in self._hint_cache:
                return self._hint_cache[key]

        hints = self.hint_provider.get_attribute_hints(identifier, name)
        with self._cache_lock:
            self._hint_cache[key] = hints
        return hints

    def script_sources(self, step_name: str = "") -> list[str]:
        """Inline script texts of the page, fetched once per run."""
        if self._scripts is not None:
            return self._scripts
        if self.hint_provider is None:
            self._scripts = []
            return self._scripts

        try:
            self._scripts = list(self.hint_provider.get_script_sources() or [])
        except Exception as e:
            logger.warning(f"Failed to read script sources: {e}")
            self.failures.record(step_name, "", "script_scan", error=str(e))
            self._scripts = []
        return self._scripts


class ExtractionPipeline:
    """Runs normalization, rule inference and synthesis over step snapshots."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        normalizer: Optional[FieldNormalizer] = None,
        inferencer: Optional[ValidationRuleInferencer] = None,
        synthesizer: Optional[SchemaSynthesizer] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._config = self._settings.extraction
        self._normalizer = normalizer or FieldNormalizer(self._config)
        self._inferencer = inferencer or ValidationRuleInferencer()
        self._synthesizer = synthesizer or SchemaSynthesizer(self._settings.synthesis)

    def run(
        self,
        step_elements: Mapping[str, Sequence[RawInput]],
        hint_provider: Optional[HintProvider] = None,
        context: Optional[ExtractionContext] = None,
    ) -> FormSchema:
        """Extract every step and synthesize the schema.

        Args:
            step_elements: Raw elements per step name.
            hint_provider: Source of live attribute hints, if any.
            context: Run context; a fresh one is created when omitted.

        Returns:
            Synthesized FormSchema.

        Raises:
            SchemaStructureError: If the step map is malformed.
            ExtractionAborted: If the context is aborted mid-run.
        """
        self._synthesizer.validate_step_map(step_elements)

        context = context or ExtractionContext(hint_provider)
        step_fields = {
            step_name: self.process_step(elements, step_name, context)
            for step_name, elements in step_elements.items()
        }
        schema = self._synthesizer.synthesize(step_fields)

        if context.failures.count():
            logger.warning(f"Extraction completed with degraded fields: {context.failures.summary()}")
        return schema

    def process_step(
        self,
        raw_elements: Sequence[RawInput],
        step_name: str,
        context: ExtractionContext,
    ) -> list[NormalizedField]:
        """Normalize and annotate the fields of one step."""
        fields = self._normalizer.normalize(raw_elements, step_name)
        hints = self._collect_hints(fields, step_name, context)

        scripts: list[str] = []
        if any(h is None for h in hints):
            scripts = context.script_sources(step_name)

        annotated = []
        for field, field_hints in zip(fields, hints):
            result = self._annotate(field, field_hints, scripts, step_name, context)
            annotated.append(result.field)

        logger.info(f"Extracted {len(annotated)} fields from {step_name}")
        return annotated

    def _annotate(
        self,
        field: NormalizedField,
        hints: Optional[AttributeHints],
        scripts: list[str],
        step_name: str,
        context: ExtractionContext,
    ) -> FieldResult:
        try:
            result = self._inferencer.annotate(field, hints, scripts)
        except Exception as e:
            logger.error(f"Unexpected error processing field {field.id or field.name}: {e}")
            context.failures.record(step_name, field.id or field.name, "field_processing", error=str(e))
            fallback = field.model_copy(
                update={"validation_rules": self._inferencer.minimal_rules(field)}
            )
            return FieldResult(field=fallback, error=str(e))

        if result.error is not None:
            context.failures.record(
                step_name, field.id or field.name, "rule_inference", error=result.error
            )
        return result

    def _collect_hints(
        self,
        fields: list[NormalizedField],
        step_name: str,
        context: ExtractionContext,
    ) -> list[Optional[AttributeHints]]:
        if context.hint_provider is None or not fields:
            return [None] * len(fields)

        hints: list[Optional[AttributeHints]] = [None] * len(fields)
        executor = ThreadPoolExecutor(max_workers=self._config.hint_workers)
        try:
            futures: list[Future[Any]] = [
                executor.submit(context.lookup_hints, f.source_id or f.id, f.source_name or f.name)
                for f in fields
            ]
            for index, (field, future) in enumerate(zip(fields, futures)):
                if context.aborted:
                    raise ExtractionAborted(f"Extraction aborted during {step_name}")
                hints[index] = self._await_hints(field, future, step_name, context)
            if context.aborted:
                raise ExtractionAborted(f"Extraction aborted during {step_name}")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return hints

    def _await_hints(
        self,
        field: NormalizedField,
        future: "Future[Any]",
        step_name: str,
        context: ExtractionContext,
    ) -> Optional[AttributeHints]:
        field_id = field.id or field.name
        try:
            return future.result(timeout=self._config.hint_timeout)
        except FutureTimeout:
            logger.warning(f"Hint lookup timed out for {field_id}")
            context.failures.record(
                step_name, field_id, "hint_timeout", timeout=self._config.hint_timeout
            )
        except Exception as e:
            logger.warning(f"Hint lookup failed for {field_id}: {e}")
            context.failures.record(step_name, field_id, "hint_lookup", error=str(e))
        return None
