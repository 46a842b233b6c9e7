from __future__ import annotations

import json
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

FailureType = Literal[
    "hint_lookup",
    "hint_timeout",
    "script_scan",
    "rule_inference",
    "field_processing",
]


@dataclass
class ExtractionFailure:
    step_name: str
    field_id: str
    failure_type: FailureType
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class FailureLogger:
    """Collects per-field degradations of one extraction run.

    Records are kept in memory; when a log path is given they are also
    appended to it as JSON lines.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._failures: list[ExtractionFailure] = []
        self._lock = threading.Lock()

    def _serialize(self, failure: ExtractionFailure) -> str:
        return json.dumps(asdict(failure), default=str)

    def log(self, failure: ExtractionFailure) -> None:
        with self._lock:
            self._failures.append(failure)
            if self._log_path is not None:
                self._log_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._log_path, "a", encoding="utf-8") as f:
                    f.write(self._serialize(failure) + "\n")

    def record(
        self, step_name: str, field_id: str, failure_type: FailureType, **details: Any
    ) -> ExtractionFailure:
        failure = ExtractionFailure(
            step_name=step_name,
            field_id=field_id,
            failure_type=failure_type,
            details=details,
        )
        self.log(failure)
        return failure

    def read_all(self) -> list[ExtractionFailure]:
        if self._log_path is None:
            with self._lock:
                return list(self._failures)

        if not self._log_path.exists():
            return []

        failures: list[ExtractionFailure] = []
        with open(self._log_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    failures.append(ExtractionFailure(**json.loads(line)))
                except (json.JSONDecodeError, TypeError) as e:
                    logger.warning(f"Skipping malformed line {line_num}: {e}")
        return failures

    def count(self, failure_type: FailureType | None = None) -> int:
        with self._lock:
            if failure_type is None:
                return len(self._failures)
            return sum(1 for f in self._failures if f.failure_type == failure_type)

    def summary(self) -> dict[str, int]:
        with self._lock:
            return dict(Counter(f.failure_type for f in self._failures))
