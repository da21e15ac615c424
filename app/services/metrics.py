"""Per-phase wall-clock tracking for pipeline runs."""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from app.errors import ErrorKind

logger = logging.getLogger("voxmail.metrics")

OPTIMAL_TOTAL_MS = 30_000
HIGH_RISK_TOTAL_MS = 45_000
MEDIUM_RISK_TOTAL_MS = 35_000


@dataclass
class PhaseMetrics:
    total_ms: float
    file_size: int
    success: bool
    error_kind: ErrorKind | None = None
    phases: dict[str, float] = field(default_factory=dict)

    @property
    def is_optimal(self) -> bool:
        return self.total_ms < OPTIMAL_TOTAL_MS

    @property
    def timeout_risk(self) -> str:
        if self.total_ms > HIGH_RISK_TOTAL_MS:
            return "high"
        if self.total_ms > MEDIUM_RISK_TOTAL_MS:
            return "medium"
        return "low"

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "totalTime": round(self.total_ms),
            "phases": {name: round(ms) for name, ms in self.phases.items()},
            "fileSize": self.file_size,
            "errorType": self.error_kind.value if self.error_kind else None,
            "isOptimal": self.is_optimal,
            "timeoutRisk": self.timeout_risk,
        }


class PhaseTracker:
    """Records elapsed milliseconds per named phase.

    Starting a phase closes the one in progress. A phase entered twice
    accumulates.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self.started_at = clock()
        self._phases: dict[str, float] = {}
        self._current: str | None = None
        self._phase_start = self.started_at

    @property
    def current_phase(self) -> str | None:
        return self._current

    def start_phase(self, name: str) -> None:
        self.end_phase()
        self._current = name
        self._phase_start = self._clock()

    def end_phase(self) -> None:
        if self._current is None:
            return
        elapsed_ms = (self._clock() - self._phase_start) * 1000
        self._phases[self._current] = self._phases.get(self._current, 0.0) + elapsed_ms
        self._current = None

    def snapshot(self, file_size: int, success: bool, error_kind: ErrorKind | None = None) -> PhaseMetrics:
        self.end_phase()
        return PhaseMetrics(
            total_ms=(self._clock() - self.started_at) * 1000,
            file_size=file_size,
            success=success,
            error_kind=error_kind,
            phases=dict(self._phases),
        )


def log_phase_metrics(metrics: PhaseMetrics) -> None:
    """Emit one JSON line per pipeline run."""
    level = logging.INFO if metrics.success else logging.WARNING
    logger.log(level, "Processing metrics: %s", json.dumps(metrics.to_dict(), sort_keys=True))
