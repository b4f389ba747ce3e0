"""Error types and per-source health tracking.

Adapters contain every backend failure themselves: nothing raised by a
collaborator reaches the query controller. What they do record is a
health trail, so the service can report which source keeps failing:
- Domain exceptions for the few errors that do surface (config, wrapping)
- Error events with severity and context
- Per-source health with error rate and state
"""

import traceback
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger


class LauncherError(Exception):
    """Base class for quicklaunch errors."""


class ConfigError(LauncherError):
    """Raised when configuration cannot be loaded or validated."""


class BackendFetchError(LauncherError):
    """A backing-store collaborator failed to produce its collection."""

    def __init__(self, source: str, cause: BaseException):
        super().__init__(f"{source} fetch failed: {cause}")
        self.source = source
        self.cause = cause


class SourceState(Enum):
    """Source health states."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILING = "failing"


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass
class ErrorEvent:
    """Represents an error event."""
    timestamp: datetime
    source: str
    error_type: str
    message: str
    severity: ErrorSeverity
    traceback: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'source': self.source,
            'error_type': self.error_type,
            'message': self.message,
            'severity': self.severity.value,
            'context': self.context
        }


@dataclass
class SourceHealth:
    """Tracks health of a single source."""
    name: str
    state: SourceState = SourceState.HEALTHY
    error_count: int = 0
    success_count: int = 0
    last_error: Optional[ErrorEvent] = None
    last_success: Optional[datetime] = None
    consecutive_failures: int = 0

    @property
    def error_rate(self) -> float:
        """Calculate error rate."""
        total = self.error_count + self.success_count
        if total == 0:
            return 0.0
        return self.error_count / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'error_count': self.error_count,
            'success_count': self.success_count,
            'consecutive_failures': self.consecutive_failures,
            'error_rate': round(self.error_rate, 3),
            'last_error': self.last_error.to_dict() if self.last_error else None,
        }


class HealthTracker:
    """
    Records success and failure per source.

    Unlike a circuit breaker this never takes a source out of rotation:
    a failed cache fill must be retried on the next query.
    """

    def __init__(self, failing_threshold: int = 3):
        self.failing_threshold = failing_threshold
        self._health: Dict[str, SourceHealth] = {}

    def get(self, source: str) -> SourceHealth:
        if source not in self._health:
            self._health[source] = SourceHealth(name=source)
        return self._health[source]

    def record_success(self, source: str) -> None:
        health = self.get(source)
        health.success_count += 1
        health.consecutive_failures = 0
        health.last_success = datetime.now()

        if health.state != SourceState.HEALTHY and health.error_rate < 0.2:
            logger.info(f"Source {source} recovered")
            health.state = SourceState.HEALTHY
        elif health.state == SourceState.FAILING:
            health.state = SourceState.DEGRADED

    def record_failure(
        self,
        source: str,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorEvent:
        health = self.get(source)
        health.error_count += 1
        health.consecutive_failures += 1

        event = ErrorEvent(
            timestamp=datetime.now(),
            source=source,
            error_type=type(error).__name__,
            message=str(error),
            severity=(
                ErrorSeverity.HIGH
                if health.consecutive_failures >= self.failing_threshold
                else ErrorSeverity.MEDIUM
            ),
            traceback=''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            context=context or {}
        )
        health.last_error = event

        if health.consecutive_failures >= self.failing_threshold:
            if health.state != SourceState.FAILING:
                logger.warning(
                    f"Source {source} failing after {health.consecutive_failures} consecutive errors"
                )
            health.state = SourceState.FAILING
        elif health.error_rate > 0.2:
            health.state = SourceState.DEGRADED

        return event

    def report(self) -> Dict[str, Dict[str, Any]]:
        """Health summary keyed by source name."""
        return {name: health.to_dict() for name, health in sorted(self._health.items())}
