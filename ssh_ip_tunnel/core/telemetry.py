"""
Telemetry for one tunnel run

Events mark lifecycle transitions (tunnel.spawned, tunnel.validated,
tunnel.closed, ...); metrics carry numbers such as attempt counts. Both are kept
in memory on the collector handed to the orchestrator, and mirrored to the
debug log as they are recorded.
"""
from collections import Counter
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import time

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Lifecycle event with free-form metadata"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


class Telemetry:
    """In-memory event and metric collector"""

    def __init__(self):
        self._metrics: list[Metric] = []
        self._events: list[Event] = []

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        self._metrics.append(Metric(name=name, value=value, tags=tags or {}))
        logger.debug(f"metric {name}={value:g}")

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._events.append(Event(name=name, metadata=metadata or {}))
        logger.debug(f"event {name} {metadata or ''}".rstrip())

    def get_metrics(self, name: Optional[str] = None) -> list[Metric]:
        """Recorded metrics, optionally only those called name"""
        return [m for m in self._metrics if name is None or m.name == name]

    def get_events(self, name: Optional[str] = None) -> list[Event]:
        """Recorded events in order, optionally only those called name"""
        return [e for e in self._events if name is None or e.name == name]

    def event_names(self) -> list[str]:
        return [event.name for event in self._events]

    def summary(self) -> Dict[str, Any]:
        """
        Condensed view for the end-of-run log line.

        Returns:
            {"events": {name: count}, "metrics": {name: latest value}, "duration": seconds}
        """
        duration = 0.0
        if self._events:
            duration = self._events[-1].timestamp - self._events[0].timestamp
        return {
            "events": dict(Counter(self.event_names())),
            "metrics": {m.name: m.value for m in self._metrics},
            "duration": round(duration, 3),
        }
