"""
idbe/runtime/trace.py

Structured trace events emitted by the solver.

A sink is any callable taking a TraceEvent. The solver calls it at fixed
points of the run; numbers never depend on whether a sink is attached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class EventKind(Enum):
    """Points of the run at which events are emitted."""
    INIT = "init"
    PARTITION = "partition"
    BUCKET_START = "bucket_start"
    BUCKET_END = "bucket_end"
    ROOTS = "roots"
    POLICY = "policy"
    DONE = "done"


@dataclass(frozen=True)
class TraceEvent:
    """
    A single trace event.

    Attributes:
        kind: Where in the run the event was emitted
        var: Bucket variable, when the event concerns one bucket
        payload: Event data (handles, scopes, values, timings)
    """
    kind: EventKind
    var: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)


EventSink = Callable[[TraceEvent], None]


class RecordingSink:
    """Sink that keeps every event in memory."""

    def __init__(self):
        self.events: List[TraceEvent] = []

    def __call__(self, event: TraceEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> List[TraceEvent]:
        return [e for e in self.events if e.kind is kind]

    def __len__(self) -> int:
        return len(self.events)


class LoggingSink:
    """Sink that writes events to a logger, one line each."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("idbe.trace")
        self.level = level

    def __call__(self, event: TraceEvent) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        items = ", ".join(f"{k}={v}" for k, v in event.payload.items())
        if event.var is None:
            self.logger.log(self.level, "%s: %s", event.kind.value, items)
        else:
            self.logger.log(self.level, "%s[%d]: %s", event.kind.value, event.var, items)
