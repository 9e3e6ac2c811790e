"""
Runtime module: Structured trace events.
"""

from idbe.runtime.trace import (
    EventKind,
    EventSink,
    TraceEvent,
    RecordingSink,
    LoggingSink,
)

__all__ = [
    "EventKind",
    "EventSink",
    "TraceEvent",
    "RecordingSink",
    "LoggingSink",
]
