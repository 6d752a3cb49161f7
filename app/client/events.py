"""Structured operation events for the client core.

Every network-bound operation reports its name, outcome, duration and a
correlation id to a sink. The default sink writes to the standard logging
tree; tests and embedders can swap in their own.
"""

import logging
import time
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("idea_saver.events")


@dataclass
class OperationEvent:
    operation: str
    outcome: str  # "success" or "failure"
    duration_ms: float
    correlation_id: str
    fields: dict[str, Any] = field(default_factory=dict)


EventSink = Callable[[OperationEvent], None]


def logging_sink(event: OperationEvent) -> None:
    level = logging.INFO if event.outcome == "success" else logging.WARNING
    logger.log(
        level,
        "%s %s (%.0fms) [%s] %s",
        event.operation,
        event.outcome,
        event.duration_ms,
        event.correlation_id,
        event.fields,
    )


class EventEmitter:
    """Fans operation events out to the configured sinks."""

    def __init__(self, sinks: list[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else [logging_sink]

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: OperationEvent) -> None:
        for sink in self._sinks:
            try:
                sink(event)
            except Exception:
                logger.exception("Event sink failed for %s", event.operation)

    @asynccontextmanager
    async def operation(self, name: str, **fields: Any) -> AsyncIterator[dict[str, Any]]:
        """Time a block and emit one event for it.

        The yielded dict can be filled with extra fields while the block runs;
        setting ``failed`` marks a handled failure. Exceptions propagate after
        the failure event is emitted.
        """
        correlation_id = uuid.uuid4().hex[:12]
        extra: dict[str, Any] = dict(fields)
        start = time.perf_counter()
        try:
            yield extra
        except BaseException as e:
            extra["error"] = str(e) or type(e).__name__
            self.emit(OperationEvent(name, "failure", (time.perf_counter() - start) * 1000, correlation_id, extra))
            raise
        outcome = "failure" if extra.pop("failed", False) else "success"
        self.emit(OperationEvent(name, outcome, (time.perf_counter() - start) * 1000, correlation_id, extra))
