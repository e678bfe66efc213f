"""
Stage-level diagnostic events emitted while a receipt is being extracted.

Callers that want to see why a candidate was accepted or rejected pass a
callable to extract_receipt_data(trace=...). Every event is also written to
the loguru DEBUG stream, so nothing is lost when no callback is given.
"""

import json
from dataclasses import dataclass, asdict, field
from typing import Any, Callable, Optional
from loguru import logger


@dataclass
class ExtractionTraceEvent:
    """
    One decision made by an extraction stage.

    stage is one of: normalize, merchant, total, subtotal, tax, date,
    reconcile, items, validate, fallback, result.
    """

    stage: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


TraceCallback = Callable[[ExtractionTraceEvent], None]


class Tracer:
    """
    Fans trace events out to loguru and to an optional caller callback.

    Usage:
        events = []
        extract_receipt_data(text, trace=events.append)
    """

    def __init__(self, callback: Optional[TraceCallback] = None):
        self.callback = callback

    def emit(self, stage: str, message: str, **data) -> None:
        event = ExtractionTraceEvent(stage=stage, message=message, data=data)
        logger.bind(stage=stage, **data).debug(message)
        if self.callback is not None:
            self.callback(event)


NULL_TRACER = Tracer()
