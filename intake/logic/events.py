"""Domain events raised by the save and submit flows.

Events are logged, kept in a bounded in-process buffer and handed to any
registered handlers. Handler failures are logged and never reach the
request that raised the event.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)

RESPONSES_SAVED = "responses.saved"
SUBMISSION_SUBMITTED = "submission.submitted"

Event = Dict[str, Any]
Handler = Callable[[Event], None]

_BUFFER_LIMIT = 500
_buffer: Deque[Event] = deque(maxlen=_BUFFER_LIMIT)
_handlers: List[Handler] = []


def subscribe(handler: Handler) -> Callable[[], None]:
    """Register an event handler; returns a callable that removes it."""
    _handlers.append(handler)

    def unsubscribe() -> None:
        if handler in _handlers:
            _handlers.remove(handler)

    return unsubscribe


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    event: Event = {
        "type": event_type,
        "payload": payload,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    _buffer.append(event)
    for handler in list(_handlers):
        try:
            handler(event)
        except Exception:
            logger.error("event_handler_failed type=%s", event_type, exc_info=True)


def get_buffered_events(clear: bool = True) -> List[Event]:
    """Return buffered events, oldest first; optionally clear the buffer."""
    events = list(_buffer)
    if clear:
        _buffer.clear()
    return events


__all__ = [
    "RESPONSES_SAVED",
    "SUBMISSION_SUBMITTED",
    "publish",
    "subscribe",
    "get_buffered_events",
]
