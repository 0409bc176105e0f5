from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final

logger = logging.getLogger(__name__)

ACTIVITY_UPDATED: Final = "xeenaps-activity-updated"
ACTIVITY_DELETED: Final = "xeenaps-activity-deleted"
TEACHING_UPDATED: Final = "xeenaps-teaching-updated"
TEACHING_DELETED: Final = "xeenaps-teaching-deleted"
BRAINSTORMING_UPDATED: Final = "xeenaps-brainstorming-updated"
BRAINSTORMING_DELETED: Final = "xeenaps-brainstorming-deleted"
TRACER_UPDATED: Final = "xeenaps-tracer-updated"
TRACER_DELETED: Final = "xeenaps-tracer-deleted"
NOTE_UPDATED: Final = "xeenaps-note-updated"
NOTE_DELETED: Final = "xeenaps-note-deleted"

KNOWN_EVENTS: Final[tuple[str, ...]] = (
    ACTIVITY_UPDATED,
    ACTIVITY_DELETED,
    TEACHING_UPDATED,
    TEACHING_DELETED,
    BRAINSTORMING_UPDATED,
    BRAINSTORMING_DELETED,
    TRACER_UPDATED,
    TRACER_DELETED,
    NOTE_UPDATED,
    NOTE_DELETED,
)


@dataclass(frozen=True)
class Event:
    name: str
    # the saved record for *-updated events, the id for *-deleted events
    detail: Any


Handler = Callable[[Event], None]


class EventBus:
    """Synchronous in-process pub/sub used for optimistic refresh between views."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        if name not in KNOWN_EVENTS:
            raise ValueError(f"Unknown event '{name}'. Known events: {', '.join(KNOWN_EVENTS)}")
        self._handlers[name].append(handler)

        def _unsubscribe() -> None:
            try:
                self._handlers[name].remove(handler)
            except ValueError:
                return

        return _unsubscribe

    def publish(self, name: str, detail: Any) -> Event:
        event = Event(name=name, detail=detail)
        for handler in list(self._handlers.get(name, ())):
            try:
                handler(event)
            except Exception as exc:
                logger.exception("event handler failed", extra={"event": name}, exc_info=exc)
        return event

    def handler_count(self, name: str) -> int:
        return len(self._handlers.get(name, ()))
