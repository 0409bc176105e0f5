from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..ai import AiClient
from ..config import XeenapsConfig
from ..events import EventBus
from ..registry import create_registry
from ..storage import StorageClient
from .activities import ActivityService
from .brainstorming import BrainstormingService
from .gap_finder import GapFinder
from .library import LibraryService
from .notes import NoteService
from .teaching import TeachingService
from .tracer import TracerService

__all__ = [
    "ActivityService",
    "BrainstormingService",
    "GapFinder",
    "LibraryService",
    "NoteService",
    "Services",
    "TeachingService",
    "TracerService",
    "build_services",
]


@dataclass
class Services:
    config: XeenapsConfig
    events: EventBus
    storage: StorageClient
    ai: AiClient
    activities: ActivityService
    teaching: TeachingService
    notes: NoteService
    library: LibraryService
    brainstorming: BrainstormingService
    tracer: TracerService
    gap_finder: GapFinder


def build_services(
    config: XeenapsConfig,
    *,
    registry: Any = None,
    storage: StorageClient | None = None,
    ai: AiClient | None = None,
    events: EventBus | None = None,
) -> Services:
    """Wire every service against one registry client, storage client and event bus."""
    events = events or EventBus()
    storage = storage or StorageClient.from_config(config)
    ai = ai or AiClient(config, storage)
    if registry is None:
        registry = create_registry(config)
    library = LibraryService(registry)
    return Services(
        config=config,
        events=events,
        storage=storage,
        ai=ai,
        activities=ActivityService(registry, storage, events),
        teaching=TeachingService(registry, storage, events),
        notes=NoteService(registry, events),
        library=library,
        brainstorming=BrainstormingService(registry, storage, ai, library, events),
        tracer=TracerService(registry, storage, ai, events),
        gap_finder=GapFinder(storage, ai),
    )
