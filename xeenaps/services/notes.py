from __future__ import annotations

import logging
from typing import Any

from ..events import NOTE_DELETED, NOTE_UPDATED, EventBus
from ..registry import (
    INDEPENDENT_COLLECTION,
    NOTES_TABLE,
    apply_sort,
    page_range,
    search_pattern,
    strip_generated,
)
from ..types import NoteItem, Page, record_from_row, record_to_row

logger = logging.getLogger(__name__)


class NoteService:
    """Notebook registry. Note bodies stay on the storage nodes."""

    def __init__(self, registry: Any, events: EventBus | None = None) -> None:
        self.registry = registry
        self.events = events or EventBus()

    def fetch_paginated(
        self,
        page: int = 1,
        limit: int = 25,
        search: str = "",
        collection_id: str = "",
        sort_key: str = "createdAt",
        sort_dir: str = "desc",
    ) -> Page[NoteItem]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(NOTES_TABLE).select("*", count="exact")
            if collection_id == INDEPENDENT_COLLECTION:
                query = query.or_('collectionId.is.null,collectionId.eq.""')
            elif collection_id:
                query = query.eq("collectionId", collection_id)
            if search:
                query = query.ilike("search_all", search_pattern(search))
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="createdAt")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("notes fetch failed", exc_info=exc)
            return Page()
        return Page(
            items=[record_from_row(NoteItem, row) for row in response.data or []],
            total_count=response.count or 0,
        )

    def save(self, item: NoteItem) -> bool:
        self.events.publish(NOTE_UPDATED, item)
        if self.registry is None:
            return False
        try:
            self.registry.table(NOTES_TABLE).upsert(strip_generated(record_to_row(item))).execute()
        except Exception as exc:
            logger.exception("note upsert failed", extra={"note_id": item.id}, exc_info=exc)
            return False
        return True

    def delete(self, note_id: str) -> bool:
        self.events.publish(NOTE_DELETED, note_id)
        if self.registry is None:
            return False
        try:
            self.registry.table(NOTES_TABLE).delete().eq("id", note_id).execute()
        except Exception as exc:
            logger.exception("note delete failed", extra={"note_id": note_id}, exc_info=exc)
            return False
        return True
