from __future__ import annotations

import logging
from typing import Any

from ..events import TEACHING_DELETED, TEACHING_UPDATED, EventBus
from ..registry import TEACHING_TABLE, apply_sort, page_range, search_pattern, strip_generated
from ..storage import StorageClient
from ..types import Page, TeachingItem, record_from_row, record_to_row
from ..utils import now_iso
from .activities import removable_vault_files

logger = logging.getLogger(__name__)


class TeachingService:
    def __init__(
        self,
        registry: Any,
        storage: StorageClient,
        events: EventBus | None = None,
    ) -> None:
        self.registry = registry
        self.storage = storage
        self.events = events or EventBus()

    def fetch_paginated(
        self,
        page: int = 1,
        limit: int = 25,
        search: str = "",
        start_date: str = "",
        end_date: str = "",
        sort_key: str = "teachingDate",
        sort_dir: str = "desc",
    ) -> Page[TeachingItem]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(TEACHING_TABLE).select("*", count="exact")
            if search:
                query = query.ilike("search_all", search_pattern(search))
            if start_date:
                query = query.gte("teachingDate", start_date)
            if end_date:
                query = query.lte("teachingDate", end_date)
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="teachingDate")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("teaching fetch failed", exc_info=exc)
            return Page()
        return Page(
            items=[record_from_row(TeachingItem, row) for row in response.data or []],
            total_count=response.count or 0,
        )

    def fetch_by_id(self, teaching_id: str) -> TeachingItem | None:
        if self.registry is None:
            return None
        try:
            response = (
                self.registry.table(TEACHING_TABLE)
                .select("*")
                .eq("id", teaching_id)
                .single()
                .execute()
            )
        except Exception:
            return None
        return record_from_row(TeachingItem, response.data) if response.data else None

    def save(self, item: TeachingItem) -> bool:
        self.events.publish(TEACHING_UPDATED, item)
        if self.registry is None:
            return False
        payload = strip_generated(record_to_row(item))
        payload["updatedAt"] = now_iso()
        try:
            self.registry.table(TEACHING_TABLE).upsert(payload, on_conflict="id").execute()
        except Exception as exc:
            logger.exception("teaching upsert failed", extra={"teaching_id": item.id}, exc_info=exc)
            return False
        return True

    def delete(self, teaching_id: str) -> bool:
        self.events.publish(TEACHING_DELETED, teaching_id)
        if self.registry is None:
            return False
        try:
            item = self.fetch_by_id(teaching_id)
            if item is not None:
                for vault_item in removable_vault_files(item.vault_items):
                    self.storage.delete_remote_file(vault_item.file_id, vault_item.node_url)
            self.registry.table(TEACHING_TABLE).delete().eq("id", teaching_id).execute()
        except Exception as exc:
            logger.exception(
                "teaching delete failed", extra={"teaching_id": teaching_id}, exc_info=exc
            )
            return False
        return True
