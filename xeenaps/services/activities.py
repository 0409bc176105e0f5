"""Activities / portfolio registry.

Metadata lives in the ``activities`` table; certificate and vault files live
on the storage nodes and are cleaned up best-effort when a record is removed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..events import ACTIVITY_DELETED, ACTIVITY_UPDATED, EventBus
from ..registry import (
    ACTIVITIES_TABLE,
    apply_sort,
    page_range,
    search_pattern,
    strip_generated,
)
from ..storage import OPTIMISTIC_PREFIX, StorageClient, StoredFile
from ..types import ActivityItem, ActivityVaultItem, Page, record_from_row, record_to_row
from ..utils import now_iso

logger = logging.getLogger(__name__)

NULLABLE_COLUMNS = (
    "organizer",
    "location",
    "certificateNumber",
    "vaultJsonId",
    "certificateFileId",
    "certificateNodeUrl",
    "storageNodeUrl",
)


def sanitize_activity_row(row: dict[str, Any]) -> dict[str, Any]:
    """Shape an upsert payload the JSONB/text columns accept."""
    payload = strip_generated(row)
    vault = payload.get("vault_items")
    payload["vault_items"] = vault if isinstance(vault, list) else []
    for key in NULLABLE_COLUMNS:
        payload[key] = payload.get(key) or None
    payload["updatedAt"] = now_iso()
    return payload


def removable_vault_files(items: list[ActivityVaultItem]) -> list[ActivityVaultItem]:
    return [
        v
        for v in items
        if v.type == "FILE"
        and v.file_id
        and v.node_url
        and not v.file_id.startswith(OPTIMISTIC_PREFIX)
    ]


class ActivityService:
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
        type: str = "All",  # noqa: A002
        sort_key: str = "startDate",
        sort_dir: str = "desc",
    ) -> Page[ActivityItem]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(ACTIVITIES_TABLE).select("*", count="exact")
            if type != "All":
                query = query.eq("type", type)
            if search:
                query = query.ilike("search_all", search_pattern(search))
            if start_date:
                query = query.gte("startDate", start_date)
            if end_date:
                query = query.lte("startDate", end_date)
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="startDate")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("activities fetch failed", exc_info=exc)
            return Page()
        rows = response.data or []
        return Page(
            items=[record_from_row(ActivityItem, row) for row in rows],
            total_count=response.count or 0,
        )

    def fetch_by_id(self, activity_id: str) -> ActivityItem | None:
        if self.registry is None:
            return None
        try:
            response = (
                self.registry.table(ACTIVITIES_TABLE)
                .select("*")
                .eq("id", activity_id)
                .single()
                .execute()
            )
        except Exception:
            return None
        if not response.data:
            return None
        return record_from_row(ActivityItem, response.data)

    def save(self, item: ActivityItem) -> bool:
        self.events.publish(ACTIVITY_UPDATED, item)
        if self.registry is None:
            return False
        payload = sanitize_activity_row(record_to_row(item))
        try:
            self.registry.table(ACTIVITIES_TABLE).upsert(payload, on_conflict="id").execute()
        except Exception as exc:
            logger.exception("activity upsert failed", extra={"activity_id": item.id}, exc_info=exc)
            return False
        return True

    def delete(self, activity_id: str) -> bool:
        self.events.publish(ACTIVITY_DELETED, activity_id)
        if self.registry is None:
            return False
        try:
            item = self.fetch_by_id(activity_id)
            if item is not None:
                self._cleanup_files(item)
            self.registry.table(ACTIVITIES_TABLE).delete().eq("id", activity_id).execute()
        except Exception as exc:
            logger.exception(
                "activity delete failed", extra={"activity_id": activity_id}, exc_info=exc
            )
            return False
        return True

    def _cleanup_files(self, item: ActivityItem) -> None:
        # best-effort; outcomes ignored
        if item.certificate_file_id and item.certificate_node_url:
            self.storage.delete_remote_file(item.certificate_file_id, item.certificate_node_url)
        for vault_item in removable_vault_files(item.vault_items):
            self.storage.delete_remote_file(vault_item.file_id, vault_item.node_url)

    def upload_vault_file(self, path: Path | str) -> StoredFile | None:
        return self.storage.upload_vault_file(path)

    def attach_vault_file(
        self,
        item: ActivityItem,
        stored: StoredFile,
        *,
        label: str,
        mime_type: str = "",
    ) -> ActivityItem:
        item.vault_items.append(
            ActivityVaultItem(
                type="FILE",
                label=label,
                file_id=stored.file_id,
                node_url=stored.node_url,
                mime_type=mime_type,
            )
        )
        item.updated_at = now_iso()
        return item
