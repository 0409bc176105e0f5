from __future__ import annotations

import logging
from typing import Any

from ..registry import LIBRARY_TABLE, apply_sort, page_range, search_pattern
from ..types import LibraryItem, Page, record_from_row

logger = logging.getLogger(__name__)


class LibraryService:
    """Read-only view of the library registry, used for recommendations and audits."""

    def __init__(self, registry: Any) -> None:
        self.registry = registry

    def fetch_paginated(
        self,
        page: int = 1,
        limit: int = 25,
        search: str = "",
        type: str = "All",  # noqa: A002
        sort_key: str = "createdAt",
        sort_dir: str = "desc",
    ) -> Page[LibraryItem]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(LIBRARY_TABLE).select("*", count="exact")
            if type != "All":
                query = query.eq("type", type)
            if search:
                query = query.ilike("search_all", search_pattern(search))
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="createdAt")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("library fetch failed", exc_info=exc)
            return Page()
        return Page(
            items=[record_from_row(LibraryItem, row) for row in response.data or []],
            total_count=response.count or 0,
        )

    def fetch_by_ids(self, ids: list[str]) -> list[LibraryItem]:
        if self.registry is None or not ids:
            return []
        try:
            response = self.registry.table(LIBRARY_TABLE).select("*").in_("id", ids).execute()
        except Exception as exc:
            logger.exception("library lookup failed", exc_info=exc)
            return []
        by_id = {row.get("id"): row for row in response.data or []}
        return [record_from_row(LibraryItem, by_id[i]) for i in ids if i in by_id]
