"""Access to the hosted metadata registry (Supabase / PostgREST).

Filtering, search, sorting and counting are all done server side; this module
only builds the client and the small bits of arithmetic the query builder
needs.
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client, create_client

from .config import XeenapsConfig

logger = logging.getLogger(__name__)

ACTIVITIES_TABLE = "activities"
TEACHING_TABLE = "teaching"
NOTES_TABLE = "notes"
LIBRARY_TABLE = "library_items"
BRAINSTORMING_TABLE = "brainstorming"
TRACER_PROJECTS_TABLE = "tracer_projects"
TRACER_LOGS_TABLE = "tracer_logs"
TRACER_REFERENCES_TABLE = "tracer_references"
TRACER_TODOS_TABLE = "tracer_todos"
TRACER_FINANCE_TABLE = "tracer_finance"
RESEARCH_SOURCES_TABLE = "research_sources"

SEARCH_COLUMN = "search_all"
INDEPENDENT_COLLECTION = "__INDEPENDENT__"


def create_registry(config: XeenapsConfig) -> Client | None:
    if not config.supabase_url or not config.supabase_key:
        logger.warning("registry: missing supabase url or key")
        return None
    try:
        return create_client(config.supabase_url, config.supabase_key)
    except Exception as exc:
        logger.exception("registry: client init failed", exc_info=exc)
        return None


def page_range(page: int, limit: int) -> tuple[int, int]:
    page = max(1, int(page))
    limit = max(1, int(limit))
    start = (page - 1) * limit
    return start, start + limit - 1


def search_pattern(text: str) -> str:
    return f"%{text.lower()}%"


def strip_generated(row: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in row.items() if k != SEARCH_COLUMN}


def apply_sort(query: Any, sort_key: str, sort_dir: str, *, favorite_fallback: str) -> Any:
    """Order a query. ``isFavorite`` floats favourites first, then newest by
    ``favorite_fallback``."""
    if sort_key == "isFavorite":
        return query.order("isFavorite", desc=True).order(favorite_fallback, desc=True)
    return query.order(sort_key, desc=sort_dir != "asc")
