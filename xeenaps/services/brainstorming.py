"""Idea incubation: CRUD in the registry, synthesis and abstracts via the AI
client, recommendations from the library registry and the storage endpoint."""

from __future__ import annotations

import logging
from typing import Any

from ..ai import AiClient
from ..events import BRAINSTORMING_DELETED, BRAINSTORMING_UPDATED, EventBus
from ..prompts import (
    SYNTHESIS_FIELDS,
    RefineMode,
    abstract_prompt,
    extract_json_object,
    refine_context,
    synthesis_prompt,
)
from ..registry import BRAINSTORMING_TABLE, apply_sort, page_range, search_pattern, strip_generated
from ..storage import StorageClient, is_success
from ..types import (
    BrainstormingItem,
    LibraryItem,
    Page,
    TracerProject,
    TracerStatus,
    record_from_row,
    record_to_row,
)
from ..utils import new_id, now_iso
from .library import LibraryService
from .writing import WritingAssistant

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 10
RECOMMENDATION_TYPE = "Literature"


def brainstorming_context(item: BrainstormingItem) -> dict[str, str]:
    return refine_context(
        title=item.proposed_title,
        problem=item.problem_statement,
        gap=item.research_gap,
        question=item.research_question,
        methodology=item.methodology,
        population=item.population,
    )


def apply_synthesis(item: BrainstormingItem, synthesis: dict[str, Any]) -> BrainstormingItem:
    """Copy synthesized columns onto ``item``; unknown keys are ignored."""
    partial = {k: v for k, v in synthesis.items() if k in SYNTHESIS_FIELDS}
    merged = record_from_row(BrainstormingItem, {**record_to_row(item), **partial})
    merged.updated_at = now_iso()
    return merged


class BrainstormingService:
    def __init__(
        self,
        registry: Any,
        storage: StorageClient,
        ai: AiClient,
        library: LibraryService | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.registry = registry
        self.storage = storage
        self.ai = ai
        self.writer = WritingAssistant(ai)
        self.library = library or LibraryService(registry)
        self.events = events or EventBus()

    def fetch_paginated(
        self,
        page: int = 1,
        limit: int = 25,
        search: str = "",
        sort_key: str = "createdAt",
        sort_dir: str = "desc",
    ) -> Page[BrainstormingItem]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(BRAINSTORMING_TABLE).select("*", count="exact")
            if search:
                query = query.ilike("search_all", search_pattern(search))
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="createdAt")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("brainstorming fetch failed", exc_info=exc)
            return Page()
        return Page(
            items=[record_from_row(BrainstormingItem, row) for row in response.data or []],
            total_count=response.count or 0,
        )

    def fetch_by_id(self, item_id: str) -> BrainstormingItem | None:
        if self.registry is None:
            return None
        try:
            response = (
                self.registry.table(BRAINSTORMING_TABLE)
                .select("*")
                .eq("id", item_id)
                .single()
                .execute()
            )
        except Exception:
            return None
        return record_from_row(BrainstormingItem, response.data) if response.data else None

    def save(self, item: BrainstormingItem) -> bool:
        self.events.publish(BRAINSTORMING_UPDATED, item)
        if self.registry is None:
            return False
        payload = strip_generated(record_to_row(item))
        try:
            self.registry.table(BRAINSTORMING_TABLE).upsert(payload, on_conflict="id").execute()
        except Exception as exc:
            logger.exception(
                "brainstorming upsert failed", extra={"item_id": item.id}, exc_info=exc
            )
            return False
        return True

    def delete(self, item_id: str) -> bool:
        self.events.publish(BRAINSTORMING_DELETED, item_id)
        if self.registry is None:
            return False
        try:
            self.registry.table(BRAINSTORMING_TABLE).delete().eq("id", item_id).execute()
        except Exception as exc:
            logger.exception(
                "brainstorming delete failed", extra={"item_id": item_id}, exc_info=exc
            )
            return False
        return True

    def translate_field(self, text: str, target_lang: str) -> str | None:
        return self.writer.translate(text, target_lang)

    def refine_field(
        self,
        field_name: str,
        current_value: str,
        context: BrainstormingItem,
        mode: RefineMode | str,
    ) -> str | None:
        return self.writer.refine(field_name, current_value, brainstorming_context(context), mode)

    def synthesize_rough_idea(self, rough_idea: str) -> dict[str, Any] | None:
        response = self.ai.generate(synthesis_prompt(rough_idea))
        data = extract_json_object(response)
        if data is None:
            logger.warning("idea synthesis returned no json object")
        return data

    def generate_abstract(self, item: BrainstormingItem) -> str | None:
        response = self.ai.generate(abstract_prompt(item))
        return response.strip() if response else None

    def external_recommendations(self, item: BrainstormingItem) -> list[str]:
        result = self.storage.post_action(
            "getBrainstormingRecommendations",
            keywords=item.keywords,
            title=item.proposed_title,
        )
        if result is None or not is_success(result):
            return []
        external = result.get("external") or []
        return [str(x) for x in external] if isinstance(external, list) else []

    def internal_recommendations(self, item: BrainstormingItem) -> list[LibraryItem]:
        # first keyword, else the title
        query = item.keywords[0] if item.keywords else (item.proposed_title or "")
        if not query:
            return []
        page = self.library.fetch_paginated(
            1, RECOMMENDATION_LIMIT, query, type=RECOMMENDATION_TYPE
        )
        return [
            lib
            for lib in page.items
            if lib.title and lib.title.strip() and lib.title != "Untitled" and lib.id != item.id
        ]

    def translate_all_fields(
        self, item: BrainstormingItem, target_lang: str
    ) -> dict[str, Any] | None:
        result = self.storage.post_action(
            "translateBrainstorming",
            data=record_to_row(item),
            targetLang=target_lang,
        )
        if result is None or not is_success(result):
            return None
        data = result.get("data")
        return data if isinstance(data, dict) else None

    def promote_to_tracer(
        self, item: BrainstormingItem, *, authors: list[str] | None = None
    ) -> TracerProject:
        created = now_iso()
        return TracerProject(
            id=new_id(),
            label=item.label or item.proposed_title,
            title=item.proposed_title,
            topic=item.label,
            problem_statement=item.problem_statement,
            research_gap=item.research_gap,
            research_question=item.research_question,
            methodology=item.methodology,
            population=item.population,
            keywords=list(item.keywords),
            authors=list(authors or []),
            status=TracerStatus.IDEA.value,
            progress=0,
            start_date=created[:10],
            created_at=created,
            updated_at=created,
        )
