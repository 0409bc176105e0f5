"""Research Tracer: projects plus their journal, references, todos, finance
ledger and audited sources.

Sub-records are keyed by ``projectId``. Journal bodies, reference notes and
finance attachments are JSON files on the storage nodes; the registry rows
only carry the file id and node url.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, TypeVar

from ..ai import AiClient
from ..events import TRACER_DELETED, TRACER_UPDATED, EventBus
from ..prompts import RefineMode, refine_context
from ..registry import (
    RESEARCH_SOURCES_TABLE,
    TRACER_FINANCE_TABLE,
    TRACER_LOGS_TABLE,
    TRACER_PROJECTS_TABLE,
    TRACER_REFERENCES_TABLE,
    TRACER_TODOS_TABLE,
    apply_sort,
    page_range,
    search_pattern,
    strip_generated,
)
from ..storage import StorageClient
from ..types import (
    Page,
    ResearchSource,
    TracerFinanceItem,
    TracerLog,
    TracerLogContent,
    TracerProject,
    TracerReference,
    TracerTodo,
    record_from_row,
    record_to_row,
)
from ..utils import now_iso, sort_key_timestamp
from .writing import WritingAssistant

logger = logging.getLogger(__name__)

R = TypeVar("R")

# (table, file id column, node url column) for sub-records that own a stored file
_FILE_BACKED_CHILDREN = (
    (TRACER_LOGS_TABLE, "logJsonId", "storageNodeUrl"),
    (TRACER_REFERENCES_TABLE, "contentJsonId", "storageNodeUrl"),
    (TRACER_FINANCE_TABLE, "attachmentsJsonId", "storageNodeUrl"),
)
_PLAIN_CHILDREN = (TRACER_TODOS_TABLE, RESEARCH_SOURCES_TABLE)


def tracer_context(project: TracerProject) -> dict[str, str]:
    return refine_context(
        title=project.title,
        problem=project.problem_statement,
        gap=project.research_gap,
        question=project.research_question,
        methodology=project.methodology,
        population=project.population,
    )


def running_balances(items: list[TracerFinanceItem]) -> list[TracerFinanceItem]:
    """Return the ledger in chronological order with ``balance`` recomputed."""
    ordered = sorted(items, key=lambda f: (f.date, sort_key_timestamp(f.created_at)))
    balance = 0.0
    result: list[TracerFinanceItem] = []
    for entry in ordered:
        balance += (entry.credit or 0.0) - (entry.debit or 0.0)
        result.append(replace(entry, balance=round(balance, 2)))
    return result


class TracerService:
    def __init__(
        self,
        registry: Any,
        storage: StorageClient,
        ai: AiClient,
        events: EventBus | None = None,
    ) -> None:
        self.registry = registry
        self.storage = storage
        self.writer = WritingAssistant(ai)
        self.events = events or EventBus()

    # projects

    def fetch_projects(
        self,
        page: int = 1,
        limit: int = 25,
        search: str = "",
        sort_key: str = "createdAt",
        sort_dir: str = "desc",
    ) -> Page[TracerProject]:
        if self.registry is None:
            return Page()
        try:
            query = self.registry.table(TRACER_PROJECTS_TABLE).select("*", count="exact")
            if search:
                query = query.ilike("search_all", search_pattern(search))
            query = apply_sort(query, sort_key, sort_dir, favorite_fallback="createdAt")
            start, end = page_range(page, limit)
            response = query.range(start, end).execute()
        except Exception as exc:
            logger.exception("tracer projects fetch failed", exc_info=exc)
            return Page()
        return Page(
            items=[record_from_row(TracerProject, row) for row in response.data or []],
            total_count=response.count or 0,
        )

    def fetch_project_row(self, project_id: str) -> dict[str, Any] | None:
        """Return the raw registry row, before list columns are normalised."""
        if self.registry is None:
            return None
        try:
            response = (
                self.registry.table(TRACER_PROJECTS_TABLE)
                .select("*")
                .eq("id", project_id)
                .single()
                .execute()
            )
        except Exception:
            return None
        return response.data or None

    def fetch_project(self, project_id: str) -> TracerProject | None:
        row = self.fetch_project_row(project_id)
        return record_from_row(TracerProject, row) if row else None

    def save_project(self, project: TracerProject) -> bool:
        self.events.publish(TRACER_UPDATED, project)
        return self._upsert(TRACER_PROJECTS_TABLE, project)

    def delete_project(self, project_id: str) -> bool:
        self.events.publish(TRACER_DELETED, project_id)
        if self.registry is None:
            return False
        try:
            for table, file_column, node_column in _FILE_BACKED_CHILDREN:
                rows = self._rows_for_project(table, project_id)
                for row in rows:
                    file_id = row.get(file_column)
                    node_url = row.get(node_column)
                    if file_id and node_url:
                        self.storage.delete_remote_file(file_id, node_url)
                self.registry.table(table).delete().eq("projectId", project_id).execute()
            for table in _PLAIN_CHILDREN:
                self.registry.table(table).delete().eq("projectId", project_id).execute()
            self.registry.table(TRACER_PROJECTS_TABLE).delete().eq("id", project_id).execute()
        except Exception as exc:
            logger.exception(
                "tracer project delete failed", extra={"project_id": project_id}, exc_info=exc
            )
            return False
        return True

    # journal

    def fetch_logs(self, project_id: str) -> list[TracerLog]:
        return self._fetch_children(TRACER_LOGS_TABLE, TracerLog, project_id)

    def fetch_log_content(self, log: TracerLog) -> TracerLogContent | None:
        if not log.log_json_id:
            return None
        data = self.storage.fetch_file_content(log.log_json_id, log.storage_node_url or None)
        return record_from_row(TracerLogContent, data) if data is not None else None

    def save_log(self, log: TracerLog, content: TracerLogContent) -> bool:
        stored = self.storage.save_json_file(
            record_to_row(content),
            file_id=log.log_json_id or None,
            node_url=log.storage_node_url or None,
        )
        if stored is None:
            logger.warning("tracer log content store failed", extra={"log_id": log.id})
            return False
        log.log_json_id = stored.file_id
        log.storage_node_url = stored.node_url
        log.updated_at = now_iso()
        return self._upsert(TRACER_LOGS_TABLE, log)

    def delete_log(self, log_id: str) -> bool:
        if self.registry is None:
            return False
        try:
            response = (
                self.registry.table(TRACER_LOGS_TABLE).select("*").eq("id", log_id).execute()
            )
            for row in response.data or []:
                if row.get("logJsonId") and row.get("storageNodeUrl"):
                    self.storage.delete_remote_file(row["logJsonId"], row["storageNodeUrl"])
            self.registry.table(TRACER_LOGS_TABLE).delete().eq("id", log_id).execute()
        except Exception as exc:
            logger.exception("tracer log delete failed", extra={"log_id": log_id}, exc_info=exc)
            return False
        return True

    # references, todos, finance, sources

    def fetch_references(self, project_id: str) -> list[TracerReference]:
        return self._fetch_children(TRACER_REFERENCES_TABLE, TracerReference, project_id)

    def save_reference(self, reference: TracerReference) -> bool:
        reference.updated_at = now_iso()
        return self._upsert(TRACER_REFERENCES_TABLE, reference)

    def fetch_todos(self, project_id: str) -> list[TracerTodo]:
        return self._fetch_children(TRACER_TODOS_TABLE, TracerTodo, project_id)

    def save_todo(self, todo: TracerTodo) -> bool:
        todo.updated_at = now_iso()
        return self._upsert(TRACER_TODOS_TABLE, todo)

    def delete_todo(self, todo_id: str) -> bool:
        return self._delete_row(TRACER_TODOS_TABLE, todo_id)

    def fetch_finance(self, project_id: str) -> list[TracerFinanceItem]:
        return self._fetch_children(TRACER_FINANCE_TABLE, TracerFinanceItem, project_id)

    def save_finance(self, item: TracerFinanceItem) -> bool:
        item.updated_at = now_iso()
        return self._upsert(TRACER_FINANCE_TABLE, item)

    def delete_finance(self, item_id: str) -> bool:
        return self._delete_row(TRACER_FINANCE_TABLE, item_id)

    def fetch_sources(self, project_id: str) -> list[ResearchSource]:
        return self._fetch_children(RESEARCH_SOURCES_TABLE, ResearchSource, project_id)

    def save_source(self, source: ResearchSource) -> bool:
        return self._upsert(RESEARCH_SOURCES_TABLE, source)

    # co-pilot

    def refine_field(
        self,
        field_name: str,
        current_value: str,
        context: TracerProject,
        mode: RefineMode | str,
    ) -> str | None:
        return self.writer.refine(field_name, current_value, tracer_context(context), mode)

    def translate_field(self, text: str, target_lang: str) -> str | None:
        return self.writer.translate(text, target_lang)

    # helpers

    def _rows_for_project(self, table: str, project_id: str) -> list[dict[str, Any]]:
        response = (
            self.registry.table(table)
            .select("*")
            .eq("projectId", project_id)
            .order("createdAt", desc=True)
            .execute()
        )
        return list(response.data or [])

    def _fetch_children(self, table: str, cls: type[R], project_id: str) -> list[R]:
        if self.registry is None:
            return []
        try:
            rows = self._rows_for_project(table, project_id)
        except Exception as exc:
            logger.exception(
                "tracer fetch failed",
                extra={"table": table, "project_id": project_id},
                exc_info=exc,
            )
            return []
        return [record_from_row(cls, row) for row in rows]

    def _upsert(self, table: str, record: Any) -> bool:
        if self.registry is None:
            return False
        try:
            self.registry.table(table).upsert(
                strip_generated(record_to_row(record)), on_conflict="id"
            ).execute()
        except Exception as exc:
            logger.exception(
                "tracer upsert failed", extra={"table": table, "record_id": record.id}, exc_info=exc
            )
            return False
        return True

    def _delete_row(self, table: str, row_id: str) -> bool:
        if self.registry is None:
            return False
        try:
            self.registry.table(table).delete().eq("id", row_id).execute()
        except Exception as exc:
            logger.exception(
                "tracer delete failed", extra={"table": table, "record_id": row_id}, exc_info=exc
            )
            return False
        return True
