"""Working state for one open Tracer project.

Holds what the detail view needs between user actions: the loaded project
and its sub-records, a dirty flag with a saved snapshot for discard, and a
cache of journal bodies keyed by log id.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Any

from .notify import Notifier
from .services.gap_finder import GapFinder
from .services.tracer import TracerService
from .types import (
    LibraryItem,
    ResearchSource,
    TracerLog,
    TracerLogContent,
    TracerProject,
    TracerReference,
    TracerTodo,
    record_from_row,
)
from .utils import new_id, now_iso, sort_key_timestamp

logger = logging.getLogger(__name__)


class TracerWorkspace:
    def __init__(
        self,
        tracer: TracerService,
        gap_finder: GapFinder,
        notifier: Notifier,
        *,
        profile_name: str = "Xeenaps User",
        log_cache: dict[str, TracerLogContent] | None = None,
    ) -> None:
        self.tracer = tracer
        self.gap_finder = gap_finder
        self.notifier = notifier
        self.profile_name = profile_name
        # unbounded; entries only leave on log deletion
        self.log_cache: dict[str, TracerLogContent] = log_cache if log_cache is not None else {}
        self.project: TracerProject | None = None
        self.saved_project: TracerProject | None = None
        self.logs: list[TracerLog] = []
        self.todos: list[TracerTodo] = []
        self.references: list[TracerReference] = []
        self.sources: list[ResearchSource] = []
        self.is_loading = False
        self.is_busy = False
        self.is_saving = False
        self.is_dirty = False

    def load(self, project_id: str) -> TracerProject | None:
        self.is_loading = True
        try:
            row = self.tracer.fetch_project_row(project_id)
            if row is None:
                self.project = None
                self.saved_project = None
                return None
            found = record_from_row(TracerProject, row)
            # non-list authors get the profile name; an empty list stays empty
            if not isinstance(row.get("authors"), list):
                found.authors = [self.profile_name]
            self.project = found
            self.saved_project = copy.deepcopy(found)
            self.logs = self.tracer.fetch_logs(project_id)
            self.todos = self.tracer.fetch_todos(project_id)
            self.references = self.tracer.fetch_references(project_id)
            self.sources = self.tracer.fetch_sources(project_id)
            self.is_dirty = False
            return found
        finally:
            self.is_loading = False

    # identity tab

    def update_field(self, name: str, value: Any) -> None:
        if self.project is None or self.is_loading:
            return
        if name == "extra" or not hasattr(self.project, name):
            raise AttributeError(f"TracerProject has no field '{name}'")
        self.project = replace(self.project, **{name: value}, updated_at=now_iso())
        self.is_dirty = True

    def save(self) -> bool:
        if self.project is None:
            return False
        self.is_saving = True
        try:
            ok = self.tracer.save_project(self.project)
        except Exception as exc:
            logger.exception("tracer save failed", exc_info=exc)
            self.notifier.notify("error", "Connection error")
            return False
        finally:
            self.is_saving = False
        if ok:
            self.is_dirty = False
            self.saved_project = copy.deepcopy(self.project)
            self.notifier.notify("success", "Changes saved successfully")
        else:
            self.notifier.notify("error", "Failed to save changes")
        return ok

    def discard(self) -> None:
        if self.saved_project is not None:
            self.project = copy.deepcopy(self.saved_project)
        self.is_dirty = False

    def can_leave(self) -> bool:
        return not self.is_dirty

    # journal

    def sorted_logs(self) -> list[TracerLog]:
        return sorted(self.logs, key=lambda log: sort_key_timestamp(log.created_at), reverse=True)

    def open_log(self, log: TracerLog) -> TracerLogContent | None:
        cached = self.log_cache.get(log.id)
        if cached is not None:
            return cached
        if not log.log_json_id:
            return None
        content = self.tracer.fetch_log_content(log)
        if content is not None:
            self.log_cache[log.id] = content
        return content

    def save_log(self, log: TracerLog, content: TracerLogContent) -> bool:
        is_edit = any(existing.id == log.id for existing in self.logs)
        self.log_cache[log.id] = content
        if is_edit:
            self.logs = [log if existing.id == log.id else existing for existing in self.logs]
        else:
            self.logs = [log, *self.logs]
        return self.tracer.save_log(log, content)

    def delete_log(self, log_id: str) -> bool:
        self.log_cache.pop(log_id, None)
        self.logs = [log for log in self.logs if log.id != log_id]
        return self.tracer.delete_log(log_id)

    # project lifecycle

    def delete_project(self) -> bool:
        if self.project is None or self.is_busy:
            return False
        self.is_busy = True
        self.notifier.notify("info", "Purging project data...")
        if self.tracer.delete_project(self.project.id):
            self.notifier.notify("success", "Project removed from cloud")
            self.project = None
            self.saved_project = None
            self.is_busy = False
            return True
        self.notifier.notify("error", "Critical: Deletion failed")
        self.is_busy = False
        return False

    # literature audit

    def start_audit(self, library_items: list[LibraryItem]) -> list[ResearchSource]:
        """Queue each library item as a source and analyze them one by one.

        A failing item only clears its own ``is_analyzing`` flag; the rest of
        the batch still runs.
        """
        if self.project is None:
            return []
        self.is_busy = True
        project_id = self.project.id
        queued = [
            ResearchSource(
                id=new_id(),
                project_id=project_id,
                source_id=lib.id,
                title=lib.title,
                created_at=now_iso(),
                is_analyzing=True,
            )
            for lib in library_items
        ]
        self.sources = [*self.sources, *queued]
        by_id = {lib.id: lib for lib in library_items}
        for source in queued:
            lib = by_id.get(source.source_id)
            if lib is None:
                continue
            try:
                snippet = self.gap_finder.fetch_snippet(lib)
                if not snippet:
                    self._replace_source(replace(source, is_analyzing=False))
                    continue
                analysis = self.gap_finder.analyze_source(snippet, lib.title)
                if not analysis:
                    self._replace_source(replace(source, is_analyzing=False))
                    continue
                completed = replace(
                    source,
                    findings=analysis.get("findings", ""),
                    methodology=analysis.get("methodology", ""),
                    limitations=analysis.get("limitations", ""),
                    is_analyzing=False,
                )
                self.tracer.save_source(completed)
                self._replace_source(completed)
            except Exception as exc:
                logger.exception("audit segment failed", extra={"source_id": lib.id}, exc_info=exc)
                self.notifier.notify("error", "Audit segment interrupted.")
                self._replace_source(replace(source, is_analyzing=False))
        self.is_busy = False
        self.notifier.notify("success", "Matrix segments updated.")
        return self.sources

    def _replace_source(self, updated: ResearchSource) -> None:
        self.sources = [updated if s.id == updated.id else s for s in self.sources]
