"""Per-field Co-Pilot: AI rewrite / expand / translate of a single text field,
and copying field values between Brainstorming items and Tracer projects."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any, Protocol

from .notify import Notifier
from .prompts import RefineMode
from .types import BrainstormingItem, TracerProject
from .utils import now_iso

logger = logging.getLogger(__name__)

BRAINSTORMING_TO_TRACER: dict[str, str] = {
    "proposed_title": "title",
    "problem_statement": "problem_statement",
    "research_gap": "research_gap",
    "research_question": "research_question",
    "methodology": "methodology",
    "population": "population",
}
TRACER_TO_BRAINSTORMING: dict[str, str] = {v: k for k, v in BRAINSTORMING_TO_TRACER.items()}
# text fields the co-pilot may rewrite or copy
COPILOT_FIELDS = frozenset(
    {*BRAINSTORMING_TO_TRACER, *BRAINSTORMING_TO_TRACER.values(), "label", "topic"}
)


class FieldService(Protocol):
    def refine_field(
        self, field_name: str, current_value: str, context: Any, mode: RefineMode | str
    ) -> str | None: ...

    def translate_field(self, text: str, target_lang: str) -> str | None: ...


class ProjectSaver(Protocol):
    def save_project(self, project: TracerProject) -> bool: ...


ValueCallback = Callable[[str], None]


def tracer_key_for(brainstorming_field: str) -> str | None:
    return BRAINSTORMING_TO_TRACER.get(brainstorming_field)


def brainstorming_key_for(tracer_field: str) -> str | None:
    return TRACER_TO_BRAINSTORMING.get(tracer_field)


class FieldCopilot:
    def __init__(
        self,
        service: FieldService,
        notifier: Notifier,
        *,
        tracer: ProjectSaver | None = None,
    ) -> None:
        self.service = service
        self.notifier = notifier
        self.tracer = tracer

    def magic_action(
        self,
        field_name: str,
        value: str,
        context: Any,
        mode: RefineMode | str,
        *,
        on_change: ValueCallback | None = None,
        on_save: ValueCallback | None = None,
    ) -> str | None:
        mode = RefineMode(mode)
        verb = "rewrite" if mode is RefineMode.REWRITE else "expand"
        try:
            result = self.service.refine_field(field_name, value, context, mode)
        except Exception as exc:
            logger.exception("co-pilot refine failed", extra={"field": field_name}, exc_info=exc)
            result = None
        if not result:
            self.notifier.notify("error", f"Failed to {verb} content.")
            return None
        self._deliver(result, on_change, on_save)
        return result

    def translate(
        self,
        value: str,
        target_lang: str,
        *,
        on_change: ValueCallback | None = None,
        on_save: ValueCallback | None = None,
    ) -> str | None:
        try:
            result = self.service.translate_field(value, target_lang)
        except Exception as exc:
            logger.exception("co-pilot translate failed", exc_info=exc)
            result = None
        if not result:
            self.notifier.notify("error", "Translation failed")
            return None
        self._deliver(result, on_change, on_save)
        return result

    def export_to_tracer(self, field_name: str, value: str, project: TracerProject) -> bool:
        target = tracer_key_for(field_name)
        if target is None:
            self.notifier.notify("warning", "This field cannot be mapped to Tracer.")
            return False
        if self.tracer is None:
            raise RuntimeError("export_to_tracer needs a tracer service")
        updated = replace(project, **{target: value}, updated_at=now_iso())
        try:
            ok = self.tracer.save_project(updated)
        except Exception as exc:
            logger.exception(
                "co-pilot export failed", extra={"project_id": project.id}, exc_info=exc
            )
            ok = False
        if ok:
            self.notifier.notify("success", f"Exported to {project.label}")
        else:
            self.notifier.notify("error", "Export failed")
        return ok

    def import_from_brainstorming(
        self,
        field_name: str,
        source: BrainstormingItem,
        *,
        on_change: ValueCallback | None = None,
        on_save: ValueCallback | None = None,
    ) -> str | None:
        source_key = brainstorming_key_for(field_name)
        if source_key is None:
            self.notifier.notify("warning", "No matching field in Brainstorming.")
            return None
        value = getattr(source, source_key, None)
        if not value or not isinstance(value, str):
            self.notifier.notify("info", "Source field is empty.")
            return None
        self._deliver(value, on_change, on_save)
        self.notifier.notify("success", f"Imported from {source.label}")
        return value

    @staticmethod
    def _deliver(
        value: str, on_change: ValueCallback | None, on_save: ValueCallback | None
    ) -> None:
        if on_change is not None:
            on_change(value)
        if on_save is not None:
            on_save(value)
