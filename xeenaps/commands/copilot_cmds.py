from __future__ import annotations

from dataclasses import fields
from typing import Any

import typer
from rich import print
from rich.markup import escape

from xeenaps.copilot import COPILOT_FIELDS, FieldCopilot
from xeenaps.notify import Notifier
from xeenaps.prompts import RefineMode
from xeenaps.services import Services

TARGETS = ("brainstorm", "tracer")


def _load_target(services: Services, target: str, item_id: str) -> tuple[Any, Any]:
    if target == "brainstorm":
        return services.brainstorming, services.brainstorming.fetch_by_id(item_id)
    if target == "tracer":
        return services.tracer, services.tracer.fetch_project(item_id)
    print(f"[red]Unknown target: {escape(target)} (expected one of {', '.join(TARGETS)})[/red]")
    raise typer.Exit(code=1)


def _editable_field_or_exit(record: Any, field_name: str) -> str:
    names = {f.name for f in fields(record)} & COPILOT_FIELDS
    if field_name not in names:
        print(f"[red]Not an editable field: {escape(field_name)}[/red]")
        print(f"Editable fields: {', '.join(sorted(names))}")
        raise typer.Exit(code=1)
    return getattr(record, field_name)


def copilot_translate_cmd(
    services: Services, notifier: Notifier, *, text: str, target_lang: str
) -> None:
    copilot = FieldCopilot(services.brainstorming, notifier)
    result = copilot.translate(text, target_lang)
    if result is None:
        raise typer.Exit(code=1)
    print(escape(result))


def copilot_refine_cmd(
    services: Services,
    notifier: Notifier,
    *,
    target: str,
    item_id: str,
    field_name: str,
    mode: str,
    save: bool,
) -> None:
    """Rewrite or expand one field of a brainstorming idea or tracer project."""

    service, record = _load_target(services, target, item_id)
    if record is None:
        print(f"[red]Not found: {escape(item_id)}[/red]")
        raise typer.Exit(code=1)
    value = _editable_field_or_exit(record, field_name)
    try:
        refine_mode = RefineMode(mode.upper())
    except ValueError as exc:
        print(f"[red]Unknown mode: {escape(mode)}[/red]")
        raise typer.Exit(code=1) from exc

    def persist(new_value: str) -> None:
        setattr(record, field_name, new_value)
        saver = service.save if target == "brainstorm" else service.save_project
        if not saver(record):
            notifier.notify("error", "Failed to save field")

    copilot = FieldCopilot(service, notifier)
    result = copilot.magic_action(
        field_name, value, record, refine_mode, on_save=persist if save else None
    )
    if result is None:
        raise typer.Exit(code=1)
    print(escape(result))


def copilot_export_cmd(
    services: Services,
    notifier: Notifier,
    *,
    item_id: str,
    field_name: str,
    project_id: str,
) -> None:
    """Copy a brainstorming field into the matching field of a tracer project."""

    item = services.brainstorming.fetch_by_id(item_id)
    project = services.tracer.fetch_project(project_id)
    if item is None or project is None:
        print("[red]Idea or project not found[/red]")
        raise typer.Exit(code=1)
    value = _editable_field_or_exit(item, field_name)
    copilot = FieldCopilot(services.brainstorming, notifier, tracer=services.tracer)
    if not copilot.export_to_tracer(field_name, value, project):
        raise typer.Exit(code=1)


def copilot_import_cmd(
    services: Services,
    notifier: Notifier,
    *,
    project_id: str,
    field_name: str,
    item_id: str,
) -> None:
    """Pull the matching field of a brainstorming idea into a tracer project."""

    project = services.tracer.fetch_project(project_id)
    item = services.brainstorming.fetch_by_id(item_id)
    if item is None or project is None:
        print("[red]Idea or project not found[/red]")
        raise typer.Exit(code=1)

    def persist(new_value: str) -> None:
        setattr(project, field_name, new_value)
        if not services.tracer.save_project(project):
            notifier.notify("error", "Failed to save field")

    copilot = FieldCopilot(services.tracer, notifier, tracer=services.tracer)
    if copilot.import_from_brainstorming(field_name, item, on_save=persist) is None:
        raise typer.Exit(code=1)
