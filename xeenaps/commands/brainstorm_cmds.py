from __future__ import annotations

import json

import typer
from rich import print
from rich.markup import escape

from xeenaps.services import Services
from xeenaps.services.brainstorming import apply_synthesis
from xeenaps.types import BrainstormingItem
from xeenaps.utils import new_id, now_iso


def _item_or_exit(services: Services, item_id: str) -> BrainstormingItem:
    item = services.brainstorming.fetch_by_id(item_id)
    if item is None:
        print(f"[red]Brainstorming item not found: {escape(item_id)}[/red]")
        raise typer.Exit(code=1)
    return item


def brainstorm_list_cmd(services: Services, *, page: int, limit: int, search: str) -> None:
    result = services.brainstorming.fetch_paginated(page, limit, search)
    if not result.items:
        print("No ideas")
        return
    for item in result.items:
        star = "*" if item.is_favorite else "-"
        title = item.label or item.proposed_title or "Untitled"
        print(f"{star} [bold]{escape(item.id)}[/bold] {escape(title)}")
    print(f"[dim]{len(result.items)} of {result.total_count}[/dim]")


def brainstorm_synthesize_cmd(services: Services, *, rough_idea: str, save: bool) -> None:
    """Turn a rough idea into a structured research framework."""

    synthesis = services.brainstorming.synthesize_rough_idea(rough_idea)
    if synthesis is None:
        print("[red]Synthesis failed[/red]")
        raise typer.Exit(code=1)
    print(escape(json.dumps(synthesis, indent=2, ensure_ascii=False)))
    if not save:
        return
    created = now_iso()
    item = apply_synthesis(
        BrainstormingItem(id=new_id(), rough_idea=rough_idea, created_at=created), synthesis
    )
    item.label = item.proposed_title
    if not services.brainstorming.save(item):
        print("[red]Failed to save idea[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Saved idea {item.id}[/green]")


def brainstorm_abstract_cmd(services: Services, *, item_id: str, save: bool) -> None:
    item = _item_or_exit(services, item_id)
    abstract = services.brainstorming.generate_abstract(item)
    if not abstract:
        print("[red]Abstract generation failed[/red]")
        raise typer.Exit(code=1)
    print(escape(abstract))
    if save:
        item.proposed_abstract = abstract
        item.updated_at = now_iso()
        if not services.brainstorming.save(item):
            print("[red]Failed to save abstract[/red]")
            raise typer.Exit(code=1)
        print("[green]Abstract saved[/green]")


def brainstorm_recommend_cmd(services: Services, *, item_id: str) -> None:
    """Show external references and matching library literature for an idea."""

    item = _item_or_exit(services, item_id)
    external = services.brainstorming.external_recommendations(item)
    internal = services.brainstorming.internal_recommendations(item)
    print(f"[bold]External[/bold] ({len(external)})")
    for ref in external:
        print(f"- {escape(ref)}")
    print(f"[bold]Library[/bold] ({len(internal)})")
    for lib in internal:
        print(f"- {escape(lib.id)} {escape(lib.title)}")


def brainstorm_promote_cmd(services: Services, *, item_id: str) -> None:
    item = _item_or_exit(services, item_id)
    project = services.brainstorming.promote_to_tracer(
        item, authors=[services.config.profile_name]
    )
    if not services.tracer.save_project(project):
        print("[red]Failed to create tracer project[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Created tracer project {project.id}[/green]")
