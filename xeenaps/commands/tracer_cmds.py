from __future__ import annotations

import typer
from rich import print
from rich.markup import escape

from xeenaps.commands.common import shorten
from xeenaps.notify import Notifier
from xeenaps.services import Services
from xeenaps.services.tracer import running_balances
from xeenaps.utils import format_log_time
from xeenaps.workspace import TracerWorkspace


def _workspace(services: Services, notifier: Notifier) -> TracerWorkspace:
    return TracerWorkspace(
        services.tracer,
        services.gap_finder,
        notifier,
        profile_name=services.config.profile_name,
    )


def tracer_list_cmd(services: Services, *, page: int, limit: int, search: str) -> None:
    """List research projects, newest first."""

    result = services.tracer.fetch_projects(page, limit, search)
    if not result.items:
        print("No projects")
        return
    for project in result.items:
        print(
            f"- [bold]{escape(project.id)}[/bold] {escape(project.label or project.title)} "
            f"[dim]{escape(project.status)} {project.progress}%[/dim]"
        )
    print(f"[dim]{len(result.items)} of {result.total_count}[/dim]")


def tracer_show_cmd(services: Services, notifier: Notifier, *, project_id: str) -> None:
    workspace = _workspace(services, notifier)
    project = workspace.load(project_id)
    if project is None:
        print(f"[red]Project not found: {escape(project_id)}[/red]")
        raise typer.Exit(code=1)

    print(f"[bold]{escape(project.title or project.label)}[/bold]")
    print(f"Status: {escape(project.status)}  Progress: {project.progress}%")
    if project.authors:
        print(f"Authors: {escape(', '.join(project.authors))}")
    if project.keywords:
        print(f"Keywords: {escape(', '.join(project.keywords))}")
    for label, value in (
        ("Problem", project.problem_statement),
        ("Gap", project.research_gap),
        ("Question", project.research_question),
        ("Methodology", project.methodology),
        ("Population", project.population),
    ):
        if value:
            print(f"{label}: {escape(shorten(value, 100))}")

    logs = workspace.sorted_logs()
    print(f"\n[bold]Journal[/bold] ({len(logs)})")
    for log in logs:
        print(f"- {format_log_time(log.created_at)}  {escape(log.title)}")

    print(f"\n[bold]Todos[/bold] ({len(workspace.todos)})")
    for todo in workspace.todos:
        mark = "done" if todo.is_done else "open"
        print(f"- ({mark}) {escape(todo.title)} [dim]{escape(todo.deadline)}[/dim]")

    ledger = running_balances(services.tracer.fetch_finance(project_id))
    if ledger:
        print(f"\n[bold]Finance[/bold] ({len(ledger)})")
        for entry in ledger:
            print(
                f"- {entry.date} {escape(shorten(entry.description, 40))} "
                f"+{entry.credit:.2f} -{entry.debit:.2f} = {entry.balance:.2f}"
            )

    print(f"\n[bold]Sources[/bold] ({len(workspace.sources)})")
    for source in workspace.sources:
        print(f"- {escape(source.title)}")


def tracer_delete_cmd(
    services: Services, notifier: Notifier, *, project_id: str, yes: bool
) -> None:
    """Delete a project with every journal, reference, todo, ledger row and source."""

    workspace = _workspace(services, notifier)
    project = workspace.load(project_id)
    if project is None:
        print(f"[red]Project not found: {escape(project_id)}[/red]")
        raise typer.Exit(code=1)
    if not yes and not typer.confirm(
        f"Delete '{project.label or project.title}' and all of its data?"
    ):
        raise typer.Exit(code=0)
    if not workspace.delete_project():
        raise typer.Exit(code=1)


def tracer_audit_cmd(
    services: Services, notifier: Notifier, *, project_id: str, library_ids: list[str]
) -> None:
    """Analyze library items and add them to the project's literature matrix."""

    workspace = _workspace(services, notifier)
    if workspace.load(project_id) is None:
        print(f"[red]Project not found: {escape(project_id)}[/red]")
        raise typer.Exit(code=1)
    items = services.library.fetch_by_ids(library_ids)
    if not items:
        print("[yellow]No matching library items[/yellow]")
        raise typer.Exit(code=1)
    for source in workspace.start_audit(items):
        if source.findings:
            print(f"- [bold]{escape(source.title)}[/bold]: {escape(shorten(source.findings, 80))}")
