from __future__ import annotations

import mimetypes
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from xeenaps.commands.common import shorten
from xeenaps.services import Services
from xeenaps.services.ads import fetch_vip_ad


def activity_list_cmd(
    services: Services,
    *,
    page: int,
    limit: int,
    search: str,
    start_date: str,
    end_date: str,
    activity_type: str,
) -> None:
    result = services.activities.fetch_paginated(
        page, limit, search, start_date, end_date, type=activity_type
    )
    if not result.items:
        print("No activities")
        return
    for item in result.items:
        print(
            f"- [bold]{escape(item.id)}[/bold] {item.start_date} {escape(item.event_name)} "
            f"[dim]{escape(item.type)} {escape(item.role)}[/dim]"
        )
    print(f"[dim]{len(result.items)} of {result.total_count}[/dim]")


def activity_delete_cmd(services: Services, *, activity_id: str, yes: bool) -> None:
    """Delete an activity together with its certificate and vault files."""

    if not yes and not typer.confirm(f"Delete activity {activity_id}?"):
        raise typer.Exit(code=0)
    if not services.activities.delete(activity_id):
        print(f"[red]Failed to delete activity {escape(activity_id)}[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Deleted activity {escape(activity_id)}[/green]")


def activity_upload_cmd(
    services: Services, *, activity_id: str, path: Path, label: str | None
) -> None:
    """Upload a file to the storage nodes and attach it to an activity's vault."""

    item = services.activities.fetch_by_id(activity_id)
    if item is None:
        print(f"[red]Activity not found: {escape(activity_id)}[/red]")
        raise typer.Exit(code=1)
    if not path.is_file():
        print(f"[red]No such file: {escape(str(path))}[/red]")
        raise typer.Exit(code=1)
    stored = services.activities.upload_vault_file(path)
    if stored is None:
        print("[red]Upload failed[/red]")
        raise typer.Exit(code=1)
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    services.activities.attach_vault_file(
        item, stored, label=label or path.name, mime_type=mime_type
    )
    if not services.activities.save(item):
        print("[red]File uploaded but the activity could not be saved[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Attached {escape(path.name)} ({stored.file_id})[/green]")


def teaching_list_cmd(
    services: Services, *, page: int, limit: int, search: str, start_date: str, end_date: str
) -> None:
    result = services.teaching.fetch_paginated(page, limit, search, start_date, end_date)
    if not result.items:
        print("No teaching sessions")
        return
    for item in result.items:
        print(
            f"- [bold]{escape(item.id)}[/bold] {item.teaching_date} "
            f"{escape(item.course_title or item.label)} [dim]{escape(item.institution)}[/dim]"
        )
    print(f"[dim]{len(result.items)} of {result.total_count}[/dim]")


def notes_list_cmd(
    services: Services, *, page: int, limit: int, search: str, collection_id: str
) -> None:
    result = services.notes.fetch_paginated(page, limit, search, collection_id)
    if not result.items:
        print("No notes")
        return
    for item in result.items:
        star = "*" if item.is_favorite else "-"
        print(f"{star} [bold]{escape(item.id)}[/bold] {escape(shorten(item.label))}")
    print(f"[dim]{len(result.items)} of {result.total_count}[/dim]")


def ad_cmd(services: Services) -> None:
    """Show the currently active VIP advertisement, if any."""

    ad = fetch_vip_ad(
        services.config.vip_ads_csv_url, timeout_s=services.config.http_timeout_s
    )
    if ad is None:
        print("No active ad")
        return
    print(f"Image: {escape(ad.image_url)}")
    if ad.cta_link:
        print(f"Link: {escape(ad.cta_link)}")
