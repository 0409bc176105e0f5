from __future__ import annotations

import logging
from typing import Any

import typer
from rich import print
from rich.markup import escape

from xeenaps.config import XeenapsConfig, read_config_file, write_config_file
from xeenaps.services import Services

SECRET_KEYS = ("supabase_key", "ai_api_key")


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Failed to read config: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def require_registry(config: XeenapsConfig) -> None:
    if not config.supabase_url or not config.supabase_key:
        print("[red]Registry is not configured (set supabase_url and supabase_key)[/red]")
        raise typer.Exit(code=1)


def require_storage(services: Services) -> None:
    if not services.storage.configured:
        print("[red]Storage endpoint is not configured (set gas_web_app_url)[/red]")
        raise typer.Exit(code=1)


def mask_secret(value: Any) -> Any:
    if not value:
        return value
    text = str(value)
    return f"{text[:4]}…" if len(text) > 8 else "***"


def shorten(text: str, width: int = 60) -> str:
    text = " ".join((text or "").split())
    return text if len(text) <= width else text[: width - 1] + "…"
