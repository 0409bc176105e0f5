from __future__ import annotations

import json
import warnings
from dataclasses import asdict

import typer
from rich import print
from rich.markup import escape

from xeenaps.commands.common import SECRET_KEYS, mask_secret


def config_show_cmd(*, load_config, get_config_path, show_secrets: bool) -> None:
    """Print the effective configuration (file plus environment overrides)."""

    cfg = asdict(load_config())
    if not show_secrets:
        for key in SECRET_KEYS:
            cfg[key] = mask_secret(cfg.get(key))
    print(f"[dim]{escape(str(get_config_path()))}[/dim]")
    print(escape(json.dumps(cfg, indent=2, ensure_ascii=False)))


def config_path_cmd(*, get_config_path) -> None:
    print(escape(str(get_config_path())))


def config_set_cmd(
    *,
    read_config_or_exit,
    write_config_or_exit,
    config_keys,
    coerce_value,
    defaults,
    key: str,
    value: str,
    unset: bool,
) -> None:
    """Persist one key to the config file."""

    if key not in config_keys():
        print(f"[red]Unknown config key: {escape(key)}[/red]")
        print(f"Known keys: {', '.join(config_keys())}")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    if unset:
        data.pop(key, None)
        write_config_or_exit(data)
        print(f"[green]Unset {key}[/green]")
        return
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        coerced = coerce_value(key, value, getattr(defaults, key))
    if any(issubclass(w.category, RuntimeWarning) for w in caught):
        print(f"[red]Invalid value for {key}: {escape(repr(value))}[/red]")
        raise typer.Exit(code=1)
    data[key] = coerced
    write_config_or_exit(data)
    shown = mask_secret(coerced) if key in SECRET_KEYS else coerced
    print(f"[green]Set {key} = {escape(str(shown))}[/green]")
