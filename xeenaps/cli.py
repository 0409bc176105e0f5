from __future__ import annotations

from pathlib import Path

import typer
from rich import print

from . import __version__
from .commands.brainstorm_cmds import (
    brainstorm_abstract_cmd,
    brainstorm_list_cmd,
    brainstorm_promote_cmd,
    brainstorm_recommend_cmd,
    brainstorm_synthesize_cmd,
)
from .commands.common import (
    configure_logging,
    read_config_or_exit,
    require_registry,
    require_storage,
    write_config_or_exit,
)
from .commands.config_cmds import config_path_cmd, config_set_cmd, config_show_cmd
from .commands.copilot_cmds import (
    copilot_export_cmd,
    copilot_import_cmd,
    copilot_refine_cmd,
    copilot_translate_cmd,
)
from .commands.records_cmds import (
    activity_delete_cmd,
    activity_list_cmd,
    activity_upload_cmd,
    ad_cmd,
    notes_list_cmd,
    teaching_list_cmd,
)
from .commands.tracer_cmds import (
    tracer_audit_cmd,
    tracer_delete_cmd,
    tracer_list_cmd,
    tracer_show_cmd,
)
from .config import XeenapsConfig, coerce_value, config_keys, get_config_path, load_config
from .notify import ConsoleNotifier, Notifier
from .services import Services, build_services

app = typer.Typer(help="xeenaps: personal knowledge management for researchers")
config_app = typer.Typer(help="Show or edit configuration")
tracer_app = typer.Typer(help="Research Tracer projects")
brainstorm_app = typer.Typer(help="Idea incubation")
activity_app = typer.Typer(help="Academic activities")
teaching_app = typer.Typer(help="Teaching sessions")
notes_app = typer.Typer(help="Notebook")
copilot_app = typer.Typer(help="AI co-pilot for single fields")
app.add_typer(config_app, name="config")
app.add_typer(tracer_app, name="tracer")
app.add_typer(brainstorm_app, name="brainstorm")
app.add_typer(activity_app, name="activity")
app.add_typer(teaching_app, name="teaching")
app.add_typer(notes_app, name="notes")
app.add_typer(copilot_app, name="copilot")


def _services(*, registry: bool = True, storage: bool = False) -> Services:
    config = load_config()
    if registry:
        require_registry(config)
    services = build_services(config)
    if storage:
        require_storage(services)
    return services


def _notifier() -> Notifier:
    return ConsoleNotifier()


@app.callback()
def _root() -> None:
    configure_logging(load_config().log_level)


# config


@config_app.command("show")
def config_show(
    show_secrets: bool = typer.Option(False, help="Print keys unmasked"),
) -> None:
    """Show the effective configuration."""

    config_show_cmd(
        load_config=load_config, get_config_path=get_config_path, show_secrets=show_secrets
    )


@config_app.command("path")
def config_path() -> None:
    """Print the config file path."""

    config_path_cmd(get_config_path=get_config_path)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key, e.g. supabase_url"),
    value: str = typer.Argument("", help="New value"),
    unset: bool = typer.Option(False, help="Remove the key from the config file"),
) -> None:
    """Write one key to the config file."""

    config_set_cmd(
        read_config_or_exit=read_config_or_exit,
        write_config_or_exit=write_config_or_exit,
        config_keys=config_keys,
        coerce_value=coerce_value,
        defaults=XeenapsConfig(),
        key=key,
        value=value,
        unset=unset,
    )


# tracer


@tracer_app.command("list")
def tracer_list(
    page: int = typer.Option(1, help="Page number"),
    limit: int = typer.Option(25, help="Rows per page"),
    search: str = typer.Option("", help="Search text"),
) -> None:
    """List research projects."""

    tracer_list_cmd(_services(), page=page, limit=limit, search=search)


@tracer_app.command("show")
def tracer_show(project_id: str = typer.Argument(..., help="Project id")) -> None:
    """Show a project with its journal, todos, ledger and sources."""

    tracer_show_cmd(_services(), _notifier(), project_id=project_id)


@tracer_app.command("delete")
def tracer_delete(
    project_id: str = typer.Argument(..., help="Project id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project and everything attached to it."""

    tracer_delete_cmd(_services(), _notifier(), project_id=project_id, yes=yes)


@tracer_app.command("audit")
def tracer_audit(
    project_id: str = typer.Argument(..., help="Project id"),
    library_ids: list[str] = typer.Argument(..., help="Library item ids to analyze"),
) -> None:
    """Run the literature gap audit over library items."""

    tracer_audit_cmd(_services(), _notifier(), project_id=project_id, library_ids=library_ids)


# brainstorm


@brainstorm_app.command("list")
def brainstorm_list(
    page: int = typer.Option(1, help="Page number"),
    limit: int = typer.Option(25, help="Rows per page"),
    search: str = typer.Option("", help="Search text"),
) -> None:
    """List ideas."""

    brainstorm_list_cmd(_services(), page=page, limit=limit, search=search)


@brainstorm_app.command("synthesize")
def brainstorm_synthesize(
    rough_idea: str = typer.Argument(..., help="Free-form idea text"),
    save: bool = typer.Option(False, help="Save the result as a new idea"),
) -> None:
    """Expand a rough idea into a research framework."""

    brainstorm_synthesize_cmd(_services(registry=save), rough_idea=rough_idea, save=save)


@brainstorm_app.command("abstract")
def brainstorm_abstract(
    item_id: str = typer.Argument(..., help="Idea id"),
    save: bool = typer.Option(False, help="Store the abstract on the idea"),
) -> None:
    """Draft an abstract for an idea."""

    brainstorm_abstract_cmd(_services(), item_id=item_id, save=save)


@brainstorm_app.command("recommend")
def brainstorm_recommend(item_id: str = typer.Argument(..., help="Idea id")) -> None:
    """Recommend references for an idea."""

    brainstorm_recommend_cmd(_services(), item_id=item_id)


@brainstorm_app.command("promote")
def brainstorm_promote(item_id: str = typer.Argument(..., help="Idea id")) -> None:
    """Create a tracer project from an idea."""

    brainstorm_promote_cmd(_services(), item_id=item_id)


# activities, teaching, notes


@activity_app.command("list")
def activity_list(
    page: int = typer.Option(1, help="Page number"),
    limit: int = typer.Option(25, help="Rows per page"),
    search: str = typer.Option("", help="Search text"),
    start_date: str = typer.Option("", help="Earliest start date (YYYY-MM-DD)"),
    end_date: str = typer.Option("", help="Latest start date (YYYY-MM-DD)"),
    activity_type: str = typer.Option("All", "--type", help="Activity type filter"),
) -> None:
    """List activities."""

    activity_list_cmd(
        _services(),
        page=page,
        limit=limit,
        search=search,
        start_date=start_date,
        end_date=end_date,
        activity_type=activity_type,
    )


@activity_app.command("delete")
def activity_delete(
    activity_id: str = typer.Argument(..., help="Activity id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete an activity and its stored files."""

    activity_delete_cmd(_services(), activity_id=activity_id, yes=yes)


@activity_app.command("upload")
def activity_upload(
    activity_id: str = typer.Argument(..., help="Activity id"),
    path: Path = typer.Argument(..., help="File to upload"),
    label: str = typer.Option(None, help="Vault label (defaults to file name)"),
) -> None:
    """Upload a file into an activity's vault."""

    activity_upload_cmd(_services(storage=True), activity_id=activity_id, path=path, label=label)


@teaching_app.command("list")
def teaching_list(
    page: int = typer.Option(1, help="Page number"),
    limit: int = typer.Option(25, help="Rows per page"),
    search: str = typer.Option("", help="Search text"),
    start_date: str = typer.Option("", help="Earliest teaching date"),
    end_date: str = typer.Option("", help="Latest teaching date"),
) -> None:
    """List teaching sessions."""

    teaching_list_cmd(
        _services(),
        page=page,
        limit=limit,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


@notes_app.command("list")
def notes_list(
    page: int = typer.Option(1, help="Page number"),
    limit: int = typer.Option(25, help="Rows per page"),
    search: str = typer.Option("", help="Search text"),
    collection: str = typer.Option(
        "", help="Collection id, or __INDEPENDENT__ for notes outside any collection"
    ),
) -> None:
    """List notes."""

    notes_list_cmd(_services(), page=page, limit=limit, search=search, collection_id=collection)


@app.command("ad")
def ad() -> None:
    """Show the active VIP advertisement."""

    ad_cmd(_services(registry=False))


# co-pilot


@copilot_app.command("translate")
def copilot_translate(
    text: str = typer.Argument(..., help="Text to translate"),
    lang: str = typer.Option("en", "--lang", help="Target language code"),
) -> None:
    """Translate a piece of text."""

    copilot_translate_cmd(_services(registry=False), _notifier(), text=text, target_lang=lang)


@copilot_app.command("refine")
def copilot_refine(
    item_id: str = typer.Argument(..., help="Idea or project id"),
    field_name: str = typer.Argument(..., help="Field name, e.g. research_gap"),
    target: str = typer.Option("brainstorm", help="brainstorm or tracer"),
    mode: str = typer.Option("rewrite", help="rewrite or expand"),
    save: bool = typer.Option(False, help="Save the refined value"),
) -> None:
    """Rewrite or expand one field."""

    copilot_refine_cmd(
        _services(),
        _notifier(),
        target=target,
        item_id=item_id,
        field_name=field_name,
        mode=mode,
        save=save,
    )


@copilot_app.command("export")
def copilot_export(
    item_id: str = typer.Argument(..., help="Idea id"),
    field_name: str = typer.Argument(..., help="Brainstorming field name"),
    project_id: str = typer.Argument(..., help="Target tracer project id"),
) -> None:
    """Copy an idea field into a tracer project."""

    copilot_export_cmd(
        _services(), _notifier(), item_id=item_id, field_name=field_name, project_id=project_id
    )


@copilot_app.command("import")
def copilot_import(
    project_id: str = typer.Argument(..., help="Tracer project id"),
    field_name: str = typer.Argument(..., help="Tracer field name"),
    item_id: str = typer.Argument(..., help="Source idea id"),
) -> None:
    """Pull a field from an idea into a tracer project."""

    copilot_import_cmd(
        _services(), _notifier(), project_id=project_id, field_name=field_name, item_id=item_id
    )


def main() -> None:
    app()


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)
