"""Thin CLI wrapper for packer_provider.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import shlex
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from packer_provider import __version__
from packer_provider.config import get_settings, print_settings_json
from packer_provider.errors import diagnostic_from_exception
from packer_provider.resources.io import load_config_document
from packer_provider.resources.runner import PackerBuildError
from packer_provider.resources.schema import (
    RESOURCE_TYPE_NAME,
    BuildRecord,
    ConfigurationError,
    bind_config,
    resource_schema,
)
from packer_provider.resources.service import (
    ResourceExistsError,
    ResourceNotFoundError,
)

app = typer.Typer(
    name="packer-provider",
    help="Packer Provider - run packer builds as managed resources",
    no_args_is_help=True,
)
console = Console()

PROVIDER_ERRORS = (
    ConfigurationError,
    PackerBuildError,
    ResourceExistsError,
    ResourceNotFoundError,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"packer-provider version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich, once per process."""
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    root.setLevel(level)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Packer Provider - run packer builds as managed resources."""
    configure_logging(get_settings().log_level)


def _print_json(data: Any) -> None:
    console.print(json.dumps(data, indent=2), markup=False, soft_wrap=True)


def _fail(exc: Exception, json_output: bool) -> NoReturn:
    """Report an error as a diagnostic and exit with code 1."""
    diagnostic = diagnostic_from_exception(exc)
    if json_output:
        _print_json({"error": diagnostic.to_dict()})
    else:
        console.print(f"[red]Error: {diagnostic.summary}[/red]")
        console.print(diagnostic.detail, markup=False, highlight=False)
    raise typer.Exit(code=1) from exc


def _parse_pairs(values: list[str] | None, option: str) -> dict[str, str]:
    """Parse repeated KEY=VALUE options, keeping their order."""
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(
                f"expected KEY=VALUE, got '{item}'", param_hint=option
            )
        pairs[key] = value
    return pairs


def _collect_config(
    from_file: Path | None,
    file: str | None,
    variables: list[str] | None,
    params: list[str] | None,
    directory: str | None,
    force: bool,
    environment: list[str] | None,
    triggers: list[str] | None,
) -> dict[str, Any]:
    """Merge a configuration document with command-line options.

    Options override scalar values from the document; map and list options
    are merged into the document's values.
    """
    data: dict[str, Any] = load_config_document(from_file) if from_file else {}

    if file is not None:
        data["file"] = file
    if directory is not None:
        data["directory"] = directory
    if force:
        data["force"] = True
    if params:
        data["additional_params"] = list(data.get("additional_params") or []) + params

    for name, values, option in (
        ("variables", variables, "--var"),
        ("environment", environment, "--env"),
        ("triggers", triggers, "--trigger"),
    ):
        parsed = _parse_pairs(values, option)
        if parsed:
            merged = dict(data.get(name) or {})
            merged.update(parsed)
            data[name] = merged

    return data


def _record_to_dict(record: BuildRecord) -> dict[str, Any]:
    return record.model_dump()


def _print_record(record: BuildRecord) -> None:
    console.print(f"  [green]{record.id}[/green]")
    console.print(f"    File: {record.file}")
    console.print(f"    Directory: {record.directory or '(cwd)'}")
    console.print(f"    Force: {record.force}")
    console.print(f"    Build UUID: {record.build_uuid or 'N/A'}")
    if record.variables:
        console.print(f"    Variables: {', '.join(record.variables)}")
    if record.additional_params:
        console.print(
            f"    Additional params: {' '.join(record.additional_params)}",
            markup=False,
        )
    if record.triggers:
        console.print(f"    Triggers: {', '.join(record.triggers)}")


def _session_factory() -> Any:
    from packer_provider.db import create_all_tables, get_engine, get_session_factory

    engine = get_engine()
    create_all_tables(engine)
    return get_session_factory(engine)


FromFileOption = Annotated[
    Path | None,
    typer.Option("--from-file", help="YAML/JSON document of resource attributes"),
]
FileOption = Annotated[
    str | None,
    typer.Option("--file", "-f", help="Packer file to use for building"),
]
VarOption = Annotated[
    list[str] | None,
    typer.Option("--var", help="Packer variable KEY=VALUE (can be repeated)"),
]
ParamOption = Annotated[
    list[str] | None,
    typer.Option("--param", help="Additional Packer parameter (can be repeated)"),
]
DirectoryOption = Annotated[
    str | None,
    typer.Option("--directory", "-C", help="Working directory (default: cwd)"),
]
ForceOption = Annotated[
    bool,
    typer.Option("--force", help="Force overwriting existing images"),
]
EnvOption = Annotated[
    list[str] | None,
    typer.Option("--env", help="Environment variable KEY=VALUE (can be repeated)"),
]
TriggerOption = Annotated[
    list[str] | None,
    typer.Option("--trigger", help="Trigger value KEY=VALUE (can be repeated)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


@app.command()
def config(json_output: JsonOption = False) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings), markup=False, soft_wrap=True)
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Build tool:[/bold]")
        console.print(
            f"  Executable:          {settings.executable or '(self, executor mode)'}"
        )
        console.print(f"  Packer binary:       {settings.packer_bin}")
        console.print()
        console.print("[bold]State:[/bold]")
        console.print(f"  Database URL:        {settings.db_url}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")


@app.command()
def schema(json_output: JsonOption = False) -> None:
    """Show the attributes of the packer_build resource."""
    attributes = resource_schema()
    if json_output:
        _print_json(
            {
                "type": RESOURCE_TYPE_NAME,
                "attributes": [a.to_dict() for a in attributes],
            }
        )
        return

    console.print(f"[bold]Resource {RESOURCE_TYPE_NAME}:[/bold]")
    console.print()
    for a in attributes:
        console.print(f"  [green]{a.name}[/green] ({a.type.value}, {a.mode.value})")
        if a.description:
            console.print(f"    {a.description}")


resource_app = typer.Typer(help="Manage packer_build resources")
app.add_typer(resource_app, name="resource")


@resource_app.command("create")
def resource_create(
    from_file: FromFileOption = None,
    file: FileOption = None,
    variables: VarOption = None,
    params: ParamOption = None,
    directory: DirectoryOption = None,
    force: ForceOption = False,
    environment: EnvOption = None,
    triggers: TriggerOption = None,
    json_output: JsonOption = False,
) -> None:
    """Run a build and store a new resource."""
    from packer_provider.db import get_session
    from packer_provider.resources.service import create_resource

    try:
        data = _collect_config(
            from_file, file, variables, params, directory, force, environment, triggers
        )
        with get_session(_session_factory()) as session:
            record = create_resource(session, data)
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json(_record_to_dict(record))
    else:
        console.print("[bold]Created resource:[/bold]")
        _print_record(record)


@resource_app.command("update")
def resource_update(
    resource_id: Annotated[str, typer.Argument(help="Resource ID to rebuild")],
    from_file: FromFileOption = None,
    file: FileOption = None,
    variables: VarOption = None,
    params: ParamOption = None,
    directory: DirectoryOption = None,
    force: ForceOption = False,
    environment: EnvOption = None,
    triggers: TriggerOption = None,
    json_output: JsonOption = False,
) -> None:
    """Rebuild a resource with a new configuration.

    The stored configuration is replaced, not merged.
    """
    from packer_provider.db import get_session
    from packer_provider.resources.service import update_resource

    try:
        data = _collect_config(
            from_file, file, variables, params, directory, force, environment, triggers
        )
        with get_session(_session_factory()) as session:
            record = update_resource(session, resource_id, data)
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json(_record_to_dict(record))
    else:
        console.print("[bold]Updated resource:[/bold]")
        _print_record(record)


@resource_app.command("read")
@resource_app.command("show")
def resource_read(
    resource_id: Annotated[str, typer.Argument(help="Resource ID to show")],
    json_output: JsonOption = False,
) -> None:
    """Show the stored state of a resource."""
    from packer_provider.db import get_session
    from packer_provider.resources.service import read_resource

    try:
        with get_session(_session_factory()) as session:
            record = read_resource(session, resource_id)
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json(_record_to_dict(record))
    else:
        _print_record(record)


@resource_app.command("delete")
def resource_delete(
    resource_id: Annotated[str, typer.Argument(help="Resource ID to delete")],
    json_output: JsonOption = False,
) -> None:
    """Forget a resource. Built images are not removed."""
    from packer_provider.db import get_session
    from packer_provider.resources.service import delete_resource

    try:
        with get_session(_session_factory()) as session:
            delete_resource(session, resource_id)
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json({"id": resource_id, "deleted": True})
    else:
        console.print(f"[green]Deleted resource {resource_id}[/green]")


@resource_app.command("import")
def resource_import(
    resource_id: Annotated[str, typer.Argument(help="Resource ID to adopt")],
    from_file: FromFileOption = None,
    file: FileOption = None,
    variables: VarOption = None,
    params: ParamOption = None,
    directory: DirectoryOption = None,
    force: ForceOption = False,
    environment: EnvOption = None,
    triggers: TriggerOption = None,
    json_output: JsonOption = False,
) -> None:
    """Adopt an existing build under a known ID without running Packer."""
    from packer_provider.db import get_session
    from packer_provider.resources.service import import_resource

    try:
        data = _collect_config(
            from_file, file, variables, params, directory, force, environment, triggers
        )
        with get_session(_session_factory()) as session:
            record = import_resource(session, resource_id, data)
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json(_record_to_dict(record))
    else:
        console.print("[bold]Imported resource:[/bold]")
        _print_record(record)


@resource_app.command("list")
def resource_list(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Maximum number of resources to return"),
    ] = 100,
    json_output: JsonOption = False,
) -> None:
    """List stored resources."""
    from packer_provider.db import get_session
    from packer_provider.resources.service import list_resources

    with get_session(_session_factory()) as session:
        records = list_resources(session, limit=limit)

    if json_output:
        _print_json([_record_to_dict(r) for r in records])
        return

    if not records:
        console.print("[yellow]No resources found[/yellow]")
        return

    console.print(f"[bold]Found {len(records)} resource(s):[/bold]")
    console.print()
    for record in records:
        _print_record(record)
        console.print()


@resource_app.command("command")
def resource_command(
    from_file: FromFileOption = None,
    file: FileOption = None,
    variables: VarOption = None,
    params: ParamOption = None,
    directory: DirectoryOption = None,
    force: ForceOption = False,
    json_output: JsonOption = False,
) -> None:
    """Print the packer arguments a build would use, without running it."""
    from packer_provider.resources.runner import compose_build_command

    try:
        data = _collect_config(
            from_file, file, variables, params, directory, force, None, None
        )
        args = compose_build_command(bind_config(data))
    except PROVIDER_ERRORS as e:
        _fail(e, json_output)

    if json_output:
        _print_json(args)
    else:
        console.print(shlex.join(args), markup=False, highlight=False)
