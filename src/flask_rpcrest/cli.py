"""Click CLI commands for flask-rpcrest.

Provides the 'flask rpcrest' command group:
- routes: print the bound route table
- operations: print the backend catalog
- regenerate: rebuild routes and documentation from the catalog
- export-docs: write openapi.json (or the route table) to a directory
- save-example: store a request body as a documentation example
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import yaml
from flask import current_app
from flask.cli import AppGroup, with_appcontext

from flask_rpcrest.examples import save_example
from flask_rpcrest.registry import get_backend, get_examples, get_registrar, get_settings
from flask_rpcrest.serializers import routes_to_dicts

rpcrest_cli = AppGroup("rpcrest", help="REST interface over RPC backend operations.")


@rpcrest_cli.command("routes")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the route table as JSON.")
@with_appcontext
def routes_command(as_json: bool) -> None:
    """List the routes bound from the operation catalog."""
    settings = get_settings()
    routes = routes_to_dicts(get_registrar().table, settings.base_path)

    if as_json:
        click.echo(json.dumps(routes, indent=2, ensure_ascii=False))
        return

    click.echo(f"[flask-rpcrest] {len(routes)} routes bound.")
    for entry in routes:
        click.echo(f"{entry['method']:<7} {entry['path']} -> {entry['operation']}")


@rpcrest_cli.command("operations")
@click.option("--filter", "-f", "needle", type=str, default=None, help="Only show operations containing this text.")
@with_appcontext
def operations_command(needle: str | None) -> None:
    """List the operations reported by the backend."""
    app = current_app._get_current_object()
    try:
        operations = app.ensure_sync(get_backend().list_operations)(needle)
    except Exception as e:
        raise click.ClickException(f"Could not retrieve the operation catalog: {e}")

    click.echo(f"[flask-rpcrest] {len(operations)} operations.")
    for operation in operations:
        click.echo(operation)


@rpcrest_cli.command("regenerate")
@with_appcontext
def regenerate_command() -> None:
    """Re-fetch the catalog and rebuild routes and documentation."""
    app = current_app._get_current_object()
    registrar = get_registrar()
    table = app.ensure_sync(registrar.regenerate)()
    click.echo(
        f"[flask-rpcrest] Registered {len(table)} routes for {len(table.operations)} operations "
        f"({registrar.store.model.entry_count} documented)."
    )


@rpcrest_cli.command("export-docs")
@click.option(
    "--dir",
    "-d",
    "output_dir",
    type=click.Path(),
    required=True,
    help="Output directory.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["openapi", "json"]),
    default="openapi",
    help="openapi: OpenAPI 3.0 document. json: bound route table.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Preview output without writing files.",
)
@with_appcontext
def export_docs_command(output_dir: str, output_format: str, dry_run: bool) -> None:
    """Export the generated documentation."""
    from flask_rpcrest.output import get_writer

    app = current_app._get_current_object()
    writer = get_writer(output_format)
    writer.write(app, output_dir, dry_run=dry_run)

    if dry_run:
        click.echo("[flask-rpcrest] Dry run -- no files written.")
    else:
        click.echo(f"[flask-rpcrest] Written to {Path(output_dir) / writer.filename}")


@rpcrest_cli.command("save-example")
@click.argument("operation")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--default",
    "as_default",
    is_flag=True,
    default=False,
    help="Save as the default example (default.json).",
)
@with_appcontext
def save_example_command(operation: str, file: str, as_default: bool) -> None:
    """Save the JSON or YAML payload in FILE as an example for OPERATION."""
    path = Path(file)
    text = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Could not parse {file}: {e}")

    try:
        written = save_example(get_examples(), operation, payload, default=as_default)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"[flask-rpcrest] Saved example to {written}")
