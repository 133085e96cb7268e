"""Command line entry point."""

import asyncio
import json
import sys
from typing import Optional

import click

from . import __version__
from .config.loader import ConfigLoader, ConfigurationError, find_config_file
from .config.schema import ManifestConfig
from .config.settings import get_settings
from .core import PlanAction, SyncEngine, SyncStats
from .engines.errors import Diagnostic, Severity
from .state import StateService, close_database, init_database
from .utils.logging import get_logger, setup_logging


PLAN_SYMBOLS = {
    PlanAction.CREATE: "+",
    PlanAction.UPDATE: "~",
    PlanAction.REPLACE: "-/+",
    PlanAction.REFRESH: "~",
    PlanAction.NOOP: " ",
    PlanAction.DELETE: "-",
}


def _load_manifest(config_path: Optional[str]) -> ManifestConfig:
    path = config_path or find_config_file()
    if path is None:
        raise click.ClickException(
            "No manifest found. Pass --config or create synclocal.yaml in the current directory."
        )

    loader = ConfigLoader()
    try:
        manifest = loader.load_from_file(path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    for warning in loader.validate_config(manifest):
        click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)
    return manifest


def _echo_diagnostic(address: str, diagnostic: Diagnostic) -> None:
    if diagnostic.severity == Severity.ERROR:
        label, color = "Error", "red"
    else:
        label, color = "Warning", "yellow"
    click.echo(click.style(f"{label}: {address}: {diagnostic.summary}", fg=color), err=True)
    if diagnostic.detail:
        for line in diagnostic.detail.splitlines():
            click.echo(f"  {line}", err=True)


def _echo_stats(verb: str, stats: SyncStats) -> None:
    for result in stats.results:
        if result.success:
            marker = PLAN_SYMBOLS.get(result.action, " ") if result.changed else " "
            action = result.action.value if result.action else "-"
            click.echo(f"{marker:>3} {result.address}: {action}{' (changed)' if result.changed else ''}")
        for diagnostic in result.diagnostics:
            _echo_diagnostic(result.address, diagnostic)

    summary = f"{verb} complete: {stats.total_changed} changed, {stats.failed_syncs} failed."
    click.echo(click.style(summary, fg="red" if stats.failed_syncs else "green", bold=True))


async def _run_with_engine(callback):
    async with SyncEngine(StateService()) as engine:
        return await callback(engine)


@click.group()
@click.version_option(version=__version__, prog_name="synclocal")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Manifest file (YAML or JSON).")
@click.option("--state-url", default=None, help="SQLAlchemy URL of the state store (defaults to STATE_URL).")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Log level (defaults to LOG_LEVEL).")
@click.option("--log-format", default=None, type=click.Choice(["console", "json"]),
              help="Log output format.")
@click.pass_context
def cli(ctx, config_path, state_url, log_level, log_format):
    """synclocal - keep local files in sync with local or HTTP sources."""
    setup_logging(log_level=log_level, log_format=log_format)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    try:
        init_database(state_url or get_settings().state.url)
    except Exception as e:
        raise click.ClickException(f"Could not open state store: {e}") from e
    ctx.call_on_close(close_database)


@cli.command()
@click.pass_context
def plan(ctx):
    """Show what apply would change, without changing anything."""
    manifest = _load_manifest(ctx.obj["config_path"])
    plans = asyncio.run(_run_with_engine(lambda engine: engine.plan(manifest)))

    failed = False
    pending = 0
    for item in plans:
        if item.error is not None:
            failed = True
            for diagnostic in item.error.to_diagnostics():
                _echo_diagnostic(item.address, diagnostic)
            continue

        if item.action != PlanAction.NOOP:
            pending += 1
        reasons = f" ({', '.join(item.reasons)})" if item.reasons else ""
        click.echo(f"{PLAN_SYMBOLS[item.action]:>3} {item.address}: {item.action.value}{reasons}")

    if pending == 0 and not failed:
        click.echo("No changes. Files are up to date.")
    else:
        click.echo(f"Plan: {pending} to change.")

    if failed:
        sys.exit(1)


@cli.command()
@click.pass_context
def apply(ctx):
    """Create, update or replace files so they match the manifest."""
    logger = get_logger("cli.apply")
    manifest = _load_manifest(ctx.obj["config_path"])
    stats = asyncio.run(_run_with_engine(lambda engine: engine.apply(manifest)))
    _echo_stats("Apply", stats)

    logger.debug("Apply success rate", success_rate=f"{stats.success_rate:.1f}%")
    if stats.failed_syncs:
        sys.exit(1)


@cli.command()
@click.option("--manifest-only", is_flag=True, default=False,
              help="Only destroy resources listed in the manifest.")
@click.confirmation_option(prompt="Delete every managed file?")
@click.pass_context
def destroy(ctx, manifest_only):
    """Delete managed files and forget their state."""
    manifest = _load_manifest(ctx.obj["config_path"]) if manifest_only else None
    stats = asyncio.run(_run_with_engine(lambda engine: engine.destroy(manifest)))
    _echo_stats("Destroy", stats)

    if stats.failed_syncs:
        sys.exit(1)


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print state as JSON.")
def show(as_json):
    """Print the recorded state of every resource."""
    service = StateService()
    states = service.list_states()
    types = service.resource_types()

    if as_json:
        payload = {
            address: {"type": types[address], "id": state.id, "attributes": state.attributes}
            for address, state in sorted(states.items())
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if not states:
        click.echo("No resources in state.")
        return

    for address, state in sorted(states.items()):
        click.echo(click.style(address, bold=True))
        click.echo(f"  id = {state.id}")
        for key, value in sorted(state.attributes.items()):
            click.echo(f"  {key} = {json.dumps(value)}")


if __name__ == "__main__":
    cli()
