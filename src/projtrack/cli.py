"""CLI: migrate, rollback, verify, show, status."""

from __future__ import annotations

import asyncio
import json
import sys
from collections import Counter
from dataclasses import replace
from pathlib import Path
from typing import Any, NoReturn

import click
from click.core import ParameterSource
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from projtrack.config import Config, ConfigError
from projtrack.core.migration import MigrationError, MigrationOrchestrator
from projtrack.core.projects import ProjectRepository
from projtrack.core.rollback import rollback as undo_migration
from projtrack.core.validator import check, violations_from_error
from projtrack.log import configure_logging
from projtrack.models.migration import MigrationResult
from projtrack.models.project import UNIFIED_COLLECTION, parse_project
from projtrack.storage.sqlite_store import SQLiteStore

EXIT_FATAL = 1
EXIT_CONFIG = 2


@click.group(invoke_without_command=True)
@click.version_option(package_name="projtrack")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (default: ./projtrack.yaml)",
)
@click.pass_context
def main(ctx: click.Context, config_file: Path | None) -> None:
    """Move legacy project collections into the unified project collection.

    Without a command, runs the migration with the configured settings.
    """
    try:
        config = Config.load(config_file)
    except ConfigError as e:
        _fail(str(e), EXIT_CONFIG)

    configure_logging(config.log_level)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(migrate)


@main.command()
@click.option("--dry-run/--apply", default=False, help="Validate without writing anything")
@click.option("--backup/--no-backup", default=True, help="Snapshot legacy collections first")
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=None,
    help="Legacy records read per page",
)
@click.pass_context
def migrate(ctx: click.Context, dry_run: bool, backup: bool, batch_size: int | None) -> None:
    """Run the migration."""
    config: Config = ctx.obj
    overrides: dict[str, Any] = {}
    if _given(ctx, "dry_run"):
        overrides["dry_run"] = dry_run
    if _given(ctx, "backup"):
        overrides["backup_enabled"] = backup
    if batch_size is not None:
        overrides["batch_size"] = batch_size

    store = _store(config)
    orchestrator = MigrationOrchestrator(store, replace(config.migration, **overrides))
    try:
        result = asyncio.run(orchestrator.run())
    except MigrationError as e:
        _fail(str(e), EXIT_FATAL)

    _print_summary(result)


@main.command("rollback")
@click.option(
    "--restore-latest",
    is_flag=True,
    help="Also restore legacy collections from the newest backup",
)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def rollback_command(config: Config, restore_latest: bool, yes: bool) -> None:
    """Delete every unified project."""
    store = _store(config)
    if not yes:
        click.confirm("Delete every record in the unified collection?", abort=True)

    async def _rollback() -> Any:
        try:
            await store.initialize()
            return await undo_migration(store, restore_latest=restore_latest)
        finally:
            await store.close()

    try:
        result = asyncio.run(_rollback())
    except Exception as e:
        _fail(f"Rollback failed: {e}", EXIT_FATAL)

    lines = [f"[green]✓[/green] Deleted {result.deleted} unified project(s)"]
    if result.snapshot_id:
        lines.append(f"Restored from snapshot: {result.snapshot_id}")
        lines.extend(f"  {name}: {count}" for name, count in result.restored.items())
    Console().print(Panel("\n".join(lines), title="Rollback"))


@main.command()
@click.pass_obj
def verify(config: Config) -> None:
    """Re-check every unified project and report counts."""
    store = _store(config)

    async def _load() -> list[dict[str, Any]]:
        try:
            await store.initialize()
            return await store.find_documents(UNIFIED_COLLECTION)
        finally:
            await store.close()

    try:
        documents = asyncio.run(_load())
    except Exception as e:
        _fail(str(e), EXIT_FATAL)

    by_type: Counter[str] = Counter()
    by_report: Counter[str] = Counter()
    invalid: list[tuple[str, str, str]] = []
    for document in documents:
        by_type[str(document.get("projectType"))] += 1
        report = document.get("aiReport")
        report_status = report.get("status", "idle") if isinstance(report, dict) else "idle"
        by_report[str(report_status)] += 1
        violations = check(document, require_follow_up=False)
        if not violations:
            try:
                parse_project(document)
            except ValidationError as e:
                violations = violations_from_error(e)
        if violations:
            invalid.append(
                (
                    escape(str(document.get("id"))),
                    escape(str(document.get("name") or "")),
                    escape("; ".join(v.message for v in violations)),
                )
            )

    console = Console()
    console.print(f"Unified projects: {len(documents)}")

    table = Table(title="By project type")
    table.add_column("Project type", style="cyan")
    table.add_column("Count", style="magenta")
    for project_type, count in sorted(by_type.items()):
        table.add_row(project_type, str(count))
    console.print(table)

    table = Table(title="By AI report status")
    table.add_column("Status", style="cyan")
    table.add_column("Count", style="magenta")
    for report_status, count in sorted(by_report.items()):
        table.add_row(report_status, str(count))
    console.print(table)

    if invalid:
        table = Table(title=f"Invalid records ({len(invalid)})")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Problems", style="red")
        for row in invalid:
            table.add_row(*row)
        console.print(table)
        sys.exit(EXIT_FATAL)

    console.print("[green]✓[/green] All unified projects are valid")


@main.command()
@click.argument("project_id")
@click.option("--summary", is_flag=True, help="Only the identifying fields")
@click.pass_obj
def show(config: Config, project_id: str, summary: bool) -> None:
    """Print one unified project as JSON."""
    store = _store(config)

    async def _get() -> Any:
        try:
            await store.initialize()
            return await ProjectRepository(store).get(project_id)
        finally:
            await store.close()

    try:
        project = asyncio.run(_get())
    except ValidationError as e:
        problems = "; ".join(v.message for v in violations_from_error(e))
        _fail(f"Project {project_id} is invalid: {problems}", EXIT_FATAL)
    except Exception as e:
        _fail(str(e), EXIT_FATAL)

    if project is None:
        _fail(f"Project not found: {project_id}", EXIT_FATAL)
    response = project.to_response(detail="summary" if summary else "full")
    click.echo(json.dumps(response, indent=2, ensure_ascii=False))


@main.command()
@click.pass_obj
def status(config: Config) -> None:
    """Show collection counts."""
    store = _store(config)

    async def _status() -> dict:
        try:
            await store.initialize()
            return await store.get_stats()
        finally:
            await store.close()

    try:
        stats = asyncio.run(_status())
    except Exception as e:
        _fail(str(e), EXIT_FATAL)
    click.echo(json.dumps(stats, indent=2, ensure_ascii=False))


# --- Helpers ---


def _store(config: Config) -> SQLiteStore:
    try:
        return SQLiteStore(config.database_path(), timeout=config.db_timeout)
    except ConfigError as e:
        _fail(str(e), EXIT_CONFIG)


def _given(ctx: click.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) in (
        ParameterSource.COMMANDLINE,
        ParameterSource.ENVIRONMENT,
    )


def _fail(message: str, code: int) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _print_summary(result: MigrationResult) -> None:
    console = Console()

    table = Table(title="Migration Results")
    table.add_column("Source", style="cyan")
    table.add_column("Total", style="magenta")
    table.add_column("Migrated", style="green")
    table.add_column("Failed", style="red")
    for source in result.sources:
        table.add_row(
            str(source.source), str(source.total), str(source.success), str(source.failed)
        )
    console.print(table)

    if result.failures:
        failures = Table(title="Failed Records")
        failures.add_column("Source", style="cyan")
        failures.add_column("Record")
        failures.add_column("Name")
        failures.add_column("Reason", style="red")
        for failure in result.failures:
            failures.add_row(
                str(failure.source),
                escape(failure.source_id),
                escape(failure.name or ""),
                escape(failure.reason),
            )
        console.print(failures)

    mode = "[yellow]Dry run, nothing written[/yellow]" if result.dry_run else "Applied"
    backup = f"Backup: {result.backup_id} ({result.backup_records} records)"
    if result.backup_id is None:
        backup = "Backup: skipped"
    console.print(
        Panel(
            f"[green]✓[/green] Migrated: {result.success}\n"
            f"[red]✗[/red] Failed: {result.failed}\n"
            f"Elapsed: {result.elapsed_seconds:.2f}s\n"
            f"{backup}\n"
            f"{mode}",
            title="Migration Summary",
        )
    )
