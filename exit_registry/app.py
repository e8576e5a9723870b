"""Typer CLI entrypoint for exit-registry."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .api import create_app, run_app
from .config import AppConfig, ConfigRepository
from .engine import (
    AllowlistManager,
    CountryLookupClient,
    FeedFetcher,
    IngestionPipeline,
    QueryEngine,
    SQLiteAddressStore,
    SQLiteAllowStore,
    parse_query_params,
)
from .errors import StoreInitError, ValidationError
from .infra import SQLiteManager
from .logging_conf import available_logs, configure_logging, tail_log
from .models import AddressRecord, IngestionSummary, format_rfc3339
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="exit-registry command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
allowlist_app = typer.Typer(
    name="allowlist",
    help="Manage addresses excluded from query results",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: AppConfig
    storage: SQLiteManager
    scheduler: APSchedulerAdapter
    pipeline: IngestionPipeline
    query_engine: QueryEngine
    allowlist: AllowlistManager
    log_dir: Path


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    config = repository.load()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    storage = SQLiteManager()
    db_path = repository.database_path()
    address_store = SQLiteAddressStore(storage, db_path)
    allow_store = SQLiteAllowStore(storage, db_path)
    pipeline = IngestionPipeline(
        fetcher=FeedFetcher(config.feed),
        enrichment=CountryLookupClient(config.enrichment),
        store=address_store,
    )
    return AppState(
        repository=repository,
        config=config,
        storage=storage,
        scheduler=APSchedulerAdapter(),
        pipeline=pipeline,
        query_engine=QueryEngine(address_store, allow_store),
        allowlist=AllowlistManager(allow_store),
        log_dir=repository.locator.logs_dir,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_records_table(records: Sequence[AddressRecord]) -> Table:
    table = Table(title=f"Exit nodes · {len(records)} total", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("Country", style="magenta")
    table.add_column("Ingested at", style="green")
    for record in records:
        table.add_row(
            str(record.id),
            record.address,
            record.country_code,
            format_rfc3339(record.ingested_at),
        )
    return table


def _render_summary_table(summary: IngestionSummary) -> Table:
    table = Table(title="Ingestion summary", box=box.SIMPLE_HEAD)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key, value in summary.as_dict().items():
        table.add_row(key, str(value))
    return table


def _render_jobs_table(jobs: Iterable[dict]) -> Table:
    table = Table(title="Scheduled jobs", box=box.SIMPLE_HEAD)
    table.add_column("Job ID", style="cyan", no_wrap=True)
    table.add_column("Next run", style="green")
    table.add_column("Trigger", style="magenta", overflow="fold")
    for job in jobs:
        table.add_row(
            str(job.get("id", "-")),
            str(job.get("next_run_time", "-")),
            str(job.get("trigger", "-")),
        )
    return table


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True)
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except StoreInitError as exc:
        console.print(f"Unable to open the database: {exc}", style="red")
        raise typer.Exit(code=1) from exc


@app.command("serve", help="Start scheduled ingestion and the HTTP API.")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to config)."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (defaults to config)."),
) -> None:
    state = _get_state(ctx)
    server_cfg = state.config.server
    state.scheduler.schedule_from_config(state.config.schedule, state.pipeline.run_once)
    state.scheduler.start()
    console.print(_render_jobs_table(state.scheduler.list_jobs()))
    try:
        run_app(
            create_app(state.query_engine, state.allowlist),
            host=host or server_cfg.host,
            port=port or server_cfg.port,
        )
    finally:
        state.scheduler.shutdown()
        state.storage.close_all()


@app.command("ingest", help="Run one ingestion cycle now.")
def ingest(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    summary = state.pipeline.run_once()
    console.print(_render_summary_table(summary))
    if summary.aborted:
        console.print("Feed fetch failed; store left unchanged.", style="red")
        raise typer.Exit(code=1)


@app.command("query", help="List stored exit nodes, allow-list excluded.")
def query(
    ctx: typer.Context,
    country: Optional[str] = typer.Option(None, "--country", help="Exact country code."),
    starttime: Optional[str] = typer.Option(None, "--starttime", help="RFC3339, exclusive lower bound."),
    endtime: Optional[str] = typer.Option(None, "--endtime", help="RFC3339, exclusive upper bound."),
    count: Optional[str] = typer.Option(None, "--count", help="Maximum number of records."),
) -> None:
    state = _get_state(ctx)
    try:
        criteria = parse_query_params(country, starttime, endtime, count)
    except ValidationError as exc:
        raise typer.BadParameter(exc.message, param_hint=f"--{exc.field}") from exc
    records = state.query_engine.query(criteria)
    if not records:
        console.print("No matching exit nodes.", style="yellow")
        return
    console.print(_render_records_table(records))


@allowlist_app.command("add", help="Allow-list addresses (already present ones are ignored).")
def allowlist_add(
    ctx: typer.Context,
    addresses: List[str] = typer.Argument(..., help="Addresses to exclude."),
) -> None:
    state = _get_state(ctx)
    added = state.allowlist.add(addresses)
    console.print(f"Added {added} of {len(addresses)} address(es).", style="green")


@allowlist_app.command("remove", help="Remove addresses from the allow-list (absent ones are ignored).")
def allowlist_remove(
    ctx: typer.Context,
    addresses: List[str] = typer.Argument(..., help="Addresses to stop excluding."),
) -> None:
    state = _get_state(ctx)
    removed = state.allowlist.remove(addresses)
    console.print(f"Removed {removed} of {len(addresses)} address(es).", style="green")


@allowlist_app.command("list", help="Show allow-listed addresses.")
def allowlist_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    entries = state.allowlist.list()
    if not entries:
        console.print("The allow-list is empty.", style="dim")
        return
    table = Table(title=f"Allow-list · {len(entries)} total", box=box.SIMPLE_HEAD)
    table.add_column("Address", style="cyan")
    for address in entries:
        table.add_row(address)
    console.print(table)


@log_app.command("list", help="List available log files.")
def log_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    logs = list(available_logs(state.log_dir))
    if not logs:
        console.print("No log files yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the most recent lines of a log file.")
def log_show(
    ctx: typer.Context,
    name: str = typer.Option("app", "--name", help="Log name, e.g. app or error."),
    tail: int = typer.Option(100, "--tail", help="Number of lines."),
) -> None:
    state = _get_state(ctx)
    lines = tail_log(state.log_dir / f"{name}.log", tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{name}.log · last {len(lines)} lines", style="cyan")
    console.print("".join(lines))


app.add_typer(allowlist_app, name="allowlist")
app.add_typer(log_app, name="log")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
