"""Typer CLI entrypoint for parallel-accounts."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Annotated, Callable, Optional, Sequence

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, GlobalConfig
from .engine import AccountRecord
from .logging_conf import available_logs, configure_logging, log_path, tail_log
from .orchestrator import Orchestrator, RunResult
from .ui import PipelineProgress

app = typer.Typer(
    help="Collect the youngest accounts with valid phone numbers.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect or change the stored configuration.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Read pipeline log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

SUMMARY_LABELS = {
    "pages": "Listing pages",
    "listing_failures": "Listing failures",
    "truncated": "Pagination truncated",
    "ids_seen": "Identifiers seen",
    "detail_failures": "Detail failures",
    "malformed_payloads": "Malformed payloads",
    "invalid_records": "Invalid numbers",
    "offered": "Valid records offered",
    "accepted": "Accepted into top-K",
    "cancelled_ids": "Skipped after cancel",
}


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator_factory: Callable[[GlobalConfig], Orchestrator]


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    return AppState(repository=repository, orchestrator_factory=Orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _render_accounts_table(records: Sequence[AccountRecord], elapsed_ms: float) -> Table:
    table = Table(
        title=f"{len(records)} results sorted by name · {elapsed_ms:.0f} ms",
        box=box.SIMPLE_HEAD,
    )
    table.add_column("ID", style="cyan", justify="right", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Age", style="magenta", justify="right")
    table.add_column("Number", style="yellow", no_wrap=True)
    for record in records:
        table.add_row(str(record.id), record.name, str(record.age), record.number or "-")
    return table


def _render_summary_table(summary: dict[str, int]) -> Table:
    table = Table(title="Run summary", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for key, label in SUMMARY_LABELS.items():
        value = summary.get(key, 0)
        if key == "truncated":
            table.add_row(label, "yes" if value else "no")
        else:
            table.add_row(label, str(value))
    return table


def _result_payload(result: RunResult) -> dict:
    return {
        "elapsed_ms": round(result.elapsed_ms, 1),
        "cancelled": result.cancelled,
        "summary": result.summary,
        "accounts": [record.model_dump(mode="json") for record in result.records],
    }


app.add_typer(config_app, name="config", help="show / set configuration values")
app.add_typer(log_app, name="log", help="list or tail log files")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Run the pipeline once and print the selected accounts.")
def run(
    ctx: typer.Context,
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-k", min=1, help="Number of accounts to keep."),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", min=1, help="Cap on concurrent detail fetches per batch."),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", min=0.001, help="Abort the run after this many seconds."),
    ] = None,
    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", help="Base URL of the account service."),
    ] = None,
    quiet: bool = typer.Option(False, "--quiet", help="Print only the accounts."),
    as_json: bool = typer.Option(False, "--json", help="Emit a JSON document."),
) -> None:
    state = _get_state(ctx)
    try:
        config = state.repository.apply_overrides(
            state.repository.load_global_config(),
            base_url=endpoint,
            result_count=count,
            max_detail_workers=workers,
            run_timeout=timeout,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    progress_flag = (
        config.enable_progress and _progress_default_enabled() and not (quiet or as_json)
    )
    orchestrator = state.orchestrator_factory(config)
    try:
        with PipelineProgress(enabled=progress_flag, console=console) as progress:
            result = orchestrator.run(on_progress=progress)
    finally:
        orchestrator.close()

    if as_json:
        typer.echo(json.dumps(_result_payload(result), ensure_ascii=False, indent=2))
    elif quiet:
        for record in result.records:
            console.print(record.summary())
    else:
        console.print(_render_accounts_table(result.records, result.elapsed_ms))
        console.print(_render_summary_table(result.summary))
        if result.failures:
            console.print(
                f"{result.failures} remote call(s) failed; see `parallel-accounts log tail`.",
                style="yellow",
            )
    if result.cancelled:
        if not as_json:
            console.print("Run was cancelled before completion; results are partial.", style="red")
        raise typer.Exit(code=1)


@config_app.command("show", help="Print the effective configuration as YAML.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    typer.echo(state.repository.dump_yaml().rstrip())


@config_app.command("set", help="Set a dotted key, e.g. `pipeline.result_count 10`.")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted configuration key."),
    value: str = typer.Argument(..., help="New value (parsed as YAML)."),
) -> None:
    state = _get_state(ctx)
    try:
        state.repository.set_value(key, value)
    except KeyError:
        console.print(f"Unknown configuration key `{key}`.", style="red")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        console.print(f"Invalid value for `{key}`: {exc.errors()[0]['msg']}", style="red")
        raise typer.Exit(code=1)
    console.print(f"Updated `{key}`.", style="green")


@log_app.command("list", help="List available log files.")
def log_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    logs = available_logs(state.repository.locator.logs_dir)
    if not logs:
        console.print("No log files yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("tail", help="Show the last lines of a log file.")
def log_tail(
    ctx: typer.Context,
    name: str = typer.Option("pipeline", "--name", help="Log name: pipeline or error."),
    lines: int = typer.Option(100, "--lines", "-n", min=1, help="Number of lines."),
) -> None:
    state = _get_state(ctx)
    content = tail_log(log_path(name, state.repository.locator.logs_dir), lines)
    if not content:
        console.print("Log is empty.", style="dim")
        return
    typer.echo("".join(content).rstrip("\n"))


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
