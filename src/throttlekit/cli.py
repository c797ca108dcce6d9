"""Click CLI for throttlekit: run commands with a concurrency limit, throttle line streams."""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from throttlekit.config.hierarchy import ResolvedConfig, resolve_config
from throttlekit.config.schema import Settings, ThrottleConfig
from throttlekit.errors.exceptions import CommandFailedError, ConfigurationError
from throttlekit.queue.async_queue import AsyncQueue
from throttlekit.throttle.throttler import throttle
from throttlekit.types import QueueStats, ThrottleStats

console = Console()
error_console = Console(stderr=True)

logger = logging.getLogger(__name__)

_SPAWN_FAILED = 127


@dataclass
class CommandResult:
    index: int
    command: str
    returncode: int
    output: str


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    level = logging.getLevelName(default_level)
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    # Configured on the package logger: basicConfig is a no-op once the root has handlers
    package_logger = logging.getLogger("throttlekit")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(console=error_console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


def _validate(resolved: ResolvedConfig) -> Settings:
    try:
        return Settings.from_mapping(resolved.values)
    except ConfigurationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)


def _load_settings(verbosity: int, **overrides: object) -> Settings:
    """Resolve settings with logging already in place, then apply the configured level."""
    _setup_logging(verbosity)
    settings = _validate(resolve_config(**overrides))
    _setup_logging(verbosity, settings.log_level)
    return settings


@click.group()
@click.version_option(package_name="throttlekit")
def cli() -> None:
    """throttlekit — call-rate throttling and concurrency-limited task queues."""


@cli.command()
@click.argument("commands_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-c", "--concurrency", type=int, default=None, help="Maximum commands running at once.")
@click.option(
    "--fail-fast", is_flag=True, default=False, help="Drop commands not yet started after a failure."
)
@click.option("--show-output", is_flag=True, default=False, help="Print each command's output.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def run(
    commands_file: str,
    concurrency: int | None,
    fail_fast: bool,
    show_output: bool,
    verbose: int,
) -> None:
    """Run each line of COMMANDS_FILE as a shell command, a few at a time."""
    settings = _load_settings(verbose, concurrency=concurrency)

    commands = _read_commands(Path(commands_file))
    if not commands:
        error_console.print("[yellow]No commands found.[/yellow]")
        return

    results, stats = asyncio.run(_run_commands(commands, settings, fail_fast))

    if show_output:
        for result in results:
            console.print(f"[bold]$ {result.command}[/bold]", highlight=False)
            click.echo(result.output, nl=False)

    _print_run_summary(results, stats)

    if stats.failed:
        sys.exit(1)


def _read_commands(path: Path) -> list[str]:
    """Non-blank lines of the file, skipping `#` comments."""
    lines = (line.strip() for line in path.read_text().splitlines())
    return [line for line in lines if line and not line.startswith("#")]


async def _run_commands(
    commands: list[str],
    settings: Settings,
    fail_fast: bool,
) -> tuple[list[CommandResult], QueueStats]:
    results: list[CommandResult] = []
    queue = AsyncQueue(settings.queue.concurrency)

    def on_error(exc: BaseException) -> None:
        logger.warning("%s", exc)
        if fail_fast:
            queue.clear()

    queue.on_error = on_error

    async def run_one(index: int, command: str) -> None:
        logger.debug("Starting: %s", command)
        try:
            proc = await asyncio.create_subprocess_exec(
                settings.shell,
                "-c",
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            # Same status a shell reports for a command it cannot find
            results.append(CommandResult(index, command, _SPAWN_FAILED, f"{e}\n"))
            raise CommandFailedError(command, _SPAWN_FAILED) from e

        output, _ = await proc.communicate()
        returncode = proc.returncode if proc.returncode is not None else -1
        results.append(
            CommandResult(index, command, returncode, output.decode(errors="replace"))
        )
        if returncode != 0:
            raise CommandFailedError(command, returncode)

    queue.add_all(functools.partial(run_one, i, cmd) for i, cmd in enumerate(commands))
    await queue.on_idle()

    results.sort(key=lambda r: r.index)
    return results, queue.stats


def _print_run_summary(results: list[CommandResult], stats: QueueStats) -> None:
    table = Table(title="Commands", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Command", style="cyan")
    table.add_column("Exit")

    for result in results:
        status = "[green]0[/green]" if result.returncode == 0 else f"[red]{result.returncode}[/red]"
        table.add_row(str(result.index + 1), result.command, status)

    console.print(table)

    summary = Table(title="Run Summary", show_header=True)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value")
    summary.add_row("Concurrency", str(stats.concurrency))
    summary.add_row("Completed", str(stats.completed))
    summary.add_row("Failed", str(stats.failed))
    if stats.cleared:
        summary.add_row("Skipped", f"[yellow]{stats.cleared}[/yellow]")

    console.print(summary)


@cli.command("throttle")
@click.option("-w", "--wait", type=float, default=None, help="Window length in seconds.")
@click.option("--leading/--no-leading", default=None, help="Emit the first line of a window.")
@click.option("--trailing/--no-trailing", default=None, help="Emit the last line of a window.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def throttle_lines(
    wait: float | None,
    leading: bool | None,
    trailing: bool | None,
    verbose: int,
) -> None:
    """Echo stdin to stdout, at most one line per window."""
    settings = _load_settings(verbose, wait=wait, leading=leading, trailing=trailing)

    stream = click.get_text_stream("stdin")
    stats = asyncio.run(_throttle_stream(stream, settings.throttle))

    if verbose >= 1:
        error_console.print(
            f"Emitted {stats.invocations} of {stats.calls} lines "
            f"({stats.suppressed} suppressed)"
        )


async def _throttle_stream(stream: IO[str], config: ThrottleConfig) -> ThrottleStats:
    emit = throttle(
        click.echo,
        config.wait,
        leading=config.leading,
        trailing=config.trailing,
    )
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            break
        emit(line.rstrip("\n"))

    # Don't lose the last line on EOF
    emit.flush()
    return emit.stats


@cli.command("config")
def show_config() -> None:
    """Show the resolved configuration."""
    _setup_logging(0)
    resolved = resolve_config()
    settings = _validate(resolved)

    rows = {
        "concurrency": str(settings.queue.concurrency),
        "wait": f"{settings.throttle.wait:g}s",
        "leading": str(settings.throttle.leading),
        "trailing": str(settings.throttle.trailing),
        "shell": settings.shell,
        "log_level": settings.log_level,
    }

    table = Table(title="Configuration", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    for key, value in rows.items():
        table.add_row(key, value, resolved.source_of(key))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
