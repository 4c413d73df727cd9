"""
Root Typer application for the time-island CLI.

Commands:
    parse      show the descriptor a rule string parses to
    progress   evaluate one or more rules at an instant
    watch      run the tracker on a live timer and print progress events
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import typer

from time_island.cli.utils import console, fail, output_dict, output_json, output_table
from time_island.config import BarConfig, ConfigStore, TimeIslandSettings, create_scheduler
from time_island.core.errors import InvalidConfigError, RuleParseError, TimeIslandError
from time_island.core.logging import bind_context, clear_context, configure_logging
from time_island.rules import parse_rule_strict, progress
from time_island.tracker import IslandState, ProgressTracker, ProgressUpdate

app = typer.Typer(
    name="time-island",
    help="time-island: cyclical time progress rules and tick scheduling.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from time_island import __version__

        typer.echo(f"time-island {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """time-island CLI: parse rules, evaluate progress, watch ticks."""
    settings = TimeIslandSettings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("parse")
def parse_command(
    rule: str = typer.Argument(..., help='Rule string, e.g. "16h 8h" or "year"'),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Parse a rule string and show its descriptor."""
    try:
        descriptor = parse_rule_strict(rule)
    except RuleParseError as e:
        fail(e)
        return

    data = {"rule": rule, **descriptor.to_dict()}
    if json_out:
        output_json(data)
    else:
        output_dict(data, title=f"Rule: {rule}")


@app.command("progress")
def progress_command(
    rules: list[str] = typer.Argument(..., help="One or more rule strings"),
    at: str | None = typer.Option(None, "--at", help="ISO-8601 instant (default: now)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Evaluate the progress of each rule at an instant."""
    settings = TimeIslandSettings()
    try:
        instant = datetime.fromisoformat(at) if at else datetime.now(settings.tzinfo)
    except ValueError as e:
        fail(InvalidConfigError("at", at, f"Invalid ISO-8601 instant: {at!r}").with_context(error=str(e)))
        return

    rows = []
    try:
        for rule in rules:
            descriptor = parse_rule_strict(rule)
            rows.append({
                "rule": rule,
                "unit": descriptor.unit.value,
                "granularity": descriptor.granularity.label,
                "progress": round(progress(descriptor, instant, tz=settings.tzinfo), 6),
            })
    except RuleParseError as e:
        fail(e)
        return

    if json_out:
        output_json({"at": instant.isoformat(), "results": rows})
    else:
        output_table(rows, title=f"Progress at {instant.isoformat(timespec='seconds')}")


def _parse_bar_option(value: str) -> BarConfig:
    name, sep, rule = value.partition("=")
    if not sep or not name.strip():
        raise InvalidConfigError("bar", value, f"Expected NAME=RULE, got {value!r}")
    parse_rule_strict(rule)
    return BarConfig(name=name.strip(), rule=rule.strip())


def _print_update(update: ProgressUpdate) -> None:
    parts = [f"{name}={value:6.1%}" for name, value in update.progresses.items()]
    if update.time_text is not None:
        parts.insert(0, f"[bold]{update.time_text}[/bold]")
    for name in sorted(update.completed):
        parts.append(f"[green]{name} completed[/green]")
    changed = ",".join(g.label for g in sorted(update.changed))
    console.print(f"[dim]{update.at:%H:%M:%S} ({changed})[/dim] " + "  ".join(parts))


async def _watch(store: ConfigStore, state: IslandState, duration: float | None) -> None:
    bind_context(command="watch", state=state.value)
    scheduler = create_scheduler(store.settings)
    tracker = ProgressTracker(store, scheduler, listener=_print_update)
    tracker.start()
    tracker.transition_to(state)
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        tracker.stop()
        clear_context()


@app.command("watch")
def watch_command(
    bars: list[str] | None = typer.Option(None, "--bar", "-b", help="NAME=RULE (repeatable); defaults to the built-in bars"),
    state: IslandState = typer.Option(IslandState.EXPANDED, "--state", help="Island state deciding visible bars"),
    duration: float | None = typer.Option(None, "--duration", help="Stop after this many seconds"),
) -> None:
    """Run the tracker on a live timer and print each progress update."""
    try:
        settings = TimeIslandSettings()
        bar_configs = [_parse_bar_option(b) for b in bars] if bars else None
        store = ConfigStore(settings=settings, bars=bar_configs)
    except TimeIslandError as e:
        fail(e)
        return

    try:
        asyncio.run(_watch(store, state, duration))
    except KeyboardInterrupt:
        console.print("[dim]stopped[/dim]")


if __name__ == "__main__":
    app()
