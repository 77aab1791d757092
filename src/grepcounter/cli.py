# src/grepcounter/cli.py
"""grepcounter Command Line Interface.

Entry point for the grepcounter CLI tool. ``run`` turns the engine into a
JSON-lines filter: events in on stdin (or a file), window summaries out on
stdout, logs on stderr.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any, TextIO

import structlog
import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError

from grepcounter import __version__
from grepcounter.contracts.errors import ConfigurationError
from grepcounter.core.config import GrepCounterSettings, load_settings
from grepcounter.engine.clock import DEFAULT_CLOCK
from grepcounter.engine.counter import GrepCounter
from grepcounter.engine.decider import ThresholdRule
from grepcounter.engine.tagging import TagTransformer, build_tag_plan
from grepcounter.plugins.manager import EmitterManager
from grepcounter.plugins.sinks import JSONLinesSink

__all__ = [
    "app",
    "load_settings",  # Re-exported from config for convenience
]

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="grepcounter",
    help="grepcounter: count pattern matches per tag over time windows.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"grepcounter version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """grepcounter: count pattern matches per tag over time windows."""


def _load_or_exit(settings: Path) -> GrepCounterSettings:
    """Load settings, turning every failure into a message and exit code 1."""
    settings_path = settings.expanduser()
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1) from None


def _describe(config: GrepCounterSettings) -> dict[str, Any]:
    """Normalized view of the configuration, as the engine will use it."""
    rule = ThresholdRule.from_settings(config)
    plan = build_tag_plan(**config.tag_options())
    return {
        "match_mode": config.match_mode.value,
        "settings": config.model_dump(mode="json", exclude_none=True),
        "threshold": {name: bound for name, bound in vars(rule).items() if bound is not None},
        "tag_plan": [f"{step.kind.value} {step.operand}" for step in plan],
        "example_output_tag": TagTransformer(plan).transform("syslog.host1"),
    }


@app.command()
def validate(
    settings: Path = typer.Argument(..., help="Path to settings YAML file."),
) -> None:
    """Validate configuration and print its normalized form."""
    config = _load_or_exit(settings)
    typer.echo(yaml.safe_dump(_describe(config), sort_keys=False, allow_unicode=True), nl=False)
    typer.echo("Configuration valid.", err=True)


def _parse_line(line: str, default_tag: str | None) -> tuple[str, float, dict[str, Any]]:
    """Split one input line into (tag, time, record).

    Raises:
        ValueError: If the line is not an event or a bare record with --tag
    """
    data = json.loads(line)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")

    if "record" in data and isinstance(data["record"], dict):
        tag = data.get("tag", default_tag)
        timestamp = data.get("time")
        record = data["record"]
    else:
        tag = default_tag
        timestamp = None
        record = data

    if not isinstance(tag, str) or not tag:
        raise ValueError("line has no tag and --tag was not given")
    if timestamp is None:
        timestamp = DEFAULT_CLOCK.now()
    return tag, float(timestamp), record


def _read_events(stream: TextIO, default_tag: str | None) -> Iterator[tuple[str, float, dict[str, Any]]]:
    for lineno, raw in enumerate(stream, start=1):
        line = raw.strip()
        if not line:
            continue
        try:
            yield _parse_line(line, default_tag)
        except (ValueError, TypeError) as e:
            logger.warning("Skipping unreadable input line", line=lineno, error=str(e))


@app.command()
def run(
    settings: Path = typer.Argument(..., help="Path to settings YAML file."),
    input_file: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Read events from FILE instead of stdin.",
    ),
    tag: str | None = typer.Option(
        None,
        "--tag",
        "-t",
        help="Tag for input lines that are bare records.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    ),
    final_flush: bool = typer.Option(
        True,
        "--final-flush/--no-final-flush",
        help="Flush the open window at end of input instead of leaving it to the snapshot.",
    ),
) -> None:
    """Count matching events read as JSON lines and emit window summaries on stdout."""
    from grepcounter.core.logging import configure_logging

    try:
        configure_logging(json_output=json_logs, level=log_level)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    config = _load_or_exit(settings)

    manager = EmitterManager()
    manager.register(JSONLinesSink(sys.stdout))
    manager.load_entrypoint_sinks()

    counter = GrepCounter(config, manager)
    try:
        stream = input_file.expanduser().open(encoding="utf-8") if input_file is not None else sys.stdin
    except OSError as e:
        typer.echo(f"Error: cannot read {input_file}: {e}", err=True)
        raise typer.Exit(1) from None

    counter.start()
    try:
        for event_tag, timestamp, record in _read_events(stream, tag):
            counter.on_batch(event_tag, [(timestamp, record)])
        if final_flush:
            counter.flush()
    finally:
        counter.shutdown()
        manager.close()
        if stream is not sys.stdin:
            stream.close()
