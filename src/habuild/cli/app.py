# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/cli/app.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
import typer

from habuild.config.loader import load_config
from habuild.ha.builder import HaBuilder
from habuild.ha.operations import build_sequence
from habuild.logging.log import init_logging
from habuild.observers.console import ConsoleObserver
from habuild.observers.dispatcher import EventBus
from habuild.observers.jsonfile import JsonFileObserver
from habuild.observers.logger import LoggerObserver
from habuild.sequencer.errors import HaBuildError, OperationFailed
from habuild.sequencer.models import RunMode
from habuild.tools.execution import ExecutionContext


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="HA resource provisioning for the storage control plane", no_args_is_help=True)

CONFIG_OPTION = typer.Option(..., "--config", "-c", help="Path to the HA cluster YAML")


def _run_mode(update: bool) -> RunMode:
    return RunMode.UPDATE if update else RunMode.FRESH


@app.command("build")
def build(
    config: Path = CONFIG_OPTION,
    update: bool = typer.Option(False, "--update", help="Replay update operations against the live CIB"),
    debug: bool = typer.Option(False, "--debug", help="Verbose console output"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log commands instead of running them"),
    events: Optional[Path] = typer.Option(None, "--events", help="Write lifecycle events as JSON lines"),
    console_events: bool = typer.Option(False, "--console-events", help="Echo every lifecycle event"),
):
    """
    Provision HA resources (fresh install), or with --update replay the
    update-eligible operations against the existing cluster configuration.
    """
    logger, run_id, log_path = init_logging(verbose=debug)

    bus = EventBus(
        observers=[
            LoggerObserver(logger),
            JsonFileObserver(events or log_path.parent / f"{run_id}.jsonl"),
        ]
    )
    if console_events:
        bus.subscribe(ConsoleObserver())

    try:
        cfg = load_config(config)
        builder = HaBuilder(
            cfg,
            exec_ctx=ExecutionContext(dry_run=dry_run, command_timeout=cfg.command_timeout),
            bus=bus,
            run_id=run_id,
        )
        report = builder.build(_run_mode(update))
    except OperationFailed as e:
        if e.report is not None:
            typer.echo(f"[habuild] {e.report.summary()}", err=True)
        typer.echo(f"[habuild] FAILED: {e}", err=True)
        typer.echo(f"[habuild] log: {log_path}", err=True)
        raise typer.Exit(code=1)
    except HaBuildError as e:
        typer.echo(f"[habuild] ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    for outcome in report.outcomes:
        if outcome.status == "TOLERATED":
            typer.echo(f"[habuild] {outcome.name}: tolerated failure: {outcome.error}")
    typer.echo(f"[habuild] {report.run_mode.value} build done: {report.summary()}")


@app.command("plan")
def plan(
    config: Path = CONFIG_OPTION,
    update: bool = typer.Option(False, "--update", help="Show what an update run would execute"),
):
    """
    List operations in execution order with their mode, and whether they
    would run. Does not touch the cluster.
    """
    run_mode = _run_mode(update)
    try:
        sequence = build_sequence(load_config(config))
    except HaBuildError as e:
        typer.echo(f"[habuild] ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    width = max(len(n) for n in sequence.names())
    for idx, op in enumerate(sequence, start=1):
        action = "run" if op.applies_to(run_mode) else "skip"
        typer.echo(f"{idx:>3}. {op.name:<{width}}  {op.mode.value:<9}  {action:<4}  {op.description}")


def main() -> None:
    """Console entry point. Usage errors exit 1 like every other failure."""
    try:
        rc = app(standalone_mode=False)
    except click.exceptions.Abort:
        typer.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    sys.exit(rc or 0)


if __name__ == "__main__":
    main()
