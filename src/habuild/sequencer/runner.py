# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/sequencer/runner.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from .errors import OperationFailed, SequencerError
from .models import Operation, OperationOutcome, OperationSequence, RunMode, RunReport
from .snapshot import Snapshot, SnapshotState

from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    RunStarted,
    SnapshotStaged,
    SnapshotCommitted,
    OperationStarted,
    OperationSucceeded,
    OperationSkipped,
    OperationTolerated,
    OperationAborted,
    RunSummary,
)

log = logging.getLogger("habuild")


def _invoke(op: Operation, ctx: Any) -> int:
    """Run the action; returns duration in ms. False return counts as failure."""
    t0 = time.time()
    result = op.action(ctx)
    if result is False:
        raise SequencerError("action returned failure")
    return int((time.time() - t0) * 1000)


def _target(snapshot: Snapshot) -> str:
    return str(getattr(snapshot, "path", snapshot))


def _summary(bus: EventBus, report: RunReport, run_ctx: Dict) -> None:
    bus.emit(
        RunSummary(
            ok=report.count("OK"),
            tolerated=report.count("TOLERATED"),
            skipped=report.count("SKIPPED"),
            failed=report.count("FAILED"),
            **run_ctx,
        )
    )


def _run_fresh(
    sequence: OperationSequence,
    snapshot: Snapshot,
    ctx: Any,
    bus: EventBus,
    run_ctx: Dict,
    report: RunReport,
) -> None:
    for op in sequence:
        bus.emit(OperationStarted(name=op.name, op_mode=op.mode.value, **run_ctx))
        try:
            snapshot.stage()
            bus.emit(SnapshotStaged(operation=op.name, target=_target(snapshot), **run_ctx))

            duration_ms = _invoke(op, ctx)

            snapshot.commit()
            bus.emit(SnapshotCommitted(operation=op.name, target=_target(snapshot), **run_ctx))
        except Exception as e:
            log.error("[sequencer] %s failed: %s", op.name, e)
            report.add(OperationOutcome(name=op.name, mode=op.mode, status="FAILED", error=str(e)))
            bus.emit(OperationAborted(name=op.name, error=str(e), **run_ctx))
            _summary(bus, report, run_ctx)
            raise OperationFailed(op.name, report=report, reason=str(e)) from e

        report.add(OperationOutcome(name=op.name, mode=op.mode, status="OK", duration_ms=duration_ms))
        bus.emit(OperationSucceeded(name=op.name, duration_ms=duration_ms, **run_ctx))
        log.info("[sequencer] %s ok (%d ms)", op.name, duration_ms)


def _run_update(
    sequence: OperationSequence,
    ctx: Any,
    bus: EventBus,
    run_ctx: Dict,
    report: RunReport,
) -> None:
    for op in sequence:
        if not op.applies_to(RunMode.UPDATE):
            log.debug("[sequencer] %s skipped (bootstrap only)", op.name)
            report.add(OperationOutcome(name=op.name, mode=op.mode, status="SKIPPED"))
            bus.emit(OperationSkipped(name=op.name, reason="bootstrap only", **run_ctx))
            continue

        bus.emit(OperationStarted(name=op.name, op_mode=op.mode.value, **run_ctx))
        try:
            duration_ms = _invoke(op, ctx)
        except Exception as e:
            # Expected on replay, e.g. the resource already exists in the live CIB.
            log.warning("[sequencer] %s failed, continuing: %s", op.name, e)
            report.add(OperationOutcome(name=op.name, mode=op.mode, status="TOLERATED", error=str(e)))
            bus.emit(OperationTolerated(name=op.name, error=str(e), **run_ctx))
            continue

        report.add(OperationOutcome(name=op.name, mode=op.mode, status="OK", duration_ms=duration_ms))
        bus.emit(OperationSucceeded(name=op.name, duration_ms=duration_ms, **run_ctx))
        log.info("[sequencer] %s ok (%d ms)", op.name, duration_ms)


def run_sequence(
    sequence: OperationSequence,
    mode: RunMode,
    snapshot: Snapshot,
    ctx: Any = None,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[Dict] = None,
) -> RunReport:
    """
    Execute ``sequence`` against ``snapshot`` under ``mode``.

    fresh:  every operation runs, each wrapped in stage -> action -> commit.
            The first failure raises OperationFailed; nothing after it runs.
    update: only update-mode operations run; failures are logged and the
            loop continues. The caller stages the snapshot before and
            commits it after, so no stage/commit happens here.
    """
    mode = RunMode(mode)
    sequence.validate()
    if mode == RunMode.UPDATE and snapshot.state != SnapshotState.STAGED:
        raise SequencerError("Update run requires a staged snapshot")

    bus = bus or EventBus()
    run_ctx = run_ctx or new_ctx(cluster="-", mode=mode.value)
    report = RunReport(run_mode=mode)

    with snapshot.claim():
        bus.emit(RunStarted(operations=sequence.names(), **run_ctx))
        log.info("[sequencer] %s run: %s", mode.value, ", ".join(sequence.names()))

        if mode == RunMode.FRESH:
            _run_fresh(sequence, snapshot, ctx, bus, run_ctx, report)
        else:
            _run_update(sequence, ctx, bus, run_ctx, report)

        _summary(bus, report, run_ctx)
        log.info("[sequencer] done: %s", report.summary())
        return report
