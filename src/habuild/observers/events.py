# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single build invocation
    cluster: str      # cluster name from config
    mode: str         # fresh/update

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(cluster: str, mode: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "cluster": cluster,
        "mode": mode,
    }


# ---------------------------------------------------------------------
# Sequencer
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunStarted(BaseEvent):
    operations: List[str]

@dataclass(frozen=True)
class SnapshotStaged(BaseEvent):
    operation: Optional[str]
    target: str

@dataclass(frozen=True)
class SnapshotCommitted(BaseEvent):
    operation: Optional[str]
    target: str

@dataclass(frozen=True)
class OperationStarted(BaseEvent):
    name: str
    op_mode: str

@dataclass(frozen=True)
class OperationSucceeded(BaseEvent):
    name: str
    duration_ms: int

@dataclass(frozen=True)
class OperationSkipped(BaseEvent):
    name: str
    reason: str

@dataclass(frozen=True)
class OperationTolerated(BaseEvent):
    name: str
    error: str

@dataclass(frozen=True)
class OperationAborted(BaseEvent):
    name: str
    error: str

@dataclass(frozen=True)
class RunSummary(BaseEvent):
    ok: int
    tolerated: int
    skipped: int
    failed: int


# ---------------------------------------------------------------------
# Build workflow
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PreconditionChecked(BaseEvent):
    unit: str
    active: bool

@dataclass(frozen=True)
class KVExported(BaseEvent):
    path: str
    size: int

@dataclass(frozen=True)
class KVImported(BaseEvent):
    path: str


@dataclass(frozen=True)
class LifecycleEvent(BaseEvent):
    phase: str
    status: str       # "START" | "SUCCESS" | "FAILURE"
    message: str
