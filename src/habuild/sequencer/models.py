# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/sequencer/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .errors import InvalidSequenceError


class OperationMode(str, Enum):
    BOOTSTRAP = "bootstrap"     # fresh install only
    UPDATE = "update"           # fresh install and update replay


class RunMode(str, Enum):
    FRESH = "fresh"
    UPDATE = "update"


Action = Callable[[Any], Optional[bool]]


@dataclass(frozen=True)
class Operation:
    """
    A named configuration step.

    The action receives the OperationContext. It signals failure by raising
    or by returning False; any other return value is success.
    """
    name: str
    action: Action
    mode: OperationMode = OperationMode.UPDATE
    description: str = ""

    def __post_init__(self):
        if not self.name:
            raise InvalidSequenceError("Operation name must not be empty")
        if not isinstance(self.mode, OperationMode):
            raise InvalidSequenceError(
                f"Operation '{self.name}' has invalid mode {self.mode!r}"
            )
        if not callable(self.action):
            raise InvalidSequenceError(f"Operation '{self.name}' action is not callable")

    def applies_to(self, run_mode: RunMode) -> bool:
        if run_mode == RunMode.FRESH:
            return True
        return self.mode == OperationMode.UPDATE


class OperationSequence:
    """Ordered operations. Insertion order is execution order."""

    def __init__(self, operations: Iterable[Operation]):
        self._ops: List[Operation] = list(operations)
        self.validate()

    def validate(self) -> None:
        if not self._ops:
            raise InvalidSequenceError("Sequence must contain at least one operation")
        seen = set()
        for op in self._ops:
            if op.name in seen:
                raise InvalidSequenceError(f"Duplicate operation name '{op.name}'")
            seen.add(op.name)

    def names(self) -> List[str]:
        return [op.name for op in self._ops]

    def eligible(self, run_mode: RunMode) -> List[Operation]:
        return [op for op in self._ops if op.applies_to(run_mode)]

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    def __getitem__(self, idx: int) -> Operation:
        return self._ops[idx]


@dataclass
class OperationOutcome:
    name: str
    mode: OperationMode
    status: str                 # "OK" | "TOLERATED" | "SKIPPED" | "FAILED"
    error: Optional[str] = None
    duration_ms: int = 0


@dataclass
class RunReport:
    run_mode: RunMode
    outcomes: List[OperationOutcome] = field(default_factory=list)

    def add(self, outcome: OperationOutcome) -> None:
        self.outcomes.append(outcome)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def invoked(self) -> List[str]:
        return [o.name for o in self.outcomes if o.status != "SKIPPED"]

    @property
    def ok(self) -> bool:
        return self.count("FAILED") == 0

    def summary(self) -> str:
        return (
            f"OK={self.count('OK')} TOLERATED={self.count('TOLERATED')} "
            f"SKIPPED={self.count('SKIPPED')} FAILED={self.count('FAILED')}"
        )
