# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/sequencer/snapshot.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

from .errors import SequencerError

log = logging.getLogger("habuild")


class SnapshotState(str, Enum):
    ABSENT = "absent"
    STAGED = "staged"
    COMMITTED = "committed"


class Snapshot(ABC):
    """
    Handle on the cluster configuration document.

    Operations mutate a staged snapshot; commit pushes it to the live
    cluster. Only one run may hold a snapshot at a time.
    """

    def __init__(self):
        self.state = SnapshotState.ABSENT
        self._claimed = False

    @abstractmethod
    def _stage(self) -> None:
        ...

    @abstractmethod
    def _commit(self) -> None:
        ...

    def stage(self) -> None:
        self._stage()
        self.state = SnapshotState.STAGED

    def commit(self) -> None:
        if self.state != SnapshotState.STAGED:
            raise SequencerError(f"Cannot commit snapshot in state '{self.state.value}'")
        self._commit()
        self.state = SnapshotState.COMMITTED

    @contextmanager
    def claim(self) -> Iterator["Snapshot"]:
        if self._claimed:
            raise SequencerError("Snapshot is already in use by another run")
        self._claimed = True
        try:
            yield self
        finally:
            self._claimed = False


class CibSnapshot(Snapshot):
    """CIB file pulled with `pcs cluster cib` and pushed with `cib-push`."""

    def __init__(self, pcs, path: str | Path):
        super().__init__()
        self.pcs = pcs
        self.path = Path(path)

    def _stage(self) -> None:
        log.debug("[cib] staging %s", self.path)
        self.pcs.stage_config(self.path)

    def _commit(self) -> None:
        log.debug("[cib] pushing %s", self.path)
        self.pcs.commit_config(self.path)

    def __repr__(self) -> str:
        return f"CibSnapshot(path={str(self.path)!r}, state={self.state.value})"
