# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/sequencer/errors.py
from __future__ import annotations

from typing import Optional, Sequence


class HaBuildError(RuntimeError):
    """Base class for habuild failures."""


class ConfigError(HaBuildError):
    """Raised when the cluster config is missing or invalid."""


class PreconditionError(HaBuildError):
    """A required external service is not active. Raised before any mutation."""

    def __init__(self, units: Sequence[str]):
        self.units = list(units)
        super().__init__(f"Required units not active: {', '.join(self.units)}")


class ExternalToolError(HaBuildError):
    """A wrapped CLI or the remote channel returned a non-zero status."""

    def __init__(
        self,
        command: str,
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        host: Optional[str] = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.host = host
        where = f" on {host}" if host else ""
        detail = (stderr or stdout).strip()
        msg = f"'{command}' exited {returncode}{where}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class SequencerError(HaBuildError):
    """Sequencer contract violation."""


class InvalidSequenceError(SequencerError):
    pass


class OperationFailed(SequencerError):
    """
    An operation failed during a fresh run.

    The partial RunReport is attached as ``report`` so callers can print
    what ran before the abort.
    """

    def __init__(self, name: str, report=None, reason: Optional[str] = None):
        self.name = name
        self.report = report
        self.reason = reason
        msg = f"Operation '{name}' failed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
