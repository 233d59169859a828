# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, LifecycleEvent, OperationAborted, OperationTolerated, PreconditionChecked

_CONTEXT_KEYS = ("ts", "run_id", "cluster", "mode")


def _level(event: BaseEvent) -> int:
    if isinstance(event, OperationAborted):
        return logging.ERROR
    if isinstance(event, OperationTolerated):
        return logging.WARNING
    if isinstance(event, PreconditionChecked) and not event.active:
        return logging.WARNING
    if isinstance(event, LifecycleEvent) and event.status == "FAILURE":
        return logging.ERROR
    return logging.INFO


class LoggerObserver:
    """
    Mirrors build events into the run log. Run context is already in the
    log header, so only the event's own fields are written.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = ", ".join(
            f"{k}={v}" for k, v in event.dict().items() if k not in _CONTEXT_KEYS
        )
        self.logger.log(_level(event), "[EVENT] %s: %s", type(event).__name__, fields)
