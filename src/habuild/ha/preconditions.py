# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/ha/preconditions.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..observers.dispatcher import EventBus
from ..observers.events import PreconditionChecked
from ..sequencer.errors import PreconditionError
from ..tools.systemd import SystemdClient

log = logging.getLogger("habuild")


def check_preconditions(
    systemd: SystemdClient,
    units: Iterable[str],
    *,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[Dict] = None,
) -> None:
    """Every unit must be active before the cluster config is touched."""
    inactive = []
    for unit in units:
        active = systemd.is_active(unit)
        log.debug("[precheck] %s active=%s", unit, active)
        if bus and run_ctx:
            bus.emit(PreconditionChecked(unit=unit, active=active, **run_ctx))
        if not active:
            inactive.append(unit)

    if inactive:
        raise PreconditionError(inactive)
