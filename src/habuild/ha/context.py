# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/ha/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..config.models import HaConfig
from ..tools.execution import ExecutionContext
from ..tools.pcs import PcsClient
from ..tools.ssh_runner import RemoteExecutor
from ..tools.systemd import SystemdClient


@dataclass
class OperationContext:
    """Everything an operation action may touch. Passed explicitly to each action."""
    cfg: HaConfig
    pcs: PcsClient
    systemd: SystemdClient
    remote: RemoteExecutor
    exec_ctx: ExecutionContext

    @property
    def cib(self) -> Path:
        return self.cfg.cib_path
