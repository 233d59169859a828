# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/execution.py

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExecutionContext:
    """
    Shared by every local and remote tool wrapper of one build.

    dry_run: log pcs/consul/systemctl/ssh commands instead of running them
    command_timeout: seconds before a local tool invocation is abandoned
    """

    dry_run: bool = False
    command_timeout: Optional[float] = None

    @property
    def mode_label(self) -> str:
        return "dry-run" if self.dry_run else "live"
