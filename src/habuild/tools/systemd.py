# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/systemd.py
from __future__ import annotations

from typing import Optional

from .runner import CommandRunner


class SystemdClient:
    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner(label="systemctl")

    def is_active(self, unit: str) -> bool:
        # is-active exits 0 only for an active unit
        return self.runner.run(["systemctl", "is-active", "--quiet", unit]).returncode == 0

    def stop(self, unit: str) -> None:
        self.runner.check_call(["systemctl", "stop", unit])

    def disable(self, unit: str) -> None:
        self.runner.check_call(["systemctl", "disable", unit])
