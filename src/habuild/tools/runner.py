# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/runner.py
from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .execution import ExecutionContext
from ..sequencer.errors import ExternalToolError

log = logging.getLogger("habuild")

Cmd = Sequence[Union[str, "os.PathLike[str]"]]

# shell convention for "command not found"
NOT_FOUND_RC = 127
TIMEOUT_RC = 124


@dataclass
class CommandRunner:
    """Local command execution with full logging of output and exit status."""
    ctx: ExecutionContext = field(default_factory=ExecutionContext)
    label: Optional[str] = None

    def run(self, cmd: Cmd) -> subprocess.CompletedProcess:
        """
        Run *cmd* and return the completed process whatever its exit status.

        A binary that cannot be started, or that outlives
        ``ctx.command_timeout``, raises ExternalToolError.
        """
        label = self.label or "cmd"
        argv = [str(c) for c in cmd]
        cmd_str = shlex.join(argv)

        log.debug("[%s] $ %s", label, cmd_str)

        if self.ctx.dry_run:
            log.info("[%s] dry-run: %s", label, cmd_str)
            return subprocess.CompletedProcess(args=argv, returncode=0, stdout="", stderr="")

        start = time.time()
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                check=False,
                text=True,
                timeout=self.ctx.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            log.error("[%s] timed out after %ss: %s", label, e.timeout, cmd_str)
            raise ExternalToolError(cmd_str, TIMEOUT_RC, stderr=f"timed out after {e.timeout}s") from e
        except OSError as e:
            log.error("[%s] cannot execute %s: %s", label, argv[0], e)
            raise ExternalToolError(cmd_str, NOT_FOUND_RC, stderr=str(e)) from e
        duration = time.time() - start

        if result.stdout:
            log.debug("[%s][stdout]\n%s", label, result.stdout.rstrip())
        if result.stderr:
            log.debug("[%s][stderr]\n%s", label, result.stderr.rstrip())
        log.debug("[%s][exit %s] (%.2fs)", label, result.returncode, duration)

        return result

    def check_call(self, cmd: Cmd) -> subprocess.CompletedProcess:
        """Like run(), but a non-zero exit raises ExternalToolError."""
        result = self.run(cmd)
        if result.returncode != 0:
            raise ExternalToolError(
                shlex.join(map(str, cmd)),
                result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )
        return result
