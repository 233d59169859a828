# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/consul.py
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Optional

from .runner import CommandRunner

log = logging.getLogger("habuild")


class ConsulKV:
    """consul kv export/import, used to carry KV state across a build."""

    def __init__(self, runner: Optional[CommandRunner] = None, prefix: str = "", binary: str = "consul"):
        self.runner = runner or CommandRunner(label="consul")
        self.prefix = prefix
        self.binary = binary

    def export(self) -> str:
        argv = [self.binary, "kv", "export"]
        if self.prefix:
            argv.append(self.prefix)
        return self.runner.check_call(argv).stdout

    def import_(self, blob: str) -> None:
        # `consul kv import` reads @file; keep the blob off the command line.
        with tempfile.NamedTemporaryFile("w", suffix=".json", prefix="habuild-kv-", delete=False) as f:
            f.write(blob)
            tmp = Path(f.name)
        try:
            self.runner.check_call([self.binary, "kv", "import", f"@{tmp}"])
        finally:
            tmp.unlink(missing_ok=True)

    def export_to(self, path: Path) -> int:
        blob = self.export()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(blob)
        log.info("[consul] exported %d bytes to %s", len(blob), path)
        return len(blob)

    def import_from(self, path: Path) -> None:
        self.import_(path.read_text())
        log.info("[consul] imported %s", path)
