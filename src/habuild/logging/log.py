# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/logging/log.py

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

LOG_DIR_ENV = "HABUILD_LOG_DIR"

_FORMAT = "%(asctime)s | %(levelname)-7s | %(run_id).8s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _RunIdFilter(logging.Filter):
    """Stamps every record with the build's run_id so interleaved runs can be told apart."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


def default_log_dir() -> Path:
    env = os.environ.get(LOG_DIR_ENV)
    return Path(env) if env else Path.home() / ".habuild" / "logs"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "habuild",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Configure the ``habuild`` logger for one build.

    The log file gets every pcs/consul/systemctl/ssh command with its
    output; the console gets INFO (DEBUG with --debug). Returns the
    logger, the run_id shared with event observers, and the log path.
    """
    run_id = str(uuid.uuid4())

    base_dir = Path(base_dir) if base_dir else default_log_dir()
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id[:8]}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    # re-entrant: a second init in the same process replaces the old handlers
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.filters.clear()
    logger.propagate = False
    logger.addFilter(_RunIdFilter(run_id))

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info("=== habuild run started ===")
    logger.info("run_id=%s", run_id)
    logger.info("log_file=%s", log_path)

    return logger, run_id, log_path
