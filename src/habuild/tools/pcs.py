# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/pcs.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .runner import CommandRunner
from ..config.models import ConstraintSpec, ResourceSpec

log = logging.getLogger("habuild")


def _kv(options: Dict[str, str]) -> List[str]:
    return [f"{k}={v}" for k, v in options.items()]


def resource_create_args(spec: ResourceSpec) -> List[str]:
    args = ["resource", "create", spec.name, spec.agent, *_kv(spec.options)]
    for op in spec.ops:
        args += ["op", op.action, *_kv(op.options)]
    if spec.meta:
        args += ["meta", *_kv(spec.meta)]
    if spec.clone:
        args.append("clone")
    elif spec.group:
        args += ["--group", spec.group]
    return args


def constraint_args(spec: ConstraintSpec) -> List[str]:
    if spec.kind == "order":
        return [
            "constraint", "order",
            spec.first_action, spec.first,
            "then",
            spec.then_action, spec.then,
            *_kv(spec.options),
        ]
    if spec.kind == "colocation":
        return ["constraint", "colocation", "add", spec.rsc, "with", spec.with_rsc, spec.score]
    verb = "prefers" if spec.prefers else "avoids"
    return ["constraint", "location", spec.rsc, verb, f"{spec.node}={spec.score}"]


class PcsClient:
    """
    Thin wrapper over the pcs CLI.

    Mutating calls take the staged CIB file and run with ``pcs -f`` so
    nothing reaches the live cluster until commit_config().
    """

    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "pcs"):
        self.runner = runner or CommandRunner(label="pcs")
        self.binary = binary

    def _pcs(self, args: List[str], cib: Optional[Path] = None) -> str:
        argv = [self.binary]
        if cib is not None:
            argv += ["-f", str(cib)]
        return self.runner.check_call(argv + args).stdout

    def stage_config(self, path: str | Path) -> None:
        self._pcs(["cluster", "cib", str(path)])

    def commit_config(self, path: str | Path) -> None:
        self._pcs(["cluster", "cib-push", str(path), "--config"])

    def create_resource(self, spec: ResourceSpec, cib: str | Path) -> None:
        log.info("[pcs] create resource %s (%s)", spec.name, spec.agent)
        self._pcs(resource_create_args(spec), cib=Path(cib))

    def set_constraint(self, spec: ConstraintSpec, cib: str | Path) -> None:
        log.info("[pcs] add %s constraint %s", spec.kind, spec.label)
        self._pcs(constraint_args(spec), cib=Path(cib))

    def set_property(self, key: str, value: str, cib: str | Path) -> None:
        log.info("[pcs] property %s=%s", key, value)
        self._pcs(["property", "set", f"{key}={value}"], cib=Path(cib))

    def cleanup(self) -> None:
        self._pcs(["resource", "cleanup"])
