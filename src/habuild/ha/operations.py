# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/ha/operations.py
from __future__ import annotations

import logging
import shlex
from functools import partial
from typing import List

from .context import OperationContext
from ..config.models import ConstraintSpec, HaConfig, ResourceSpec
from ..sequencer.errors import ConfigError
from ..sequencer.models import Operation, OperationMode, OperationSequence

log = logging.getLogger("habuild")


# ------------------------------------------------------------------
# Actions
# ------------------------------------------------------------------

def set_properties(ctx: OperationContext) -> None:
    for key, value in ctx.cfg.properties.items():
        ctx.pcs.set_property(key, value, ctx.cib)


def disable_units(ctx: OperationContext) -> None:
    """
    Stop and disable units that the cluster manager will own, on this node
    and on the peer.
    """
    for unit in ctx.cfg.disable_units:
        log.info("[units] disabling %s", unit)
        ctx.systemd.stop(unit)
        ctx.systemd.disable(unit)

    peer = ctx.cfg.peer
    if peer is None:
        return
    for unit in ctx.cfg.disable_units:
        q = shlex.quote(unit)
        ctx.remote.check_on_host(peer, f"systemctl stop {q} && systemctl disable {q}")


def create_resource(spec: ResourceSpec, ctx: OperationContext) -> None:
    ctx.pcs.create_resource(spec, ctx.cib)


def add_constraint(spec: ConstraintSpec, ctx: OperationContext) -> None:
    ctx.pcs.set_constraint(spec, ctx.cib)


# ------------------------------------------------------------------
# Catalogue
# ------------------------------------------------------------------

def build_sequence(cfg: HaConfig) -> OperationSequence:
    """
    Operation order: cluster properties, unit hand-over, resources in
    declared order, then constraints in declared order.
    """
    ops: List[Operation] = []

    if cfg.properties:
        ops.append(
            Operation(
                name="cluster-properties",
                action=set_properties,
                mode=cfg.properties_mode,
                description=", ".join(f"{k}={v}" for k, v in cfg.properties.items()),
            )
        )

    if cfg.disable_units:
        ops.append(
            Operation(
                name="disable-units",
                action=disable_units,
                mode=OperationMode.BOOTSTRAP,
                description=", ".join(cfg.disable_units),
            )
        )

    for res in cfg.resources:
        ops.append(
            Operation(
                name=f"resource:{res.name}",
                action=partial(create_resource, res),
                mode=res.mode,
                description=res.agent,
            )
        )

    for con in cfg.constraints:
        ops.append(
            Operation(
                name=f"constraint:{con.label}",
                action=partial(add_constraint, con),
                mode=con.mode,
                description=con.kind,
            )
        )

    if not ops:
        raise ConfigError("Nothing to do: no properties, units, resources or constraints configured")

    return OperationSequence(ops)
