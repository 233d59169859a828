# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/config/models.py

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field, model_validator

from ..sequencer.models import OperationMode


def _pcs_value(v: Any) -> Any:
    # YAML turns false/100 into bool/int; pcs wants the literal text
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


PcsValue = Annotated[str, BeforeValidator(_pcs_value)]


class NodeSpec(BaseModel):
    """A cluster node reachable over SSH."""
    hostname: str                    # node name as known to pacemaker
    address: str                     # IP or DNS to connect
    username: str = "root"
    port: int = 22
    pkey_path: Optional[Path] = None
    password: Optional[str] = None


class OpSpec(BaseModel):
    action: str                      # monitor, start, stop ...
    options: Dict[str, PcsValue] = Field(default_factory=dict)


class ResourceSpec(BaseModel):
    name: str
    agent: str                       # e.g. ocf:heartbeat:IPaddr2, systemd:haproxy
    options: Dict[str, PcsValue] = Field(default_factory=dict)
    ops: List[OpSpec] = Field(default_factory=list)
    meta: Dict[str, PcsValue] = Field(default_factory=dict)
    group: Optional[str] = None
    clone: bool = False
    mode: OperationMode = OperationMode.UPDATE

    @model_validator(mode="after")
    def _clone_or_group(self):
        if self.clone and self.group:
            raise ValueError(f"resource '{self.name}': clone and group are mutually exclusive")
        return self


class ConstraintSpec(BaseModel):
    kind: Literal["order", "colocation", "location"]
    name: Optional[str] = None

    # order
    first: Optional[str] = None
    then: Optional[str] = None
    first_action: str = "start"
    then_action: str = "start"
    options: Dict[str, PcsValue] = Field(default_factory=dict)

    # colocation / location
    rsc: Optional[str] = None
    with_rsc: Optional[str] = None
    node: Optional[str] = None
    prefers: bool = True
    score: PcsValue = "INFINITY"

    mode: OperationMode = OperationMode.UPDATE

    @model_validator(mode="after")
    def _required_fields(self):
        required = {
            "order": ("first", "then"),
            "colocation": ("rsc", "with_rsc"),
            "location": ("rsc", "node"),
        }[self.kind]
        missing = [f for f in required if not getattr(self, f)]
        if missing:
            raise ValueError(f"{self.kind} constraint requires: {', '.join(missing)}")
        return self

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.kind == "order":
            return f"order-{self.first}-then-{self.then}"
        if self.kind == "colocation":
            return f"colocation-{self.rsc}-with-{self.with_rsc}"
        return f"location-{self.rsc}-on-{self.node}"


class KVSpec(BaseModel):
    enabled: bool = True
    prefix: str = ""
    dump_file: str = "consul-kv.json"


class HaConfig(BaseModel):
    cluster_name: str
    local: NodeSpec
    peer: Optional[NodeSpec] = None
    workdir: Path = Path("/var/lib/habuild")
    cib_file: str = "ha.cib"

    properties: Dict[str, PcsValue] = Field(default_factory=dict)
    properties_mode: OperationMode = OperationMode.BOOTSTRAP
    disable_units: List[str] = Field(default_factory=list)
    required_units: List[str] = Field(default_factory=lambda: ["consul", "rabbitmq-server"])

    resources: List[ResourceSpec] = Field(default_factory=list)
    constraints: List[ConstraintSpec] = Field(default_factory=list)

    kv: KVSpec = Field(default_factory=KVSpec)
    cleanup_after_run: bool = True

    command_timeout: float = 120.0     # local pcs/consul/systemctl calls
    ssh_connect_timeout: float = 20.0
    ssh_command_timeout: float = 300.0

    @model_validator(mode="after")
    def _unique_names(self):
        for what, names in (
            ("resource", [r.name for r in self.resources]),
            ("constraint", [c.label for c in self.constraints]),
        ):
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                raise ValueError(f"duplicate {what} names: {', '.join(dupes)}")
        return self

    @property
    def cib_path(self) -> Path:
        return self.workdir / self.cib_file

    @property
    def kv_dump_path(self) -> Path:
        return self.workdir / self.kv.dump_file