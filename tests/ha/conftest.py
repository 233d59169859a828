from __future__ import annotations

from pathlib import Path

import pytest

from habuild.config.models import HaConfig


@pytest.fixture
def cfg(tmp_path: Path) -> HaConfig:
    return HaConfig.model_validate({
        "cluster_name": "storage-ctl",
        "local": {"hostname": "srvnode-1", "address": "10.0.0.1"},
        "peer": {"hostname": "srvnode-2", "address": "10.0.0.2"},
        "workdir": str(tmp_path / "work"),
        "properties": {"stonith-enabled": "false"},
        "disable_units": ["haproxy"],
        "resources": [
            {"name": "vip", "agent": "ocf:heartbeat:IPaddr2", "mode": "bootstrap"},
            {"name": "web", "agent": "systemd:csm_web"},
            {"name": "agent", "agent": "systemd:csm_agent"},
        ],
        "constraints": [
            {"kind": "colocation", "rsc": "web", "with_rsc": "vip"},
            {"kind": "order", "first": "vip", "then": "web", "mode": "bootstrap"},
        ],
    })
