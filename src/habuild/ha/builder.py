# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/ha/builder.py
from __future__ import annotations

import logging
from typing import Optional

from .context import OperationContext
from .operations import build_sequence
from .preconditions import check_preconditions
from ..config.models import HaConfig
from ..observers.dispatcher import EventBus
from ..observers.events import new_ctx, KVExported, KVImported, LifecycleEvent
from ..sequencer.models import RunMode, RunReport
from ..sequencer.runner import run_sequence
from ..sequencer.snapshot import CibSnapshot
from ..tools.consul import ConsulKV
from ..tools.execution import ExecutionContext
from ..tools.pcs import PcsClient
from ..tools.runner import CommandRunner
from ..tools.ssh_runner import RemoteExecutor
from ..tools.systemd import SystemdClient

log = logging.getLogger("habuild")


class HaBuilder:
    """
    Provision (fresh) or refresh (update) the HA resources of a cluster.

    Workflow:
      1. required units must be active (PreconditionError otherwise)
      2. export the consul KV tree
      3. run the operation sequence against the CIB
         - fresh: the sequencer stages/commits around every operation
         - update: live CIB staged once, pushed once after all operations
      4. re-import the KV tree
      5. pcs resource cleanup
    """

    def __init__(
        self,
        cfg: HaConfig,
        *,
        exec_ctx: Optional[ExecutionContext] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
        pcs: Optional[PcsClient] = None,
        systemd: Optional[SystemdClient] = None,
        remote: Optional[RemoteExecutor] = None,
        kv: Optional[ConsulKV] = None,
    ):
        self.cfg = cfg
        self.exec_ctx = exec_ctx or ExecutionContext(command_timeout=cfg.command_timeout)
        self.bus = bus or EventBus()
        self.run_id = run_id

        self.pcs = pcs or PcsClient(CommandRunner(ctx=self.exec_ctx, label="pcs"))
        self.systemd = systemd or SystemdClient(CommandRunner(ctx=self.exec_ctx, label="systemctl"))
        self.remote = remote or RemoteExecutor(
            ctx=self.exec_ctx,
            connect_timeout=cfg.ssh_connect_timeout,
            command_timeout=cfg.ssh_command_timeout,
        )
        self.kv = kv or ConsulKV(CommandRunner(ctx=self.exec_ctx, label="consul"), prefix=cfg.kv.prefix)

    def context(self) -> OperationContext:
        return OperationContext(
            cfg=self.cfg,
            pcs=self.pcs,
            systemd=self.systemd,
            remote=self.remote,
            exec_ctx=self.exec_ctx,
        )

    # ------------------------------------------------------------------
    def _export_kv(self, run_ctx: dict) -> None:
        path = self.cfg.kv_dump_path
        size = self.kv.export_to(path)
        self.bus.emit(KVExported(path=str(path), size=size, **run_ctx))

    def _import_kv(self, run_ctx: dict) -> None:
        path = self.cfg.kv_dump_path
        self.kv.import_from(path)
        self.bus.emit(KVImported(path=str(path), **run_ctx))

    # ------------------------------------------------------------------
    def build(self, run_mode: RunMode) -> RunReport:
        run_mode = RunMode(run_mode)
        run_ctx = new_ctx(cluster=self.cfg.cluster_name, mode=run_mode.value, run_id=self.run_id)
        use_kv = self.cfg.kv.enabled and not self.exec_ctx.dry_run

        self.bus.emit(
            LifecycleEvent(
                phase="ha.build",
                status="START",
                message=f"Starting {run_mode.value} HA build ({self.exec_ctx.mode_label}) for {self.cfg.cluster_name}",
                **run_ctx,
            )
        )

        try:
            sequence = build_sequence(self.cfg)
            check_preconditions(self.systemd, self.cfg.required_units, bus=self.bus, run_ctx=run_ctx)

            if not self.exec_ctx.dry_run:
                self.cfg.workdir.mkdir(parents=True, exist_ok=True)

            if use_kv:
                self._export_kv(run_ctx)

            snapshot = CibSnapshot(self.pcs, self.cfg.cib_path)
            ctx = self.context()

            if run_mode == RunMode.UPDATE:
                snapshot.stage()
                report = run_sequence(sequence, run_mode, snapshot, ctx, bus=self.bus, run_ctx=run_ctx)
                snapshot.commit()
            else:
                report = run_sequence(sequence, run_mode, snapshot, ctx, bus=self.bus, run_ctx=run_ctx)

            if use_kv:
                self._import_kv(run_ctx)

            if self.cfg.cleanup_after_run:
                self.pcs.cleanup()

            self.bus.emit(
                LifecycleEvent(
                    phase="ha.build",
                    status="SUCCESS",
                    message=f"HA build completed: {report.summary()}",
                    **run_ctx,
                )
            )
            return report

        except Exception as exc:
            self.bus.emit(
                LifecycleEvent(
                    phase="ha.build",
                    status="FAILURE",
                    message=f"HA build failed: {exc}",
                    **run_ctx,
                )
            )
            raise

        finally:
            self.remote.close()
