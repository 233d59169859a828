# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/tools/ssh_runner.py

from __future__ import annotations

import logging
import shlex
from typing import Dict, Optional

import paramiko

from .execution import ExecutionContext
from ..config.models import NodeSpec
from ..sequencer.errors import ExternalToolError

log = logging.getLogger("habuild")


class SSHRunner:
    def __init__(self, client: paramiko.SSHClient, hostname: str = ""):
        self.client = client
        self.hostname = hostname

    def run(
        self,
        cmd: str,
        *,
        sudo: bool = False,
        timeout: Optional[float] = None,
    ) -> tuple[int, str, str]:
        if sudo:
            cmd = f"sudo -H bash -c {shlex.quote(cmd)}"

        log.debug("[ssh %s] $ %s", self.hostname, cmd)
        stdin, stdout, stderr = self.client.exec_command(cmd, timeout=timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        if out:
            log.debug("[ssh %s][stdout]\n%s", self.hostname, out.rstrip())
        if err:
            log.debug("[ssh %s][stderr]\n%s", self.hostname, err.rstrip())
        log.debug("[ssh %s][exit %s]", self.hostname, rc)
        return rc, out, err

    def close(self) -> None:
        self.client.close()


def _load_pkey(path: str) -> paramiko.PKey:
    for key_cls in (
        paramiko.Ed25519Key,
        paramiko.RSAKey,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(path)
        except paramiko.SSHException:
            continue
    raise ExternalToolError(f"load key {path}", 255, stderr="unsupported private key format")


def open_ssh(
    host: NodeSpec,
    *,
    connect_timeout: float = 20.0,
) -> SSHRunner:
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    pkey = _load_pkey(str(host.pkey_path)) if host.pkey_path else None

    try:
        client.connect(
            hostname=host.address,
            port=host.port,
            username=host.username,
            password=host.password if not pkey else None,
            pkey=pkey,
            timeout=connect_timeout,
            allow_agent=True,
            look_for_keys=pkey is None,
        )
    except Exception:
        client.close()
        raise

    return SSHRunner(client, hostname=host.hostname)


class RemoteExecutor:
    """
    Runs commands on peer nodes. One cached connection per host;
    call close() when the build is done.
    """

    def __init__(
        self,
        ctx: Optional[ExecutionContext] = None,
        connect_timeout: float = 20.0,
        command_timeout: Optional[float] = 300.0,
    ):
        self.ctx = ctx or ExecutionContext()
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self._conns: Dict[str, SSHRunner] = {}

    def _conn(self, host: NodeSpec) -> SSHRunner:
        ssh = self._conns.get(host.hostname)
        if ssh is None:
            log.debug("[ssh] connecting to %s (%s)", host.hostname, host.address)
            ssh = open_ssh(host, connect_timeout=self.connect_timeout)
            self._conns[host.hostname] = ssh
        return ssh

    def _exec(self, host: NodeSpec, command: str, sudo: bool) -> tuple[int, str, str]:
        try:
            return self._conn(host).run(command, sudo=sudo, timeout=self.command_timeout)
        except (paramiko.SSHException, OSError) as e:
            # connection is unusable after a transport failure
            stale = self._conns.pop(host.hostname, None)
            if stale is not None:
                stale.close()
            log.error("[ssh %s] %s: %s", host.hostname, type(e).__name__, e)
            raise ExternalToolError(
                command, 255, stderr=f"ssh: {type(e).__name__}: {e}", host=host.hostname
            ) from e

    def run_on_host(self, host: NodeSpec, command: str, *, sudo: bool = True) -> int:
        """
        Run ``command`` on ``host`` and return its exit status. Failing to
        reach the host at all raises ExternalToolError.
        """
        if self.ctx.dry_run:
            log.info("[ssh %s] dry-run: %s", host.hostname, command)
            return 0
        rc, _, _ = self._exec(host, command, sudo)
        return rc

    def check_on_host(self, host: NodeSpec, command: str, *, sudo: bool = True) -> str:
        """Run ``command`` on ``host``; non-zero exit raises ExternalToolError."""
        if self.ctx.dry_run:
            log.info("[ssh %s] dry-run: %s", host.hostname, command)
            return ""
        rc, out, err = self._exec(host, command, sudo)
        if rc != 0:
            raise ExternalToolError(command, rc, stdout=out, stderr=err, host=host.hostname)
        return out

    def close(self) -> None:
        for ssh in self._conns.values():
            ssh.close()
        self._conns.clear()
