from __future__ import annotations

import subprocess
import sys
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from habuild.cli.app import app, main

runner = CliRunner()


def _write_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "ha-cluster.yaml"
    cfg.write_text(textwrap.dedent(f"""
        cluster_name: storage-ctl
        local:
          hostname: srvnode-1
          address: 10.0.0.1
        workdir: {tmp_path / "work"}
        properties:
          stonith-enabled: "false"
        resources:
          - name: vip
            agent: ocf:heartbeat:IPaddr2
            options:
              ip: 10.0.0.100
            mode: bootstrap
          - name: web
            agent: systemd:csm_web
          - name: agent
            agent: systemd:csm_agent
    """))
    return cfg


class FakeTools:
    """Answers systemctl/consul/pcs invocations made through subprocess.run."""

    def __init__(self, fail_resource=None, inactive=()):
        self.calls = []
        self.fail_resource = fail_resource
        self.inactive = set(inactive)

    def __call__(self, argv, **kw):
        self.calls.append(argv)
        if argv[:2] == ["systemctl", "is-active"]:
            rc = 3 if argv[-1] in self.inactive else 0
            return subprocess.CompletedProcess(argv, rc, stdout="", stderr="")
        if argv[:3] == ["consul", "kv", "export"]:
            return subprocess.CompletedProcess(argv, 0, stdout="[]", stderr="")
        if "create" in argv and self.fail_resource in argv:
            return subprocess.CompletedProcess(
                argv, 1, stdout="", stderr=f"Error: '{self.fail_resource}' already exists"
            )
        return subprocess.CompletedProcess(argv, 0, stdout="", stderr="")


@pytest.fixture(autouse=True)
def _home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("HABUILD_SECRETS_FILE", raising=False)
    monkeypatch.delenv("WORKSPACE_ROOT", raising=False)
    monkeypatch.delenv("HABUILD_LOG_DIR", raising=False)


def test_build_dry_run_runs_nothing(tmp_path, monkeypatch):
    def boom(*a, **kw):
        raise AssertionError("no commands in dry-run")

    monkeypatch.setattr(subprocess, "run", boom)
    result = runner.invoke(app, ["build", "--config", str(_write_config(tmp_path)), "--dry-run", "--console-events"])
    assert result.exit_code == 0, result.output
    assert "fresh build done: OK=4" in result.output
    assert "LifecycleEvent cluster=storage-ctl mode=fresh" in result.output


def test_build_fresh_failure_exits_1(tmp_path, monkeypatch):
    tools = FakeTools(fail_resource="web")
    monkeypatch.setattr(subprocess, "run", tools)
    events = tmp_path / "events.jsonl"

    result = runner.invoke(
        app, ["build", "-c", str(_write_config(tmp_path)), "--events", str(events)]
    )

    assert result.exit_code == 1
    assert "resource:web" in result.output
    assert not any("agent" in argv for argv in tools.calls)
    assert '"status": "FAILURE"' in events.read_text()


def test_build_update_tolerates_failure(tmp_path, monkeypatch):
    tools = FakeTools(fail_resource="web")
    monkeypatch.setattr(subprocess, "run", tools)

    result = runner.invoke(app, ["build", "-c", str(_write_config(tmp_path)), "--update"])

    assert result.exit_code == 0, result.output
    assert "tolerated failure" in result.output
    assert "update build done: OK=1 TOLERATED=1 SKIPPED=2 FAILED=0" in result.output
    pcs = [argv for argv in tools.calls if argv[0] == "pcs"]
    assert pcs[0][:3] == ["pcs", "cluster", "cib"]
    assert pcs[-2][:3] == ["pcs", "cluster", "cib-push"]
    assert pcs[-1] == ["pcs", "resource", "cleanup"]
    assert not any("vip" in argv for argv in pcs)


def test_build_precondition_failure_exits_1(tmp_path, monkeypatch):
    tools = FakeTools(inactive={"consul"})
    monkeypatch.setattr(subprocess, "run", tools)

    result = runner.invoke(app, ["build", "-c", str(_write_config(tmp_path))])

    assert result.exit_code == 1
    assert "Required units not active: consul" in result.output
    assert not any(argv[0] == "pcs" for argv in tools.calls)


def test_build_missing_config_exits_1(tmp_path):
    result = runner.invoke(app, ["build", "-c", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_plan_marks_skipped_operations(tmp_path):
    result = runner.invoke(app, ["plan", "-c", str(_write_config(tmp_path)), "--update"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert len(lines) == 4
    assert "cluster-properties" in lines[0] and "skip" in lines[0]
    assert "resource:vip" in lines[1] and "skip" in lines[1]
    assert "resource:web" in lines[2] and "run" in lines[2]


def test_main_usage_error_exits_1(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["habuild", "build"])
    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 1


def test_build_update_missing_pcs_exits_1(tmp_path, monkeypatch):
    tools = FakeTools()

    def no_pcs(argv, **kw):
        if argv[0] == "pcs":
            raise FileNotFoundError(2, "No such file or directory", "pcs")
        return tools(argv, **kw)

    monkeypatch.setattr(subprocess, "run", no_pcs)
    result = runner.invoke(app, ["build", "-c", str(_write_config(tmp_path)), "--update"])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "[habuild] ERROR: 'pcs cluster cib" in result.output
    assert "exited 127" in result.output
