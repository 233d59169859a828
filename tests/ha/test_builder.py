import pytest

from habuild.ha.builder import HaBuilder
from habuild.observers.dispatcher import EventBus
from habuild.observers.events import KVExported, KVImported, LifecycleEvent, PreconditionChecked
from habuild.sequencer.errors import ExternalToolError, OperationFailed, PreconditionError
from habuild.sequencer.models import RunMode

from ha_fakes import FakeKV, FakePcs, FakeRemote, FakeSystemd


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _builder(cfg, pcs=None, systemd=None, cap=None):
    fakes = {
        "pcs": pcs or FakePcs(),
        "systemd": systemd or FakeSystemd(),
        "remote": FakeRemote(),
        "kv": FakeKV(),
    }
    b = HaBuilder(cfg, bus=EventBus([cap] if cap else []), run_id="run-1", **fakes)
    return b, fakes


def test_fresh_build_stages_and_commits_per_operation(cfg):
    cap = Capture()
    b, f = _builder(cfg, cap=cap)
    report = b.build(RunMode.FRESH)

    assert report.count("OK") == 7
    pcs_calls = f["pcs"].calls
    assert pcs_calls.count(("stage",)) == 7
    assert pcs_calls.count(("commit",)) == 7
    assert pcs_calls[:3] == [("stage",), ("property", "stonith-enabled", "false"), ("commit",)]
    assert pcs_calls[-1] == ("cleanup",)

    kv = f["kv"].calls
    assert [c[0] for c in kv] == ["export", "import"]
    assert kv[0][1] == cfg.kv_dump_path
    assert cfg.workdir.is_dir()
    assert f["remote"].closed

    statuses = [e.status for e in cap.events if isinstance(e, LifecycleEvent)]
    assert statuses == ["START", "SUCCESS"]
    assert all(e.run_id == "run-1" for e in cap.events)


def test_update_build_stages_once_and_tolerates(cfg):
    pcs = FakePcs(fail_resources={"web"})
    b, f = _builder(cfg, pcs=pcs)
    report = b.build(RunMode.UPDATE)

    assert pcs.calls == [
        ("stage",),
        ("resource", "web"),
        ("resource", "agent"),
        ("constraint", "colocation-web-with-vip"),
        ("commit",),
        ("cleanup",),
    ]
    assert report.ok
    assert report.count("TOLERATED") == 1
    assert report.count("SKIPPED") == 4
    # bootstrap-only unit hand-over never ran
    assert f["systemd"].calls == []
    assert f["remote"].calls == []


def test_fresh_failure_propagates_and_skips_kv_import(cfg):
    cap = Capture()
    pcs = FakePcs(fail_resources={"web"})
    b, f = _builder(cfg, pcs=pcs, cap=cap)

    with pytest.raises(OperationFailed) as exc:
        b.build(RunMode.FRESH)

    assert exc.value.name == "resource:web"
    assert ("resource", "agent") not in pcs.calls
    assert ("cleanup",) not in pcs.calls
    assert [c[0] for c in f["kv"].calls] == ["export"]
    assert [e.status for e in cap.events if isinstance(e, LifecycleEvent)] == ["START", "FAILURE"]
    assert f["remote"].closed


@pytest.mark.parametrize("mode", [RunMode.FRESH, RunMode.UPDATE])
def test_precondition_failure_aborts_before_mutation(cfg, mode):
    cap = Capture()
    systemd = FakeSystemd(inactive={"rabbitmq-server"})
    b, f = _builder(cfg, systemd=systemd, cap=cap)

    with pytest.raises(PreconditionError) as exc:
        b.build(mode)

    assert exc.value.units == ["rabbitmq-server"]
    assert f["pcs"].calls == []
    assert f["kv"].calls == []
    checked = {e.unit: e.active for e in cap.events if isinstance(e, PreconditionChecked)}
    assert checked == {"consul": True, "rabbitmq-server": False}


def test_kv_disabled_and_no_cleanup(cfg):
    cfg = cfg.model_copy(update={
        "kv": cfg.kv.model_copy(update={"enabled": False}),
        "cleanup_after_run": False,
    })
    cap = Capture()
    b, f = _builder(cfg, cap=cap)
    b.build(RunMode.UPDATE)

    assert f["kv"].calls == []
    assert ("cleanup",) not in f["pcs"].calls
    assert not any(isinstance(e, (KVExported, KVImported)) for e in cap.events)


def test_update_stage_failure_is_fatal_and_never_commits(cfg):
    cap = Capture()
    pcs = FakePcs(fail_stage=True)
    b, f = _builder(cfg, pcs=pcs, cap=cap)

    with pytest.raises(ExternalToolError, match="unable to get cib"):
        b.build(RunMode.UPDATE)

    assert pcs.calls == [("stage",)]
    assert [c[0] for c in f["kv"].calls] == ["export"]
    assert [e.status for e in cap.events if isinstance(e, LifecycleEvent)] == ["START", "FAILURE"]
    assert f["remote"].closed


def test_update_commit_failure_is_fatal(cfg):
    cap = Capture()
    pcs = FakePcs(fail_commit=True)
    b, f = _builder(cfg, pcs=pcs, cap=cap)

    with pytest.raises(ExternalToolError, match="out of date"):
        b.build(RunMode.UPDATE)

    assert pcs.calls[-1] == ("commit",)
    assert ("cleanup",) not in pcs.calls
    assert [c[0] for c in f["kv"].calls] == ["export"]
    assert cap.events[-1].status == "FAILURE"


def test_default_exec_ctx_carries_command_timeout(cfg):
    cfg = cfg.model_copy(update={"command_timeout": 45.0})
    b, _ = _builder(cfg)
    assert b.exec_ctx.command_timeout == 45.0
    assert not b.exec_ctx.dry_run
