"""Tests for the install/clean lifecycle against an in-memory cluster."""

import pytest
import requests

from src.config.schema import FleetConfig
from src.fleet.errors import SourceFetchError
from src.orchestration.lifecycle import FleetOrchestrator
from src.orchestration.report import OK, SKIPPED

from tests.conftest import FakeSession, RecordingClient


def _orchestrator(config, client, session, sleeper):
    return FleetOrchestrator(config, client, session=session, sleep=sleeper)


class TestInstall:
    def test_three_replicas(self, config, client, session, sleeper, events):
        """N=3: three suffixed overlays, three distinct targets, barrier before any launch."""
        orch = _orchestrator(config, client, session, sleeper)
        report = orch.install()

        assert report.passed
        assert report.exit_code == 0
        overlays = sorted(p.name for p in config.overlay_root.iterdir())
        assert overlays == ["overlay-001", "overlay-002", "overlay-003"]
        suffixes = [orch.overlays.unit(i).name_suffix for i in orch.identities]
        assert suffixes == ["-001", "-002", "-003"]
        targets = {orch.loadtests.script(i).target_url for i in orch.identities}
        assert len(targets) == 3

        sleep_at = events.index(("sleep", 5))
        launches = [n for n, e in enumerate(events) if e[:2] == ("apply", "task")]
        assert len(launches) == 3
        assert all(n > sleep_at for n in launches)
        applies = [n for n, e in enumerate(events) if e[:2] == ("apply", "overlay")]
        assert all(n < sleep_at for n in applies)

    def test_apply_order(self, config, client, session, sleeper, events):
        _orchestrator(config, client, session, sleeper).install()
        applied = [e[1:] for e in events if e[0] == "apply" and e[1] != "task"]
        assert applied == [
            ("overlay", "001"), ("configmap", "001"),
            ("overlay", "002"), ("configmap", "002"),
            ("overlay", "003"), ("configmap", "003"),
        ]

    def test_one_failed_apply_does_not_block_others(self, tmp_path, session, sleeper, events):
        config = FleetConfig(replicas=5, work_dir=tmp_path, stabilization_seconds=1)
        client = RecordingClient(fail_apply={"003"}, events=events)

        report = _orchestrator(config, client, session, sleeper).install()

        apply = report.phase("apply")
        launch = report.phase("launch")
        assert apply.failed_identities == ["003"]
        assert apply.ok_identities == ["001", "002", "004", "005"]
        assert launch.ok_identities == ["001", "002", "004", "005"]
        assert launch.result_for("003").status == SKIPPED
        assert report.failed_identities == ["003"]
        assert report.exit_code == 1

    def test_generation_failure_skips_identity(self, config, client, session, sleeper):
        config.overlay_root.mkdir(parents=True)
        (config.overlay_root / "overlay-002").write_text("")

        report = _orchestrator(config, client, session, sleeper).install()

        assert report.phase("apply").result_for("002").status == SKIPPED
        assert report.phase("launch").result_for("002").status == SKIPPED
        assert report.phase("launch").ok_identities == ["001", "003"]
        assert report.failed_identities == ["002"]

    def test_fetch_failure_aborts_before_any_work(self, config, client, sleeper, events):
        session = FakeSession(error=requests.ConnectionError("down"))
        with pytest.raises(SourceFetchError):
            _orchestrator(config, client, session, sleeper).install()
        assert events == []
        assert not config.overlay_root.exists()

    def test_unparseable_cached_bundle_does_not_block_install(self, config, client, session, sleeper):
        config.base_path.mkdir(parents=True)
        (config.base_path / "bookinfo.yaml").write_text("kind: [unclosed\n")

        report = _orchestrator(config, client, session, sleeper).install()

        assert report.passed
        assert session.calls == []
        assert len(report.phase("launch").ok_identities) == 3

    def test_reinstall_is_upsert(self, config, client, session, sleeper):
        orch = _orchestrator(config, client, session, sleeper)
        orch.install()
        live = set(client.live)
        report = orch.install()
        assert report.passed
        assert client.live == live
        assert len(session.calls) == 1

    def test_parallel_workers(self, tmp_path, session, sleeper, events):
        config = FleetConfig(replicas=8, work_dir=tmp_path, stabilization_seconds=1, workers=4)
        client = RecordingClient(fail_apply={"005"}, events=events)

        report = _orchestrator(config, client, session, sleeper).install()

        apply = report.phase("apply")
        assert [r.identity for r in apply.results] == [f"{i:03d}" for i in range(1, 9)]
        assert apply.failed_identities == ["005"]
        assert len(report.phase("launch").ok_identities) == 7

    def test_generate_only_touches_disk(self, config, session):
        orch = FleetOrchestrator(config, session=session)
        report = orch.generate()
        assert report.passed
        assert len(list(config.config_path.iterdir())) == 6
        assert (config.base_path / "kustomization.yaml").exists()


class TestClean:
    def test_install_then_clean_leaves_nothing(self, tmp_path, session, sleeper, events):
        config = FleetConfig(replicas=2, work_dir=tmp_path, stabilization_seconds=1)
        client = RecordingClient(events=events)
        orch = _orchestrator(config, client, session, sleeper)

        orch.install()
        assert len(client.live) == 6
        report = orch.clean()

        assert report.passed
        assert client.live == set()
        assert list(tmp_path.iterdir()) == []

    def test_delete_order(self, config, client, session, sleeper, events):
        orch = _orchestrator(config, client, session, sleeper)
        orch.install()
        del events[:]
        orch.clean()
        assert [e[1] for e in events if e[2] == "002"] == ["overlay", "configmap", "task"]

    def test_clean_on_clean_fleet(self, config, client, session, sleeper, events):
        orch = _orchestrator(config, client, session, sleeper)
        first = orch.clean()
        second = orch.clean()
        assert first.passed and second.passed
        # Nothing on disk to compose: reported as skipped, never ok
        assert second.phase("delete").n_skipped == 3
        assert second.phase("delete").n_ok == 0
        # No overlays on disk: only by-name deletes are issued
        assert {e[1] for e in events} == {"configmap", "task"}

    def test_delete_failure_does_not_stop_clean(self, config, session, sleeper, events):
        client = RecordingClient(fail_delete={"001"}, events=events)
        orch = _orchestrator(config, client, session, sleeper)
        orch.install()

        report = orch.clean()

        delete = report.phase("delete")
        assert delete.failed_identities == ["001"]
        assert delete.ok_identities == ["002", "003"]
        # All three deletes were attempted for the failing identity
        assert [e[1] for e in events if e[0] == "delete" and e[2] == "001"] == [
            "overlay", "configmap", "task",
        ]
        # Its overlay and the base stay so a later clean can still compose it
        assert [p.name for p in config.overlay_root.iterdir()] == ["overlay-001"]
        assert (config.base_path / "bookinfo.yaml").exists()
        assert not config.config_path.exists()

    def test_rerun_after_failed_workload_delete(self, config, session, sleeper, events):
        client = RecordingClient(fail_delete={"001"}, events=events)
        orch = _orchestrator(config, client, session, sleeper)
        orch.install()

        assert not orch.clean().passed
        assert ("overlay", "001") in client.live

        client.fail_delete.clear()
        report = orch.clean()

        delete = report.phase("delete")
        assert delete.result_for("001").status == OK
        assert delete.result_for("002").status == SKIPPED
        assert client.live == set()
        assert [p for p in config.work_dir.iterdir()] == []
