"""Install and clean phase sequences for the whole fleet.

Every per-identity step is isolated: a failure is recorded in the phase
report and the loop moves on to the next identity. Nothing is rolled back or
retried. The orchestrator keeps no state of its own; each phase re-derives
names and paths from the identity scheme and the artifact store.
"""

import logging
import time
from multiprocessing.pool import ThreadPool
from typing import Callable, Dict, Iterable, List, Optional, Set

import requests
import yaml

from src.config.schema import FleetConfig
from src.fleet import layout
from src.fleet.errors import IdentityError
from src.fleet.identity import fleet_identities
from src.generator.base_bundle import base_resource_names, ensure_base_bundle
from src.generator.loadtest_generator import LoadTestArtifactGenerator
from src.generator.overlay_generator import OverlayGenerator
from src.orchestration.client import OrchestrationClient
from src.orchestration.report import (
    FAILED,
    OK,
    SKIPPED,
    FleetReport,
    IdentityResult,
    PhaseReport,
)
from src.storage.artifact_store import remove_generated

logger = logging.getLogger(__name__)


class FleetOrchestrator:
    """Drives install and clean against an OrchestrationClient.

    `client` may be omitted when only `generate` is used.
    """

    def __init__(
        self,
        config: FleetConfig,
        client: Optional[OrchestrationClient] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        skip_existing: bool = True,
    ):
        self.config = config
        self.client = client
        self.session = session
        self.sleep = sleep
        self.identities = fleet_identities(config.replicas, config.identity_width)
        self.overlays = OverlayGenerator(config, skip_existing=skip_existing)
        self.loadtests = LoadTestArtifactGenerator(config, skip_existing=skip_existing)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _run_step(
        self, phase: str, identity: str, step: Callable[[str], Optional[str]],
    ) -> IdentityResult:
        """A step returning a message counts as skipped rather than ok."""
        try:
            note = step(identity)
        except IdentityError as exc:
            logger.warning(f"{phase} {identity} failed: {exc}")
            return IdentityResult(identity, FAILED, str(exc))
        if note:
            return IdentityResult(identity, SKIPPED, note)
        return IdentityResult(identity, OK)

    def _for_each(
        self,
        phase: str,
        step: Callable[[str], Optional[str]],
        skip: Optional[Dict[str, str]] = None,
    ) -> PhaseReport:
        """Run `step` for every identity not in `skip`, fire-and-continue."""
        skip = skip or {}
        report = PhaseReport(phase)
        for ident, reason in skip.items():
            report.record(ident, SKIPPED, reason)

        todo = [i for i in self.identities if i not in skip]
        if self.config.workers <= 1 or len(todo) <= 1:
            results = [self._run_step(phase, i, step) for i in todo]
        else:
            with ThreadPool(min(self.config.workers, len(todo))) as pool:
                results = pool.map(lambda i: self._run_step(phase, i, step), todo)

        report.extend(results)
        logger.info(
            f"Phase {phase}: {report.n_ok} ok, {report.n_failed} failed, "
            f"{report.n_skipped} skipped"
        )
        return report

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def ensure_base_bundle(self) -> bool:
        return ensure_base_bundle(self.config, session=self.session)

    def ensure_overlays(self) -> PhaseReport:
        return self.overlays.generate_all(self.identities)

    def ensure_load_test_artifacts(self) -> PhaseReport:
        return self.loadtests.generate_all(self.identities)

    def _apply_one(self, identity: str) -> None:
        logger.info(f"Installing replica {identity} of the application")
        unit = self.overlays.unit(identity)
        self.client.apply_overlay(identity, unit.directory)
        script = self.loadtests.script(identity)
        self.client.apply_configmap(identity, script.configmap_name, script.path)

    def apply_fleet(self, skip: Optional[Dict[str, str]] = None) -> PhaseReport:
        return self._for_each("apply", self._apply_one, skip)

    def stabilize(self) -> float:
        """Fixed wall-clock pause between applying the fleet and launching load."""
        seconds = self.config.stabilization_seconds
        logger.info(f"Sleeping {seconds:g} seconds before initiating load tests")
        self.sleep(seconds)
        return seconds

    def _launch_one(self, identity: str) -> None:
        logger.info(f"Initiating load test for application {identity}")
        self.client.apply_task(identity, self.loadtests.task(identity).path)

    def launch_load_tests(self, skip: Optional[Dict[str, str]] = None) -> PhaseReport:
        return self._for_each("launch", self._launch_one, skip)

    def _materialize(self, report: FleetReport) -> Dict[str, str]:
        """Base bundle, overlays and load-test artifacts. Returns identities to skip."""
        self.ensure_base_bundle()
        try:
            n_resources = len(base_resource_names(self.config))
        except (yaml.YAMLError, OSError) as exc:
            # The bundle is opaque here; a bad manifest surfaces at apply time
            logger.debug(f"Cannot list base bundle resources: {exc}")
        else:
            logger.info(
                f"Base bundle defines {n_resources} resources; "
                f"{n_resources * len(self.identities)} across the fleet"
            )
        generation = [
            report.add(self.ensure_overlays()),
            report.add(self.ensure_load_test_artifacts()),
        ]
        return _failed(generation, "artifact generation failed")

    def generate(self) -> FleetReport:
        """Materialize every local artifact without touching the cluster."""
        report = FleetReport("generate")
        self._materialize(report)
        return report

    def install(self) -> FleetReport:
        """Run every install phase in order.

        Raises:
            SourceFetchError: the base bundle is unavailable; no per-identity
                work has been done.
        """
        report = FleetReport("install")
        blocked = self._materialize(report)

        applied = report.add(self.apply_fleet(skip=blocked))
        self.stabilize()

        not_applied = dict(blocked)
        not_applied.update(_failed([applied], "apply failed"))
        report.add(self.launch_load_tests(skip=not_applied))

        if report.failed_identities:
            logger.warning(f"Install finished with failures: {', '.join(report.failed_identities)}")
        else:
            logger.info(f"Install finished: {len(self.identities)} replicas")
        return report

    # ------------------------------------------------------------------
    # Clean
    # ------------------------------------------------------------------

    def _delete_one(self, identity: str, undeleted: Set[str]) -> Optional[str]:
        """Delete one identity's resources.

        Identities whose workload delete failed are added to `undeleted` so
        their overlay survives for the next clean. Returns a note when the
        workload delete could not be attempted.
        """
        errors: List[IdentityError] = []
        note = None
        unit = self.overlays.unit(identity)

        if unit.directory.exists():
            try:
                self.client.delete_overlay(identity, unit.directory)
            except IdentityError as exc:
                undeleted.add(identity)
                errors.append(exc)
        else:
            note = "overlay not on disk; workload delete not attempted"
            logger.info(f"Overlay {identity} not on disk; skipping workload delete")

        deletes = [
            lambda: self.client.delete_configmap(identity, layout.configmap_name(identity)),
            lambda: self.client.delete_task(identity, layout.task_name(self.config, identity)),
        ]
        for delete in deletes:
            try:
                delete()
            except IdentityError as exc:
                errors.append(exc)

        if errors:
            # One error per identity, typed after the first failure
            first = errors[0]
            raise type(first)(identity, "; ".join(e.message for e in errors), first)
        return note

    def clean(self) -> FleetReport:
        """Remove every identity's live resources, then the generated files.

        Safe against a partially installed or already removed fleet. Overlays
        whose workload delete failed are kept, with the base, so re-running
        clean can still compose and delete them.
        """
        report = FleetReport("clean")
        undeleted: Set[str] = set()
        report.add(self._for_each("delete", lambda i: self._delete_one(i, undeleted)))
        remove_generated(
            self.config,
            keep=[self.overlays.unit(i).directory for i in sorted(undeleted)],
        )
        logger.info(f"Clean finished: {len(self.identities)} replicas")
        return report


def _failed(reports: Iterable[PhaseReport], reason: str) -> Dict[str, str]:
    failed: Dict[str, str] = {}
    for report in reports:
        for ident in report.failed_identities:
            failed.setdefault(ident, reason)
    return failed
