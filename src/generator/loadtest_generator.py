"""Per-identity k6 scripts and TestRun task definitions."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from src.config.schema import FleetConfig, LoadProfile
from src.fleet import layout
from src.fleet.errors import ArtifactGenerationError
from src.orchestration.report import FAILED, OK, SKIPPED, PhaseReport
from src.storage.artifact_store import artifacts_exist, dump_yaml, write_artifact
from src.templates.k6 import script_template, task_template
from src.templates.renderer import render

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadTestScript:
    identity: str
    target_url: str
    load_profile: LoadProfile
    configmap_name: str     # ConfigMap the script is registered as
    path: Path


@dataclass(frozen=True)
class LoadTestTask:
    identity: str
    name: str
    configmap_name: str     # must equal the script's, same identity
    script_file: str
    parallelism: int
    executor: str
    path: Path


class LoadTestArtifactGenerator:
    """Writes the script/task pair for each identity."""

    def __init__(self, config: FleetConfig, skip_existing: bool = True):
        self.config = config
        self.skip_existing = skip_existing
        self.script_tmpl = script_template(config)
        self.task_tmpl = task_template(config)

    def script(self, identity: str) -> LoadTestScript:
        return LoadTestScript(
            identity=identity,
            target_url=layout.target_url(self.config, identity),
            load_profile=self.config.load_profile,
            configmap_name=layout.configmap_name(identity),
            path=layout.script_path(self.config, identity),
        )

    def task(self, identity: str) -> LoadTestTask:
        return LoadTestTask(
            identity=identity,
            name=layout.task_name(self.config, identity),
            configmap_name=layout.configmap_name(identity),
            script_file=layout.script_filename(identity),
            parallelism=self.config.parallelism,
            executor=self.config.load_profile.executor,
            path=layout.task_path(self.config, identity),
        )

    def render_script(self, identity: str) -> str:
        return render(self.script_tmpl, identity)

    def render_task(self, identity: str) -> str:
        return dump_yaml(render(self.task_tmpl, identity))

    def generate(self, identity: str) -> bool:
        """Write script and task for `identity`. Returns False if both already existed."""
        script, task = self.script(identity), self.task(identity)
        if self.skip_existing and artifacts_exist(script.path, task.path):
            return False
        write_artifact(identity, script.path, self.render_script(identity))
        write_artifact(identity, task.path, self.render_task(identity))
        return True

    def generate_all(self, identities: Iterable[str]) -> PhaseReport:
        report = PhaseReport("load-test-artifacts")
        for ident in identities:
            try:
                written = self.generate(ident)
            except ArtifactGenerationError as exc:
                logger.warning(f"Load-test artifacts {ident}: {exc}")
                report.record(ident, FAILED, str(exc))
                continue
            report.record(ident, OK if written else SKIPPED, "" if written else "exists")
        logger.info(f"Load-test artifacts: {report.n_ok} written, {report.n_skipped} cached")
        return report
