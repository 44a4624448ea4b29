"""Per-identity kustomize overlays over the shared base bundle."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from src.config.schema import FleetConfig
from src.fleet import layout
from src.fleet.errors import ArtifactGenerationError
from src.orchestration.report import FAILED, OK, SKIPPED, PhaseReport
from src.storage.artifact_store import artifacts_exist, dump_yaml, write_artifact
from src.templates.kustomize import base_reference, overlay_template
from src.templates.renderer import render

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayUnit:
    identity: str
    base_reference: str     # relative path from the overlay to the base
    name_prefix: str
    name_suffix: str
    path: Path              # kustomization.yaml of this overlay

    @property
    def directory(self) -> Path:
        return self.path.parent


class OverlayGenerator:
    """Writes one composition unit per identity."""

    def __init__(self, config: FleetConfig, skip_existing: bool = True):
        self.config = config
        self.skip_existing = skip_existing
        self.template = overlay_template(config)

    def unit(self, identity: str) -> OverlayUnit:
        return OverlayUnit(
            identity=identity,
            base_reference=base_reference(self.config),
            name_prefix=self.config.name_prefix,
            name_suffix=layout.name_suffix(identity),
            path=layout.overlay_kustomization_path(self.config, identity),
        )

    def render(self, identity: str) -> str:
        return dump_yaml(render(self.template, identity))

    def generate(self, identity: str) -> bool:
        """Write the overlay for `identity`. Returns False if it already existed."""
        unit = self.unit(identity)
        if self.skip_existing and artifacts_exist(unit.path):
            return False
        write_artifact(identity, unit.path, self.render(identity))
        return True

    def generate_all(self, identities: Iterable[str]) -> PhaseReport:
        report = PhaseReport("overlays")
        for ident in identities:
            try:
                written = self.generate(ident)
            except ArtifactGenerationError as exc:
                logger.warning(f"Overlay {ident}: {exc}")
                report.record(ident, FAILED, str(exc))
                continue
            report.record(ident, OK if written else SKIPPED, "" if written else "exists")
        logger.info(f"Overlays: {report.n_ok} written, {report.n_skipped} cached")
        return report

    def decorated_names(self, base_names: Iterable[str], identities: Iterable[str]) -> List[str]:
        """Every resource name the fleet will create, one per (identity, base name)."""
        base_names = list(base_names)
        return [
            layout.decorated_name(self.config, name, ident)
            for ident in identities
            for name in base_names
        ]
