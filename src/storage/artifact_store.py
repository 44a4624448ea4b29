"""On-disk store for generated fleet artifacts."""

import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, List

import yaml

from src.config.schema import FleetConfig
from src.fleet.errors import ArtifactGenerationError

logger = logging.getLogger(__name__)


def dump_yaml(document: Any) -> str:
    """Deterministic YAML text for a manifest document."""
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)


def write_artifact(identity: str, path: Path, text: str) -> Path:
    """Write one artifact atomically; failures are scoped to `identity`."""
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(text)
        tmp.replace(path)
    except OSError as exc:
        raise ArtifactGenerationError(identity, f"cannot write {path}: {exc}", exc) from exc
    return path


def artifacts_exist(*paths: Path) -> bool:
    return all(Path(p).exists() for p in paths)


def remove_generated(config: FleetConfig, keep: Iterable[Path] = ()) -> List[Path]:
    """Delete base, overlay and load-test directories. Absent ones are ignored.

    Overlay directories listed in `keep` survive, and so does the base they
    compose from; every other overlay is removed individually.
    """
    keep = {Path(p) for p in keep}
    if not keep:
        targets = [p for p in config.generated_paths if p.exists()]
    else:
        overlays = sorted(config.overlay_root.iterdir()) if config.overlay_root.exists() else []
        targets = [p for p in overlays if p not in keep]
        if config.config_path.exists():
            targets.append(config.config_path)
        logger.warning(f"Keeping {config.base_path} and {len(keep)} overlays for a later clean")

    for path in targets:
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
        logger.info(f"Removed {path}")
    return targets
