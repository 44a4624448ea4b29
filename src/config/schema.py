"""Frozen configuration dataclasses for the fleet."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from src.config.constants import (
    BASE_DIR,
    CONFIG_DIR_NAME,
    EXECUTOR,
    GRACEFUL_RAMP_DOWN,
    IDENTITY_WIDTH,
    KUBECTL,
    MAX_DURATION_MS,
    NAME_PREFIX,
    NAMESPACE,
    NUM_REPLICAS,
    OVERLAY_DIR,
    PARALLELISM,
    RAMP_STAGES,
    SCENARIO_NAME,
    STABILIZATION_SECONDS,
    TARGET_PATH,
    TARGET_PORT,
    TARGET_SERVICE,
    TASK_NAME,
    THRESHOLDS,
    WORK_DIR,
    WORKERS,
    YAML_URL,
)
from src.fleet.errors import ConfigError
from src.fleet.identity import max_replicas

# Lowercase RFC 1123 label; the prefix may end in "-" since a name follows it
DNS_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
NAME_PREFIX_RE = re.compile(r"^([a-z0-9][-a-z0-9]*)?$")
URL_PATH_RE = re.compile(r"^/[A-Za-z0-9._~/-]*$")


@dataclass(frozen=True)
class RampStage:
    """One k6 ramp stage: reach `target` VUs over `duration`."""

    duration: str     # k6 duration string, e.g. "2m"
    target: int       # virtual users at the end of the stage


def _default_stages() -> Tuple[RampStage, ...]:
    return tuple(RampStage(d, t) for d, t in RAMP_STAGES)


def _default_thresholds() -> Dict[str, List[str]]:
    return {metric: list(rules) for metric, rules in THRESHOLDS.items()}


@dataclass(frozen=True)
class LoadProfile:
    """Fleet-wide ramp schedule and pass/fail thresholds."""

    stages: Tuple[RampStage, ...] = field(default_factory=_default_stages)
    executor: str = EXECUTOR
    scenario_name: str = SCENARIO_NAME
    graceful_ramp_down: str = GRACEFUL_RAMP_DOWN
    max_duration_ms: int = MAX_DURATION_MS
    thresholds: Dict[str, List[str]] = field(default_factory=_default_thresholds)

    def __post_init__(self):
        if not self.stages:
            raise ConfigError("Load profile needs at least one ramp stage")
        for stage in self.stages:
            if stage.target < 0:
                raise ConfigError(f"Ramp stage target must be >= 0, got {stage.target}")


@dataclass(frozen=True)
class FleetConfig:
    """Immutable configuration passed to every component.

    Directory names are resolved relative to `work_dir`. Construction fails with
    ConfigError when the replica count does not fit the identity width, so two
    replicas can never share an identity.
    """

    replicas: int = NUM_REPLICAS
    identity_width: int = IDENTITY_WIDTH
    work_dir: Path = Path(WORK_DIR)
    base_dir: str = BASE_DIR
    overlay_dir: str = OVERLAY_DIR
    config_dir: str = CONFIG_DIR_NAME
    base_url: str = YAML_URL
    namespace: str = NAMESPACE
    name_prefix: str = NAME_PREFIX
    target_service: str = TARGET_SERVICE
    target_port: int = TARGET_PORT
    target_path: str = TARGET_PATH
    task_name: str = TASK_NAME
    load_profile: LoadProfile = field(default_factory=LoadProfile)
    parallelism: int = PARALLELISM
    stabilization_seconds: float = STABILIZATION_SECONDS
    workers: int = WORKERS
    kubectl: str = KUBECTL

    def __post_init__(self):
        object.__setattr__(self, "work_dir", Path(self.work_dir))

        if self.identity_width < 1:
            raise ConfigError(f"Identity width must be >= 1, got {self.identity_width}")
        if self.replicas < 1:
            raise ConfigError(f"Replica count must be >= 1, got {self.replicas}")
        limit = max_replicas(self.identity_width)
        if self.replicas > limit:
            raise ConfigError(
                f"{self.replicas} replicas do not fit identity width "
                f"{self.identity_width} (max {limit})"
            )
        if self.stabilization_seconds <= 0:
            raise ConfigError(
                f"Stabilization barrier must be > 0 seconds, got {self.stabilization_seconds}"
            )
        if self.parallelism < 1:
            raise ConfigError(f"Parallelism must be >= 1, got {self.parallelism}")
        if self.workers < 1:
            raise ConfigError(f"Workers must be >= 1, got {self.workers}")

        for label, value in [
            ("Namespace", self.namespace),
            ("Target service", self.target_service),
            ("Task name", self.task_name),
        ]:
            if not DNS_LABEL_RE.fullmatch(value):
                raise ConfigError(f"{label} must be a lowercase DNS label, got {value!r}")
        if not NAME_PREFIX_RE.fullmatch(self.name_prefix):
            raise ConfigError(f"Name prefix must be lowercase DNS characters, got {self.name_prefix!r}")
        if not URL_PATH_RE.fullmatch(self.target_path):
            raise ConfigError(f"Target path must be a plain URL path, got {self.target_path!r}")

        names = {self.base_dir, self.overlay_dir, self.config_dir}
        if len(names) != 3 or "" in names:
            raise ConfigError(
                "Base, overlay and load-test directories must be distinct, non-empty names"
            )

    @property
    def base_path(self) -> Path:
        return self.work_dir / self.base_dir

    @property
    def overlay_root(self) -> Path:
        return self.work_dir / self.overlay_dir

    @property
    def config_path(self) -> Path:
        return self.work_dir / self.config_dir

    @property
    def generated_paths(self) -> Tuple[Path, Path, Path]:
        """Every directory the fleet materializes locally."""
        return (self.base_path, self.overlay_root, self.config_path)
