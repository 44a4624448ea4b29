"""Deterministic names and paths for every per-identity artifact.

Everything that links an overlay, a script and a task goes through these
functions, so the three always agree on the identity they belong to.
"""

from pathlib import Path

from src.config.constants import (
    BASE_BUNDLE_FILE,
    CONFIGMAP_PREFIX,
    KUSTOMIZATION_FILE,
    OVERLAY_DIR_PREFIX,
    SCRIPT_FILE_PREFIX,
    TASK_FILE_PREFIX,
)
from src.config.schema import FleetConfig


def name_suffix(identity: str) -> str:
    return f"-{identity}"


def decorated_name(config: FleetConfig, base_name: str, identity: str) -> str:
    """Name a base resource carries once the identity's overlay is applied."""
    return f"{config.name_prefix}{base_name}{name_suffix(identity)}"


def base_bundle_path(config: FleetConfig) -> Path:
    return config.base_path / BASE_BUNDLE_FILE


def base_kustomization_path(config: FleetConfig) -> Path:
    return config.base_path / KUSTOMIZATION_FILE


def overlay_path(config: FleetConfig, identity: str) -> Path:
    return config.overlay_root / f"{OVERLAY_DIR_PREFIX}{identity}"


def overlay_kustomization_path(config: FleetConfig, identity: str) -> Path:
    return overlay_path(config, identity) / KUSTOMIZATION_FILE


def script_filename(identity: str) -> str:
    return f"{SCRIPT_FILE_PREFIX}{identity}.js"


def script_path(config: FleetConfig, identity: str) -> Path:
    return config.config_path / script_filename(identity)


def task_path(config: FleetConfig, identity: str) -> Path:
    return config.config_path / f"{TASK_FILE_PREFIX}{identity}.yaml"


def configmap_name(identity: str) -> str:
    return f"{CONFIGMAP_PREFIX}{identity}"


def task_name(config: FleetConfig, identity: str) -> str:
    return f"{config.task_name}{name_suffix(identity)}"


def target_host(config: FleetConfig, identity: str) -> str:
    """In-cluster DNS name of the identity's target service."""
    service = decorated_name(config, config.target_service, identity)
    return f"{service}.{config.namespace}.svc.cluster.local"


def target_url(config: FleetConfig, identity: str) -> str:
    return f"http://{target_host(config, identity)}:{config.target_port}{config.target_path}"
