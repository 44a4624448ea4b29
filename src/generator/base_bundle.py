"""Fetch-once cache of the shared base application bundle."""

import logging
from typing import List, Optional, Tuple

import requests
import yaml

from src.config.constants import FETCH_TIMEOUT_SECONDS
from src.config.schema import FleetConfig
from src.fleet import layout
from src.fleet.errors import ArtifactGenerationError, SourceFetchError
from src.storage.artifact_store import dump_yaml, write_artifact
from src.templates.kustomize import base_template
from src.templates.renderer import render

logger = logging.getLogger(__name__)


def ensure_base_bundle(
    config: FleetConfig,
    session: Optional[requests.Session] = None,
) -> bool:
    """Fetch the base bundle unless it is already cached.

    Also writes the base kustomization listing the bundle. Returns True when
    the bundle was downloaded, False when the cached copy was used.

    Raises:
        SourceFetchError: the bundle is not cached and could not be fetched
            or written.
    """
    bundle_path = layout.base_bundle_path(config)
    fetched = False

    if bundle_path.exists():
        logger.debug(f"Base bundle cached at {bundle_path}")
    else:
        logger.info(f"Fetching base bundle from {config.base_url}")
        http = session or requests
        try:
            response = http.get(config.base_url, timeout=FETCH_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SourceFetchError(f"Cannot fetch {config.base_url}: {exc}") from exc

        if not response.text.strip():
            raise SourceFetchError(f"Empty base bundle at {config.base_url}")

        try:
            write_artifact("base", bundle_path, response.text)
        except ArtifactGenerationError as exc:
            raise SourceFetchError(str(exc)) from exc
        fetched = True

    kustomization = layout.base_kustomization_path(config)
    if not kustomization.exists():
        try:
            write_artifact("base", kustomization, dump_yaml(render(base_template(), "base")))
        except ArtifactGenerationError as exc:
            raise SourceFetchError(str(exc)) from exc

    return fetched


def base_resource_names(config: FleetConfig) -> List[Tuple[str, str]]:
    """(kind, name) of every resource in the cached base bundle.

    Raises yaml.YAMLError if the bundle is not valid YAML.
    """
    names = []
    for doc in yaml.safe_load_all(layout.base_bundle_path(config).read_text()):
        if not isinstance(doc, dict):
            continue
        name = (doc.get("metadata") or {}).get("name")
        if name:
            names.append((doc.get("kind", ""), name))
    return names
