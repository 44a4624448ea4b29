"""Kustomization templates for the shared base and per-identity overlays."""

import os

from src.config.constants import BASE_BUNDLE_FILE
from src.config.schema import FleetConfig
from src.fleet import layout
from src.templates.renderer import Template, TemplateKind

OVERLAY_MARKER = TemplateKind.OVERLAY.marker


def base_template() -> Template:
    return Template(TemplateKind.BASE, {"resources": [BASE_BUNDLE_FILE]})


def base_reference(config: FleetConfig) -> str:
    """Base directory as seen from inside an overlay directory."""
    overlay_dir = layout.overlay_path(config, OVERLAY_MARKER)
    return os.path.relpath(config.base_path, overlay_dir).replace(os.sep, "/")


def overlay_template(config: FleetConfig) -> Template:
    body = {
        "resources": [base_reference(config)],
        "namePrefix": config.name_prefix,
        "nameSuffix": layout.name_suffix(OVERLAY_MARKER),
    }
    return Template(TemplateKind.OVERLAY, body)
