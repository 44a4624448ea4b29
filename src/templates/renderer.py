"""Identity substitution for the closed set of artifact template kinds.

Each kind owns a distinct marker, and rendering only ever replaces the marker
of the template's own kind. A rendered artifact that still carries any marker
is rejected, which catches templates built for one kind being rendered as
another.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from src.fleet.errors import ArtifactGenerationError


class TemplateKind(Enum):
    BASE = "base"          # shared, never identity-parameterized
    OVERLAY = "overlay"
    SCRIPT = "script"
    TASK = "task"

    @property
    def marker(self) -> Optional[str]:
        if self is TemplateKind.BASE:
            return None
        return f"__{self.name}_IDENTITY__"


ALL_MARKERS = tuple(k.marker for k in TemplateKind if k.marker is not None)


@dataclass(frozen=True)
class Template:
    """A string or structured document (nested dicts/lists) of one kind."""

    kind: TemplateKind
    body: Any


def _substitute(node: Any, marker: str, value: str) -> Any:
    if isinstance(node, str):
        return node.replace(marker, value)
    if isinstance(node, dict):
        return {
            _substitute(k, marker, value): _substitute(v, marker, value)
            for k, v in node.items()
        }
    if isinstance(node, (list, tuple)):
        return type(node)(_substitute(v, marker, value) for v in node)
    return node


def _leftover_markers(node: Any) -> set:
    if isinstance(node, str):
        return {m for m in ALL_MARKERS if m in node}
    if isinstance(node, dict):
        found = set()
        for k, v in node.items():
            found |= _leftover_markers(k) | _leftover_markers(v)
        return found
    if isinstance(node, (list, tuple)):
        found = set()
        for v in node:
            found |= _leftover_markers(v)
        return found
    return set()


def render(template: Template, identity: str) -> Any:
    """Replace every occurrence of the kind's marker with `identity`.

    Templates without a marker render to themselves. No schema validation is
    done here; malformed manifests surface when they are applied.
    """
    marker = template.kind.marker
    artifact = template.body if marker is None else _substitute(template.body, marker, identity)

    leftover = _leftover_markers(artifact)
    if leftover:
        raise ArtifactGenerationError(
            identity,
            f"{template.kind.value} template left unreplaced markers: {sorted(leftover)}",
        )
    return artifact
