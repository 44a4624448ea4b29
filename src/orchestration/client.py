"""Interface to the cluster's orchestration API."""

from abc import ABC, abstractmethod
from pathlib import Path


class OrchestrationClient(ABC):
    """Upsert and tolerant-delete operations the fleet lifecycle needs.

    Apply/create methods raise ApplyError and delete methods raise DeleteError;
    deleting something that is already gone must succeed.
    """

    @abstractmethod
    def apply_overlay(self, identity: str, overlay_dir: Path) -> None:
        """Compose the overlay and upsert the resulting resources."""
        ...

    @abstractmethod
    def delete_overlay(self, identity: str, overlay_dir: Path) -> None:
        ...

    @abstractmethod
    def apply_configmap(self, identity: str, name: str, source: Path) -> None:
        """Upsert a ConfigMap holding the contents of `source`."""
        ...

    @abstractmethod
    def delete_configmap(self, identity: str, name: str) -> None:
        ...

    @abstractmethod
    def apply_task(self, identity: str, task_file: Path) -> None:
        ...

    @abstractmethod
    def delete_task(self, identity: str, name: str) -> None:
        ...
