"""OrchestrationClient backed by the kubectl CLI (with built-in kustomize)."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Type

from src.fleet.errors import ApplyError, DeleteError, IdentityError
from src.orchestration.client import OrchestrationClient

logger = logging.getLogger(__name__)


class KubectlClient(OrchestrationClient):
    """Runs kubectl as a subprocess, scoped to one namespace."""

    def __init__(self, kubectl: str = "kubectl", namespace: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.kubectl = kubectl
        self.namespace = namespace
        self.timeout = timeout

    def _cmd(self, *args: str, namespaced: bool = True) -> List[str]:
        cmd = [self.kubectl, *args]
        if namespaced and self.namespace:
            cmd += ["-n", self.namespace]
        return cmd

    def _run(
        self,
        identity: str,
        cmd: Sequence[str],
        error: Type[IdentityError],
        input_text: Optional[str] = None,
    ) -> str:
        logger.debug(f"[{identity}] $ {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                list(cmd),
                input=input_text,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise error(identity, f"{cmd[1]} failed: {exc}", exc) from exc
        if proc.returncode != 0:
            stderr = proc.stderr.strip() or f"exit status {proc.returncode}"
            raise error(identity, f"{' '.join(cmd[1:3])} failed: {stderr}")
        return proc.stdout

    def _kustomize(self, identity: str, overlay_dir: Path, error: Type[IdentityError]) -> str:
        return self._run(
            identity, self._cmd("kustomize", str(overlay_dir), namespaced=False), error,
        )

    def apply_overlay(self, identity: str, overlay_dir: Path) -> None:
        manifest = self._kustomize(identity, overlay_dir, ApplyError)
        self._run(identity, self._cmd("apply", "-f", "-"), ApplyError, input_text=manifest)

    def delete_overlay(self, identity: str, overlay_dir: Path) -> None:
        manifest = self._kustomize(identity, overlay_dir, DeleteError)
        self._run(
            identity, self._cmd("delete", "-f", "-", "--ignore-not-found"), DeleteError,
            input_text=manifest,
        )

    def apply_configmap(self, identity: str, name: str, source: Path) -> None:
        # create --dry-run | apply turns ConfigMap creation into an upsert
        manifest = self._run(
            identity,
            self._cmd("create", "configmap", name, f"--from-file={source}",
                      "--dry-run=client", "-o", "yaml"),
            ApplyError,
        )
        self._run(identity, self._cmd("apply", "-f", "-"), ApplyError, input_text=manifest)

    def delete_configmap(self, identity: str, name: str) -> None:
        self._run(
            identity, self._cmd("delete", "configmap", name, "--ignore-not-found"), DeleteError,
        )

    def apply_task(self, identity: str, task_file: Path) -> None:
        self._run(identity, self._cmd("apply", "-f", str(task_file)), ApplyError)

    def delete_task(self, identity: str, name: str) -> None:
        self._run(
            identity, self._cmd("delete", "testrun", name, "--ignore-not-found"), DeleteError,
        )
