"""Shared test fixtures."""

from pathlib import Path
from typing import List, Set, Tuple

import pytest
import requests

from src.config.schema import FleetConfig
from src.fleet.errors import ApplyError, DeleteError
from src.orchestration.client import OrchestrationClient

BUNDLE_TEXT = """\
apiVersion: v1
kind: Service
metadata:
  name: productpage
spec:
  ports:
  - port: 9080
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: productpage-v1
---
apiVersion: v1
kind: Service
metadata:
  name: reviews
"""


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for requests.Session; counts GETs."""

    def __init__(self, text: str = BUNDLE_TEXT, status_code: int = 200, error: Exception = None):
        self.text = text
        self.status_code = status_code
        self.error = error
        self.calls: List[str] = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text, self.status_code)


class RecordingClient(OrchestrationClient):
    """In-memory cluster: records every call and tracks live resources."""

    def __init__(self, fail_apply: Set[str] = (), fail_delete: Set[str] = (), events=None):
        self.fail_apply = set(fail_apply)
        self.fail_delete = set(fail_delete)
        self.events: List[Tuple] = events if events is not None else []
        self.live: Set[Tuple[str, str]] = set()

    def _apply(self, identity, kind, name):
        self.events.append(("apply", kind, identity))
        if identity in self.fail_apply:
            raise ApplyError(identity, f"{kind} rejected")
        self.live.add((kind, name))

    def _delete(self, identity, kind, name):
        self.events.append(("delete", kind, identity))
        if identity in self.fail_delete:
            raise DeleteError(identity, f"{kind} delete failed")
        self.live.discard((kind, name))

    def apply_overlay(self, identity, overlay_dir):
        assert Path(overlay_dir, "kustomization.yaml").exists()
        self._apply(identity, "overlay", identity)

    def delete_overlay(self, identity, overlay_dir):
        self._delete(identity, "overlay", identity)

    def apply_configmap(self, identity, name, source):
        assert Path(source).exists()
        self._apply(identity, "configmap", name)

    def delete_configmap(self, identity, name):
        self._delete(identity, "configmap", name)

    def apply_task(self, identity, task_file):
        assert Path(task_file).exists()
        self._apply(identity, "task", identity)

    def delete_task(self, identity, name):
        self._delete(identity, "task", name.rsplit("-", 1)[-1])


@pytest.fixture
def config(tmp_path):
    return FleetConfig(replicas=3, work_dir=tmp_path, stabilization_seconds=5)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def events():
    return []


@pytest.fixture
def client(events):
    return RecordingClient(events=events)


@pytest.fixture
def sleeper(events):
    def sleep(seconds):
        events.append(("sleep", seconds))
    return sleep
