"""Tests for the base bundle cache."""

import pytest
import requests
import yaml

from src.fleet.errors import SourceFetchError
from src.generator.base_bundle import base_resource_names, ensure_base_bundle

from tests.conftest import BUNDLE_TEXT, FakeSession


class TestBaseBundle:
    def test_fetch_and_kustomization(self, config, session):
        assert ensure_base_bundle(config, session=session) is True
        assert (config.base_path / "bookinfo.yaml").read_text() == BUNDLE_TEXT
        kustomization = yaml.safe_load((config.base_path / "kustomization.yaml").read_text())
        assert kustomization == {"resources": ["bookinfo.yaml"]}
        assert session.calls == [config.base_url]

    def test_fetched_once(self, config, session):
        ensure_base_bundle(config, session=session)
        assert ensure_base_bundle(config, session=session) is False
        assert len(session.calls) == 1

    def test_network_error_is_fatal(self, config):
        session = FakeSession(error=requests.ConnectionError("unreachable"))
        with pytest.raises(SourceFetchError, match="unreachable"):
            ensure_base_bundle(config, session=session)
        assert not (config.base_path / "bookinfo.yaml").exists()

    def test_http_error_is_fatal(self, config):
        with pytest.raises(SourceFetchError):
            ensure_base_bundle(config, session=FakeSession(status_code=404))

    def test_empty_bundle_rejected(self, config):
        with pytest.raises(SourceFetchError, match="Empty"):
            ensure_base_bundle(config, session=FakeSession(text="  \n"))

    def test_resource_names(self, config, session):
        ensure_base_bundle(config, session=session)
        assert base_resource_names(config) == [
            ("Service", "productpage"),
            ("Deployment", "productpage-v1"),
            ("Service", "reviews"),
        ]

    def test_invalid_yaml_surfaces_parse_error(self, config):
        ensure_base_bundle(config, session=FakeSession(text="kind: [unclosed\n"))
        with pytest.raises(yaml.YAMLError):
            base_resource_names(config)
