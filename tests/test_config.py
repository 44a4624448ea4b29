"""Tests for FleetConfig validation."""

from pathlib import Path

import pytest

from src.config.schema import FleetConfig, LoadProfile, RampStage
from src.fleet.errors import ConfigError


class TestFleetConfig:
    def test_defaults(self):
        config = FleetConfig()
        assert config.replicas == 4
        assert config.identity_width == 3
        assert config.base_path == Path(".") / "base"
        assert config.overlay_root == Path(".") / "overlays"
        assert config.config_path == Path(".") / "load-test-manifests"

    def test_replicas_must_fit_width(self):
        FleetConfig(replicas=999)
        with pytest.raises(ConfigError, match="do not fit"):
            FleetConfig(replicas=1000)
        FleetConfig(replicas=1000, identity_width=4)

    @pytest.mark.parametrize("kwargs", [
        {"replicas": 0},
        {"identity_width": 0},
        {"stabilization_seconds": 0},
        {"parallelism": 0},
        {"workers": 0},
        {"overlay_dir": "base"},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigError):
            FleetConfig(**kwargs)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            FleetConfig(replicas=-3)

    def test_work_dir_coerced_to_path(self, tmp_path):
        config = FleetConfig(work_dir=str(tmp_path))
        assert config.base_path == tmp_path / "base"

    def test_load_profile_validation(self):
        with pytest.raises(ConfigError):
            LoadProfile(stages=())
        with pytest.raises(ConfigError):
            LoadProfile(stages=(RampStage("1m", -5),))

    @pytest.mark.parametrize("kwargs", [
        {"namespace": "k6'operator"},
        {"namespace": "K6-Operator"},
        {"namespace": "k6-operator\n"},
        {"name_prefix": "book'info-"},
        {"target_service": "product page"},
        {"task_name": "load-test-"},
        {"target_path": "/product'page"},
        {"target_path": "productpage"},
    ])
    def test_names_embedded_in_artifacts_validated(self, kwargs):
        with pytest.raises(ConfigError):
            FleetConfig(**kwargs)

    def test_empty_prefix_allowed(self):
        assert FleetConfig(name_prefix="").name_prefix == ""
