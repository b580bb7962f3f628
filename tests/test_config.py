"""Tests for stack configuration loading and validation."""

import json

import pytest

from devbox_infra.config import KEY_PAIR_PLACEHOLDER, StackSettings, create_common_tags, load_settings


class FakeConfig:
    """Stands in for pulumi.Config with values kept as strings, like the engine does."""

    def __init__(self, values=None):
        self.values = values or {}

    def get(self, key):
        return self.values.get(key)

    def get_bool(self, key):
        value = self.get(key)
        return None if value is None else value.lower() == "true"

    def get_int(self, key):
        value = self.get(key)
        return None if value is None else int(value)

    def get_float(self, key):
        value = self.get(key)
        return None if value is None else float(value)

    def get_object(self, key):
        value = self.get(key)
        return None if value is None else json.loads(value)


class TestLoadSettings:
    def test_defaults(self, mocks):
        settings = load_settings(FakeConfig({"key_pair_name": "my-key"}))

        assert settings.key_pair_name == "my-key"
        assert settings.project_name == "devbox"
        assert settings.bucket_name == "devbox-workspace-test"
        assert settings.private_instance_type == "t2.small"
        assert settings.public_instance_type == "t2.large"
        assert settings.enable_nat_gateway is True

    def test_missing_key_pair_uses_placeholder(self, mocks):
        settings = load_settings(FakeConfig())
        assert settings.key_pair_name == KEY_PAIR_PLACEHOLDER

    def test_overrides(self, mocks):
        settings = load_settings(FakeConfig({
            "key_pair_name": "my-key",
            "project_name": "sandbox",
            "bucket_name": "sandbox-bucket",
            "enable_nat_gateway": "false",
            "availability_zones": json.dumps(["eu-west-1a", "eu-west-1b"]),
            "idle_evaluation_periods": "3",
            "idle_datapoints_to_alarm": "2",
        }))

        assert settings.project_name == "sandbox"
        assert settings.bucket_name == "sandbox-bucket"
        assert settings.enable_nat_gateway is False
        assert settings.availability_zones == ["eu-west-1a", "eu-west-1b"]
        assert settings.idle_evaluation_periods == 3
        assert settings.idle_datapoints_to_alarm == 2

    def test_invalid_config_raises(self, mocks):
        with pytest.raises(ValueError, match="vpc_cidr"):
            load_settings(FakeConfig({"vpc_cidr": "10.0.0.0"}))

    @pytest.mark.parametrize("key", ["idle_cpu_threshold", "idle_period_seconds", "idle_datapoints_to_alarm"])
    def test_zero_is_not_treated_as_unset(self, mocks, key):
        with pytest.raises(ValueError, match=key):
            load_settings(FakeConfig({"key_pair_name": "my-key", key: "0"}))


class TestValidate:
    def test_default_settings_are_valid(self):
        StackSettings().validate()

    @pytest.mark.parametrize("changes,message", [
        ({"vpc_cidr": "not-a-cidr/16"}, "vpc_cidr"),
        ({"public_subnet_cidrs": ["10.0.0.0/18"]}, "same length"),
        ({"public_subnet_cidrs": [], "private_subnet_cidrs": []}, "At least one"),
        ({"public_subnet_cidrs": ["10.1.0.0/18", "10.0.64.0/18"]}, "not inside"),
        ({"availability_zones": ["us-east-1a"]}, "availability_zones"),
        ({"idle_cpu_threshold": 0}, "idle_cpu_threshold"),
        ({"idle_period_seconds": 90}, "multiple of 60"),
        ({"idle_evaluation_periods": 0}, "at least 1"),
        ({"idle_datapoints_to_alarm": 7}, "idle_datapoints_to_alarm"),
    ])
    def test_rejects(self, changes, message):
        settings = StackSettings(**changes)
        with pytest.raises(ValueError, match=message):
            settings.validate()


def test_common_tags():
    tags = create_common_tags(StackSettings(), "vpc", {"Tier": "Public"})
    assert tags == {
        "Name": "devbox-vpc",
        "Project": "devbox",
        "Environment": "development",
        "ManagedBy": "pulumi",
        "Tier": "Public",
    }
