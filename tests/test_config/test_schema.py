"""Tests for validated settings."""

import pytest

from throttlekit.config.hierarchy import load_config_hierarchy
from throttlekit.config.schema import QueueConfig, Settings, ThrottleConfig
from throttlekit.errors.exceptions import ConfigurationError


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_mapping(load_config_hierarchy())
        assert settings.queue.concurrency == 4
        assert settings.throttle == ThrottleConfig()
        assert settings.log_level == "WARNING"

    def test_from_flat_mapping(self):
        settings = Settings.from_mapping(
            {"concurrency": 2, "wait": 0.5, "leading": False, "log_level": "debug"}
        )
        assert settings.queue.concurrency == 2
        assert settings.throttle.wait == 0.5
        assert settings.throttle.leading is False
        assert settings.throttle.trailing is True
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("concurrency", [0, -3, "many", True])
    def test_bad_concurrency(self, concurrency):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_mapping({"concurrency": concurrency})
        assert exc_info.value.field == "concurrency"

    def test_negative_wait(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_mapping({"wait": -1})
        assert exc_info.value.field == "wait"

    def test_env_value_flows_through(self, monkeypatch):
        monkeypatch.setenv("THROTTLEKIT_CONCURRENCY", "not-a-number")
        with pytest.raises(ConfigurationError):
            Settings.from_mapping(load_config_hierarchy())


class TestModels:
    def test_queue_config_minimum(self):
        assert QueueConfig(concurrency=1).concurrency == 1

    def test_throttle_config_zero_wait(self):
        assert ThrottleConfig(wait=0).wait == 0
