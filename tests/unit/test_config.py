"""Tests for Settings and the YAML config loaders."""

import pytest
from pydantic import ValidationError

from rootcache.core.config import (
    Settings,
    load_cache_config,
    load_feedback_config,
    load_lifecycle_config,
    load_quality_config,
    load_yaml_section,
)
from rootcache.core import defaults


@pytest.fixture
def env_settings():
    """Settings built from the process environment only."""
    return Settings(_env_file=None)


@pytest.fixture
def missing_yaml(tmp_path):
    return tmp_path / "absent.yaml"


class TestSettings:
    """Environment-driven settings."""

    def test_defaults(self, env_settings):
        assert env_settings.store_backend == "memory"
        assert env_settings.cache_ttl == defaults.CACHE_TTL
        assert env_settings.lifecycle_max_age == defaults.LIFECYCLE_MAX_AGE
        assert env_settings.is_production is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CACHE_TTL", "60")
        monkeypatch.setenv("STORE_BACKEND", "redis")
        monkeypatch.setenv("ENVIRONMENT", "Production")

        settings = Settings(_env_file=None)

        assert settings.cache_ttl == 60
        assert settings.store_backend == "redis"
        assert settings.is_production is True

    def test_rejects_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "sqlite")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_rejects_inverted_quality_bounds(self, monkeypatch):
        monkeypatch.setenv("QUALITY_MIN", "0.9")
        monkeypatch.setenv("QUALITY_MAX", "0.5")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestYamlSection:
    def test_missing_file(self, missing_yaml):
        assert load_yaml_section("cache", missing_yaml) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("cache: [unclosed\n")

        assert load_yaml_section("cache", path) == {}

    def test_non_mapping_section(self, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("cache: 5\n")

        assert load_yaml_section("cache", path) == {}

    def test_reads_section(self, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("cache:\n  ttl: 120\n")

        assert load_yaml_section("cache", path) == {"ttl": 120}


class TestComponentLoaders:
    """Settings overlaid with rootcache.yaml sections."""

    def test_cache_config_from_settings(self, env_settings, missing_yaml):
        config = load_cache_config(env_settings, missing_yaml)

        assert config.ttl == defaults.CACHE_TTL
        assert config.max_entries == defaults.CACHE_MAX_ENTRIES
        assert config.fingerprint.include_line_number is True

    def test_yaml_overrides_settings(self, env_settings, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text(
            "cache:\n"
            "  ttl: 30\n"
            "  fingerprint:\n"
            "    include_line_number: false\n"
        )

        config = load_cache_config(env_settings, path)

        assert config.ttl == 30
        assert config.fingerprint.include_line_number is False
        assert config.fingerprint.algorithm == env_settings.fingerprint_algorithm

    def test_quality_config(self, env_settings, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("quality:\n  validation_bonus: 0.1\n")

        config = load_quality_config(env_settings, path)

        assert config.validation_bonus == 0.1
        assert config.min_quality == defaults.QUALITY_MIN

    def test_lifecycle_config(self, env_settings, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("lifecycle:\n  min_quality_threshold: 0.5\n")

        config = load_lifecycle_config(env_settings, path)

        assert config.min_quality_threshold == 0.5
        assert config.max_age == defaults.LIFECYCLE_MAX_AGE

    def test_feedback_config_uses_quality_section(self, env_settings, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text(
            "quality:\n"
            "  validation_bonus: 0.05\n"
            "feedback:\n"
            "  positive_multiplier: 1.5\n"
        )

        config = load_feedback_config(env_settings, path)

        assert config.positive_multiplier == 1.5
        assert config.quality.validation_bonus == 0.05

    def test_tuning_fields_from_env(self, monkeypatch, missing_yaml):
        monkeypatch.setenv("QUALITY_USAGE_BONUS_WEIGHT", "0.2")
        monkeypatch.setenv("LIFECYCLE_RECALCULATION_EPSILON", "0.05")
        monkeypatch.setenv("LIFECYCLE_SCAN_BATCH_SIZE", "25")
        monkeypatch.setenv("FEEDBACK_MAX_CONFLICT_RETRIES", "7")

        settings = Settings(_env_file=None)

        assert load_quality_config(settings, missing_yaml).usage_bonus_weight == 0.2
        lifecycle = load_lifecycle_config(settings, missing_yaml)
        assert lifecycle.recalculation_epsilon == 0.05
        assert lifecycle.scan_batch_size == 25
        feedback = load_feedback_config(settings, missing_yaml)
        assert feedback.max_conflict_retries == 7
        assert feedback.quality.usage_bonus_weight == 0.2

    def test_tuning_field_defaults(self, env_settings, missing_yaml):
        lifecycle = load_lifecycle_config(env_settings, missing_yaml)

        assert lifecycle.scan_batch_size == defaults.LIFECYCLE_SCAN_BATCH_SIZE
        assert (
            load_feedback_config(env_settings, missing_yaml).max_conflict_retries
            == defaults.FEEDBACK_MAX_CONFLICT_RETRIES
        )

    def test_yaml_overrides_tuning_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LIFECYCLE_SCAN_BATCH_SIZE", "25")
        path = tmp_path / "rootcache.yaml"
        path.write_text("lifecycle:\n  scan_batch_size: 10\n")

        config = load_lifecycle_config(Settings(_env_file=None), path)

        assert config.scan_batch_size == 10

    def test_invalid_yaml_value_rejected(self, env_settings, tmp_path):
        path = tmp_path / "rootcache.yaml"
        path.write_text("lifecycle:\n  min_quality_threshold: 2.0\n")

        with pytest.raises(ValidationError):
            load_lifecycle_config(env_settings, path)
