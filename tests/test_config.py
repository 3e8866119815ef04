"""Tests for settings and configuration overrides."""

import inspect
import json
from pathlib import Path

import pytest

import webhook_launcher.settings as settings
from webhook_launcher.local.global_config import GlobalSync
from webhook_launcher.local.supervisor.startup import is_pinned_image


def test_base_image_is_pinned_literal() -> None:
    """Test the base image is a declared constant, not derived at runtime."""
    assert settings.BASE_IMAGE == "rust:1.70-slim-bullseye"
    assert 'BASE_IMAGE = "rust:1.70-slim-bullseye"' in inspect.getsource(settings)
    assert is_pinned_image(settings.BASE_IMAGE)


def test_base_image_is_not_modifiable() -> None:
    assert "BASE_IMAGE" not in settings.MODIFIABLE_SETTINGS


def test_defaults_without_overrides(tmp_path: Path) -> None:
    config = GlobalSync(overrides_path=tmp_path / "missing.json")

    assert config.BASE_IMAGE == settings.BASE_IMAGE
    assert config.TRUST_PACKAGE == "ca-certificates"
    assert config.get("NOT_A_SETTING", "fallback") == "fallback"


def test_overrides_only_apply_modifiable_settings(tmp_path: Path) -> None:
    """Test overrides change modifiable keys and ignore everything else."""
    overrides = tmp_path / "overrides.json"
    overrides.write_text(json.dumps({
        "LOG_LEVEL": "debug",
        "GRACEFUL_SHUTDOWN_TIMEOUT": 3,
        "BASE_IMAGE": "rust:latest",
        "UNKNOWN_KEY": 1,
    }))

    config = GlobalSync(overrides_path=overrides)

    assert config.LOG_LEVEL == "debug"
    assert config.GRACEFUL_SHUTDOWN_TIMEOUT == 3
    assert config.BASE_IMAGE == "rust:1.70-slim-bullseye"
    assert "UNKNOWN_KEY" not in config.get_all_settings()


def test_malformed_overrides_are_ignored(tmp_path: Path) -> None:
    overrides = tmp_path / "overrides.json"
    overrides.write_text("{not json")

    config = GlobalSync(overrides_path=overrides)

    assert config.LOG_LEVEL == settings.LOG_LEVEL


def test_non_object_overrides_are_ignored(tmp_path: Path) -> None:
    overrides = tmp_path / "overrides.json"
    overrides.write_text("[1, 2]")

    config = GlobalSync(overrides_path=overrides)

    assert config.GRACEFUL_SHUTDOWN_TIMEOUT == settings.GRACEFUL_SHUTDOWN_TIMEOUT


def test_unknown_attribute_raises(tmp_path: Path) -> None:
    config = GlobalSync(overrides_path=tmp_path / "missing.json")
    with pytest.raises(AttributeError, match="NOT_A_SETTING"):
        config.NOT_A_SETTING
