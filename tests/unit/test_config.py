"""Unit tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from smalltricks.config import Settings, get_settings
from smalltricks.domain.enums import SetupMode


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in ("LOG_LEVEL", "SETUP_MODE", "SEED", "MAX_ROUNDS"):
        monkeypatch.delenv(f"SMALLTRICKS_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert settings.log_level == "INFO"
    assert settings.setup_mode is SetupMode.DEMO
    assert settings.seed == "smalltricks"
    assert settings.max_rounds == 50


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SMALLTRICKS_SETUP_MODE", "draft")
    monkeypatch.setenv("SMALLTRICKS_SEED", "tournament-7")
    monkeypatch.setenv("SMALLTRICKS_MAX_ROUNDS", "12")

    settings = get_settings()

    assert settings.setup_mode is SetupMode.DRAFT
    assert settings.seed == "tournament-7"
    assert settings.max_rounds == 12


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


@pytest.mark.parametrize("value", ["0", "-3"])
def test_max_rounds_must_be_positive(monkeypatch, value):
    monkeypatch.setenv("SMALLTRICKS_MAX_ROUNDS", value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_unknown_setup_mode_is_rejected(monkeypatch):
    monkeypatch.setenv("SMALLTRICKS_SETUP_MODE", "sealed")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
