"""Unit tests for the settings model."""

import pytest
from pydantic import ValidationError

from pagepilot_ai.core.config import Settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # keep a developer's .env out of the assertions
    monkeypatch.chdir(tmp_path)
    for name in (
        "PAGEPILOT_AI_LOG_LEVEL",
        "PAGEPILOT_AI_PROVIDER",
        "PAGEPILOT_AI_MODEL",
        "PAGEPILOT_AI_MAX_STEPS",
        "PAGEPILOT_AI_MAX_FAILURES",
        "PAGEPILOT_AI_PLANNING_INTERVAL",
        "PAGEPILOT_AI_SETTLE_DELAY",
        "PAGEPILOT_AI_USE_VISION",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.log_level == "INFO"
    assert (settings.provider, settings.model) == ("openai", "gpt-4o")
    assert settings.max_steps == 100
    assert settings.max_failures == 3
    assert settings.planning_interval == 3
    assert settings.settle_delay == 1.0
    assert settings.use_vision is True
    assert settings.openai_api_key is None


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("PAGEPILOT_AI_MAX_STEPS", "25")
    monkeypatch.setenv("PAGEPILOT_AI_USE_VISION", "false")
    monkeypatch.setenv("PAGEPILOT_AI_PROVIDER", "anthropic")

    settings = Settings()

    assert settings.max_steps == 25
    assert settings.use_vision is False
    assert settings.provider == "anthropic"


def test_env_file(tmp_path):
    (tmp_path / ".env").write_text("PAGEPILOT_AI_PLANNING_INTERVAL=0\nPAGEPILOT_AI_LOG_LEVEL=DEBUG\n")

    settings = Settings()

    assert settings.planning_interval == 0
    assert settings.log_level == "DEBUG"


def test_field_names_are_accepted():
    assert Settings(max_failures=5).max_failures == 5


def test_limits_are_validated(monkeypatch):
    monkeypatch.setenv("PAGEPILOT_AI_MAX_STEPS", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_grouped_provider_configs(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")

    settings = Settings()

    assert settings.openai.api_key.get_secret_value() == "sk-test"
    assert settings.anthropic.api_key.get_secret_value() == "ak-test"
    assert settings.google.api_key is None
