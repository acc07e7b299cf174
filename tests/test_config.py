"""
tests/test_config.py
--------------------
Unit tests for Settings.from_env and provider validation.
"""

import logging
import pytest
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weather_agent.config import Settings, configure_logging
from weather_agent.errors import ConfigurationError


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.model_provider == "github"
    assert settings.github_token is None
    assert settings.github_model == "openai/o3-mini"
    assert settings.github_endpoint == "https://models.github.ai/inference"
    assert settings.openweather_api_key is None
    assert settings.openweather_base_url == "https://api.openweathermap.org"
    assert settings.openweather_timeout == 10.0
    assert settings.port == 3400
    assert settings.cors_allow_origins == ("*",)
    assert settings.flows_config == "flows.yaml"


def test_values_from_environment():
    settings = Settings.from_env({
        "MODEL_PROVIDER": " OpenAI ",
        "OPENAI_API_KEY": "sk-test",
        "OPENWEATHER_API_KEY": "owm",
        "OPENWEATHER_BASE_URL": "http://localhost:9000/",
        "OPENWEATHER_TIMEOUT": "2.5",
        "PORT": "8080",
        "CORS_ALLOW_ORIGINS": "http://a.test, http://b.test",
        "LOG_LEVEL": "debug",
        "AZURE_OPENAI_USE_KEY_AUTH": "yes",
    })
    assert settings.model_provider == "openai"
    assert settings.openai_api_key == "sk-test"
    assert settings.openweather_api_key == "owm"
    assert settings.openweather_base_url == "http://localhost:9000"
    assert settings.openweather_timeout == 2.5
    assert settings.port == 8080
    assert settings.cors_allow_origins == ("http://a.test", "http://b.test")
    assert settings.log_level == "DEBUG"
    assert settings.azure_openai_use_key_auth is True


def test_empty_secrets_are_treated_as_missing():
    settings = Settings.from_env({"GITHUB_TOKEN": "", "OPENWEATHER_API_KEY": ""})
    assert settings.github_token is None
    assert settings.openweather_api_key is None


def test_invalid_port_is_rejected():
    with pytest.raises(ConfigurationError, match="numeric"):
        Settings.from_env({"PORT": "http"})


@pytest.mark.parametrize(
    "raw, level",
    [("warn", "WARNING"), ("WARNING", "WARNING"), (" Fatal ", "CRITICAL"), ("error", "ERROR")],
)
def test_log_level_is_normalised(raw, level):
    assert Settings.from_env({"LOG_LEVEL": raw}).log_level == level


def test_unknown_log_level_is_rejected():
    with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
        Settings.from_env({"LOG_LEVEL": "verbose"})


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(Exception):
        settings.port = 1


# ---------------------------------------------------------------------------
# Unit: validate_provider
# ---------------------------------------------------------------------------


def test_github_with_token_is_valid():
    Settings(model_provider="github", github_token="ghp").validate_provider()


@pytest.mark.parametrize(
    "settings, message",
    [
        (Settings(model_provider="bedrock"), "Unknown MODEL_PROVIDER"),
        (Settings(model_provider="github"), "GITHUB_TOKEN"),
        (Settings(model_provider="openai"), "OPENAI_API_KEY"),
        (Settings(model_provider="azure_openai"), "AZURE_OPENAI_ENDPOINT"),
        (
            Settings(
                model_provider="azure_openai",
                azure_openai_endpoint="https://x.openai.azure.com",
                azure_openai_deployment="gpt",
                azure_openai_use_key_auth=True,
            ),
            "AZURE_OPENAI_API_KEY",
        ),
    ],
)
def test_invalid_provider_settings(settings, message):
    with pytest.raises(ConfigurationError, match=message):
        settings.validate_provider()


def test_azure_without_key_auth_needs_no_key():
    Settings(
        model_provider="azure_openai",
        azure_openai_endpoint="https://x.openai.azure.com",
        azure_openai_deployment="gpt",
    ).validate_provider()


def test_configure_logging_quiets_http_loggers():
    configure_logging("INFO")
    assert logging.getLogger("httpx").level == logging.ERROR
