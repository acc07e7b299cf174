"""
weather_agent/config.py
-----------------------
Process-wide settings, built once at startup and passed explicitly to the
weather tool, the generator and the flows.

Environment variables are read here and nowhere else.  Call
``load_dotenv()`` before ``Settings.from_env()`` so that a local ``.env`` file
is honoured.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from weather_agent.errors import ConfigurationError

GITHUB_MODELS_ENDPOINT = "https://models.github.ai/inference"
OPENWEATHER_BASE_URL = "https://api.openweathermap.org"

_PROVIDERS = ("github", "openai", "azure_openai")

# Names accepted by both logging and uvicorn; aliases map onto them.
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


def _env_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _log_level(value: str) -> str:
    level = value.strip().upper()
    level = _LOG_LEVEL_ALIASES.get(level, level)
    if level not in _LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid LOG_LEVEL '{value}'. Choose one of: {', '.join(_LOG_LEVELS)}"
        )
    return level


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for one process."""

    model_provider: str = "github"

    github_token: str | None = None
    github_model: str = "openai/o3-mini"
    github_endpoint: str = GITHUB_MODELS_ENDPOINT

    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"

    azure_openai_endpoint: str | None = None
    azure_openai_deployment: str | None = None
    azure_openai_api_key: str | None = None
    azure_openai_use_key_auth: bool = False

    openweather_api_key: str | None = None
    openweather_base_url: str = OPENWEATHER_BASE_URL
    openweather_timeout: float = 10.0

    flows_config: str = "flows.yaml"
    host: str = "0.0.0.0"
    port: int = 3400
    cors_allow_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ

        try:
            port = int(env.get("PORT", "3400"))
            timeout = float(env.get("OPENWEATHER_TIMEOUT", "10"))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        origins = env.get("CORS_ALLOW_ORIGINS", "*")
        return cls(
            model_provider=env.get("MODEL_PROVIDER", "github").strip().lower(),
            github_token=env.get("GITHUB_TOKEN") or None,
            github_model=env.get("GITHUB_MODEL", "openai/o3-mini"),
            github_endpoint=env.get("GITHUB_MODELS_ENDPOINT", GITHUB_MODELS_ENDPOINT),
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_model=env.get("OPENAI_MODEL", "gpt-4.1-mini"),
            azure_openai_endpoint=env.get("AZURE_OPENAI_ENDPOINT") or None,
            azure_openai_deployment=env.get("AZURE_OPENAI_DEPLOYMENT_NAME") or None,
            azure_openai_api_key=env.get("AZURE_OPENAI_API_KEY") or None,
            azure_openai_use_key_auth=_env_bool(env.get("AZURE_OPENAI_USE_KEY_AUTH")),
            openweather_api_key=env.get("OPENWEATHER_API_KEY") or None,
            openweather_base_url=env.get("OPENWEATHER_BASE_URL", OPENWEATHER_BASE_URL).rstrip("/"),
            openweather_timeout=timeout,
            flows_config=env.get("FLOWS_CONFIG", "flows.yaml"),
            host=env.get("HOST", "0.0.0.0"),
            port=port,
            cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
            log_level=_log_level(env.get("LOG_LEVEL", "INFO")),
        )

    def validate_provider(self) -> None:
        """
        Check that the selected model provider has the credentials it needs.

        Raises ConfigurationError; called once when the chat client is built.
        """
        provider = self.model_provider
        if provider not in _PROVIDERS:
            raise ConfigurationError(
                f"Unknown MODEL_PROVIDER '{provider}'. Choose one of: {', '.join(_PROVIDERS)}"
            )
        if provider == "github" and not self.github_token:
            raise ConfigurationError("GITHUB_TOKEN is required when MODEL_PROVIDER=github")
        if provider == "openai" and not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required when MODEL_PROVIDER=openai")
        if provider == "azure_openai":
            if not (self.azure_openai_endpoint and self.azure_openai_deployment):
                raise ConfigurationError(
                    "AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_DEPLOYMENT_NAME are required "
                    "when MODEL_PROVIDER=azure_openai"
                )
            if self.azure_openai_use_key_auth and not self.azure_openai_api_key:
                raise ConfigurationError(
                    "AZURE_OPENAI_API_KEY is required when AZURE_OPENAI_USE_KEY_AUTH=true"
                )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    # Reduce noise from the HTTP and model SDKs unless in debug mode.
    if level > logging.DEBUG:
        for noisy in ("azure", "urllib3", "httpcore", "httpx", "openai"):
            logging.getLogger(noisy).setLevel(logging.ERROR)
