# settings.py
"""Centralized configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

load_dotenv()

PROJECT_KEY_ENV_PREFIX = "JIRA_PROJECT_KEY_"


class SlackSettings(BaseSettings):
    bot_token: str = Field(alias="SLACK_BOT_TOKEN")
    app_token: str = Field(alias="SLACK_APP_TOKEN")
    default_channel: str = Field(alias="SLACK_CHANNEL")


class JiraSettings(BaseSettings):
    domain: str = Field(alias="JIRA_DOMAIN")
    email: str = Field(alias="JIRA_EMAIL")
    api_token: str = Field(alias="JIRA_API_TOKEN")
    timeout_seconds: int = Field(alias="JIRA_TIMEOUT", default=10)


class OllamaSettings(BaseSettings):
    host: str = Field(alias="OLLAMA_HOST", default="http://localhost:11434")
    model: str = Field(alias="OLLAMA_MODEL", default="llama3")
    timeout_seconds: int = Field(alias="OLLAMA_TIMEOUT", default=30)
    temperature: float = Field(alias="OLLAMA_TEMPERATURE", default=0.1)


class LoggingSettings(BaseSettings):
    level: str = Field(alias="AGENT_LOG_LEVEL", default="INFO")
    json_enabled: bool = Field(alias="AGENT_LOG_JSON", default=False)


class RequestSettings(BaseSettings):
    max_prompt_length: int = Field(alias="AGENT_MAX_PROMPT_LENGTH", default=5000)
    rate_limit_seconds: int = Field(alias="AGENT_RATE_LIMIT_SECONDS", default=2)


class AgentSettings(BaseSettings):
    slack: SlackSettings
    jira: JiraSettings
    ollama: OllamaSettings
    logging: LoggingSettings
    requests: RequestSettings
    project_keys: dict[str, str] = Field(default_factory=dict)

    @staticmethod
    def _build_project_key_map() -> dict[str, str]:
        """Collect ``JIRA_PROJECT_KEY_<SLUG>=<KEY>`` overrides, keyed by slug."""
        from os import environ

        mapping: dict[str, str] = {}
        for env_key, value in environ.items():
            if env_key.startswith(PROJECT_KEY_ENV_PREFIX) and value:
                slug = env_key[len(PROJECT_KEY_ENV_PREFIX) :].lower().replace("_", "")
                mapping[slug] = value.strip().upper()
        return mapping

    @classmethod
    def load(cls) -> AgentSettings:
        try:
            return cls(
                slack=SlackSettings(),  # type: ignore[call-arg]
                jira=JiraSettings(),  # type: ignore[call-arg]
                ollama=OllamaSettings(),  # type: ignore[call-arg]
                logging=LoggingSettings(),  # type: ignore[call-arg]
                requests=RequestSettings(),  # type: ignore[call-arg]
                project_keys=cls._build_project_key_map(),
            )
        except ValidationError as exc:  # pragma: no cover - surfaced on startup
            # Re-raise with a friendlier message
            missing = [error["loc"][0] for error in exc.errors() if error.get("type") == "missing"]
            msg = "Missing required configuration values: " + ", ".join(
                sorted({str(loc) for loc in missing})
            )
            raise RuntimeError(msg) from exc


@lru_cache(maxsize=1)
def get_settings() -> AgentSettings:
    return AgentSettings.load()
