# config.py
"""Accessors over the cached settings.

Values are read lazily so that importing a module never requires the
environment to be configured.
"""

from typing import Dict

from settings import AgentSettings, get_settings


def _settings() -> AgentSettings:
    return get_settings()


def get_slack_bot_token() -> str:
    return _settings().slack.bot_token


def get_slack_app_token() -> str:
    return _settings().slack.app_token


def get_slack_channel() -> str:
    return _settings().slack.default_channel


def get_jira_domain() -> str:
    return _settings().jira.domain


def get_jira_email() -> str:
    return _settings().jira.email


def get_jira_api_token() -> str:
    return _settings().jira.api_token


def get_jira_timeout() -> int:
    return _settings().jira.timeout_seconds


def get_project_key_map() -> Dict[str, str]:
    return _settings().project_keys


def get_ollama_host() -> str:
    return _settings().ollama.host


def get_ollama_model() -> str:
    return _settings().ollama.model


def get_ollama_timeout() -> int:
    return _settings().ollama.timeout_seconds


def get_ollama_temperature() -> float:
    return _settings().ollama.temperature


def get_max_prompt_length() -> int:
    return _settings().requests.max_prompt_length


def get_rate_limit_seconds() -> int:
    return _settings().requests.rate_limit_seconds


def get_log_level() -> str:
    return _settings().logging.level


def is_log_json_enabled() -> bool:
    return _settings().logging.json_enabled


__all__ = [
    "get_slack_bot_token",
    "get_slack_app_token",
    "get_slack_channel",
    "get_jira_domain",
    "get_jira_email",
    "get_jira_api_token",
    "get_jira_timeout",
    "get_project_key_map",
    "get_ollama_host",
    "get_ollama_model",
    "get_ollama_timeout",
    "get_ollama_temperature",
    "get_max_prompt_length",
    "get_rate_limit_seconds",
    "get_log_level",
    "is_log_json_enabled",
    "get_settings",
]
