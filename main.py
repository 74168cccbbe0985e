# main.py
"""Slack bot entry point for the Jira agent."""

import logging
import time
from typing import Any, Optional

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

import config
from agent import AgentResponse, JiraAgent, PromptValidationError
from ai_extractor import ParameterExtractor
from conversation_manager import ConversationManager
from jira_client import JiraClient
from llm_client import OllamaClient
from logging_utils import configure_logging

configure_logging(config.get_log_level(), config.is_log_json_enabled())
logger = logging.getLogger(__name__)

app = App(token=config.get_slack_bot_token())

last_request_time: dict[str, int] = {}


def build_agent() -> JiraAgent:
    completion = OllamaClient(
        host=config.get_ollama_host(),
        model=config.get_ollama_model(),
        timeout=config.get_ollama_timeout(),
        temperature=config.get_ollama_temperature(),
    )
    jira_client = JiraClient(
        domain=config.get_jira_domain(),
        email=config.get_jira_email(),
        api_token=config.get_jira_api_token(),
        project_keys=config.get_project_key_map(),
        timeout=config.get_jira_timeout(),
    )
    return JiraAgent(
        ConversationManager(ParameterExtractor(completion)),
        jira_client,
        max_prompt_length=config.get_max_prompt_length(),
    )


agent = build_agent()


def is_rate_limited(user_id: Optional[str]) -> bool:
    key = user_id or "anonymous"
    now = int(time.time())
    last = last_request_time.get(key, 0)
    if now - last < config.get_rate_limit_seconds():
        logger.debug("rate_limited", extra={"user_id": key, "last_ts": last, "now_ts": now})
        return True
    last_request_time[key] = now
    return False


@app.event("message")
def handle_message_events(body, say):
    event = body.get("event", {})
    channel = event.get("channel")
    user = event.get("user")
    text = event.get("text", "")
    subtype = event.get("subtype")

    if _should_ignore(channel, subtype, user):
        return

    if is_rate_limited(user):
        say("Please wait a moment before sending another request.")
        return

    try:
        response = agent.handle(text)
    except PromptValidationError as err:
        logger.info("prompt_rejected", extra={"user": user, "reason": str(err)})
        say(str(err))
        return

    logger.info("reply_sent", extra={"user": user, "action": response.action})
    say(render_response(response))


def _should_ignore(channel: Optional[str], subtype: Optional[str], user: Optional[str]) -> bool:
    if subtype == "bot_message":
        logger.debug("ignore_bot_message", extra={"user": user, "channel": channel})
        return True
    expected = config.get_slack_channel()
    if channel != expected and (not channel or not channel.startswith("D")):
        logger.debug("ignore_channel", extra={"channel": channel, "expected_channel": expected})
        return True
    return False


def render_response(response: AgentResponse) -> str:
    if response.action != "search_results":
        return response.message
    results: list[dict[str, Any]] = response.data.get("results", [])
    lines = [response.message]
    for issue in results:
        key = issue.get("key") or "Unknown"
        summary = issue.get("summary") or "No summary provided"
        status = issue.get("status") or "Unknown"
        url = f"https://{config.get_jira_domain()}/browse/{key}"
        lines.append(f"- <{url}|{key}>: {summary} (Status: {status})")
    return "\n".join(lines)


if __name__ == "__main__":
    handler = SocketModeHandler(app, config.get_slack_app_token())
    handler.start()
