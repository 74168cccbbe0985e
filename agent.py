# agent.py
"""Handles one inbound prompt end to end and builds the response."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from conversation import (
    CancelCreation,
    ContinueConversation,
    ConversationError,
    ConversationHistory,
    ConversationResult,
    ConversationState,
    CreateIssue,
    HistoryMessage,
    RegularChat,
    SearchIssues,
)
from conversation_manager import ConversationManager
from issue_builder import build_issue_request
from jira_client import CreationResult, JiraClient, JiraError
from logging_utils import current_request_id, request_context

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROMPT_LENGTH = 5000
CHAT_MESSAGE = (
    "I can help you create Jira issues or search for existing ones. What would you like to do?"
)
GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


class PromptValidationError(ValueError):
    """The prompt was rejected before reaching the conversation flow."""


def validate_prompt(prompt: Any, max_length: int = DEFAULT_MAX_PROMPT_LENGTH) -> str:
    if prompt is None:
        raise PromptValidationError("A prompt is required.")
    if not isinstance(prompt, str):
        raise PromptValidationError("The prompt must be a string.")
    if not prompt.strip():
        raise PromptValidationError("The prompt cannot be empty.")
    if len(prompt) > max_length:
        raise PromptValidationError(f"The prompt cannot exceed {max_length} characters.")
    return prompt.strip()


@dataclass
class AgentResponse:
    action: str
    message: str
    success: Optional[bool] = None
    data: dict[str, Any] = field(default_factory=dict)
    conversation_history: list[HistoryMessage] = field(default_factory=list)
    processing_time_ms: int = 0
    request_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": self.action, "message": self.message}
        if self.success is not None:
            payload["success"] = self.success
        payload.update(self.data)
        payload["conversation_history"] = self.conversation_history
        payload["processing_time_ms"] = self.processing_time_ms
        payload["request_id"] = self.request_id
        return payload


class JiraAgent:
    """Runs a fresh conversation per prompt and performs the resulting action."""

    def __init__(
        self,
        conversation_manager: ConversationManager,
        jira_client: JiraClient,
        *,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ) -> None:
        self.conversation_manager = conversation_manager
        self.jira_client = jira_client
        self.max_prompt_length = max_prompt_length

    def handle(self, prompt: Any) -> AgentResponse:
        started = time.monotonic()
        text = validate_prompt(prompt, self.max_prompt_length)

        with request_context(uuid.uuid4().hex[:12]):
            logger.info("prompt_received", extra={"preview": text[:100]})
            state = ConversationState()
            history = ConversationHistory()
            history.add_user_message(text)

            result = self.conversation_manager.process_user_input(text, state)
            logger.info("conversation_result", extra={"action": result.action})
            response = self._dispatch(result, state, history)

            response.conversation_history = history.messages()
            response.processing_time_ms = int((time.monotonic() - started) * 1000)
            response.request_id = current_request_id()
            logger.info(
                "prompt_handled",
                extra={"action": response.action, "elapsed_ms": response.processing_time_ms},
            )
        return response

    def _dispatch(
        self, result: ConversationResult, state: ConversationState, history: ConversationHistory
    ) -> AgentResponse:
        if isinstance(result, CreateIssue):
            return self._handle_issue_creation(state, history)
        if isinstance(result, SearchIssues):
            return self._handle_search(result.query, history)
        if isinstance(result, ContinueConversation):
            history.add_assistant_message(result.message)
            return AgentResponse(
                action="continue", message=result.message, data={"state": state.snapshot()}
            )
        if isinstance(result, CancelCreation):
            history.add_assistant_message(result.message)
            return AgentResponse(action="cancelled", message=result.message)
        if isinstance(result, ConversationError):
            message = result.message or GENERIC_ERROR_MESSAGE
            history.add_assistant_message(message)
            return AgentResponse(action="error", message=message, success=False)
        if isinstance(result, RegularChat):
            history.add_assistant_message(CHAT_MESSAGE)
            return AgentResponse(action="chat_response", message=CHAT_MESSAGE)

        logger.error("unknown_conversation_result", extra={"result": repr(result)})
        history.add_assistant_message(GENERIC_ERROR_MESSAGE)
        return AgentResponse(action="error", message=GENERIC_ERROR_MESSAGE, success=False)

    def _handle_issue_creation(
        self, state: ConversationState, history: ConversationHistory
    ) -> AgentResponse:
        try:
            request = build_issue_request(state.issue_data)
            logger.info("creating_issue", extra=request.descriptor.to_dict())
            result = self.jira_client.create_issue(request)
        except (JiraError, ValueError) as exc:
            logger.error("issue_creation_failed", extra={"error": str(exc)})
            result = CreationResult(success=False, error=str(exc))
        except Exception as exc:
            logger.exception("issue_creation_failed", extra={"error": str(exc)})
            result = CreationResult(success=False, error=str(exc))

        if not result.success:
            message = format_error_message(result)
            history.add_assistant_message(message)
            return AgentResponse(
                action="issue_creation_failed",
                message=message,
                success=False,
                data={"error": result.error},
            )

        descriptor = request.descriptor
        message = format_success_message(result)
        history.add_assistant_message(message)
        logger.info("ticket_created", extra={"key": result.key})
        return AgentResponse(
            action="issue_created",
            message=message,
            success=True,
            data={
                "issue": {
                    "key": result.key,
                    "url": result.url,
                    "project": result.project or descriptor.project,
                    "summary": result.summary or descriptor.title,
                    "issue_type": result.issue_type or descriptor.issue_type,
                    "priority": result.priority or descriptor.priority,
                    "status": result.status,
                }
            },
        )

    def _handle_search(self, query: str, history: ConversationHistory) -> AgentResponse:
        if not query:
            message = "No search query provided."
            history.add_assistant_message(message)
            return AgentResponse(action="search_failed", message=message, success=False)

        try:
            issues = self.jira_client.search_issues(query)
        except JiraError as exc:
            logger.warning("search_failed", extra={"error": str(exc)})
            return self._search_failed(str(exc), history)
        except Exception as exc:
            logger.exception("search_failed", extra={"error": str(exc)})
            return self._search_failed(str(exc), history)

        if issues:
            message = f'Found {len(issues)} issue(s) matching "{query}"'
        else:
            message = f'No issues found matching "{query}"'
        history.add_assistant_message(message)
        return AgentResponse(
            action="search_results",
            message=message,
            success=True,
            data={"search_query": query, "results": [issue.to_dict() for issue in issues]},
        )

    def _search_failed(self, error: str, history: ConversationHistory) -> AgentResponse:
        message = f"Search failed: {error}"
        history.add_assistant_message(message)
        return AgentResponse(
            action="search_failed", message=message, success=False, data={"error": error}
        )


def format_success_message(result: CreationResult) -> str:
    message = f'Created Jira issue {result.key or "N/A"}: "{result.summary}" in {result.project}.'
    if result.url:
        message += f" View it at {result.url}"
    return message


def format_error_message(result: CreationResult) -> str:
    error = result.error or "Unknown error"
    return (
        "I couldn't create the Jira ticket. "
        f"The error was: {error}. Would you like to try again?"
    )
