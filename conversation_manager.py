# conversation_manager.py
"""Turn-by-turn controller for issue creation conversations."""

from __future__ import annotations

import logging
from typing import Optional

from ai_extractor import ParameterExtractor
from conversation import (
    CancelCreation,
    ContinueConversation,
    ConversationError,
    ConversationResult,
    ConversationState,
    CreateIssue,
    IssueCreationStep,
    RegularChat,
    SearchIssues,
)
from intent import Intent, classify_intent
from issue_flow import IssueCreationFlow, is_affirmative, is_negative
from parameters import ExtractedParameters
from text_extractor import extract_search_query
from validator import check_required_fields, validate_extracted_parameters

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = (
    "No problem! Issue creation has been cancelled. "
    "Let me know if you need help with anything else."
)
CONFIRMATION_REPROMPT = "Please confirm by saying 'yes' to create the issue, or 'no' to cancel."
UNEXPECTED_ERROR_MESSAGE = "Something went wrong while processing your request. Please try again."


class ConversationManager:
    """Decides the next action for one user utterance.

    AI extraction is tried first; when it raises, the step-by-step flow takes
    over. No method raises to the caller.
    """

    def __init__(
        self, extractor: ParameterExtractor, flow: Optional[IssueCreationFlow] = None
    ) -> None:
        self.extractor = extractor
        self.flow = flow or IssueCreationFlow()

    def process_user_input(self, text: str, state: ConversationState) -> ConversationResult:
        try:
            if state.is_creating_issue:
                return self._handle_issue_creation_flow(text, state)

            intent = classify_intent(text)
            if intent is Intent.SEARCH:
                return SearchIssues(query=extract_search_query(text))
            if intent is Intent.CHAT:
                return RegularChat()
            return self._start_issue_creation_with_ai(text, state)
        except Exception as exc:  # pragma: no cover
            logger.exception("conversation_failed", extra={"error": str(exc)})
            self.flow.reset_state(state)
            return ConversationError(message=UNEXPECTED_ERROR_MESSAGE)

    def _start_issue_creation_with_ai(
        self, text: str, state: ConversationState
    ) -> ConversationResult:
        state.is_creating_issue = True
        state.current_step = IssueCreationStep.AI_EXTRACTING

        try:
            extracted = validate_extracted_parameters(self.extractor.extract_parameters(text))
        except Exception as exc:
            logger.warning("ai_flow_failed", extra={"error": str(exc), "fallback": "traditional"})
            return self._start_traditional_flow(text, state)

        check = check_required_fields(extracted)
        if not check.is_valid:
            self.flow.reset_state(state)
            missing = " and ".join(check.missing_required)
            return ConversationError(
                message=(
                    f"Missing required information: {missing}. "
                    "Please provide both a title and description in your request."
                )
            )

        _copy_extracted_to_issue_data(extracted, state)
        state.extracted_parameters = extracted
        state.current_step = IssueCreationStep.READY_TO_CREATE
        logger.info("issue_ready", extra={"fields": sorted(state.issue_data.to_dict())})
        return CreateIssue()

    def _start_traditional_flow(self, text: str, state: ConversationState) -> ConversationResult:
        self.flow.start_issue_creation(text, state)
        return self._advance(state)

    def _handle_issue_creation_flow(
        self, text: str, state: ConversationState
    ) -> ConversationResult:
        if self.flow.check_for_cancellation(text):
            self.flow.reset_state(state)
            logger.info("issue_creation_cancelled")
            return CancelCreation(message=CANCELLED_MESSAGE)

        if state.current_step is IssueCreationStep.CONFIRMING_DETAILS:
            if is_affirmative(text):
                self.flow.confirm(state)
                return CreateIssue()
            if is_negative(text):
                self.flow.reset_state(state)
                return CancelCreation(message=CANCELLED_MESSAGE)
            return ContinueConversation(message=CONFIRMATION_REPROMPT)

        result = self.flow.process_response(text, state.current_step, state)
        if not result.success:
            return ContinueConversation(message=result.error_message or "Please try again.")
        return self._advance(state)

    def _advance(self, state: ConversationState) -> ConversationResult:
        next_step = self.flow.determine_next_step(state)
        if next_step is IssueCreationStep.CONFIRMING_DETAILS:
            return ContinueConversation(message=self.flow.begin_confirmation(state))

        state.current_step = next_step
        self.flow.mark_step_as_asked(next_step, state)
        return ContinueConversation(message=self.flow.get_question_for_step(next_step))


def _copy_extracted_to_issue_data(
    extracted: ExtractedParameters, state: ConversationState
) -> None:
    data = state.issue_data
    if extracted.title.value is not None:
        data.title = extracted.title.value
    if extracted.type.value is not None:
        data.issue_type = extracted.type.value
    if extracted.project.value is not None:
        data.project = extracted.project.value
    if extracted.priority.value is not None:
        data.priority = extracted.priority.value
    if extracted.description.value is not None:
        data.description = extracted.description.value
