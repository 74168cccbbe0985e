# issue_flow.py
"""
Step-by-step issue creation: ask for one missing field at a time, then show a
summary and wait for explicit confirmation. Used when AI extraction fails.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from conversation import ConversationState, IssueCreationStep, IssueData
from parameters import ExtractedField, ExtractedParameters, FieldSource
from text_extractor import (
    STRUCTURED_FIELD_CONFIDENCE,
    extract_description_from_response,
    extract_explicit,
    extract_issue_type_from_response,
    extract_priority_from_response,
    extract_project_from_response,
    extract_structured_fields,
    extract_title_from_response,
)
from vocabulary import ISSUE_TYPES, PRIORITIES, PROJECTS

logger = logging.getLogger(__name__)

# (step, field name, IssueData attribute), in the order fields are asked for.
STEP_FIELDS: Tuple[Tuple[IssueCreationStep, str, str], ...] = (
    (IssueCreationStep.ASKING_PROJECT, "project", "project"),
    (IssueCreationStep.ASKING_TYPE, "type", "issue_type"),
    (IssueCreationStep.ASKING_TITLE, "title", "title"),
    (IssueCreationStep.ASKING_DESCRIPTION, "description", "description"),
    (IssueCreationStep.ASKING_PRIORITY, "priority", "priority"),
)
FIELD_ATTRIBUTES: Dict[str, str] = {name: attribute for _, name, attribute in STEP_FIELDS}
STEP_TO_FIELD: Dict[IssueCreationStep, str] = {step: name for step, name, _ in STEP_FIELDS}

QUESTIONS: Dict[IssueCreationStep, str] = {
    IssueCreationStep.ASKING_PROJECT: (
        f"Which project should this issue be created in? Options: {', '.join(PROJECTS)}. "
        "Short names like demo, eng or product work too."
    ),
    IssueCreationStep.ASKING_TYPE: f"What type of issue is this? ({', '.join(ISSUE_TYPES)})",
    IssueCreationStep.ASKING_TITLE: "What should the title of the issue be?",
    IssueCreationStep.ASKING_DESCRIPTION: (
        "Please describe the issue. Reply 'skip' to leave the description empty."
    ),
    IssueCreationStep.ASKING_PRIORITY: (
        f"What priority should it have? ({', '.join(PRIORITIES)})"
    ),
}
CONFIRMATION_QUESTION = "Shall I create this issue? Reply 'yes' to create it or 'no' to cancel."

ANSWER_ERRORS: Dict[str, str] = {
    "project": f"I couldn't match that to a project. Please choose one of: {', '.join(PROJECTS)}.",
    "type": f"Please choose an issue type: {', '.join(ISSUE_TYPES)}.",
    "title": "Please give a slightly longer title (more than 5 characters).",
    "priority": f"Please choose a priority: {', '.join(PRIORITIES)}.",
}

SOURCE_LABELS: Dict[FieldSource, str] = {
    FieldSource.AI_EXTRACTED: "from your message",
    FieldSource.FOLLOW_UP_QUESTION: "your answer",
    FieldSource.DEFAULT: "default",
    FieldSource.USER_CONFIRMED: "confirmed",
}

# Matches only when the whole reply is a cancel phrase.
CANCEL_PATTERN = re.compile(
    r"^\s*(?:please\s+)?(?:cancel|stop|never\s*mind)(?:\s+(?:it|that|please))?\s*[.!]*\s*$",
    re.IGNORECASE,
)
AFFIRMATIVE_PATTERN = re.compile(r"\b(?:yes|confirm|create)\b", re.IGNORECASE)
NEGATIVE_PATTERN = re.compile(r"\b(?:no|cancel)\b", re.IGNORECASE)

SUMMARY_DESCRIPTION_LIMIT = 100

AnswerParser = Callable[[str], Optional[str]]
ANSWER_PARSERS: Dict[str, AnswerParser] = {
    "project": extract_project_from_response,
    "type": extract_issue_type_from_response,
    "title": extract_title_from_response,
    "description": extract_description_from_response,
    "priority": extract_priority_from_response,
}


@dataclass(frozen=True)
class StepResult:
    success: bool
    value: Optional[str] = None
    error_message: Optional[str] = None


def is_affirmative(text: str) -> bool:
    return bool(AFFIRMATIVE_PATTERN.search(text))


def is_negative(text: str) -> bool:
    return bool(NEGATIVE_PATTERN.search(text))


class IssueCreationFlow:
    """Traditional one-question-per-turn issue creation."""

    def start_issue_creation(self, text: str, state: ConversationState) -> None:
        state.is_creating_issue = True
        explicit = extract_explicit(text)
        structured = extract_structured_fields(text)

        seeded: Dict[str, Optional[str]] = {
            "project": extract_project_from_response(explicit["project"])
            if "project" in explicit
            else None,
            "type": explicit.get("issue_type"),
            "title": structured.title.value or explicit.get("title"),
            "description": structured.description.value,
            "priority": explicit.get("priority"),
        }

        extracted = ExtractedParameters.empty()
        for name, value in seeded.items():
            if value is None:
                continue
            setattr(state.issue_data, FIELD_ATTRIBUTES[name], value)
            extracted = extracted.with_field(
                name,
                ExtractedField(value, STRUCTURED_FIELD_CONFIDENCE, FieldSource.AI_EXTRACTED),
            )
        state.extracted_parameters = extracted
        logger.info(
            "traditional_flow_started",
            extra={"seeded": sorted(name for name, value in seeded.items() if value is not None)},
        )

    def determine_next_step(self, state: ConversationState) -> IssueCreationStep:
        for step, name, attribute in STEP_FIELDS:
            if getattr(state.issue_data, attribute) is None and name not in state.has_asked_for:
                return step
        return IssueCreationStep.CONFIRMING_DETAILS

    def mark_step_as_asked(self, step: IssueCreationStep, state: ConversationState) -> None:
        name = STEP_TO_FIELD.get(step)
        if name:
            state.has_asked_for.add(name)

    def get_question_for_step(
        self, step: IssueCreationStep, state: Optional[ConversationState] = None
    ) -> str:
        if step is IssueCreationStep.CONFIRMING_DETAILS:
            if state is None:
                return CONFIRMATION_QUESTION
            summary = format_issue_summary(state.issue_data, state.extracted_parameters)
            return f"{summary}\n\n{CONFIRMATION_QUESTION}"
        return QUESTIONS.get(step, "Could you tell me a bit more about the issue?")

    def process_response(
        self, text: str, step: IssueCreationStep, state: ConversationState
    ) -> StepResult:
        """Validate an answer for the field asked at ``step`` and store it."""
        name = STEP_TO_FIELD.get(step)
        if name is None:
            logger.warning("unexpected_step", extra={"step": step.value})
            return StepResult(success=False, error_message="Please try again.")

        value = ANSWER_PARSERS[name](text)
        if value is None:
            logger.info("answer_rejected", extra={"field": name})
            return StepResult(success=False, error_message=ANSWER_ERRORS[name])

        setattr(state.issue_data, FIELD_ATTRIBUTES[name], value)
        extracted = state.extracted_parameters or ExtractedParameters.empty()
        state.extracted_parameters = extracted.with_field(
            name, ExtractedField(value, 1.0, FieldSource.FOLLOW_UP_QUESTION)
        )
        logger.debug("answer_stored", extra={"field": name})
        return StepResult(success=True, value=value)

    def begin_confirmation(self, state: ConversationState) -> str:
        state.current_step = IssueCreationStep.CONFIRMING_DETAILS
        state.pending_validation = {
            name
            for _, name, attribute in STEP_FIELDS
            if getattr(state.issue_data, attribute) is not None
        }
        return self.get_question_for_step(IssueCreationStep.CONFIRMING_DETAILS, state)

    def confirm(self, state: ConversationState) -> None:
        extracted = state.extracted_parameters or ExtractedParameters.empty()
        for name in state.pending_validation:
            value = getattr(state.issue_data, FIELD_ATTRIBUTES[name])
            extracted = extracted.with_field(
                name, ExtractedField(value, 1.0, FieldSource.USER_CONFIRMED)
            )
        state.extracted_parameters = extracted
        state.pending_validation = set()
        state.current_step = IssueCreationStep.READY_TO_CREATE

    def check_for_cancellation(self, text: str) -> bool:
        return bool(CANCEL_PATTERN.search(text))

    def reset_state(self, state: ConversationState) -> None:
        state.reset()


def format_issue_summary(
    issue_data: IssueData, extracted: Optional[ExtractedParameters] = None
) -> str:
    def label(name: str) -> str:
        if extracted is None:
            return ""
        extracted_field = extracted.get(name)
        if extracted_field.value is None:
            return ""
        return f" ({SOURCE_LABELS[extracted_field.source]})"

    lines = ["Issue summary:"]
    if issue_data.project:
        lines.append(f"- Project: {issue_data.project}{label('project')}")
    if issue_data.issue_type:
        lines.append(f"- Type: {issue_data.issue_type}{label('type')}")
    if issue_data.title:
        lines.append(f"- Title: {issue_data.title}{label('title')}")
    if issue_data.priority:
        lines.append(f"- Priority: {issue_data.priority}{label('priority')}")
    if issue_data.description:
        description = issue_data.description
        if len(description) > SUMMARY_DESCRIPTION_LIMIT:
            description = description[:SUMMARY_DESCRIPTION_LIMIT] + "..."
        lines.append(f"- Description: {description}{label('description')}")
    elif issue_data.description == "":
        lines.append("- Description: (none)")
    return "\n".join(lines)
