# conversation.py
"""Conversation state and the per-turn results of the flow controller."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Set, Union

from parameters import ExtractedParameters


class IssueCreationStep(str, Enum):
    DETECTING_INTENT = "detecting_intent"
    AI_EXTRACTING = "ai_extracting"
    ASKING_PROJECT = "asking_project"
    ASKING_TYPE = "asking_type"
    ASKING_TITLE = "asking_title"
    ASKING_DESCRIPTION = "asking_description"
    ASKING_PRIORITY = "asking_priority"
    CONFIRMING_DETAILS = "confirming_details"
    READY_TO_CREATE = "ready_to_create"


@dataclass
class IssueData:
    """Partially collected issue fields."""

    title: Optional[str] = None
    project: Optional[str] = None
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ConversationState:
    """Per-request conversation state, owned by the flow controller."""

    is_creating_issue: bool = False
    current_step: IssueCreationStep = IssueCreationStep.DETECTING_INTENT
    issue_data: IssueData = field(default_factory=IssueData)
    has_asked_for: Set[str] = field(default_factory=set)
    extracted_parameters: Optional[ExtractedParameters] = None
    pending_validation: Set[str] = field(default_factory=set)

    def reset(self) -> None:
        self.is_creating_issue = False
        self.current_step = IssueCreationStep.DETECTING_INTENT
        self.issue_data = IssueData()
        self.has_asked_for = set()
        self.extracted_parameters = None
        self.pending_validation = set()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "is_creating_issue": self.is_creating_issue,
            "current_step": self.current_step.value,
            "has_extracted_parameters": self.extracted_parameters is not None,
        }


@dataclass(frozen=True)
class ContinueConversation:
    action: ClassVar[str] = "continue"
    message: str


@dataclass(frozen=True)
class CreateIssue:
    action: ClassVar[str] = "create_issue"


@dataclass(frozen=True)
class SearchIssues:
    action: ClassVar[str] = "search"
    query: str


@dataclass(frozen=True)
class CancelCreation:
    action: ClassVar[str] = "cancel"
    message: str


@dataclass(frozen=True)
class RegularChat:
    action: ClassVar[str] = "regular_chat"


@dataclass(frozen=True)
class ConversationError:
    action: ClassVar[str] = "error"
    message: str


ConversationResult = Union[
    ContinueConversation,
    CreateIssue,
    SearchIssues,
    CancelCreation,
    RegularChat,
    ConversationError,
]

HistoryMessage = Dict[str, str]


class ConversationHistory:
    """Chat transcript returned with every response."""

    def __init__(self) -> None:
        self._messages: List[HistoryMessage] = []

    def add_user_message(self, content: str) -> None:
        self._messages.append({"role": "user", "content": content})

    def add_assistant_message(self, content: str) -> None:
        self._messages.append({"role": "assistant", "content": content})

    def messages(self) -> List[HistoryMessage]:
        return [dict(message) for message in self._messages]
