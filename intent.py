# intent.py
"""Keyword heuristics that decide what an utterance is asking for."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Pattern, Tuple

from vocabulary import ISSUE_NOUNS

logger = logging.getLogger(__name__)

CHAT_KEYWORDS: Tuple[str, ...] = (
    "hello",
    "hi",
    "help",
    "what can you do",
    "how do you work",
    "what are your capabilities",
    "tell me about",
    "explain",
    "how to",
    "what is",
    "who are you",
    "what are you",
)
SEARCH_KEYWORDS: Tuple[str, ...] = ("search", "find")
SEARCH_NOUNS: Tuple[str, ...] = ("issue", "ticket")
CREATION_KEYWORDS: Tuple[str, ...] = ("create", "new", "make", "add", "report", "log", "submit")
CREATION_NOUNS: Tuple[str, ...] = ISSUE_NOUNS + ("problem",)
PROBLEM_INDICATORS: Tuple[str, ...] = (
    "not working",
    "broken",
    "error",
    "issue with",
    "problem with",
    "unable to",
    "can't",
    "cannot",
    "fails to",
    "doesn't work",
    "bug in",
    "issue in",
    "problem in",
)
FEATURE_INDICATORS: Tuple[str, ...] = (
    "need",
    "want",
    "would like",
    "should have",
    "missing",
    "add feature",
    "new feature",
    "enhancement",
    "improvement",
)


class Intent(str, Enum):
    SEARCH = "search"
    CHAT = "chat"
    CREATE_ISSUE = "create_issue"


def _keyword_pattern(keywords: Tuple[str, ...], plural: bool = False) -> Pattern[str]:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    suffix = "s?" if plural else ""
    return re.compile(rf"\b(?:{alternatives}){suffix}\b", re.IGNORECASE)


CHAT_PATTERN = _keyword_pattern(CHAT_KEYWORDS)
SEARCH_PATTERN = _keyword_pattern(SEARCH_KEYWORDS)
SEARCH_NOUN_PATTERN = _keyword_pattern(SEARCH_NOUNS, plural=True)
CREATION_PATTERN = _keyword_pattern(CREATION_KEYWORDS)
CREATION_NOUN_PATTERN = _keyword_pattern(CREATION_NOUNS, plural=True)
ISSUE_NOUN_PATTERN = _keyword_pattern(ISSUE_NOUNS, plural=True)
PROBLEM_PATTERN = _keyword_pattern(PROBLEM_INDICATORS)
FEATURE_PATTERN = _keyword_pattern(FEATURE_INDICATORS)


def detects_chat_intent(text: str) -> bool:
    if CHAT_PATTERN.search(text):
        return True
    return "?" in text and not ISSUE_NOUN_PATTERN.search(text)


def detects_search_intent(text: str) -> bool:
    return (
        bool(SEARCH_PATTERN.search(text))
        and bool(SEARCH_NOUN_PATTERN.search(text))
        and not detects_issue_creation_intent(text)
    )


def detects_issue_creation_intent(text: str) -> bool:
    explicit = bool(CREATION_PATTERN.search(text)) and bool(CREATION_NOUN_PATTERN.search(text))
    return explicit or _looks_like_issue(text)


def _looks_like_issue(text: str) -> bool:
    lowered = text.lower()
    labelled = "title:" in lowered and "description:" in lowered
    return labelled or bool(PROBLEM_PATTERN.search(text)) or bool(FEATURE_PATTERN.search(text))


def classify_intent(text: str) -> Intent:
    """Search and chat are checked first; anything else is an issue request."""
    if detects_search_intent(text):
        intent = Intent.SEARCH
    elif detects_chat_intent(text):
        intent = Intent.CHAT
    else:
        intent = Intent.CREATE_ISSUE
    logger.debug("intent_classified", extra={"intent": intent.value})
    return intent
