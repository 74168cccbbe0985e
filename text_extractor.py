# text_extractor.py
"""
Deterministic pattern matching for issue fields in free text.

Used to seed the step-by-step flow, to parse answers to follow-up questions,
and as the fallback when the completion provider is unavailable.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional, Pattern

from parameters import ExtractedField, ExtractedParameters, FieldSource
from vocabulary import (
    GENERIC_ISSUE_WORDS,
    ISSUE_TYPE_WORDS,
    PRIORITY_VOCAB,
    PROJECT_ANSWER_VOCAB,
    PROJECTS,
)

logger = logging.getLogger(__name__)

MAX_PROJECT_KEY_LENGTH = 10
STRUCTURED_FIELD_CONFIDENCE = 0.9
MIN_TITLE_ANSWER_LENGTH = 5

EMPTY_DESCRIPTION_ANSWERS = {"skip", "none", "no description"}

# Project keys are upper case; only the keyword is case-insensitive.
PROJECT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(?i:project|in)\s+([A-Z][A-Z0-9]*)\b"),
    re.compile(r"\b([A-Z][A-Z0-9]*)\s+(?i:project)\b"),
]
ISSUE_TYPE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\bcreate\s+(?:an?\s+)?(\w+)", re.IGNORECASE),
    re.compile(r"\bnew\s+(\w+)", re.IGNORECASE),
    re.compile(r"\b(?:report|log)\s+(?:an?\s+)?(\w+)", re.IGNORECASE),
]
PRIORITY_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(low|medium|high|critical)\s+priority\b", re.IGNORECASE),
    re.compile(r"\bpriority\s+(?:is\s+|of\s+)?(\w+)", re.IGNORECASE),
    re.compile(r"\b(urgent|critical|important)\b", re.IGNORECASE),
]
QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"|“([^”]+)”|(?<!\w)'([^']+)'(?!\w)")
ISSUE_TYPE_ANSWER_PATTERN = re.compile(r"\b(bug|task|story|epic)s?\b", re.IGNORECASE)

TITLE_LABEL_PATTERNS: List[Pattern[str]] = [
    re.compile(r"Title:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(
        r"Title:\s*([^,\n]+?)(?=\s+(?:Issue Description|Description)\b|\s*$)",
        re.IGNORECASE | re.MULTILINE,
    ),
]
DESCRIPTION_LABEL_PATTERNS: List[Pattern[str]] = [
    re.compile(r"Issue Description:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(r"Description:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(r"Issue Description:\s*([^,\n]+?)\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Description:\s*([^,\n]+?)\s*$", re.IGNORECASE | re.MULTILINE),
]
STRUCTURED_LABEL_PATTERN = re.compile(r"\b(?:title|description)\s*:", re.IGNORECASE)
SEARCH_NOISE_PATTERN = re.compile(r"\b(?:search|find|for|issues?|tickets?)\b", re.IGNORECASE)


def extract_explicit(text: str) -> Dict[str, str]:
    """Return the fields stated unambiguously in ``text``.

    Each pattern family stops at its first match. Keys are the ``IssueData``
    attribute names: ``project``, ``issue_type``, ``priority``, ``title``.
    """
    extracted: Dict[str, str] = {}

    for pattern in PROJECT_PATTERNS:
        match = pattern.search(text)
        if match and len(match.group(1)) <= MAX_PROJECT_KEY_LENGTH:
            extracted["project"] = match.group(1).upper()
            logger.debug("explicit_project", extra={"project": extracted["project"]})
            break

    for pattern in ISSUE_TYPE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        word = match.group(1).lower()
        if word in GENERIC_ISSUE_WORDS:
            break
        if word in ISSUE_TYPE_WORDS:
            extracted["issue_type"] = normalize_issue_type(word) or ""
            logger.debug("explicit_issue_type", extra={"issue_type": extracted["issue_type"]})
            break

    for pattern in PRIORITY_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        priority = normalize_priority(match.group(1))
        if priority:
            extracted["priority"] = priority
            logger.debug("explicit_priority", extra={"priority": priority})
        break

    title = extract_title(text)
    if title:
        extracted["title"] = title

    return extracted


def extract_title(text: str) -> Optional[str]:
    """Return the first quoted substring, if any."""
    match = QUOTED_PATTERN.search(text)
    if not match:
        return None
    for group in match.groups():
        if group and group.strip():
            return group.strip()
    return None


def normalize_issue_type(word: str) -> Optional[str]:
    lowered = word.strip().lower()
    if lowered in ISSUE_TYPE_WORDS:
        return lowered.capitalize()
    return None


def normalize_priority(word: str) -> Optional[str]:
    return PRIORITY_VOCAB.get(word.strip().lower())


def extract_project_from_response(text: str) -> Optional[str]:
    """Resolve an answer to "which project?" to a canonical project name."""
    lowered = _collapse_whitespace(text).lower()
    if not lowered:
        return None
    if lowered in PROJECT_ANSWER_VOCAB:
        return PROJECT_ANSWER_VOCAB[lowered]
    for project in PROJECTS:
        if project.lower() in lowered:
            return project
    return _match_longest_phrase(lowered, PROJECT_ANSWER_VOCAB)


def extract_issue_type_from_response(text: str) -> Optional[str]:
    match = ISSUE_TYPE_ANSWER_PATTERN.search(text)
    if not match:
        return None
    return normalize_issue_type(match.group(1))


def extract_priority_from_response(text: str) -> Optional[str]:
    return _match_longest_phrase(_collapse_whitespace(text).lower(), PRIORITY_VOCAB)


def extract_title_from_response(text: str) -> Optional[str]:
    stripped = text.strip()
    if len(stripped) > MIN_TITLE_ANSWER_LENGTH:
        return stripped
    return None


def extract_description_from_response(text: str) -> str:
    """An explicit "skip" style answer yields an empty description."""
    stripped = text.strip()
    if stripped.lower() in EMPTY_DESCRIPTION_ANSWERS:
        return ""
    return stripped


def has_structured_labels(text: str) -> bool:
    return bool(STRUCTURED_LABEL_PATTERN.search(text))


def extract_structured_fields(text: str) -> ExtractedParameters:
    """Pull title/description out of ``Title:`` / ``Description:`` labelled text."""
    title = _first_group(TITLE_LABEL_PATTERNS, text)
    description = _first_group(DESCRIPTION_LABEL_PATTERNS, text)

    result = ExtractedParameters.empty()
    if title:
        result = result.with_field(
            "title",
            ExtractedField(title, STRUCTURED_FIELD_CONFIDENCE, FieldSource.AI_EXTRACTED),
        )
        logger.debug("structured_title_extracted", extra={"title": title})
    if description:
        result = result.with_field(
            "description",
            ExtractedField(description, STRUCTURED_FIELD_CONFIDENCE, FieldSource.AI_EXTRACTED),
        )
        logger.debug("structured_description_extracted", extra={"length": len(description)})
    return result


def extract_search_query(text: str) -> str:
    return _collapse_whitespace(SEARCH_NOISE_PATTERN.sub(" ", text))


def _first_group(patterns: List[Pattern[str]], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def _match_longest_phrase(lowered: str, vocab: Mapping[str, str]) -> Optional[str]:
    for phrase in sorted(vocab, key=len, reverse=True):
        if re.search(rf"\b{re.escape(phrase)}\b", lowered):
            return vocab[phrase]
    return None


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
