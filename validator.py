# validator.py
"""Normalisation, defaulting and required-field gating for extracted parameters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from parameters import ExtractedField, ExtractedParameters, FieldSource
from vocabulary import (
    DEFAULT_ISSUE_TYPE,
    DEFAULT_PRIORITY,
    DEFAULT_PROJECT,
    ISSUE_TYPES,
    PRIORITIES,
    PROJECT_VOCAB,
    PROJECTS,
)

logger = logging.getLogger(__name__)

# Below this confidence type/project/priority are replaced by their defaults.
DEFAULT_CONFIDENCE_THRESHOLD = 0.6
# Title and description need at least this confidence to be accepted.
REQUIRED_CONFIDENCE_THRESHOLD = 0.6

REQUIRED_FIELDS: Tuple[str, ...] = ("title", "description")

FIELD_DEFAULTS = {
    "type": DEFAULT_ISSUE_TYPE,
    "project": DEFAULT_PROJECT,
    "priority": DEFAULT_PRIORITY,
}


@dataclass(frozen=True)
class RequiredFieldCheck:
    is_valid: bool
    missing_required: Tuple[str, ...]


def default_field(name: str) -> ExtractedField:
    return ExtractedField(FIELD_DEFAULTS[name], 1.0, FieldSource.DEFAULT)


def normalize_type(value: Optional[str]) -> str:
    if value in ISSUE_TYPES:
        return value
    return DEFAULT_ISSUE_TYPE


def normalize_priority(value: Optional[str]) -> str:
    if value in PRIORITIES:
        return value
    return DEFAULT_PRIORITY


def resolve_project(value: Optional[str]) -> Optional[str]:
    """Map an alias or canonical name to a project, or ``None`` if unknown."""
    if not value:
        return None
    lowered = value.strip().lower()
    if lowered in PROJECT_VOCAB:
        return PROJECT_VOCAB[lowered]
    for project in PROJECTS:
        if project.lower() == lowered:
            return project
    return None


def normalize_project(value: Optional[str]) -> str:
    return resolve_project(value) or DEFAULT_PROJECT


def validate_extracted_parameters(extracted: ExtractedParameters) -> ExtractedParameters:
    """Force type, priority and project into their closed vocabularies."""
    validated = extracted

    issue_type = extracted.type.value
    if issue_type is not None and issue_type not in ISSUE_TYPES:
        logger.info(
            "invalid_issue_type", extra={"value": issue_type, "default": DEFAULT_ISSUE_TYPE}
        )
        validated = validated.with_field("type", default_field("type"))

    priority = extracted.priority.value
    if priority is not None and priority not in PRIORITIES:
        logger.info("invalid_priority", extra={"value": priority, "default": DEFAULT_PRIORITY})
        validated = validated.with_field("priority", default_field("priority"))

    project = extracted.project.value
    if project is not None:
        resolved = resolve_project(project)
        if resolved:
            logger.debug("project_mapped", extra={"value": project, "project": resolved})
            validated = validated.with_field(
                "project",
                ExtractedField(resolved, extracted.project.confidence, extracted.project.source),
            )
        else:
            logger.info("unknown_project", extra={"value": project, "default": DEFAULT_PROJECT})
            validated = validated.with_field("project", default_field("project"))

    return validated


def apply_defaults(extracted: ExtractedParameters) -> ExtractedParameters:
    """Default type, project and priority when missing or weakly extracted."""
    result = extracted
    for name in FIELD_DEFAULTS:
        current = extracted.get(name)
        if current.value is None or current.confidence < DEFAULT_CONFIDENCE_THRESHOLD:
            result = result.with_field(name, default_field(name))
            if current.source is not FieldSource.DEFAULT:
                logger.debug(
                    "default_applied", extra={"field": name, "value": FIELD_DEFAULTS[name]}
                )
    return result


def check_required_fields(extracted: ExtractedParameters) -> RequiredFieldCheck:
    missing: List[str] = []
    for name in REQUIRED_FIELDS:
        current = extracted.get(name)
        if current.value is None or current.confidence < REQUIRED_CONFIDENCE_THRESHOLD:
            missing.append(name)
    logger.info("required_fields_checked", extra={"missing": missing})
    return RequiredFieldCheck(is_valid=not missing, missing_required=tuple(missing))


def build_context_phrase(extracted: ExtractedParameters) -> str:
    """Describe the issue being created, e.g. 'Creating a bug titled "X"'."""
    parts: List[str] = []

    def confident(extracted_field: ExtractedField) -> bool:
        return (
            extracted_field.value is not None
            and extracted_field.confidence >= DEFAULT_CONFIDENCE_THRESHOLD
        )

    parts.append(extracted.type.value.lower() if confident(extracted.type) else "issue")
    if confident(extracted.title):
        parts.append(f'titled "{extracted.title.value}"')
    if confident(extracted.project):
        parts.append(f"in {extracted.project.value} project")
    if confident(extracted.priority):
        parts.append(f"with {extracted.priority.value.lower()} priority")

    if len(parts) > 1:
        return f"Creating a {' '.join(parts)}"
    return "Creating this issue"
