# ai_extractor.py
"""
Completion-backed extraction of the five issue fields from free text, with a
deterministic fallback when the provider fails or misses labelled fields.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, List, Pattern, Tuple

from llm_client import CompletionProvider
from parameters import FIELD_NAMES, ExtractedField, ExtractedParameters, FieldSource
from text_extractor import extract_structured_fields, has_structured_labels
from validator import apply_defaults, default_field, validate_extracted_parameters

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at extracting structured data from natural language requests "
    "for Jira issue creation. Pay special attention to Title: and Description: patterns. "
    "Always respond with valid JSON only."
)

EXTRACTION_TEMPLATE = """Analyze this request for creating a Jira issue and extract its parameters:

"{request}"

Only extract a parameter when it is clearly and explicitly present.

TITLE: the issue summary. Text after "Title:" or "TITLE_FIELD:" (quoted or not), or the clear subject of the request.
DESCRIPTION: the detailed explanation. Text after "Description:", "Issue Description:", "DESCRIPTION_FIELD:", "Problem:" or "Details:".
TYPE: exactly one of Bug, Task, Story, Epic.
PROJECT: only when introduced by "in", "for" or "to", including "[PROJECT:name]" markers.
Known projects: "FV Demo Product", "FV Demo Issues", "FV Engineering", "FV Product".
PRIORITY: exactly one of Lowest, Low, Medium, High, Highest.

Confidence (0.0-1.0):
- 1.0 explicitly stated with clear keywords
- 0.9 labelled ("Title: ...", "Description: ...", TITLE_FIELD, DESCRIPTION_FIELD)
- 0.8 strongly implied
- 0.6 reasonably inferred
- 0.4 weakly suggested
- 0.0 not mentioned

Respond with JSON only, using null for anything not present:
{{
  "title": {{"value": "extracted title" or null, "confidence": 0.9}},
  "type": {{"value": "Bug" or null, "confidence": 0.8}},
  "project": {{"value": "FV Engineering" or null, "confidence": 0.7}},
  "priority": {{"value": "High" or null, "confidence": 0.6}},
  "description": {{"value": "extracted description" or null, "confidence": 0.9}}
}}

Examples:
- "Title: 'Login broken' Description: 'Users cannot authenticate'" -> title "Login broken" (0.9), description "Users cannot authenticate" (0.9)
- "Create a bug called 'API Error'" -> title "API Error", type "Bug"

Do not invent information."""

LABEL_REWRITES: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"Title:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE), r'TITLE_FIELD: "\1"'),
    (
        re.compile(r"Issue Description:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
        r'DESCRIPTION_FIELD: "\1"',
    ),
    (re.compile(r"Description:\s*['\"]([^'\"]+)['\"]", re.IGNORECASE), r'DESCRIPTION_FIELD: "\1"'),
    (
        re.compile(
            r"Title:\s*([^,\n]+?)(?=\s+(?:Issue Description|Description|DESCRIPTION_FIELD)\b|\s*$)",
            re.IGNORECASE | re.MULTILINE,
        ),
        r'TITLE_FIELD: "\1"',
    ),
    (
        re.compile(r"Issue Description:\s*([^,\n]+?)\s*$", re.IGNORECASE | re.MULTILINE),
        r'DESCRIPTION_FIELD: "\1"',
    ),
]


def _project_rules() -> List[Tuple[Pattern[str], str]]:
    mentions = [
        (r"fv\s+demo\s+product", "FV Demo Product"),
        (r"demo\s+product", "FV Demo Product"),
        (r"fv\s+product", "FV Product"),
        (r"fv\s+engineering", "FV Engineering"),
        (r"engineering", "FV Engineering"),
        (r"fv\s+demo\s+issues", "FV Demo Issues"),
        (r"demo\s+issues", "FV Demo Issues"),
        (r"demo", "FV Demo Issues"),
    ]
    rules: List[Tuple[Pattern[str], str]] = []
    for preposition in ("in", "for", "to"):
        for mention, project in mentions:
            # Bare "demo" is only trusted after "in".
            if mention == "demo" and preposition != "in":
                continue
            pattern = re.compile(rf"\b{preposition}\s+{mention}\b", re.IGNORECASE)
            rules.append((pattern, f"{preposition} [PROJECT:{project}]"))
    return rules


PROJECT_REWRITES = _project_rules()
CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class ParameterExtractor:
    """Turns a request into ``ExtractedParameters``; never raises."""

    def __init__(self, completion: CompletionProvider) -> None:
        self.completion = completion

    def extract_parameters(self, text: str) -> ExtractedParameters:
        try:
            prepared = preprocess_request(text)
            raw = self.completion.complete(SYSTEM_PROMPT, build_extraction_prompt(prepared))
            logger.debug("completion_received", extra={"length": len(raw)})
            extracted = parse_completion(raw)
        except Exception as exc:
            logger.warning("ai_extraction_failed", extra={"error": str(exc)})
            return self._fallback(text)

        if not (extracted.title.is_present and extracted.description.is_present) and (
            has_structured_labels(text)
        ):
            extracted = _patch_from_labels(extracted, text)

        result = apply_defaults(validate_extracted_parameters(extracted))
        log_extraction_results(result)
        return result

    def _fallback(self, text: str) -> ExtractedParameters:
        recovered = apply_defaults(extract_structured_fields(text))
        if recovered.title.is_present or recovered.description.is_present:
            logger.info("fallback_extraction_succeeded")
            log_extraction_results(recovered)
            return recovered
        logger.info("fallback_extraction_empty")
        return create_default_extraction()


def preprocess_request(text: str) -> str:
    """Mark labelled fields and the first recognised project mention."""
    processed = text
    for pattern, replacement in LABEL_REWRITES:
        processed = pattern.sub(replacement, processed, count=1)

    for pattern, replacement in PROJECT_REWRITES:
        if pattern.search(processed):
            processed = pattern.sub(replacement, processed)
            logger.debug("project_mention_marked", extra={"rewritten": processed})
            break
    return processed


def build_extraction_prompt(text: str) -> str:
    return EXTRACTION_TEMPLATE.format(request=text)


def parse_completion(raw: str) -> ExtractedParameters:
    """Parse the provider's JSON; anything unparseable yields an empty result."""
    cleaned = CODE_FENCE_PATTERN.sub("", raw.strip()).replace("```", "")
    match = JSON_OBJECT_PATTERN.search(cleaned)
    if match:
        cleaned = match.group(0)
    try:
        parsed = json.loads(cleaned)
    except ValueError as exc:
        logger.warning("completion_parse_failed", extra={"error": str(exc), "raw": raw})
        return ExtractedParameters.empty()
    if not isinstance(parsed, dict):
        logger.warning("completion_not_object", extra={"raw": raw})
        return ExtractedParameters.empty()

    return ExtractedParameters(**{name: _normalize_field(parsed.get(name)) for name in FIELD_NAMES})


def create_default_extraction() -> ExtractedParameters:
    return ExtractedParameters(
        type=default_field("type"),
        project=default_field("project"),
        priority=default_field("priority"),
    )


def log_extraction_results(extracted: ExtractedParameters) -> None:
    for name, extracted_field in extracted.items():
        logger.debug(
            "parameter_extracted",
            extra={
                "field": name,
                "value": extracted_field.value,
                "confidence": extracted_field.confidence,
                "source": extracted_field.source.value,
            },
        )


def _normalize_field(raw: Any) -> ExtractedField:
    if not isinstance(raw, dict):
        return ExtractedField()
    value = raw.get("value")
    if value is not None and not isinstance(value, str):
        value = str(value)
    if isinstance(value, str):
        value = value.strip() or None
    try:
        confidence = float(raw.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0
    if not math.isfinite(confidence):
        confidence = 0.0
    return ExtractedField(value, confidence, FieldSource.AI_EXTRACTED)


def _patch_from_labels(extracted: ExtractedParameters, text: str) -> ExtractedParameters:
    logger.info("ai_extraction_incomplete", extra={"fallback": "structured_labels"})
    structured = extract_structured_fields(text)
    patched = extracted
    for name in ("title", "description"):
        if not extracted.get(name).is_present and structured.get(name).is_present:
            patched = patched.with_field(name, structured.get(name))
    return patched
