# parameters.py
"""Data model for extracted issue parameters."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

FIELD_NAMES: Tuple[str, ...] = ("title", "type", "project", "priority", "description")


class FieldSource(str, Enum):
    AI_EXTRACTED = "ai_extracted"
    USER_CONFIRMED = "user_confirmed"
    FOLLOW_UP_QUESTION = "follow_up_question"
    DEFAULT = "default"


@dataclass(frozen=True)
class ExtractedField:
    """A single field value with its confidence and provenance.

    A missing value always carries zero confidence.
    """

    value: Optional[str] = None
    confidence: float = 0.0
    source: FieldSource = FieldSource.AI_EXTRACTED

    def __post_init__(self) -> None:
        confidence = max(0.0, min(1.0, float(self.confidence)))
        if self.value is None:
            confidence = 0.0
        object.__setattr__(self, "confidence", confidence)

    @property
    def is_present(self) -> bool:
        return self.value is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "confidence": self.confidence, "source": self.source.value}


@dataclass(frozen=True)
class ExtractedParameters:
    title: ExtractedField = field(default_factory=ExtractedField)
    type: ExtractedField = field(default_factory=ExtractedField)
    project: ExtractedField = field(default_factory=ExtractedField)
    priority: ExtractedField = field(default_factory=ExtractedField)
    description: ExtractedField = field(default_factory=ExtractedField)

    @classmethod
    def empty(cls) -> ExtractedParameters:
        return cls()

    def get(self, name: str) -> ExtractedField:
        if name not in FIELD_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def with_field(self, name: str, value: ExtractedField) -> ExtractedParameters:
        if name not in FIELD_NAMES:
            raise KeyError(name)
        return replace(self, **{name: value})

    def items(self) -> Iterator[Tuple[str, ExtractedField]]:
        for name in FIELD_NAMES:
            yield name, getattr(self, name)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: extracted.to_dict() for name, extracted in self.items()}


@dataclass(frozen=True)
class IssueDescriptor:
    """Tracker-ready issue fields.

    ``description`` is ``None`` when never provided; an empty string means the
    user explicitly chose to leave it blank.
    """

    title: str
    project: str
    issue_type: str
    priority: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
