# vocabulary.py
"""Closed vocabularies and synonym tables for issue fields.

All tables are read-only process-wide constants. Project names are never
cached from Jira; the tracker is consulted per request (see ``jira_client``).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Tuple

ISSUE_TYPES: Tuple[str, ...] = ("Bug", "Task", "Story", "Epic")
PRIORITIES: Tuple[str, ...] = ("Lowest", "Low", "Medium", "High", "Highest")

PROJECT_DEMO_ISSUES = "FV Demo (Issues)"
PROJECT_DEMO_PRODUCT = "FV Demo (Product)"
PROJECT_ENGINEERING = "FV Engineering"
PROJECT_PRODUCT = "FV Product"

PROJECTS: Tuple[str, ...] = (
    PROJECT_DEMO_ISSUES,
    PROJECT_DEMO_PRODUCT,
    PROJECT_ENGINEERING,
    PROJECT_PRODUCT,
)

DEFAULT_ISSUE_TYPE = "Bug"
DEFAULT_PROJECT = PROJECT_DEMO_ISSUES
DEFAULT_PRIORITY = "Medium"

# Words the lexical extractor accepts as an explicit issue type. "issue" and
# "ticket" are generic nouns and never select a type.
ISSUE_TYPE_WORDS: FrozenSet[str] = frozenset(word.lower() for word in ISSUE_TYPES)
GENERIC_ISSUE_WORDS: FrozenSet[str] = frozenset({"issue", "ticket"})

# Keywords used by the intent probes.
ISSUE_NOUNS: Tuple[str, ...] = ("issue", "ticket", "bug", "task", "story", "epic")


def _build_vocab(synonyms: Dict[str, Tuple[str, ...]]) -> Mapping[str, str]:
    vocab: Dict[str, str] = {}
    for canonical, words in synonyms.items():
        for word in words:
            vocab[word] = canonical
    return MappingProxyType(vocab)


PRIORITY_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "Lowest": ("lowest", "very low", "trivial"),
    "Low": ("low", "minor"),
    "Medium": ("medium", "normal", "standard"),
    "High": ("high", "important", "urgent", "major"),
    "Highest": ("highest", "critical", "blocker", "severe"),
}

# Strict aliases used when normalising an extracted project value. Bare
# "product" and "fv" are intentionally absent: they are ambiguous and resolve
# to the default project.
PROJECT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    PROJECT_DEMO_PRODUCT: ("fv demo product", "demo product", "fv demo (product)", "dpd"),
    PROJECT_DEMO_ISSUES: (
        "fv demo issues",
        "demo issues",
        "fv demo (issues)",
        "demo",
        "fvdemo",
        "dpi",
        "issues",
    ),
    PROJECT_ENGINEERING: ("fv engineering", "engineering", "eng"),
    PROJECT_PRODUCT: ("fv product", "prod"),
}

# Lenient aliases used when the user answers "which project?" directly.
PROJECT_ANSWER_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    PROJECT_DEMO_ISSUES: ("demo", "fvdemo", "fv demo", "demo issues", "issues", "dpi"),
    PROJECT_DEMO_PRODUCT: ("demo product", "fv demo product", "product demo", "dpd"),
    PROJECT_ENGINEERING: (
        "engineering",
        "eng",
        "fv engineering",
        "fv eng",
        "fanvoice engineering",
    ),
    PROJECT_PRODUCT: ("product", "fv product", "prod", "fanvoice product"),
}

PRIORITY_VOCAB = _build_vocab(PRIORITY_SYNONYMS)
PROJECT_VOCAB = _build_vocab(PROJECT_SYNONYMS)
PROJECT_ANSWER_VOCAB = _build_vocab(PROJECT_ANSWER_SYNONYMS)
