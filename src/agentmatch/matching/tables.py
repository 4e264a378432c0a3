"""Static lookup tables for capability synonyms, type compatibility and type inference."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Final

# Near-synonymous skill tags; every tag in a group satisfies every other
CAPABILITY_GROUPS: Final[tuple[tuple[str, ...], ...]] = (
    ("react", "frontend", "javascript", "typescript", "ui/ux"),
    ("typescript", "javascript", "frontend", "react", "node.js"),
    ("javascript", "frontend", "backend", "node.js", "react"),
    ("node.js", "backend", "javascript", "apis", "server"),
    ("python", "backend", "ai", "ml", "data science"),
    ("database", "postgresql", "mongodb", "redis", "sql"),
    ("apis", "rest", "graphql", "backend", "node.js"),
    ("testing", "qa", "e2e", "unit testing", "automation"),
    ("devops", "docker", "kubernetes", "ci/cd", "cloud"),
    ("mobile", "react native", "ios", "android", "mobile ui"),
)

# Agent type -> task types it can take
TYPE_COMPATIBILITY: Final[Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        "frontend": frozenset({"frontend", "fullstack"}),
        "backend": frozenset({"backend", "fullstack"}),
        "fullstack": frozenset({"frontend", "backend", "fullstack"}),
        "mobile": frozenset({"mobile", "frontend"}),
        "devops": frozenset({"devops", "backend"}),
        "testing": frozenset({"testing", "frontend", "backend"}),
        "ai": frozenset({"ai", "backend"}),
        "database": frozenset({"database", "backend"}),
    }
)

# Checked in order; the first category with a keyword hit wins
TASK_TYPE_KEYWORDS: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("frontend", ("frontend", "react", "ui", "css")),
    ("backend", ("backend", "api", "server", "database")),
    ("mobile", ("mobile", "ios", "android")),
    ("devops", ("devops", "docker", "deploy")),
    ("testing", ("test", "qa", "automation")),
    ("ai", ("ai", "ml", "python")),
    ("database", ("database", "sql", "mongo")),
)


def build_synonym_table(
    groups: Sequence[Sequence[str]] = CAPABILITY_GROUPS,
) -> Mapping[str, frozenset[str]]:
    """Map each normalized capability to its synonym set.

    A capability listed in several groups resolves to the last group that
    contains it.
    """
    table: dict[str, frozenset[str]] = {}
    for group in groups:
        normalized = frozenset(cap.lower() for cap in group)
        for cap in normalized:
            table[cap] = normalized
    return MappingProxyType(table)


def infer_task_type(text: str) -> str | None:
    """Infer a task type from lowercase text by keyword scan."""
    for task_type, keywords in TASK_TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return task_type
    return None
