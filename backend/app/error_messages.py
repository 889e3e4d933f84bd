"""Error texts returned in the ``{"error": ...}`` envelope.

HTTP handlers and the CLI share these so clients see the same wording
regardless of entry point.
"""

from __future__ import annotations

from typing import Iterable

INVALID_JSON_BODY = "Invalid JSON body"
TEXT_MUST_BE_STRING = "Text field must be a string"
INTERNAL_SERVER_ERROR = "Internal server error"
NOT_FOUND = "Not found. Use GET / for service info"


def _bullet_list(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def error_body(message: str) -> dict[str, str]:
    return {"error": message}


def invalid_synonym_file_message(path: str, problems: list[str]) -> str:
    """Startup/CLI message when a synonym file cannot be turned into an index."""
    cleaned = [p.strip() for p in problems if p.strip()]
    if not cleaned:
        return f"Synonym file {path} could not be loaded."
    return f"Synonym file {path} could not be loaded:\n{_bullet_list(cleaned)}"


def invalid_threshold_message(value: str) -> str:
    """Startup message when FUZZY_THRESHOLD is not a number in [0, 1]."""
    return f"FUZZY_THRESHOLD must be a number between 0 and 1, got {value!r}."
