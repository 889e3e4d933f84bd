from __future__ import annotations

"""Keyword normalization: segmentation, token cleaning and synonym resolution."""

import logging
import re
from typing import TYPE_CHECKING, Iterable, List, Set

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .synonyms import SynonymIndex

logger = logging.getLogger("fuse_extractor.normalize")

_RE_NON_ALNUM = re.compile(r"[^a-z0-9]")


def split_tokens(text: str) -> List[str]:
    """Split *text* on runs of whitespace. Leading/trailing whitespace yields no tokens."""

    if not text:
        return []
    return text.split()


def clean_token(token: str) -> str:
    """Lowercase *token* and drop every character outside ``[a-z0-9]``.

    Hyphens, punctuation and non-ASCII letters are removed entirely, so
    ``"Sign-In!"`` becomes ``"signin"``. May return an empty string.
    """

    return _RE_NON_ALNUM.sub("", token.lower())


def dedupe(values: Iterable[str]) -> List[str]:
    """Drop repeated values, keeping the first occurrence of each."""

    seen: Set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


class Normalizer:
    """Turn free text into an ordered, duplicate-free list of canonical keywords.

    The synonym index is injected once and only read afterwards, so a single
    instance can serve concurrent callers.
    """

    def __init__(self, index: "SynonymIndex"):
        self.index = index

    def normalize_token(self, token: str) -> str:
        """Resolve one raw token: exact synonym, then fuzzy synonym, else the cleaned token.

        Returns an empty string when nothing survives cleaning.
        """

        cleaned = clean_token(token)
        if not cleaned:
            return ""

        canonical = self.index.resolve_exact(cleaned)
        if canonical is not None:
            return canonical

        canonical = self.index.resolve_fuzzy(cleaned)
        if canonical is not None:
            logger.debug("fuzzy match %r -> %r", cleaned, canonical)
            return canonical

        return cleaned

    def normalize(self, text: str) -> List[str]:
        resolved = (self.normalize_token(token) for token in split_tokens(text))
        return dedupe(value for value in resolved if value)
