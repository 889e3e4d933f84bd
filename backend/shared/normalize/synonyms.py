from __future__ import annotations

"""Synonym map with exact and fuzzy lookup over its keys."""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from backend.shared.fuzzy_matcher import DEFAULT_THRESHOLD, find_best_match

from .text import clean_token

logger = logging.getLogger("fuse_extractor.synonyms")

DEFAULT_SYNONYMS_PATH = Path(__file__).resolve().parent / "synonyms.yaml"


@dataclass(frozen=True)
class SynonymMatch:
    key: str
    canonical: str
    score: float
    exact: bool


class SynonymIndex:
    """Immutable synonym map plus a fuzzy-searchable index over its keys.

    Keys are cleaned with :func:`clean_token` on construction so every entry is
    reachable by an exact lookup of a cleaned token. Keys that collapse onto an
    existing key are merged when they agree on the canonical term and rejected
    when they do not.
    """

    def __init__(self, mapping: Mapping[str, str], threshold: float = DEFAULT_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"fuzzy threshold must be within [0, 1], got {threshold}")

        entries: Dict[str, str] = {}
        for raw_key, raw_canonical in mapping.items():
            key = clean_token(str(raw_key))
            if not key:
                raise ValueError(f"synonym key {raw_key!r} is empty after cleaning")
            canonical = str(raw_canonical).strip()
            if not canonical:
                raise ValueError(f"synonym key {raw_key!r} has an empty canonical term")
            existing = entries.get(key)
            if existing is not None and existing != canonical:
                raise ValueError(
                    f"synonym key {raw_key!r} cleans to {key!r} which already maps to "
                    f"{existing!r}, not {canonical!r}"
                )
            if existing is None and key != raw_key:
                logger.debug("synonym key %r stored as %r", raw_key, key)
            entries[key] = canonical

        self._map = MappingProxyType(entries)
        self._keys: Tuple[str, ...] = tuple(entries)
        self.threshold = threshold

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], threshold: float = DEFAULT_THRESHOLD) -> "SynonymIndex":
        return cls(mapping, threshold=threshold)

    @classmethod
    def from_yaml(cls, path: str | Path, threshold: float = DEFAULT_THRESHOLD) -> "SynonymIndex":
        index = cls(load_synonyms(path), threshold=threshold)
        logger.info("Loaded %d synonym keys from %s", len(index), path)
        return index

    @property
    def mapping(self) -> Mapping[str, str]:
        return self._map

    @property
    def keys(self) -> Tuple[str, ...]:
        return self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def resolve_exact(self, token: str) -> Optional[str]:
        return self._map.get(token)

    def resolve_fuzzy(self, token: str) -> Optional[str]:
        """Canonical term of the closest key, or ``None`` when it scores above the threshold."""
        best = find_best_match(token, self._keys, threshold=self.threshold)
        if best is None:
            return None
        return self._map[best[0]]

    def resolve(self, token: str) -> Optional[str]:
        canonical = self.resolve_exact(token)
        if canonical is not None:
            return canonical
        return self.resolve_fuzzy(token)

    def match(self, token: str) -> Optional[SynonymMatch]:
        """Like :meth:`resolve` but reports which key matched and how closely."""
        canonical = self.resolve_exact(token)
        if canonical is not None:
            return SynonymMatch(key=token, canonical=canonical, score=0.0, exact=True)
        best = find_best_match(token, self._keys, threshold=self.threshold)
        if best is None:
            return None
        key, score = best
        return SynonymMatch(key=key, canonical=self._map[key], score=score, exact=False)


def load_synonyms(path: str | Path) -> Dict[str, str]:
    """Load a synonym file and flatten it to ``{surface_form: canonical}``.

    The YAML schema is ``{canon: [syn1, syn2, ...]}``. A scalar value counts as a
    single synonym and an empty value contributes nothing. Canonical keys must
    be strings (YAML `null:` or `yes:` keys are rejected). Surface forms keep
    file order; a surface form listed under two canonical terms is an error.
    """

    content = Path(path).read_text(encoding="utf-8")
    loaded = yaml.safe_load(content) or {}
    if not isinstance(loaded, dict):
        raise ValueError("synonyms YAML must define a mapping")

    flattened: Dict[str, str] = {}
    for canon_raw, value in loaded.items():
        if not isinstance(canon_raw, str):
            raise ValueError(f"canonical term {canon_raw!r} must be a string")
        canon = canon_raw.strip()
        if not canon:
            continue
        if value is None:
            variants: List[str] = []
        elif isinstance(value, list):
            variants = [str(item) for item in value]
        else:
            variants = [str(value)]
        for variant in variants:
            surface = variant.strip().lower()
            if not surface:
                continue
            previous = flattened.get(surface)
            if previous is not None and previous != canon:
                raise ValueError(f"synonym {surface!r} listed under both {previous!r} and {canon!r}")
            flattened[surface] = canon
    return flattened


def default_index(threshold: float = DEFAULT_THRESHOLD) -> SynonymIndex:
    """Index over the bundled domain synonyms."""
    return SynonymIndex.from_yaml(DEFAULT_SYNONYMS_PATH, threshold=threshold)
