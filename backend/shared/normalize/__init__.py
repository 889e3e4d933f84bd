"""Keyword normalization and synonym resolution."""

from .synonyms import (
    DEFAULT_SYNONYMS_PATH,
    SynonymIndex,
    SynonymMatch,
    default_index,
    load_synonyms,
)
from .text import (
    Normalizer,
    clean_token,
    dedupe,
    split_tokens,
)

__all__ = [
    "DEFAULT_SYNONYMS_PATH",
    "Normalizer",
    "SynonymIndex",
    "SynonymMatch",
    "clean_token",
    "dedupe",
    "default_index",
    "load_synonyms",
    "split_tokens",
]
