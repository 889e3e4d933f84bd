"""Keyword service layer shared by the FastAPI handlers and the CLI.

Validates request payloads, runs the normalizer and builds the
``{"input": ..., "keywords": [...]}`` envelope. Normalization itself never
fails for string input, so every ``ServiceError`` raised here is a client
error.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from backend.app.error_messages import INVALID_JSON_BODY, TEXT_MUST_BE_STRING
from backend.shared.normalize import Normalizer, SynonymIndex, clean_token


class ServiceError(Exception):
    """Domain specific error that can be translated to HTTP responses."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class KeywordServiceContext:
    index: SynonymIndex
    normalizer: Normalizer
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fuse_extractor"))
    debug: bool = False

    @classmethod
    def from_index(cls, index: SynonymIndex, **kwargs: Any) -> "KeywordServiceContext":
        return cls(index=index, normalizer=Normalizer(index), **kwargs)


def parse_payload(raw: bytes | str) -> Dict[str, Any]:
    """Decode a JSON request body. Anything but a JSON object is rejected."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ServiceError(INVALID_JSON_BODY) from exc
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ServiceError(INVALID_JSON_BODY) from exc
    if not isinstance(payload, dict):
        raise ServiceError(INVALID_JSON_BODY)
    return payload


def extract_text(payload: Dict[str, Any]) -> str:
    text = payload.get("text")
    if text is None:
        return ""
    if not isinstance(text, str):
        raise ServiceError(TEXT_MUST_BE_STRING)
    return text


def normalize_text(*, text: str, ctx: KeywordServiceContext) -> Dict[str, Any]:
    started = time.perf_counter()
    keywords = ctx.normalizer.normalize(text)
    took_ms = (time.perf_counter() - started) * 1000
    ctx.logger.info("keywords.normalize tokens=%d keywords=%d took_ms=%.2f", len(text.split()), len(keywords), took_ms)
    if ctx.debug:
        ctx.logger.debug("keywords.normalize %r -> %s", text, keywords)
    return {"input": text, "keywords": keywords}


def normalize_payload(*, payload: Dict[str, Any], ctx: KeywordServiceContext) -> Dict[str, Any]:
    return normalize_text(text=extract_text(payload), ctx=ctx)


def resolve_token(*, token: str, ctx: KeywordServiceContext) -> Dict[str, Any]:
    """Explain how a single raw token resolves."""
    cleaned = clean_token(token)
    result: Dict[str, Any] = {
        "token": token,
        "cleaned": cleaned,
        "resolved": cleaned,
        "match": "passthrough",
        "key": None,
        "score": None,
    }
    if not cleaned:
        result["match"] = "empty"
        return result
    match = ctx.index.match(cleaned)
    if match is None:
        return result
    result.update(
        resolved=match.canonical,
        match="exact" if match.exact else "fuzzy",
        key=match.key,
        score=round(match.score, 4),
    )
    return result


def list_synonyms(*, ctx: KeywordServiceContext) -> Dict[str, List[str]]:
    """Group the loaded keys by canonical term, in key insertion order."""
    grouped: Dict[str, List[str]] = {}
    for key, canonical in ctx.index.mapping.items():
        grouped.setdefault(canonical, []).append(key)
    return grouped


def service_info(version: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "service": "fuse-extractor",
        "version": version,
        "endpoints": {
            "POST": "/normalize - Extract and normalize keywords from text",
            "GET": "/ - Service information",
        },
    }
    if extra:
        info.update(extra)
    return info
