# main.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import yaml
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

BASE_DIR = Path(__file__).resolve().parent

# Load .env EARLY (before reading any settings below)
from dotenv import load_dotenv

load_dotenv(BASE_DIR / ".env")

from backend.app.error_messages import (
    INTERNAL_SERVER_ERROR,
    NOT_FOUND,
    error_body,
    invalid_synonym_file_message,
    invalid_threshold_message,
)
from backend.app.services.keyword_service import (
    KeywordServiceContext,
    ServiceError,
    normalize_payload,
    parse_payload,
    service_info,
)
from backend.shared.fuzzy_matcher import DEFAULT_THRESHOLD
from backend.shared.normalize import DEFAULT_SYNONYMS_PATH, SynonymIndex

VERSION = "1.0.0"

# ---------- Logging ----------
logger = logging.getLogger("fuse_extractor")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)

# ---------- Pfade & ENV ----------
DEBUG = os.getenv("DEBUG", "0") == "1"


def _read_threshold() -> float:
    raw = os.getenv("FUZZY_THRESHOLD", str(DEFAULT_THRESHOLD))
    try:
        value = float(raw)
    except ValueError:
        value = None
    if value is None or not 0.0 <= value <= 1.0:
        message = invalid_threshold_message(raw)
        logger.error(message)
        raise ValueError(message)
    return value


FUZZY_THRESHOLD = _read_threshold()

_synonyms_env = os.getenv("SYNONYMS_PATH", "").strip()
if _synonyms_env:
    candidate = Path(_synonyms_env)
    if not candidate.is_absolute():
        candidate = BASE_DIR / candidate
    SYNONYMS_PATH = candidate
else:
    SYNONYMS_PATH = DEFAULT_SYNONYMS_PATH

_DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
_origins_env = os.getenv("FRONTEND_ORIGINS", "")
ALLOWED_ORIGINS = (
    [origin.strip() for origin in _origins_env.split(",") if origin.strip()]
    if _origins_env.strip()
    else _DEFAULT_ALLOWED_ORIGINS
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS, GET",
}

logger.info(
    "Flags: SYNONYMS_PATH=%s FUZZY_THRESHOLD=%.2f DEBUG=%s",
    SYNONYMS_PATH,
    FUZZY_THRESHOLD,
    DEBUG,
)

# ---------- Synonym-Index (einmal pro Prozess) ----------
try:
    SYNONYM_INDEX = SynonymIndex.from_yaml(SYNONYMS_PATH, threshold=FUZZY_THRESHOLD)
except (OSError, ValueError, yaml.YAMLError) as exc:
    logger.error(invalid_synonym_file_message(str(SYNONYMS_PATH), [str(exc)]))
    raise

SERVICE_CONTEXT = KeywordServiceContext.from_index(SYNONYM_INDEX, logger=logger, debug=DEBUG)


def _get_service_context() -> KeywordServiceContext:
    return SERVICE_CONTEXT


class NormalizeResponse(BaseModel):
    input: str
    keywords: List[str]


class ErrorResponse(BaseModel):
    error: str


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(error_body(message), status_code=status_code)


# ---------- FastAPI ----------


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    logger.info("Startup")
    logger.info("   synonyms=%d threshold=%.2f", len(SYNONYM_INDEX), SYNONYM_INDEX.threshold)
    logger.info("   ALLOWED_ORIGINS=%s", ALLOWED_ORIGINS)
    yield


app = FastAPI(title="fuse-extractor", version=VERSION, lifespan=_lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["Content-Type"],
)

ECHO_ORIGINS = set(ALLOWED_ORIGINS or [])


def _is_preflight(request: Request) -> bool:
    return request.method == "OPTIONS" and "access-control-request-method" in request.headers


@app.middleware("http")
async def _cors_echo_middleware(request, call_next):
    response = await call_next(request)
    if _is_preflight(request) and response.status_code == 200:
        # CORSMiddleware answers preflights with 200 "OK"
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        response = Response(status_code=204, headers=headers)
    origin = request.headers.get("origin")
    if origin and origin in ECHO_ORIGINS:
        response.headers["access-control-allow-origin"] = origin
    return response


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(_request: Request, exc: StarletteHTTPException):
    # unknown paths and wrong methods both answer with the route hint
    if exc.status_code in (404, 405):
        return _error_response(NOT_FOUND, 404)
    return _error_response(str(exc.detail), exc.status_code)


# Root (Service-Info)
@app.get("/")
def root():
    return service_info(VERSION, extra={"health": "/api/health", "docs": "/docs"})


@app.get("/api/health")
def api_health():
    return {
        "ok": True,
        "time": datetime.now(timezone.utc).isoformat(),
        "synonyms": len(_get_service_context().index),
    }


@app.options("/{path:path}", include_in_schema=False)
def cors_preflight(path: str) -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


# ---- API: Normalisierung ----
@app.post(
    "/normalize",
    response_model=NormalizeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
@app.post("/api/normalize", response_model=NormalizeResponse, include_in_schema=False)
async def api_normalize(request: Request):
    try:
        payload = parse_payload(await request.body())
        return await run_in_threadpool(normalize_payload, payload=payload, ctx=_get_service_context())
    except ServiceError as exc:
        return _error_response(exc.message, exc.status_code)
    except Exception:
        logger.exception("keywords.normalize failed")
        return _error_response(INTERNAL_SERVER_ERROR, 500)


# ---------- Lokaler Start ----------
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "7860"))
    uvicorn.run("backend.main:app", host="0.0.0.0", port=port, reload=False)
