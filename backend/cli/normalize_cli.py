from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from backend.app.error_messages import invalid_synonym_file_message
from backend.app.services.keyword_service import (
    KeywordServiceContext,
    list_synonyms,
    normalize_text,
    resolve_token,
)
from backend.shared.fuzzy_matcher import DEFAULT_THRESHOLD
from backend.shared.normalize import DEFAULT_SYNONYMS_PATH, SynonymIndex

logger = logging.getLogger("fuse_extractor.cli")


class CLIError(Exception):
    """Raised when user input is invalid."""


def _parse_threshold(value: str) -> float:
    try:
        threshold = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid threshold '{value}'") from exc
    if not 0.0 <= threshold <= 1.0:
        raise argparse.ArgumentTypeError("threshold must be between 0 and 1")
    return threshold


def _build_context(args: argparse.Namespace) -> KeywordServiceContext:
    path = Path(args.synonyms_path) if args.synonyms_path else DEFAULT_SYNONYMS_PATH
    if not path.exists():
        raise CLIError(f"File not found: {path}")
    try:
        index = SynonymIndex.from_yaml(path, threshold=args.threshold)
    except (ValueError, yaml.YAMLError) as exc:
        raise CLIError(invalid_synonym_file_message(str(path), [str(exc)])) from exc
    return KeywordServiceContext.from_index(index, logger=logger)


def cmd_normalize(args: argparse.Namespace) -> None:
    ctx = _build_context(args)
    text = " ".join(args.text) if args.text else sys.stdin.read()
    result = normalize_text(text=text, ctx=ctx)
    if args.keywords_only:
        for keyword in result["keywords"]:
            print(keyword)
        return
    print(json.dumps(result, ensure_ascii=False))


def cmd_resolve(args: argparse.Namespace) -> None:
    ctx = _build_context(args)
    result = resolve_token(token=args.token, ctx=ctx)
    if result["match"] == "empty":
        raise CLIError(f"Token '{args.token}' is empty after cleaning.")
    score = "-" if result["score"] is None else f"{result['score']:.4f}"
    print(
        f"{result['token']} -> {result['resolved']} "
        f"(match={result['match']} key={result['key'] or '-'} score={score})"
    )


def cmd_synonyms(args: argparse.Namespace) -> None:
    ctx = _build_context(args)
    grouped = list_synonyms(ctx=ctx)
    print(yaml.safe_dump(grouped, allow_unicode=True, sort_keys=False), end="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Normalize free text into canonical keywords.")
    parser.add_argument("--synonyms-path", default=None, help="YAML file {canon: [synonyms]}.")
    parser.add_argument(
        "--threshold",
        type=_parse_threshold,
        default=DEFAULT_THRESHOLD,
        help="Maximum fuzzy score accepted as a match (0 = identical).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize = subparsers.add_parser("normalize", help="Normalize text (reads stdin when no text is given).")
    normalize.add_argument("text", nargs="*")
    normalize.add_argument("--keywords-only", action="store_true", help="Print one keyword per line.")
    normalize.set_defaults(func=cmd_normalize)

    resolve = subparsers.add_parser("resolve", help="Show how a single token resolves.")
    resolve.add_argument("token")
    resolve.set_defaults(func=cmd_resolve)

    synonyms = subparsers.add_parser("synonyms", help="Print the loaded synonym map as YAML.")
    synonyms.set_defaults(func=cmd_synonyms)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except CLIError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
