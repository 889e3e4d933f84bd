from __future__ import annotations

import sys

from . import normalize_cli


def main() -> int:
    return normalize_cli.main()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
