"""Output helpers shared by CLI modules."""

import json
import sys
from pathlib import Path


def print_json(data) -> None:
    """Pretty-print a result to stdout (Cyrillic kept readable)."""
    print(json.dumps(data, ensure_ascii=False, indent=2))


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


def fail(error: Exception) -> None:
    """Report an error on stderr and exit with status 1."""
    print(f"Error: {error}", file=sys.stderr)
    sys.exit(1)
