"""Turn the --issues string or an --issues-file into a list of issue keys."""

import json
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\r\n,]+")


def _from_json_item(item: object) -> str | None:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, int) and not isinstance(item, bool):
        return str(item)
    if isinstance(item, dict):
        for key in ("id", "key"):
            value = item.get(key)
            if isinstance(value, str | int) and not isinstance(value, bool) and str(value).strip():
                return str(value).strip()
    logger.warning("Ignoring issue entry without an id: %r", item)
    return None


def parse_issues(text: str) -> list[str]:
    """Parse a JSON array, or comma/newline separated plain text.

    JSON arrays may hold strings or objects with an ``id`` (or ``key``) field:
      ["ABC-1", "ABC-2"]
      [{"id": "ABC-1"}, {"key": "ABC-2"}]
    Anything that isn't a JSON array is split as text:
      ABC-1, ABC-2
    Order and duplicates are preserved.
    """
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    if isinstance(parsed, list):
        return [issue for item in parsed if (issue := _from_json_item(item))]

    return [part.strip() for part in _SEPARATORS.split(text) if part.strip()]


def read_issues_file(path: Path) -> list[str]:
    return parse_issues(path.read_text(encoding="utf-8"))


def resolve_issues(issues: str | None, issues_file: Path | None) -> list[str]:
    """The file wins when both sources are given."""
    if issues_file is not None:
        return read_issues_file(issues_file)
    if issues:
        return parse_issues(issues)
    raise ValueError("You must provide either --issues or --issues-file.")
