"""Appending unmatched texts to the run report."""

from __future__ import annotations

import datetime as dt
import pathlib
from typing import Optional, Sequence

DEFAULT_REPORT_FILE = "nomatch.txt"
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

REPORT_ESCAPES = (
    ("\\", "\\\\"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
)


def escape_report_text(text: str) -> str:
    """Make control characters visible; backslashes are escaped first."""

    for raw, escaped in REPORT_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def format_report(texts: Sequence[str], timestamp: dt.datetime) -> str:
    lines = [
        "",
        f"========== {timestamp.strftime(TIMESTAMP_FORMAT)} ==========",
        f"Unmatched texts ({len(texts)} total):",
    ]
    lines.extend(f"'{escape_report_text(text)}'" for text in texts)
    return "\n".join(lines) + "\n"


def write_unmatched_report(
    texts: Sequence[str],
    path: pathlib.Path,
    timestamp: Optional[dt.datetime] = None,
) -> bool:
    """Append one report block for the texts; return False when there were none."""

    if not texts:
        return False
    block = format_report(texts, timestamp or dt.datetime.now())
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8", newline="") as handle:
        handle.write(block)
    return True
