"""Change log lookup and last-entry extraction."""

from __future__ import annotations

import re
from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.publish.errors import PublishError

__all__ = ["CHANGE_LOG_NAMES", "find_change_log", "last_entry"]

CHANGE_LOG_NAMES = ("CHANGES.md", "CHANGES", "CHANGELOG.md", "CHANGELOG", "CHANGES.txt")

# Markdown ATX header, e.g. "## v1.0.0 (2024-01-01)"
_MD_HEADER_RE = re.compile(r"^(#{1,6})\s+\S")


def find_change_log(root: Path) -> Path | None:
    for name in CHANGE_LOG_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _split_markdown(lines: list[str]) -> tuple[str, str] | None:
    start: int | None = None
    level = 0
    for i, line in enumerate(lines):
        m = _MD_HEADER_RE.match(line)
        if m is None:
            continue
        if start is None:
            start, level = i, len(m.group(1))
            continue
        if len(m.group(1)) <= level:
            return lines[start], "\n".join(lines[start + 1 : i])
    if start is None:
        return None
    return lines[start], "\n".join(lines[start + 1 :])


def _split_plain(lines: list[str]) -> tuple[str, str] | None:
    # Entries start at column 0; their bodies are indented or blank.
    starts = [i for i, line in enumerate(lines) if line and not line[0].isspace()]
    if not starts:
        return None
    first = starts[0]
    end = starts[1] if len(starts) > 1 else len(lines)
    return lines[first], "\n".join(lines[first + 1 : end])


def last_entry(path: Path) -> Result[tuple[str, str], PublishError]:
    """Return ``(header, body)`` of the most recent change log entry.

    The most recent entry is the first one in the file.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            PublishError(
                kind="metadata",
                message=f"cannot read change log {path}: {e.strerror or e}",
                hint="pass --change-log FILE or --msg MSG",
            )
        )
    except UnicodeDecodeError as e:
        return Err(
            PublishError(
                kind="metadata",
                message=f"change log {path} is not valid UTF-8: {e.reason}",
                hint="pass --change-log FILE or --msg MSG",
            )
        )

    lines = text.splitlines()
    is_markdown = path.suffix.lower() == ".md" or any(_MD_HEADER_RE.match(ln) for ln in lines)
    entry = _split_markdown(lines) if is_markdown else _split_plain(lines)
    if entry is None:
        return Err(
            PublishError(
                kind="metadata",
                message=f"no change log entry found in {path}",
                hint="pass --msg MSG",
            )
        )
    header, body = entry
    return Ok((header.lstrip("#").strip(), body.strip()))
