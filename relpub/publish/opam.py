"""Minimal reader for top-level string fields of opam files.

Only ``field: "value"`` and ``field: \"\"\"value\"\"\"`` forms are read; list and
section values are ignored. That covers ``doc``, ``homepage``, ``dev-repo``
and the other metadata the publisher needs.
"""

from __future__ import annotations

import re
from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.publish.errors import PublishError

__all__ = ["parse_opam_fields", "read_opam_field", "read_opam_fields"]

_FIELD_RE = re.compile(r"^([A-Za-z][A-Za-z0-9_-]*)\s*:\s*", re.MULTILINE)
_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}


def _read_string(text: str, pos: int) -> str | None:
    if text.startswith('"""', pos):
        end = text.find('"""', pos + 3)
        if end < 0:
            return None
        return text[pos + 3 : end]
    if not text.startswith('"', pos):
        return None

    out: list[str] = []
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            out.append(_ESCAPES.get(text[i + 1], text[i + 1]))
            i += 2
            continue
        if ch == '"':
            return "".join(out)
        out.append(ch)
        i += 1
    return None


def parse_opam_fields(text: str) -> dict[str, str]:
    """Return the string-valued top-level fields of an opam file."""
    fields: dict[str, str] = {}
    for match in _FIELD_RE.finditer(text):
        value = _read_string(text, match.end())
        if value is not None:
            fields.setdefault(match.group(1), value)
    return fields


def read_opam_fields(path: Path) -> Result[dict[str, str], PublishError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            PublishError(
                kind="metadata",
                message=f"cannot read opam file {path}: {e.strerror or e}",
                hint="pass --opam FILE",
            )
        )
    except UnicodeDecodeError as e:
        return Err(
            PublishError(
                kind="metadata",
                message=f"opam file {path} is not valid UTF-8: {e.reason}",
                hint="pass --opam FILE",
            )
        )
    return Ok(parse_opam_fields(text))


def read_opam_field(path: Path, field: str) -> Result[str, PublishError]:
    """Value of ``field`` in the opam file, ``""`` when absent."""
    return read_opam_fields(path).map(lambda fields: fields.get(field, ""))
