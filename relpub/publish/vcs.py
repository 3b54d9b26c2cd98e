"""Version lookup from the working tree's VCS tags."""

from __future__ import annotations

from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.platform.process import run as run_process
from relpub.publish.errors import PublishError

GIT_TIMEOUT_SECONDS = 30.0


def latest_tag(root: Path) -> Result[str, PublishError]:
    """Most recent tag reachable from HEAD."""
    result = run_process(
        ["git", "describe", "--tags", "--abbrev=0"], cwd=root, timeout=GIT_TIMEOUT_SECONDS
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="metadata",
                message="cannot determine the package version from VCS tags",
                hint="pass --pkg-version VERSION",
            )
        )
    tag = result.value.strip()
    if not tag:
        return Err(PublishError(kind="metadata", message="git describe returned no tag"))
    return Ok(tag)


def version_of_tag(tag: str, *, keep_v: bool) -> str:
    """``v1.2.0`` becomes ``1.2.0`` unless ``keep_v``."""
    if not keep_v and len(tag) > 1 and tag[0] in "vV" and tag[1].isdigit():
        return tag[1:]
    return tag
