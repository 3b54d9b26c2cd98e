"""Error presentation for publication failures.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relpub.core.errors import ErrorCode
from relpub.output.console import Style
from relpub.publish.errors import PublishError

if TYPE_CHECKING:
    from relpub.output.console import ConsoleProtocol

__all__ = ["print_publish_error", "publish_error_exit_code"]


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    """Print a publication error, flagging partial publication."""
    if error.artefact:
        console.error(f"{error.artefact}: {error.message}")
    else:
        console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    if error.is_partial:
        console.warning(
            f"partially published: {', '.join(error.completed)} already published, "
            f"{error.artefact or 'remaining artefacts'} not published"
        )


def publish_error_exit_code(error: PublishError) -> int:
    """Get exit code for a publication error."""
    if error.is_partial:
        return int(ErrorCode.PARTIAL_ERROR)
    match error.kind:
        case "invalid_input":
            return int(ErrorCode.USER_ERROR)
        case "metadata":
            return int(ErrorCode.METADATA_ERROR)
        case "archive":
            return int(ErrorCode.ARCHIVE_ERROR)
        case "doc_build":
            return int(ErrorCode.BUILD_ERROR)
        case "delegate" | "cancelled":
            return int(ErrorCode.PUBLISH_ERROR)
