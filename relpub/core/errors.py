"""Process exit codes for relpub commands."""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success (including a legitimately skipped doc publication)
    - 1: User error (bad ARTEFACT token, invalid option value)
    - 2: Metadata error (cannot determine name, version, opam file)
    - 3: Build error (documentation build failed)
    - 4: Publish error (delegate or network tool failed, user cancelled)
    - 5: Archive error (distribution archive missing or unreadable)
    - 6: Partial publication (an earlier artefact was already published)
    """

    OK = 0
    USER_ERROR = 1
    METADATA_ERROR = 2
    BUILD_ERROR = 3
    PUBLISH_ERROR = 4
    ARCHIVE_ERROR = 5
    PARTIAL_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
