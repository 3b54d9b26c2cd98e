"""Error payload shared by every publication step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "invalid_input",
    "metadata",
    "archive",
    "doc_build",
    "delegate",
    "cancelled",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """Canonical publication error.

    ``artefact`` names the step that failed once the orchestrator has seen the
    error; ``completed`` lists artefacts that were already published before it.
    """

    kind: PublishErrorKind
    message: str
    hint: str | None = None
    artefact: str | None = None
    completed: tuple[str, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.completed)
