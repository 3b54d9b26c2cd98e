"""Publication artefact kinds and ARTEFACT token parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from relpub.core.result import Err, Ok, Result
from relpub.publish.errors import PublishError

__all__ = [
    "ALT_PREFIX",
    "Alt",
    "Artefact",
    "DEFAULT_ARTEFACTS",
    "Distrib",
    "Doc",
    "expand_request",
    "parse_artefact",
    "render_artefact",
    "requests_doc",
]

ALT_PREFIX = "alt-"

_DOC_TOKENS = frozenset({"do", "doc"})
_DISTRIB_TOKENS = frozenset({"di", "dis", "dist", "distr", "distri", "distrib"})


@dataclass(frozen=True, slots=True)
class Doc:
    """Generated documentation of the distribution archive."""


@dataclass(frozen=True, slots=True)
class Distrib:
    """The distribution archive itself."""


@dataclass(frozen=True, slots=True)
class Alt:
    """Deprecated alternative artefact handled by a delegate tool."""

    kind: str


Artefact: TypeAlias = Doc | Distrib | Alt

DEFAULT_ARTEFACTS: tuple[Artefact, ...] = (Doc(), Distrib())


def parse_artefact(token: str) -> Result[Artefact, PublishError]:
    """Parse one ARTEFACT command-line token.

    ``do``/``doc`` and the prefixes of ``distrib`` from ``di`` on are accepted;
    ``alt-KIND`` needs a non-empty KIND.
    """
    if token in _DOC_TOKENS:
        return Ok(Doc())
    if token in _DISTRIB_TOKENS:
        return Ok(Distrib())
    if token.startswith(ALT_PREFIX):
        kind = token[len(ALT_PREFIX) :]
        if not kind:
            return Err(
                PublishError(
                    kind="invalid_input",
                    message="`alt-' alternative artefact kind is missing",
                )
            )
        return Ok(Alt(kind))
    return Err(
        PublishError(kind="invalid_input", message=f"`{token}' unknown publication artefact")
    )


def render_artefact(artefact: Artefact) -> str:
    match artefact:
        case Doc():
            return "doc"
        case Distrib():
            return "distrib"
        case Alt(kind=kind):
            return f"{ALT_PREFIX}{kind}"


def requests_doc(requested: list[Artefact]) -> bool:
    """True if the caller named ``doc`` explicitly."""
    return any(isinstance(a, Doc) for a in requested)


def expand_request(requested: list[Artefact]) -> list[Artefact]:
    """Default an empty request to ``[doc, distrib]``; keep order and duplicates otherwise."""
    if not requested:
        return list(DEFAULT_ARTEFACTS)
    return list(requested)
