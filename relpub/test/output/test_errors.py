from __future__ import annotations

import pytest

from relpub.core.errors import ErrorCode
from relpub.output.console import MockConsole, Style
from relpub.output.errors import print_publish_error, publish_error_exit_code
from relpub.publish.errors import PublishError, PublishErrorKind


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_input", ErrorCode.USER_ERROR),
        ("metadata", ErrorCode.METADATA_ERROR),
        ("archive", ErrorCode.ARCHIVE_ERROR),
        ("doc_build", ErrorCode.BUILD_ERROR),
        ("delegate", ErrorCode.PUBLISH_ERROR),
        ("cancelled", ErrorCode.PUBLISH_ERROR),
    ],
)
def test_exit_code_per_kind(kind: PublishErrorKind, code: ErrorCode) -> None:
    assert publish_error_exit_code(PublishError(kind=kind, message="x")) == int(code)


def test_partial_publication_has_own_exit_code() -> None:
    error = PublishError(kind="doc_build", message="x", artefact="doc", completed=("distrib",))
    assert publish_error_exit_code(error) == int(ErrorCode.PARTIAL_ERROR)


def test_print_names_artefact_and_hint() -> None:
    console = MockConsole()
    print_publish_error(
        PublishError(kind="delegate", message="upload failed", hint="check token", artefact="distrib"),
        console,
    )

    assert console.messages == ["error: distrib: upload failed", "hint: check token"]
    assert console.outputs[1].style == Style.DIM
    assert not console.has_warning()


def test_print_flags_partial_publication() -> None:
    console = MockConsole()
    print_publish_error(
        PublishError(kind="doc_build", message="build failed", artefact="doc", completed=("distrib",)),
        console,
    )

    assert console.has_error()
    partial = console.find("partially published")
    assert len(partial) == 1
    assert "distrib already published" in partial[0].message
    assert "doc not published" in partial[0].message
