"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relpub.core.result import Err, Result
from relpub.output.errors import print_publish_error, publish_error_exit_code
from relpub.publish.errors import PublishError

if TYPE_CHECKING:
    from relpub.cli.context import CLIContext

T = TypeVar("T")


def exit_on_error(result: Result[T, PublishError], ctx: CLIContext) -> T:
    """Return the value of ``result`` or print the error and exit.

    Replaces the common pattern:
        if isinstance(result, Err):
            print_publish_error(result.error, ctx.console)
            raise typer.Exit(code=publish_error_exit_code(result.error))
        value = result.value
    """
    if isinstance(result, Err):
        print_publish_error(result.error, ctx.console)
        exit_with_code(publish_error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def confirm(question: str) -> bool:
    return typer.confirm(question, default=False)
