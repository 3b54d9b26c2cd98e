"""Documentation build of an extracted distribution archive."""

from __future__ import annotations

import shutil
from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.output.console import ConsoleProtocol
from relpub.platform.process import run_unless_dry
from relpub.publish.errors import PublishError

__all__ = ["DOC_DIR", "build_docs", "doc_build_command"]

# Where `dune build @doc` writes the HTML documentation
DOC_DIR = Path("_build") / "default" / "_doc" / "_html"


def doc_build_command(pkg_names: list[str]) -> list[str]:
    return ["dune", "build", "-p", ",".join(pkg_names), "@doc"]


def build_docs(
    directory: Path,
    pkg_names: list[str],
    *,
    dry_run: bool,
    force: bool,
    console: ConsoleProtocol,
) -> Result[Path, PublishError]:
    """Build the docs of ``pkg_names`` inside ``directory``.

    ``force`` runs the build even during a dry run and replaces a doc
    directory left over from an earlier build.

    Returns:
        Ok(path of the HTML doc directory), Err(PublishError) on build failure.
    """
    doc_dir = directory / DOC_DIR
    if doc_dir.exists() and (force or not dry_run):
        if not force:
            return Err(
                PublishError(
                    kind="doc_build",
                    message=f"documentation directory {doc_dir} already exists",
                )
            )
        shutil.rmtree(doc_dir)

    result = run_unless_dry(
        doc_build_command(pkg_names),
        directory,
        dry_run=dry_run,
        force=force,
        console=console,
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="doc_build",
                message=f"documentation build failed for {', '.join(pkg_names)}",
                hint=str(result.error),
            )
        )
    return Ok(doc_dir)
