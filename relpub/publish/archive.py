"""Distribution archive lookup, extraction and package-name inference.

Building the archive is not our job: it must have been produced beforehand
(``dune-release distrib`` or equivalent). We only find it, unpack it next to
itself and read which opam packages it ships.
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.output.console import ConsoleProtocol
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.errors import PublishError

__all__ = [
    "ARCHIVE_SUFFIXES",
    "extract_archive",
    "extraction_dir",
    "infer_pkg_names",
    "locate_archive",
]

ARCHIVE_SUFFIXES = (".tar.bz2", ".tar.gz", ".tar.xz", ".tbz", ".tgz", ".txz", ".tar")


def _archive_error(message: str, hint: str | None = None) -> Err[PublishError]:
    return Err(PublishError(kind="archive", message=message, hint=hint))


def locate_archive(
    descriptor: PackageDescriptor,
    *,
    dry_run: bool,
    console: ConsoleProtocol,
) -> Result[Path, PublishError]:
    """Path of the distribution archive.

    A missing archive is an error, except during a dry run where the
    expected path is reported and returned.
    """
    result = descriptor.resolve_distrib_file()
    if isinstance(result, Err):
        return result
    archive = result.value
    if archive.is_file():
        return Ok(archive)
    if dry_run:
        console.warning(f"distribution archive {archive} does not exist (dry run, continuing)")
        return Ok(archive)
    return _archive_error(
        f"distribution archive {archive} does not exist",
        hint="generate it first, e.g. with `dune-release distrib`, or pass --distrib-file",
    )


def extraction_dir(archive: Path) -> Path:
    """``_build/foo-1.0.0.tbz`` unpacks into ``_build/foo-1.0.0``."""
    name = archive.name
    for suffix in ARCHIVE_SUFFIXES:
        if name.endswith(suffix):
            return archive.with_name(name[: -len(suffix)])
    return archive.with_name(f"{name}.d")


def _unpack(archive: Path, target: Path) -> None:
    staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(staging, filter="data")
        entries = list(staging.iterdir())
        # Archives normally hold one NAME-VERSION/ root; flatten it.
        source = entries[0] if len(entries) == 1 and entries[0].is_dir() else staging
        source.rename(target)
    finally:
        shutil.rmtree(staging, ignore_errors=True)


def extract_archive(
    archive: Path,
    *,
    dry_run: bool,
    clean: bool,
    console: ConsoleProtocol,
) -> Result[Path, PublishError]:
    """Unpack ``archive`` next to itself and return the directory.

    An already existing directory is never an error: with ``clean`` it is
    replaced, otherwise it is reused. During a dry run nothing is touched.
    """
    target = extraction_dir(archive)
    if dry_run:
        console.dry(f"extract {archive} to {target}")
        return Ok(target)

    if target.exists():
        if not clean:
            return Ok(target)
        shutil.rmtree(target)

    try:
        _unpack(archive, target)
    except (tarfile.TarError, OSError) as e:
        return _archive_error(f"cannot extract {archive}: {e}")
    return Ok(target)


def infer_pkg_names(
    directory: Path,
    pkg_names: list[str],
    *,
    fallback: str | None = None,
) -> Result[list[str], PublishError]:
    """Packages to document: ``pkg_names`` if given, else the archive's opam files.

    ``fallback`` is used when ``directory`` does not exist, which happens
    on a dry run that never extracted the archive.
    """
    if pkg_names:
        return Ok(list(pkg_names))
    if not directory.is_dir():
        if fallback is not None:
            return Ok([fallback])
        return _archive_error(f"extracted archive {directory} does not exist")

    names = sorted(p.stem for p in directory.glob("*.opam") if p.is_file())
    if not names:
        return _archive_error(
            f"no opam file found in {directory}",
            hint="pass the package names with -p/--pkg-names",
        )
    return Ok(names)
