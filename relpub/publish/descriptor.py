"""Package identity and metadata for one publish run.

A ``PackageDescriptor`` holds the values given on the command line. Anything
left unset is resolved on demand from the working tree: ``dune-project``,
``*.opam`` files, VCS tags, the change log. The descriptor itself never
changes during a run.
"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relpub.core.result import Err, Ok, Result
from relpub.publish import changes, opam, vcs
from relpub.publish.errors import PublishError

__all__ = ["DELEGATE_ENV_VAR", "PackageDescriptor"]

DELEGATE_ENV_VAR = "RELPUB_DELEGATE"

_DUNE_PROJECT_NAME_RE = re.compile(r"^\s*\(name\s+([^\s()]+)\s*\)", re.MULTILINE)


def _metadata_error(message: str, hint: str | None = None) -> Err[PublishError]:
    return Err(PublishError(kind="metadata", message=message, hint=hint))


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    """Identity of a release unit.

    Attributes:
        root: Package working tree.
        name: Distribution name override.
        version: Version override.
        tag: VCS tag override; defaults to the version.
        keep_v: Keep a leading ``v`` when deriving the version from a tag.
        build_dir: Build directory override (default ``ROOT/_build``).
        opam: opam file override (default ``ROOT/NAME.opam``).
        change_log: Change log override.
        distrib_file: Distribution archive override.
        publish_msg: Publication message override.
        delegate: Delegate command from ``--delegate``.
        config_delegate: Delegate command from the user config.
        env: Environment consulted for ``RELPUB_DELEGATE``.
    """

    root: Path
    name: str | None = None
    version: str | None = None
    tag: str | None = None
    keep_v: bool = False
    build_dir: Path | None = None
    opam: Path | None = None
    change_log: Path | None = None
    distrib_file: Path | None = None
    publish_msg: str | None = None
    delegate: str | None = None
    config_delegate: str | None = None
    env: Mapping[str, str] | None = None

    def resolve_name(self) -> Result[str, PublishError]:
        if self.name:
            return Ok(self.name)

        dune_project = self.root / "dune-project"
        if dune_project.is_file():
            try:
                m = _DUNE_PROJECT_NAME_RE.search(dune_project.read_text(encoding="utf-8"))
            except OSError:
                m = None
            except UnicodeDecodeError as e:
                return _metadata_error(
                    f"{dune_project} is not valid UTF-8: {e.reason}",
                    hint="pass --name NAME",
                )
            if m:
                return Ok(m.group(1))

        stems = sorted((p.stem for p in self.root.glob("*.opam")), key=lambda s: (len(s), s))
        if stems:
            return Ok(stems[0])
        return _metadata_error(
            f"cannot determine distribution name in {self.root}",
            hint="pass --name NAME or add an opam file",
        )

    def resolve_version(self) -> Result[str, PublishError]:
        if self.version:
            return Ok(self.version)
        return vcs.latest_tag(self.root).map(lambda t: vcs.version_of_tag(t, keep_v=self.keep_v))

    def resolve_tag(self) -> Result[str, PublishError]:
        if self.tag:
            return Ok(self.tag)
        return self.resolve_version()

    def resolve_opam(self) -> Result[Path, PublishError]:
        if self.opam is not None:
            return Ok(self.opam)
        return self.resolve_name().map(lambda name: self.root / f"{name}.opam")

    def doc_uri(self) -> Result[str, PublishError]:
        """The opam ``doc`` field; ``Ok("")`` when the field is absent."""
        return self.resolve_opam().flat_map(lambda path: opam.read_opam_field(path, "doc"))

    def resolve_delegate(self) -> Result[list[str] | None, PublishError]:
        """Delegate command: ``--delegate``, then ``RELPUB_DELEGATE``, then config."""
        env = os.environ if self.env is None else self.env
        for source in (self.delegate, env.get(DELEGATE_ENV_VAR), self.config_delegate):
            if not source or not source.strip():
                continue
            try:
                argv = shlex.split(source)
            except ValueError as e:
                return Err(
                    PublishError(kind="invalid_input", message=f"invalid delegate {source!r}: {e}")
                )
            return Ok(argv)
        return Ok(None)

    def resolve_build_dir(self) -> Path:
        return self.build_dir if self.build_dir is not None else self.root / "_build"

    def resolve_distrib_file(self) -> Result[Path, PublishError]:
        """Archive path: override, else ``BUILD_DIR/NAME-VERSION.tbz``."""
        if self.distrib_file is not None:
            return Ok(self.distrib_file)
        name_result = self.resolve_name()
        if isinstance(name_result, Err):
            return name_result
        name = name_result.value
        return self.resolve_version().map(
            lambda version: self.resolve_build_dir() / f"{name}-{version}.tbz"
        )

    def resolve_change_log(self) -> Result[Path, PublishError]:
        if self.change_log is not None:
            return Ok(self.change_log)
        found = changes.find_change_log(self.root)
        if found is None:
            names = ", ".join(changes.CHANGE_LOG_NAMES)
            return _metadata_error(
                f"no change log found in {self.root} (looked for {names})",
                hint="pass --change-log FILE or --msg MSG",
            )
        return Ok(found)

    def publish_message(self) -> Result[str, PublishError]:
        """Override, else the latest change log entry as ``header\\n\\nbody``."""
        if self.publish_msg is not None:
            return Ok(self.publish_msg)
        return (
            self.resolve_change_log()
            .flat_map(changes.last_entry)
            .map(lambda entry: f"{entry[0]}\n\n{entry[1]}" if entry[1] else entry[0])
        )
