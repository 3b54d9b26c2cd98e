"""Delegate gateway: the backend that performs the actual publication.

Two backends exist. ``CommandDelegate`` runs a user-supplied delegate tool;
``GitHubGateway`` (see ``github.py``) is used when no delegate is configured.
Both honour ``dry_run`` (echo, never touch remote state) and ``yes`` (no
interactive confirmation).

Delegate tool protocol:

    TOOL publish distrib DISTRIB_URI NAME VERSION MSG ARCHIVE
    TOOL publish doc DOC_URI NAME VERSION MSG DOCDIR
    TOOL publish alt DISTRIB_URI KIND NAME VERSION MSG ARCHIVE   (deprecated)

The token, if any, is passed in ``RELPUB_TOKEN``; ``RELPUB_YES=1`` tells the
tool not to prompt. A non-zero exit status is a publication failure.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from relpub.core.result import Err, Ok, Result
from relpub.output.console import ConsoleProtocol
from relpub.platform.process import run_unless_dry
from relpub.publish import opam
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.errors import PublishError
from relpub.publish.github import GitHubGateway, github_slug

__all__ = [
    "CommandDelegate",
    "DelegateGateway",
    "delegate_env",
    "resolve_distrib_uri",
    "select_gateway",
]

TOKEN_ENV_VAR = "RELPUB_TOKEN"
YES_ENV_VAR = "RELPUB_YES"


class DelegateGateway(Protocol):
    """Backend performing distribution and documentation uploads."""

    def publish_distrib(
        self,
        descriptor: PackageDescriptor,
        *,
        msg: str,
        archive: Path,
        dry_run: bool,
        yes: bool,
        token: str | None = None,
        distrib_uri: str | None = None,
    ) -> Result[None, PublishError]: ...

    def publish_doc(
        self,
        descriptor: PackageDescriptor,
        *,
        msg: str,
        docdir: Path,
        dry_run: bool,
        yes: bool,
    ) -> Result[None, PublishError]: ...


def delegate_env(base: Mapping[str, str], *, token: str | None, yes: bool) -> dict[str, str]:
    env = dict(base)
    if token:
        env[TOKEN_ENV_VAR] = token
    if yes:
        env[YES_ENV_VAR] = "1"
    return env


def resolve_distrib_uri(
    descriptor: PackageDescriptor,
    archive: Path,
    override: str | None,
) -> Result[str, PublishError]:
    """Download URI of the archive: override, else the GitHub release asset URI."""
    if override:
        return Ok(override)

    opam_path = descriptor.resolve_opam()
    if isinstance(opam_path, Err):
        return opam_path
    fields = opam.read_opam_fields(opam_path.value)
    if isinstance(fields, Err):
        return fields
    tag = descriptor.resolve_tag()
    if isinstance(tag, Err):
        return tag

    for key in ("dev-repo", "homepage"):
        slug = github_slug(fields.value.get(key, ""))
        if slug:
            return Ok(f"https://github.com/{slug}/releases/download/{tag.value}/{archive.name}")
    return Err(
        PublishError(
            kind="metadata",
            message=f"cannot derive the distribution URI from {opam_path.value}",
            hint="pass --distrib-uri URI",
        )
    )


class CommandDelegate:
    """Backend running an external delegate tool."""

    def __init__(self, argv: list[str], *, console: ConsoleProtocol) -> None:
        self._argv = list(argv)
        self._console = console

    @property
    def argv(self) -> list[str]:
        return list(self._argv)

    def _identity(
        self, descriptor: PackageDescriptor
    ) -> Result[tuple[str, str], PublishError]:
        name = descriptor.resolve_name()
        if isinstance(name, Err):
            return name
        return descriptor.resolve_version().map(lambda version: (name.value, version))

    def _invoke(
        self,
        descriptor: PackageDescriptor,
        args: list[str],
        *,
        what: str,
        dry_run: bool,
        yes: bool,
        token: str | None = None,
    ) -> Result[None, PublishError]:
        result = run_unless_dry(
            [*self._argv, "publish", *args],
            descriptor.root,
            dry_run=dry_run,
            console=self._console,
            env=delegate_env(os.environ, token=token, yes=yes),
        )
        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="delegate",
                    message=f"delegate {self._argv[0]} failed to publish {what}",
                    hint=str(result.error),
                )
            )
        return result

    def publish_distrib(
        self,
        descriptor: PackageDescriptor,
        *,
        msg: str,
        archive: Path,
        dry_run: bool,
        yes: bool,
        token: str | None = None,
        distrib_uri: str | None = None,
    ) -> Result[None, PublishError]:
        ident = self._identity(descriptor)
        if isinstance(ident, Err):
            return ident
        uri = resolve_distrib_uri(descriptor, archive, distrib_uri)
        if isinstance(uri, Err):
            return uri
        name, version = ident.value
        return self._invoke(
            descriptor,
            ["distrib", uri.value, name, version, msg, str(archive)],
            what="the distribution",
            dry_run=dry_run,
            yes=yes,
            token=token,
        )

    def publish_doc(
        self,
        descriptor: PackageDescriptor,
        *,
        msg: str,
        docdir: Path,
        dry_run: bool,
        yes: bool,
    ) -> Result[None, PublishError]:
        ident = self._identity(descriptor)
        if isinstance(ident, Err):
            return ident
        # The doc URI may legitimately be empty when a delegate is configured.
        doc_uri = descriptor.doc_uri().unwrap_or("")
        name, version = ident.value
        return self._invoke(
            descriptor,
            ["doc", doc_uri, name, version, msg, str(docdir)],
            what="the documentation",
            dry_run=dry_run,
            yes=yes,
        )


def select_gateway(
    descriptor: PackageDescriptor,
    *,
    console: ConsoleProtocol,
    confirm: Callable[[str], bool],
    remote: str = "origin",
) -> Result[DelegateGateway, PublishError]:
    """``CommandDelegate`` if a delegate is configured, else ``GitHubGateway``."""
    delegate = descriptor.resolve_delegate()
    if isinstance(delegate, Err):
        return delegate
    if delegate.value is not None:
        return Ok(CommandDelegate(delegate.value, console=console))
    return Ok(GitHubGateway(console=console, confirm=confirm, remote=remote))
