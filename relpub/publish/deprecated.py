"""Deprecated delegate features: warnings and alternative artefacts."""

from __future__ import annotations

import os

from relpub.core.result import Err, Result
from relpub.output.console import ConsoleProtocol
from relpub.platform.process import run_unless_dry
from relpub.publish.archive import locate_archive
from relpub.publish.delegate import delegate_env, resolve_distrib_uri
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.errors import PublishError

__all__ = [
    "ALT_ARTEFACTS_WARNING",
    "DELEGATE_ENV_DOC",
    "DELEGATE_WARNING",
    "DELEGATE_WARNING_USAGE",
    "publish_alt",
]

DELEGATE_WARNING = (
    "Delegates are deprecated and will be removed in a future release. "
    "Publish to GitHub directly or open an issue describing your use case."
)
DELEGATE_WARNING_USAGE = f"You are using a delegate. {DELEGATE_WARNING}"
ALT_ARTEFACTS_WARNING = (
    "Alternative artefacts (alt-KIND) are deprecated and rely on a delegate. "
)
DELEGATE_ENV_DOC = (
    "The delegate tool to use (deprecated: prefer --delegate or the `delegate` "
    "key of the user configuration)."
)


def publish_alt(
    descriptor: PackageDescriptor,
    kind: str,
    *,
    dry_run: bool,
    console: ConsoleProtocol,
    yes: bool = False,
    token: str | None = None,
    distrib_uri: str | None = None,
) -> Result[None, PublishError]:
    """Hand an ``alt-KIND`` artefact to the delegate tool.

    Invoked as ``TOOL publish alt DISTRIB_URI KIND NAME VERSION MSG ARCHIVE``;
    ``yes`` and ``token`` reach the tool through its environment.
    """
    console.warning(DELEGATE_WARNING_USAGE)
    console.info(f"Publishing alternative artefact {kind}")

    delegate = descriptor.resolve_delegate()
    if isinstance(delegate, Err):
        return delegate
    if delegate.value is None:
        return Err(
            PublishError(
                kind="delegate",
                message=f"alternative artefact `alt-{kind}' needs a delegate",
                hint="pass --delegate TOOL",
            )
        )

    name = descriptor.resolve_name()
    if isinstance(name, Err):
        return name
    version = descriptor.resolve_version()
    if isinstance(version, Err):
        return version
    msg = descriptor.publish_message()
    if isinstance(msg, Err):
        return msg
    archive = locate_archive(descriptor, dry_run=dry_run, console=console)
    if isinstance(archive, Err):
        return archive
    uri = resolve_distrib_uri(descriptor, archive.value, distrib_uri)
    if isinstance(uri, Err):
        return uri

    cmd = [
        *delegate.value,
        "publish",
        "alt",
        uri.value,
        kind,
        name.value,
        version.value,
        msg.value,
        str(archive.value),
    ]
    result = run_unless_dry(
        cmd,
        descriptor.root,
        dry_run=dry_run,
        console=console,
        env=delegate_env(os.environ, token=token, yes=yes),
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="delegate",
                message=f"delegate failed to publish alternative artefact {kind}",
                hint=str(result.error),
            )
        )
    return result
