"""Publication orchestrator.

Decides which artefacts a release publishes, in which order, and whether
documentation is published at all, then hands each upload to a
``DelegateGateway``. Steps run one after the other; the first failure stops
the run and nothing already published is rolled back.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from relpub.core.result import Err, Ok, Result, fold_results
from relpub.output.console import ConsoleProtocol
from relpub.publish.archive import extract_archive, infer_pkg_names, locate_archive
from relpub.publish.artefacts import (
    Alt,
    Artefact,
    Distrib,
    Doc,
    expand_request,
    render_artefact,
    requests_doc,
)
from relpub.publish.delegate import DelegateGateway
from relpub.publish.deprecated import DELEGATE_WARNING_USAGE, publish_alt
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.docs import build_docs
from relpub.publish.errors import PublishError

__all__ = ["check_identity", "publish", "publish_distrib", "publish_doc", "publish_doc_if_eligible"]


def publish_distrib(
    descriptor: PackageDescriptor,
    gateway: DelegateGateway,
    *,
    dry_run: bool,
    yes: bool,
    console: ConsoleProtocol,
    token: str | None = None,
    distrib_uri: str | None = None,
) -> Result[None, PublishError]:
    console.info("Publishing distribution")
    archive = locate_archive(descriptor, dry_run=dry_run, console=console)
    if isinstance(archive, Err):
        return archive
    msg = descriptor.publish_message()
    if isinstance(msg, Err):
        return msg
    return gateway.publish_distrib(
        descriptor,
        msg=msg.value,
        archive=archive.value,
        dry_run=dry_run,
        yes=yes,
        token=token,
        distrib_uri=distrib_uri,
    )


def publish_doc(
    descriptor: PackageDescriptor,
    gateway: DelegateGateway,
    pkg_names: list[str],
    *,
    dry_run: bool,
    yes: bool,
    console: ConsoleProtocol,
) -> Result[None, PublishError]:
    """Build the docs from the distribution archive and publish them.

    The docs come from the extracted archive, not from the working tree.
    """
    console.info("Publishing documentation")
    archive = locate_archive(descriptor, dry_run=dry_run, console=console)
    if isinstance(archive, Err):
        return archive
    msg = descriptor.publish_message()
    if isinstance(msg, Err):
        return msg

    directory = extract_archive(archive.value, dry_run=dry_run, clean=True, console=console)
    if isinstance(directory, Err):
        return directory
    # An existing extraction directory forces the doc build, even on a dry run.
    force = directory.value.is_dir()

    fallback: str | None = None
    if dry_run:
        name = descriptor.resolve_name()
        fallback = name.value if isinstance(name, Ok) else None
    names = infer_pkg_names(directory.value, pkg_names, fallback=fallback)
    if isinstance(names, Err):
        return names
    console.info(f"Selected packages: {' '.join(names.value)}")
    console.info(f"Generating documentation from {archive.value}")

    docdir = build_docs(
        directory.value, names.value, dry_run=dry_run, force=force, console=console
    )
    if isinstance(docdir, Err):
        return docdir
    return gateway.publish_doc(
        descriptor, msg=msg.value, docdir=docdir.value, dry_run=dry_run, yes=yes
    )


def check_identity(descriptor: PackageDescriptor) -> Result[None, PublishError]:
    """Fail before any step if name, version or opam path cannot be resolved."""
    for resolved in (
        descriptor.resolve_name(),
        descriptor.resolve_version(),
        descriptor.resolve_opam(),
    ):
        if isinstance(resolved, Err):
            return resolved
    return Ok(None)


def _opam_label(descriptor: PackageDescriptor) -> str:
    return str(descriptor.resolve_opam().unwrap_or(Path("opam")))


def publish_doc_if_eligible(
    descriptor: PackageDescriptor,
    gateway: DelegateGateway,
    pkg_names: list[str],
    *,
    specific: bool,
    dry_run: bool,
    yes: bool,
    console: ConsoleProtocol,
) -> Result[bool, PublishError]:
    """Publish docs unless the package declares none; Ok(False) when skipped.

    An explicitly requested ``doc`` is always attempted. Otherwise a missing
    or empty opam ``doc`` field skips the step, unless a delegate is
    configured: delegates historically imply doc publication.
    """

    def attempt() -> Result[bool, PublishError]:
        return publish_doc(
            descriptor, gateway, pkg_names, dry_run=dry_run, yes=yes, console=console
        ).map(lambda _: True)

    if specific:
        return attempt()

    doc_uri = descriptor.doc_uri()
    if isinstance(doc_uri, Ok) and doc_uri.value:
        return attempt()

    delegate = descriptor.resolve_delegate()
    if isinstance(delegate, Ok) and delegate.value is not None:
        console.warning(DELEGATE_WARNING_USAGE)
        return attempt()

    name = descriptor.resolve_name()
    if isinstance(name, Err):
        return name
    console.info(
        f"Skipping documentation publication for package {name.value}: "
        f"no doc field in {_opam_label(descriptor)}"
    )
    return Ok(False)


def publish(
    descriptor: PackageDescriptor,
    requested: list[Artefact],
    pkg_names: list[str],
    *,
    dry_run: bool,
    yes: bool,
    gateway: DelegateGateway,
    console: ConsoleProtocol,
    token: str | None = None,
    distrib_uri: str | None = None,
) -> Result[int, PublishError]:
    """Publish ``requested`` artefacts in order.

    Args:
        descriptor: Resolved package identity.
        requested: Artefacts named by the caller, possibly empty
            (then ``[doc, distrib]``).
        pkg_names: Packages to document; empty means infer from the archive.
        dry_run: Simulate; never mutate remote state.
        yes: Do not ask for confirmation.
        gateway: Publication backend.
        console: Output sink.
        token: Authentication token for the backend.
        distrib_uri: Distribution download URI override.

    Returns:
        Ok(0) if every step succeeded (or docs were legitimately skipped),
        otherwise the first step's error, annotated with the failing
        artefact and those already published.
    """
    identity = check_identity(descriptor)
    if isinstance(identity, Err):
        return identity

    specific_doc = requests_doc(requested)
    completed: list[str] = []

    def step(artefact: Artefact) -> Result[None, PublishError]:
        published: Result[bool, PublishError]
        match artefact:
            case Doc():
                published = publish_doc_if_eligible(
                    descriptor,
                    gateway,
                    pkg_names,
                    specific=specific_doc,
                    dry_run=dry_run,
                    yes=yes,
                    console=console,
                )
            case Distrib():
                published = publish_distrib(
                    descriptor,
                    gateway,
                    dry_run=dry_run,
                    yes=yes,
                    console=console,
                    token=token,
                    distrib_uri=distrib_uri,
                ).map(lambda _: True)
            case Alt(kind=kind):
                published = publish_alt(
                    descriptor,
                    kind,
                    dry_run=dry_run,
                    console=console,
                    yes=yes,
                    token=token,
                    distrib_uri=distrib_uri,
                ).map(lambda _: True)

        label = render_artefact(artefact)
        if isinstance(published, Err):
            return Err(replace(published.error, artefact=label, completed=tuple(completed)))
        if published.value and not dry_run:
            completed.append(label)
        return Ok(None)

    return fold_results(expand_request(requested), step).map(lambda _: 0)
