from __future__ import annotations

from pathlib import Path

import typer

from relpub.cli.commands._helpers import confirm, exit_on_error
from relpub.cli.context import build_context
from relpub.core.result import Err, Ok, Result
from relpub.publish.artefacts import Alt, Artefact, parse_artefact
from relpub.publish.delegate import select_gateway
from relpub.publish.deprecated import ALT_ARTEFACTS_WARNING, DELEGATE_WARNING
from relpub.publish.descriptor import DELEGATE_ENV_VAR, PackageDescriptor
from relpub.publish.errors import PublishError
from relpub.publish.orchestrator import publish as publish_artefacts

_ARTEFACT_HELP = (
    "The artefact to publish: `doc` (do) or `distrib` (di, dis, dist, distr, "
    "distri). If absent, the documentation (when the opam file declares a `doc` "
    "field) and the distribution are published. `alt-KIND` hands an alternative "
    "artefact to the delegate (deprecated)."
)


def parse_artefacts(tokens: list[str]) -> Result[list[Artefact], PublishError]:
    artefacts: list[Artefact] = []
    for token in tokens:
        parsed = parse_artefact(token)
        if isinstance(parsed, Err):
            return parsed
        artefacts.append(parsed.value)
    return Ok(artefacts)


def split_pkg_names(values: list[str]) -> list[str]:
    """``-p a,b -p c`` gives ``[a, b, c]``."""
    return [name for value in values for name in (n.strip() for n in value.split(",")) if name]


def publish(
    artefacts: list[str] | None = typer.Argument(
        None, metavar="[ARTEFACT]...", help=_ARTEFACT_HELP, show_default=False
    ),
    build_dir: Path | None = typer.Option(
        None, "--build-dir", help="Build directory (default: _build)."
    ),
    name: str | None = typer.Option(
        None, "--name", help="Distribution name (default: inferred from dune-project or opam files)."
    ),
    pkg_names: list[str] = typer.Option(
        [], "-p", "--pkg-names", help="Packages to document (repeatable, comma-separated)."
    ),
    pkg_version: str | None = typer.Option(
        None, "--pkg-version", help="Package version (default: latest VCS tag)."
    ),
    tag: str | None = typer.Option(None, "--tag", help="VCS tag (default: the version)."),
    keep_v: bool = typer.Option(
        False, "--keep-v", help="Keep a leading `v` when deriving the version from a tag."
    ),
    opam: Path | None = typer.Option(
        None, "--opam", help="opam file (default: NAME.opam)."
    ),
    delegate: str | None = typer.Option(
        None,
        "--delegate",
        metavar="TOOL",
        help=(
            f"Warning: {DELEGATE_WARNING} The delegate tool to use. If absent, "
            f"{DELEGATE_ENV_VAR} and then the user configuration are consulted."
        ),
    ),
    change_log: Path | None = typer.Option(
        None, "--change-log", help="Change log (default: CHANGES.md and friends)."
    ),
    distrib_uri: str | None = typer.Option(
        None, "--distrib-uri", help="Download URI of the distribution archive."
    ),
    distrib_file: Path | None = typer.Option(
        None, "--distrib-file", help="Distribution archive (default: BUILD_DIR/NAME-VERSION.tbz)."
    ),
    msg: str | None = typer.Option(
        None, "--msg", help="Publication message (default: last change log entry)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be done without publishing anything."
    ),
    yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation."),
    token: str | None = typer.Option(
        None, "--token", help="Authentication token passed to the publication backend."
    ),
) -> None:
    """Publish package distribution archives and other artefacts.

    Artefact publication relies on a distribution archive having been
    generated beforehand.
    """
    ctx = build_context()

    requested = exit_on_error(parse_artefacts(artefacts or []), ctx)
    if any(isinstance(a, Alt) for a in requested):
        ctx.console.warning(ALT_ARTEFACTS_WARNING + DELEGATE_WARNING)

    descriptor = PackageDescriptor(
        root=ctx.root,
        name=name,
        version=pkg_version,
        tag=tag,
        keep_v=ctx.config.resolve_keep_v(keep_v),
        build_dir=build_dir,
        opam=opam,
        change_log=change_log,
        distrib_file=distrib_file,
        publish_msg=msg,
        delegate=delegate,
        config_delegate=ctx.config.delegate,
    )
    gateway = exit_on_error(
        select_gateway(
            descriptor, console=ctx.console, confirm=confirm, remote=ctx.config.remote
        ),
        ctx,
    )

    exit_on_error(
        publish_artefacts(
            descriptor,
            requested,
            split_pkg_names(pkg_names),
            dry_run=dry_run,
            yes=yes,
            gateway=gateway,
            console=ctx.console,
            token=token,
            distrib_uri=distrib_uri,
        ),
        ctx,
    )
    ctx.console.success("dry run complete" if dry_run else "publication complete")
