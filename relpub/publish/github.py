"""GitHub publication backend.

Distribution archives become GitHub release assets (``gh release create``).
Documentation is committed into the ``gh-pages`` branch, under the
subdirectory named by the opam ``doc`` URI, and pushed with ``git``.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlparse

from relpub.core.result import Err, Ok, Result
from relpub.output.console import ConsoleProtocol
from relpub.platform.process import format_command
from relpub.platform.process import run as run_process
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.errors import PublishError

__all__ = ["GH_PAGES_BRANCH", "GitHubGateway", "doc_subdir", "github_slug"]

GH_PAGES_BRANCH = "gh-pages"

GH_TIMEOUT_SECONDS = 10 * 60.0
GIT_TIMEOUT_SECONDS = 30.0
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

_GITHUB_URI_RE = re.compile(
    r"^(?:git\+)?(?:https?|ssh|git)://(?:[^@/]+@)?github\.com[/:]([^/]+)/([^/#?]+?)(?:\.git)?/?(?:[#?].*)?$"
)
_GITHUB_SCP_RE = re.compile(r"^(?:[^@/]+@)?github\.com:([^/]+)/([^/]+?)(?:\.git)?/?$")


def github_slug(uri: str) -> str | None:
    """``OWNER/REPO`` of a GitHub repository or GitHub Pages URI, else None."""
    uri = uri.strip()
    if not uri:
        return None
    for pattern in (_GITHUB_URI_RE, _GITHUB_SCP_RE):
        m = pattern.match(uri)
        if m:
            return f"{m.group(1)}/{m.group(2)}"

    parsed = urlparse(uri)
    host = parsed.hostname or ""
    if host.endswith(".github.io"):
        owner = host.removesuffix(".github.io")
        parts = [p for p in parsed.path.split("/") if p]
        if parts:
            return f"{owner}/{parts[0]}"
    return None


def doc_subdir(doc_uri: str) -> Result[str, PublishError]:
    """Directory of ``gh-pages`` addressed by a ``https://OWNER.github.io/REPO/DIR/`` URI.

    Returns ``""`` when the URI points at the repository pages root.
    """
    parsed = urlparse(doc_uri.strip())
    host = parsed.hostname or ""
    if not host.endswith(".github.io"):
        return Err(
            PublishError(
                kind="delegate",
                message=f"doc URI {doc_uri!r} is not a GitHub Pages URI",
                hint="set the opam `doc` field to https://OWNER.github.io/REPO/ or use --delegate",
            )
        )
    parts = [p for p in parsed.path.split("/") if p]
    if any(p in {".", ".."} for p in parts):
        return Err(PublishError(kind="delegate", message=f"invalid doc URI path: {doc_uri!r}"))
    return Ok("/".join(parts[1:]))


class GitHubGateway:
    """Publishes through the ``gh`` and ``git`` command-line tools."""

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        confirm: Callable[[str], bool],
        remote: str = "origin",
    ) -> None:
        self._console = console
        self._confirm = confirm
        self._remote = remote

    def _confirmed(self, question: str, *, dry_run: bool, yes: bool) -> Result[None, PublishError]:
        if dry_run or yes or self._confirm(question):
            return Ok(None)
        return Err(PublishError(kind="cancelled", message="publication cancelled by user"))

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
        # The asset URI is fixed by GitHub; an explicit one is only informative.
        del distrib_uri
        name = descriptor.resolve_name()
        if isinstance(name, Err):
            return name
        version = descriptor.resolve_version()
        if isinstance(version, Err):
            return version
        tag = descriptor.resolve_tag()
        if isinstance(tag, Err):
            return tag

        cmd = [
            "gh",
            "release",
            "create",
            tag.value,
            str(archive),
            "--title",
            f"{name.value} {version.value}",
            "--notes",
            msg,
        ]
        if dry_run:
            self._console.dry(f"exec: {format_command(cmd)}")
            return Ok(None)
        if shutil.which("gh") is None:
            return Err(
                PublishError(
                    kind="delegate",
                    message="gh: missing",
                    hint="Install GitHub CLI: https://cli.github.com/",
                )
            )

        confirmed = self._confirmed(
            f"Create GitHub release {tag.value} with {archive.name}?", dry_run=dry_run, yes=yes
        )
        if isinstance(confirmed, Err):
            return confirmed

        env = dict(os.environ)
        if token:
            env["GH_TOKEN"] = token
        result = run_process(cmd, cwd=descriptor.root, env=env, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="delegate",
                    message=f"GitHub release {tag.value} could not be created",
                    hint=result.error.stderr.strip() or str(result.error),
                )
            )
        self._console.success(f"released {tag.value} on GitHub")
        return Ok(None)

    def _git(
        self, args: list[str], cwd: Path, *, timeout: float = GIT_TIMEOUT_SECONDS
    ) -> Result[str, PublishError]:
        result = run_process(["git", *args], cwd=cwd, timeout=timeout)
        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="delegate",
                    message=f"git {args[0]} failed",
                    hint=result.error.stderr.strip() or str(result.error),
                )
            )
        return result

    def _checkout_pages(self, url: str, work: Path) -> Result[None, PublishError]:
        heads = self._git(
            ["ls-remote", "--heads", url, GH_PAGES_BRANCH],
            work.parent,
            timeout=GIT_NETWORK_TIMEOUT_SECONDS,
        )
        if isinstance(heads, Err):
            return heads
        if heads.value.strip():
            return self._git(
                ["clone", "--depth", "1", "--branch", GH_PAGES_BRANCH, url, str(work)],
                work.parent,
                timeout=GIT_NETWORK_TIMEOUT_SECONDS,
            ).map(lambda _: None)

        # No gh-pages branch yet: start an orphan one.
        work.mkdir(exist_ok=True)
        for args in (
            ["init", "--quiet"],
            ["checkout", "--orphan", GH_PAGES_BRANCH],
            ["remote", "add", "origin", url],
        ):
            step = self._git(args, work)
            if isinstance(step, Err):
                return step
        return Ok(None)

    def _stage_docs(self, docdir: Path, work: Path, subdir: str) -> None:
        target = work / subdir if subdir else work
        if subdir:
            if target.exists():
                shutil.rmtree(target)
        else:
            for entry in work.iterdir():
                if entry.name == ".git":
                    continue
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        shutil.copytree(docdir, target, dirs_exist_ok=True)

    def publish_doc(
        self,
        descriptor: PackageDescriptor,
        *,
        msg: str,
        docdir: Path,
        dry_run: bool,
        yes: bool,
    ) -> Result[None, PublishError]:
        doc_uri = descriptor.doc_uri()
        if isinstance(doc_uri, Err):
            return doc_uri
        subdir = doc_subdir(doc_uri.value)
        if isinstance(subdir, Err):
            return subdir
        where = f"{GH_PAGES_BRANCH}/{subdir.value}" if subdir.value else GH_PAGES_BRANCH

        if dry_run:
            self._console.dry(f"publish {docdir} to {where} of remote {self._remote}")
            return Ok(None)

        url = self._git(["remote", "get-url", self._remote], descriptor.root)
        if isinstance(url, Err):
            return url

        confirmed = self._confirmed(
            f"Publish documentation to {where} of {url.value.strip()}?", dry_run=dry_run, yes=yes
        )
        if isinstance(confirmed, Err):
            return confirmed

        with tempfile.TemporaryDirectory(prefix="relpub-gh-pages-") as tmp:
            work = Path(tmp) / "pages"
            checkout = self._checkout_pages(url.value.strip(), work)
            if isinstance(checkout, Err):
                return checkout
            try:
                self._stage_docs(docdir, work, subdir.value)
            except OSError as e:
                return Err(PublishError(kind="delegate", message=f"cannot copy {docdir}: {e}"))

            added = self._git(["add", "--all", "."], work)
            if isinstance(added, Err):
                return added
            status = self._git(["status", "--porcelain"], work)
            if isinstance(status, Err):
                return status
            if not status.value.strip():
                self._console.info(f"documentation in {where} is already up to date")
                return Ok(None)
            committed = self._git(["commit", "--quiet", "-m", msg], work)
            if isinstance(committed, Err):
                return committed
            pushed = self._git(
                ["push", "origin", f"HEAD:{GH_PAGES_BRANCH}"],
                work,
                timeout=GIT_NETWORK_TIMEOUT_SECONDS,
            )
            if isinstance(pushed, Err):
                return pushed

        self._console.success(f"documentation published to {where}")
        return Ok(None)
