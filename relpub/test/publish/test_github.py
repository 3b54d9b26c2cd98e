from __future__ import annotations

from pathlib import Path

import pytest

from relpub.core.result import Err, Ok, Result
from relpub.output.console import MockConsole
from relpub.platform.process import ProcessError
from relpub.publish import github
from relpub.publish.descriptor import PackageDescriptor
from relpub.publish.github import GitHubGateway, doc_subdir, github_slug


@pytest.mark.parametrize(
    ("uri", "slug"),
    [
        ("https://github.com/example/foo", "example/foo"),
        ("https://github.com/example/foo.git", "example/foo"),
        ("git+https://github.com/example/foo.git", "example/foo"),
        ("git@github.com:example/foo.git", "example/foo"),
        ("ssh://git@github.com/example/foo", "example/foo"),
        ("https://example.github.io/foo/doc/", "example/foo"),
        ("https://gitlab.com/example/foo", None),
        ("", None),
    ],
)
def test_github_slug(uri: str, slug: str | None) -> None:
    assert github_slug(uri) == slug


@pytest.mark.parametrize(
    ("uri", "subdir"),
    [
        ("https://example.github.io/foo/", ""),
        ("https://example.github.io/foo/doc/", "doc"),
        ("https://example.github.io/foo/api/1.0/", "api/1.0"),
    ],
)
def test_doc_subdir(uri: str, subdir: str) -> None:
    assert doc_subdir(uri) == Ok(subdir)


def test_doc_subdir_rejects_other_hosts() -> None:
    result = doc_subdir("https://docs.example.org/foo/")
    assert isinstance(result, Err)
    assert result.error.kind == "delegate"


def _package(tmp_path: Path) -> PackageDescriptor:
    (tmp_path / "foo.opam").write_text(
        'doc: "https://example.github.io/foo/doc/"\n', encoding="utf-8"
    )
    return PackageDescriptor(root=tmp_path, name="foo", version="1.0.0", tag="v1.0.0")


class FakeProcess:
    def __init__(self, responses: dict[str, Result[str, ProcessError]] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        self.calls.append(cmd)
        self.envs.append(env)
        key = " ".join(cmd[:2]) if cmd[0] == "git" else cmd[0]
        return self.responses.get(key, Ok(""))


class TestPublishDistrib:
    def test_dry_run_echoes(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess()
        monkeypatch.setattr(github, "run_process", fake)
        console = MockConsole()
        gateway = GitHubGateway(console=console, confirm=lambda _: False)

        result = gateway.publish_distrib(
            _package(tmp_path), msg="notes", archive=tmp_path / "foo.tbz", dry_run=True, yes=False
        )

        assert result == Ok(None)
        assert fake.calls == []
        assert console.find("exec: gh release create v1.0.0")

    def test_creates_release(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess()
        monkeypatch.setattr(github, "run_process", fake)
        monkeypatch.setattr(github.shutil, "which", lambda _: "/usr/bin/gh")
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)
        archive = tmp_path / "foo-1.0.0.tbz"

        result = gateway.publish_distrib(
            _package(tmp_path), msg="notes", archive=archive, dry_run=False, yes=False, token="tok"
        )

        assert result == Ok(None)
        assert fake.calls == [
            [
                "gh",
                "release",
                "create",
                "v1.0.0",
                str(archive),
                "--title",
                "foo 1.0.0",
                "--notes",
                "notes",
            ]
        ]
        env = fake.envs[0]
        assert env is not None
        assert env["GH_TOKEN"] == "tok"

    def test_cancelled(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess()
        monkeypatch.setattr(github, "run_process", fake)
        monkeypatch.setattr(github.shutil, "which", lambda _: "/usr/bin/gh")
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: False)

        result = gateway.publish_distrib(
            _package(tmp_path), msg="n", archive=tmp_path / "a.tbz", dry_run=False, yes=False
        )

        assert isinstance(result, Err)
        assert result.error.kind == "cancelled"
        assert fake.calls == []

    def test_gh_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(github.shutil, "which", lambda _: None)
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_distrib(
            _package(tmp_path), msg="n", archive=tmp_path / "a.tbz", dry_run=False, yes=True
        )

        assert isinstance(result, Err)
        assert result.error.message == "gh: missing"

    def test_gh_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess({"gh": Err(ProcessError(("gh",), 1, "", "HTTP 422: already_exists"))})
        monkeypatch.setattr(github, "run_process", fake)
        monkeypatch.setattr(github.shutil, "which", lambda _: "/usr/bin/gh")
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_distrib(
            _package(tmp_path), msg="n", archive=tmp_path / "a.tbz", dry_run=False, yes=True
        )

        assert isinstance(result, Err)
        assert result.error.hint == "HTTP 422: already_exists"


class TestPublishDoc:
    def _docdir(self, tmp_path: Path) -> Path:
        docdir = tmp_path / "html"
        (docdir / "foo").mkdir(parents=True)
        (docdir / "foo" / "index.html").write_text("<html/>", encoding="utf-8")
        return docdir

    def test_dry_run(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess()
        monkeypatch.setattr(github, "run_process", fake)
        console = MockConsole()
        gateway = GitHubGateway(console=console, confirm=lambda _: False)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=True, yes=False
        )

        assert result == Ok(None)
        assert fake.calls == []
        assert console.find("gh-pages/doc")

    def test_pushes_new_gh_pages_branch(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeProcess(
            {
                "git remote": Ok("git@github.com:example/foo.git\n"),
                "git status": Ok("A  doc/foo/index.html\n"),
            }
        )
        monkeypatch.setattr(github, "run_process", fake)
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=False, yes=True
        )

        assert result == Ok(None)
        verbs = [cmd[1] for cmd in fake.calls]
        assert verbs == [
            "remote",
            "ls-remote",
            "init",
            "checkout",
            "remote",
            "add",
            "status",
            "commit",
            "push",
        ]
        assert fake.calls[-1][-1] == "HEAD:gh-pages"

    def test_up_to_date(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeProcess({"git remote": Ok("https://github.com/example/foo\n")})
        monkeypatch.setattr(github, "run_process", fake)
        console = MockConsole()
        gateway = GitHubGateway(console=console, confirm=lambda _: True)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=False, yes=True
        )

        assert result == Ok(None)
        assert "commit" not in [cmd[1] for cmd in fake.calls]
        assert console.find("already up to date")

    def test_clones_existing_gh_pages_branch(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeProcess(
            {
                "git remote": Ok("https://github.com/example/foo\n"),
                "git ls-remote": Ok("3f2a1b\trefs/heads/gh-pages\n"),
                "git status": Ok("M  doc/foo/index.html\n"),
            }
        )
        monkeypatch.setattr(github, "run_process", fake)
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=False, yes=True
        )

        assert result == Ok(None)
        verbs = [cmd[1] for cmd in fake.calls]
        assert verbs == ["remote", "ls-remote", "clone", "add", "status", "commit", "push"]

    def test_clone_failure_is_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeProcess(
            {
                "git remote": Ok("https://github.com/example/foo\n"),
                "git ls-remote": Ok("3f2a1b\trefs/heads/gh-pages\n"),
                "git clone": Err(
                    ProcessError(("git", "clone"), 128, "", "fatal: unable to access\n")
                ),
            }
        )
        monkeypatch.setattr(github, "run_process", fake)
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=False, yes=True
        )

        assert isinstance(result, Err)
        assert result.error.message == "git clone failed"
        assert result.error.hint == "fatal: unable to access"
        assert "init" not in [cmd[1] for cmd in fake.calls]

    def test_unreachable_remote_is_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeProcess(
            {
                "git remote": Ok("https://github.com/example/foo\n"),
                "git ls-remote": Err(
                    ProcessError(("git", "ls-remote"), 128, "", "Authentication failed")
                ),
            }
        )
        monkeypatch.setattr(github, "run_process", fake)
        gateway = GitHubGateway(console=MockConsole(), confirm=lambda _: True)

        result = gateway.publish_doc(
            _package(tmp_path), msg="m", docdir=self._docdir(tmp_path), dry_run=False, yes=True
        )

        assert isinstance(result, Err)
        assert result.error.kind == "delegate"
        assert result.error.hint == "Authentication failed"
        assert [cmd[1] for cmd in fake.calls] == ["remote", "ls-remote"]
