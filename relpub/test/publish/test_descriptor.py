from __future__ import annotations

from pathlib import Path

import pytest

from relpub.core.result import Err, Ok
from relpub.platform.process import ProcessError
from relpub.publish import vcs
from relpub.publish.descriptor import DELEGATE_ENV_VAR, PackageDescriptor


def _fake_git_tag(monkeypatch: pytest.MonkeyPatch, tag: str | None) -> list[list[str]]:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd, timeout
        calls.append(cmd)
        if tag is None:
            return Err(ProcessError(tuple(cmd), 128, "", "fatal: No names found"))
        return Ok(f"{tag}\n")

    monkeypatch.setattr(vcs, "run_process", fake_run)
    return calls


class TestName:
    def test_override(self, tmp_path: Path) -> None:
        assert PackageDescriptor(root=tmp_path, name="foo").resolve_name() == Ok("foo")

    def test_from_dune_project(self, tmp_path: Path) -> None:
        (tmp_path / "dune-project").write_text("(lang dune 3.0)\n(name bar)\n", encoding="utf-8")
        (tmp_path / "other.opam").write_text("", encoding="utf-8")

        assert PackageDescriptor(root=tmp_path).resolve_name() == Ok("bar")

    def test_dune_project_not_utf8(self, tmp_path: Path) -> None:
        (tmp_path / "dune-project").write_bytes("(name foo)\n; J\u00e9r\u00f4me\n".encode("latin-1"))

        result = PackageDescriptor(root=tmp_path).resolve_name()

        assert isinstance(result, Err)
        assert result.error.kind == "metadata"

    def test_shortest_opam_file(self, tmp_path: Path) -> None:
        for stem in ("foo-lwt", "foo", "foo-unix"):
            (tmp_path / f"{stem}.opam").write_text("", encoding="utf-8")

        assert PackageDescriptor(root=tmp_path).resolve_name() == Ok("foo")

    def test_nothing_to_infer_from(self, tmp_path: Path) -> None:
        result = PackageDescriptor(root=tmp_path).resolve_name()

        assert isinstance(result, Err)
        assert result.error.kind == "metadata"
        assert result.error.hint is not None


class TestVersionAndTag:
    def test_overrides(self, tmp_path: Path) -> None:
        d = PackageDescriptor(root=tmp_path, version="1.0.0", tag="release-1.0.0")
        assert d.resolve_version() == Ok("1.0.0")
        assert d.resolve_tag() == Ok("release-1.0.0")

    def test_tag_defaults_to_version(self, tmp_path: Path) -> None:
        assert PackageDescriptor(root=tmp_path, version="2.1").resolve_tag() == Ok("2.1")

    def test_version_from_vcs_drops_v(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = _fake_git_tag(monkeypatch, "v1.2.3")

        assert PackageDescriptor(root=tmp_path).resolve_version() == Ok("1.2.3")
        assert calls == [["git", "describe", "--tags", "--abbrev=0"]]

    def test_version_from_vcs_keep_v(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _fake_git_tag(monkeypatch, "v1.2.3")

        assert PackageDescriptor(root=tmp_path, keep_v=True).resolve_version() == Ok("v1.2.3")

    def test_no_tag(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _fake_git_tag(monkeypatch, None)

        result = PackageDescriptor(root=tmp_path).resolve_version()

        assert isinstance(result, Err)
        assert result.error.hint == "pass --pkg-version VERSION"

    @pytest.mark.parametrize(
        ("tag", "keep_v", "expected"),
        [("v1.0", False, "1.0"), ("v1.0", True, "v1.0"), ("1.0", False, "1.0"), ("vanilla", False, "vanilla")],
    )
    def test_version_of_tag(self, tag: str, keep_v: bool, expected: str) -> None:
        assert vcs.version_of_tag(tag, keep_v=keep_v) == expected


class TestOpamAndDocUri:
    def test_default_opam_path(self, tmp_path: Path) -> None:
        d = PackageDescriptor(root=tmp_path, name="foo")
        assert d.resolve_opam() == Ok(tmp_path / "foo.opam")

    def test_doc_uri(self, tmp_path: Path) -> None:
        (tmp_path / "foo.opam").write_text('doc: "https://x"\n', encoding="utf-8")
        assert PackageDescriptor(root=tmp_path, name="foo").doc_uri() == Ok("https://x")

    def test_doc_uri_absent(self, tmp_path: Path) -> None:
        (tmp_path / "foo.opam").write_text('opam-version: "2.0"\n', encoding="utf-8")
        assert PackageDescriptor(root=tmp_path, name="foo").doc_uri() == Ok("")

    def test_doc_uri_unreadable(self, tmp_path: Path) -> None:
        assert isinstance(PackageDescriptor(root=tmp_path, name="foo").doc_uri(), Err)


class TestDelegate:
    def test_none(self, tmp_path: Path) -> None:
        assert PackageDescriptor(root=tmp_path, env={}).resolve_delegate() == Ok(None)

    def test_cli_wins(self, tmp_path: Path) -> None:
        d = PackageDescriptor(
            root=tmp_path,
            delegate="cli-tool --flag",
            config_delegate="config-tool",
            env={DELEGATE_ENV_VAR: "env-tool"},
        )
        assert d.resolve_delegate() == Ok(["cli-tool", "--flag"])

    def test_env_before_config(self, tmp_path: Path) -> None:
        d = PackageDescriptor(
            root=tmp_path, config_delegate="config-tool", env={DELEGATE_ENV_VAR: "env-tool"}
        )
        assert d.resolve_delegate() == Ok(["env-tool"])

    def test_config(self, tmp_path: Path) -> None:
        d = PackageDescriptor(root=tmp_path, config_delegate="config-tool", env={})
        assert d.resolve_delegate() == Ok(["config-tool"])

    def test_unbalanced_quotes(self, tmp_path: Path) -> None:
        result = PackageDescriptor(root=tmp_path, delegate="tool 'oops", env={}).resolve_delegate()
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"


class TestDistribFileAndMessage:
    def test_default_distrib_file(self, tmp_path: Path) -> None:
        d = PackageDescriptor(root=tmp_path, name="foo", version="1.0.0")
        assert d.resolve_distrib_file() == Ok(tmp_path / "_build" / "foo-1.0.0.tbz")

    def test_build_dir_override(self, tmp_path: Path) -> None:
        d = PackageDescriptor(
            root=tmp_path, name="foo", version="1.0.0", build_dir=tmp_path / "out"
        )
        assert d.resolve_distrib_file() == Ok(tmp_path / "out" / "foo-1.0.0.tbz")

    def test_distrib_file_override(self, tmp_path: Path) -> None:
        archive = tmp_path / "x.tbz"
        assert PackageDescriptor(root=tmp_path, distrib_file=archive).resolve_distrib_file() == Ok(
            archive
        )

    def test_message_override(self, tmp_path: Path) -> None:
        assert PackageDescriptor(root=tmp_path, publish_msg="hi").publish_message() == Ok("hi")

    def test_message_from_change_log(self, tmp_path: Path) -> None:
        (tmp_path / "CHANGES.md").write_text(
            "## v1.0.0\n\n- First release\n", encoding="utf-8"
        )
        assert PackageDescriptor(root=tmp_path).publish_message() == Ok(
            "v1.0.0\n\n- First release"
        )

    def test_message_without_change_log(self, tmp_path: Path) -> None:
        result = PackageDescriptor(root=tmp_path).publish_message()

        assert isinstance(result, Err)
        assert "no change log" in result.error.message

    def test_frozen(self, tmp_path: Path) -> None:
        d = PackageDescriptor(root=tmp_path)
        with pytest.raises(AttributeError):
            d.name = "other"  # type: ignore[misc]
