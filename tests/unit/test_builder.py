"""Tests for SnapshotBuilder using marker-file repositories."""
from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from helpers.fakes import fake_probes, make_fake_repo
from repovend.core.builder import SnapshotBuilder
from repovend.core.config import VendConfig
from repovend.core.exceptions import DiscoveryError
from repovend.core.models import PinnedRepo, RepoKind, RepoOverride, RepoRecord, Snapshot

GIT = RepoKind.GIT
HG = RepoKind.MERCURIAL


def builder_for(root: Path, **kwargs) -> SnapshotBuilder:
    probes = kwargs.pop("probes", None) or fake_probes()
    return SnapshotBuilder(root, probes=probes, config=VendConfig(root), **kwargs)


def read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class TestSave:
    def test_fresh_save_writes_canonical_snapshot(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "libs" / "foo", GIT, "https://x/foo.git", "deadbeef")
        out = vend_root / "vendor.json"

        result = builder_for(vend_root).save(out)

        assert out.read_text(encoding="utf-8") == (
            "{\n"
            '  "GitRepos": {\n'
            '    "libs/foo": {\n'
            '      "URI": "https://x/foo.git",\n'
            '      "Ref": "deadbeef"\n'
            "    }\n"
            "  },\n"
            '  "MercurialRepos": {}\n'
            "}\n"
        )
        assert result.changed_paths == ["libs/foo"]
        assert result.failures == ()

    def test_save_is_deterministic(self, vend_root: Path) -> None:
        for name in ("c", "a", "b"):
            make_fake_repo(vend_root / "libs" / name, GIT, f"https://x/{name}.git", name * 4)
        make_fake_repo(vend_root / "hg" / "bar", HG, "https://hg.x/bar", "f00d")
        out = vend_root / "vendor.json"

        builder_for(vend_root, max_workers=4).save(out)
        first = out.read_bytes()
        second = builder_for(vend_root, max_workers=1).save(out)

        assert out.read_bytes() == first
        assert second.changes == ()

    def test_kinds_are_recorded_separately(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "a", GIT, "https://x/a.git", "1")
        make_fake_repo(vend_root / "b", HG, "https://hg.x/b", "2")
        out = vend_root / "vendor.json"

        builder_for(vend_root).save(out)

        data = read_json(out)
        assert data["GitRepos"] == {"a": {"URI": "https://x/a.git", "Ref": "1"}}
        assert data["MercurialRepos"] == {"b": {"URI": "https://hg.x/b", "Ref": "2"}}

    def test_changes_report_previous_revision(self, vend_root: Path) -> None:
        repo = make_fake_repo(vend_root / "libs" / "foo", GIT, "https://x/foo.git", "1111")
        out = vend_root / "vendor.json"
        builder_for(vend_root).save(out)

        make_fake_repo(repo, GIT, "https://x/foo.git", "2222")
        result = builder_for(vend_root).save(out)

        assert [c.transition for c in result.changes] == ["1111 -> 2222"]

    def test_unparseable_previous_snapshot_is_tolerated(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "libs" / "foo", GIT, "https://x/foo.git", "1")
        out = vend_root / "vendor.json"
        out.write_text("this is not json", encoding="utf-8")

        result = builder_for(vend_root).save(out)

        assert result.changed_paths == ["libs/foo"]
        assert read_json(out)["GitRepos"]["libs/foo"]["Ref"] == "1"

    def test_capture_failure_is_isolated(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "libs" / "broken", GIT, "https://x/b.git", "1")
        make_fake_repo(vend_root / "libs" / "good", GIT, "https://x/g.git", "2")
        make_fake_repo(vend_root / "libs" / "no_origin", GIT, "", "3")
        out = vend_root / "vendor.json"

        result = builder_for(vend_root, probes=fake_probes(unreadable={"broken"})).save(out)

        assert sorted(f.path for f in result.failures) == ["libs/broken", "libs/no_origin"]
        assert all(f.kind is GIT for f in result.failures)
        assert list(read_json(out)["GitRepos"]) == ["libs/good"]

    def test_walk_failure_aborts_without_writing(self, tmp_path: Path) -> None:
        out = tmp_path / "vendor.json"
        with pytest.raises(DiscoveryError):
            SnapshotBuilder(tmp_path / "missing", probes=fake_probes(), config=VendConfig(tmp_path)).save(out)
        assert not out.exists()


class TestExtend:
    def setup_previous(self, root: Path) -> Path:
        out = root / "vendor.json"
        previous = {
            "GitRepos": {
                "libs/foo": {"URI": "https://x/foo.git", "Ref": "old"},
                "libs/kept": {"URI": "https://x/kept.git", "Ref": "k"},
            },
            "MercurialRepos": {},
        }
        out.write_text(json.dumps(previous), encoding="utf-8")
        make_fake_repo(root / "libs" / "foo", GIT, "https://x/foo.git", "new")
        return out

    def test_extend_keeps_entries_not_seen_this_run(self, vend_root: Path) -> None:
        out = self.setup_previous(vend_root)

        result = builder_for(vend_root).save(out, extend=True)

        assert read_json(out)["GitRepos"] == {
            "libs/foo": {"URI": "https://x/foo.git", "Ref": "new"},
            "libs/kept": {"URI": "https://x/kept.git", "Ref": "k"},
        }
        assert result.changed_paths == ["libs/foo"]

    def test_without_extend_unseen_entries_are_dropped(self, vend_root: Path) -> None:
        out = self.setup_previous(vend_root)

        builder_for(vend_root).save(out)

        assert list(read_json(out)["GitRepos"]) == ["libs/foo"]


class TestManualEntries:
    def test_override_wins_over_discovery(self, vend_root: Path, tmp_path: Path) -> None:
        make_fake_repo(vend_root / "libs" / "foo", GIT, "https://x/foo.git", "discovered")
        make_fake_repo(tmp_path / "checkouts" / "foo", GIT, "https://x/foo.git", "override")

        result = builder_for(vend_root).build(overrides=[RepoOverride.parse("libs/foo=../checkouts/foo")])

        assert result.snapshot.get(GIT, "libs/foo") == RepoRecord("https://x/foo.git", "override")

    def test_later_override_wins(self, vend_root: Path, tmp_path: Path) -> None:
        first = make_fake_repo(tmp_path / "one", GIT, "https://x/one.git", "1")
        second = make_fake_repo(tmp_path / "two", HG, "https://hg.x/two", "2")

        result = builder_for(vend_root).build(
            overrides=[RepoOverride("libs/foo", str(first)), RepoOverride("libs/foo", str(second))]
        )

        assert result.snapshot.kind_of("libs/foo") is HG
        assert result.snapshot.get(HG, "libs/foo") == RepoRecord("https://hg.x/two", "2")

    def test_override_to_non_repository_is_a_failure(self, vend_root: Path, tmp_path: Path) -> None:
        (tmp_path / "plain").mkdir()

        result = builder_for(vend_root).build(overrides=[RepoOverride("libs/foo", str(tmp_path / "plain"))])

        assert len(result.snapshot) == 0
        assert [f.path for f in result.failures] == ["libs/foo"]

    def test_pinned_entries_win_over_everything(self, vend_root: Path, tmp_path: Path) -> None:
        make_fake_repo(vend_root / "libs" / "foo", GIT, "https://x/foo.git", "discovered")
        make_fake_repo(tmp_path / "checkout", GIT, "https://x/foo.git", "override")

        result = builder_for(vend_root).build(
            overrides=[RepoOverride("libs/foo", str(tmp_path / "checkout"))],
            pinned=[PinnedRepo.parse(HG, "libs/foo=https://hg.x/foo@pinned")],
        )

        assert "libs/foo" not in result.snapshot.git_repos
        assert result.snapshot.get(HG, "libs/foo") == RepoRecord("https://hg.x/foo", "pinned")

    def test_pinned_entries_need_no_working_tree(self, vend_root: Path) -> None:
        probes = fake_probes()
        result = builder_for(vend_root, probes=probes).build(
            pinned=[PinnedRepo.parse(GIT, "libs/ghost=https://x/ghost.git@abc")]
        )

        assert result.snapshot.get(GIT, "libs/ghost") == RepoRecord("https://x/ghost.git", "abc")
        assert probes[GIT].calls == []


class TestIgnore:
    def test_ignore_from_project_config(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "libs" / "foo", GIT, "u", "1")
        make_fake_repo(vend_root / "build" / "bar", GIT, "u", "1")
        (vend_root / ".repovend.yaml").write_text("ignore:\n  - build\n", encoding="utf-8")

        result = builder_for(vend_root).build()

        assert list(result.snapshot.git_repos) == ["libs/foo"]

    def test_ignore_from_legacy_environment(self, vend_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        make_fake_repo(vend_root / "a" / "foo", GIT, "u", "1")
        make_fake_repo(vend_root / "b" / "bar", GIT, "u", "1")
        make_fake_repo(vend_root / "c" / "baz", GIT, "u", "1")
        monkeypatch.setenv("VENDOR_IGNORE_DIRS", os.pathsep.join(["a", "c"]))

        result = builder_for(vend_root).build()

        assert list(result.snapshot.git_repos) == ["b/bar"]

    def test_ignore_argument_adds_to_config(self, vend_root: Path) -> None:
        make_fake_repo(vend_root / "a", GIT, "u", "1")
        make_fake_repo(vend_root / "b", GIT, "u", "1")
        (vend_root / ".repovend.yaml").write_text("ignore: [a]\n", encoding="utf-8")

        result = builder_for(vend_root, ignore=["b"]).build()

        assert result.snapshot == Snapshot()
