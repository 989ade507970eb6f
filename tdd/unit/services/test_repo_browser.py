"""
Unit tests for RepoBrowser - the read operations behind the API.

These tests verify:
- Listings carry the resolved revision, README and submodules
- Files, history and commits through symbolic refs
- Settings flowing into history paging and diffs
- Corrupt objects surfacing as UpstreamReadFailure
"""
import sys
from pathlib import Path

import pytest
from dulwich.errors import ChecksumMismatch

# Add backend and tdd to path for imports
backend_path = Path(__file__).parent.parent.parent.parent / "backend"
tdd_path = Path(__file__).parent.parent.parent.parent / "tdd"
sys.path.insert(0, str(backend_path))
sys.path.insert(0, str(tdd_path))

import app.services.repo_browser as browser_module
from app.config import Settings
from app.services.commit_diff import FileStatus
from app.services.errors import (
    NotAFile,
    ReferenceUnresolvable,
    RepositoryNotFound,
    UpstreamReadFailure,
)
from app.services.repo_browser import RepoBrowser, find_readme
from app.services.submodules import SubmoduleStatus
from app.services.tree import EntryKind, TreeEntry
from shared.factories import Gitlink


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def project(make_repo):
    builder = make_repo("project", public=True)
    ids = [builder.commit({"README.md": "# Project\n", "src/main.py": "v = 0\n"}, message="start")]
    for n in range(1, 6):
        ids.append(builder.commit(
            {"README.md": "# Project\n", "src/main.py": f"v = {n}\n", "deps/lib": Gitlink("e" * 40)},
            message=f"bump {n}",
            parents=[ids[-1]],
        ))
    builder.lightweight_tag("v0", ids[0])
    return builder, ids


@pytest.fixture
def browser(store):
    return RepoBrowser(store, Settings(commit_page_size=3))


def file_entry(name: str) -> TreeEntry:
    return TreeEntry(name=name, kind=EntryKind.FILE, mode="0100644", hash="0" * 40, size=1)


# -----------------------------------------------------------------------------
# README Tests
# -----------------------------------------------------------------------------

class TestFindReadme:
    """Tests for find_readme()."""

    def test_preference_order(self):
        entries = [file_entry("readme.txt"), file_entry("README.md"), file_entry("README")]
        assert find_readme(entries) == "README.md"

    def test_directories_do_not_count(self):
        entries = [TreeEntry(name="README.md", kind=EntryKind.DIRECTORY, mode="0040000", hash="0" * 40)]
        assert find_readme(entries) is None

    def test_none_found(self):
        assert find_readme([file_entry("main.py")]) is None


# -----------------------------------------------------------------------------
# Listing Tests
# -----------------------------------------------------------------------------

class TestListEntries:
    """Tests for RepoBrowser.list_entries()."""

    def test_root_listing_at_head(self, browser, project):
        _, ids = project
        listing = browser.list_entries("project", "main")

        assert listing.revision == ids[-1]
        assert listing.path == ""
        assert [entry.name for entry in listing.entries] == ["deps", "src", "README.md"]
        assert listing.readme == "README.md"

    def test_submodules_in_subdirectory(self, browser, project):
        listing = browser.list_entries("project", "HEAD", "/deps/")
        assert listing.path == "deps"
        assert listing.submodules["lib"].path == "deps/lib"
        assert listing.submodules["lib"].status is SubmoduleStatus.MISSING_CONFIG

    def test_tag_listing(self, browser, project):
        _, ids = project
        listing = browser.list_entries("project", "v0")
        assert listing.revision == ids[0]
        assert [entry.name for entry in listing.entries] == ["src", "README.md"]

    def test_empty_repo_is_unresolvable(self, browser, make_repo):
        make_repo("empty")
        with pytest.raises(ReferenceUnresolvable):
            browser.list_entries("empty", "main")

    def test_missing_repo(self, browser):
        with pytest.raises(RepositoryNotFound):
            browser.list_entries("ghost", "main")

    def test_submodules_for_path(self, browser, project):
        infos = browser.submodules_for_path("project", "main", "deps")
        assert list(infos) == ["lib"]


# -----------------------------------------------------------------------------
# File / History Tests
# -----------------------------------------------------------------------------

class TestReadsThroughRefs:
    """Files, history and commits."""

    def test_read_file_at_ref(self, browser, project):
        _, ids = project
        assert browser.read_file("project", "main", "src/main.py") == b"v = 5\n"
        assert browser.read_file("project", "v0", "src/main.py") == b"v = 0\n"
        assert browser.read_file("project", ids[2], "src/main.py") == b"v = 2\n"

    def test_read_directory_raises(self, browser, project):
        with pytest.raises(NotAFile):
            browser.read_file("project", "main", "src")

    def test_history_uses_configured_page_size(self, browser, project):
        _, ids = project
        commits = browser.list_commits("project", "main")
        assert [c.id for c in commits] == [ids[5], ids[4], ids[3]]

    def test_history_limit_override(self, browser, project):
        commits = browser.list_commits("project", "main", limit=10)
        assert len(commits) == 6
        assert commits[-1].message == "start"

    def test_history_is_newest_first(self, browser, project):
        commits = browser.list_commits("project", "main", limit=10)
        dates = [c.date for c in commits]
        assert dates == sorted(dates, reverse=True)

    def test_get_commit(self, browser, project):
        _, ids = project
        commit = browser.get_commit("project", ids[1])
        assert commit.message == "bump 1"
        assert commit.short_id == ids[1][:8]

    def test_get_commit_diff(self, browser, project):
        _, ids = project
        diff = browser.get_commit_diff("project", ids[1])
        statuses = {f.name: f.status for f in diff.files}
        assert statuses == {"src/main.py": FileStatus.MODIFIED, "deps/lib": FileStatus.ADDED}

    def test_diff_context_setting(self, store, make_repo):
        builder = make_repo("ctx")
        text = "".join(f"{n}\n" for n in range(20))
        first = builder.commit({"f": text})
        second = builder.commit({"f": text.replace("10\n", "ten\n")}, parents=[first])

        narrow = RepoBrowser(store, Settings(diff_context_lines=1)).get_commit_diff("ctx", second)
        assert len(narrow.files[0].chunks[0].lines) == 4

    def test_resolve_submodule(self, browser, project):
        info = browser.resolve_submodule("project", "main", "deps/lib")
        assert info.hash == "e" * 40


# -----------------------------------------------------------------------------
# Failure Tests
# -----------------------------------------------------------------------------

class TestCorruption:
    """Store-level corruption is reported as UpstreamReadFailure."""

    def test_checksum_mismatch(self, browser, project, monkeypatch):
        def corrupt(*args, **kwargs):
            raise ChecksumMismatch(b"1" * 40, b"2" * 40)

        monkeypatch.setattr(browser_module, "list_tree", corrupt)
        with pytest.raises(UpstreamReadFailure):
            browser.list_entries("project", "main")
