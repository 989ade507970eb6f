"""
Repository browser - the read operations exposed to the API layer.

Each call opens the repository once and resolves the ref once; every
lookup in that call uses the same commit id.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from dulwich.errors import ChecksumMismatch, ObjectFormatException

from app.config import Settings
from app.services.commit_diff import CommitDiff, get_commit_diff
from app.services.commits import CommitInfo, commit_info, list_commits, parse_commit_id
from app.services.errors import UpstreamReadFailure
from app.services.refs import resolve_ref
from app.services.repo_store import RepoStore
from app.services.submodules import SubmoduleInfo, resolve_submodule, submodules_for_entries
from app.services.tree import TreeEntry, list_tree, load_commit, normalize_path, read_blob

logger = logging.getLogger(__name__)

README_NAMES = (
    "README.md", "readme.md", "Readme.md",
    "README.MD", "README", "readme",
    "README.txt", "readme.txt",
    "README.rst", "readme.rst",
)


@dataclass
class TreeListing:
    """A directory at a resolved revision plus its submodule details."""
    ref: str
    revision: str
    path: str
    entries: list[TreeEntry] = field(default_factory=list)
    submodules: dict[str, SubmoduleInfo] = field(default_factory=dict)
    readme: str | None = None


def find_readme(entries: list[TreeEntry]) -> str | None:
    names = {entry.name for entry in entries if not entry.is_dir}
    for candidate in README_NAMES:
        if candidate in names:
            return candidate
    return None


class RepoBrowser:
    """Read-only queries against repositories in a RepoStore."""

    def __init__(self, store: RepoStore, settings: Settings):
        self.store = store
        self.settings = settings

    @contextmanager
    def _open(self, repo_name: str):
        repo = self.store.open_repo(repo_name)
        try:
            yield repo
        except (ChecksumMismatch, ObjectFormatException) as e:
            logger.error("Corrupt object in %s: %s", repo_name, e)
            raise UpstreamReadFailure(f"Corrupt object in {repo_name}: {e}")
        finally:
            repo.close()

    def list_entries(self, repo_name: str, ref: str, path: str = "") -> TreeListing:
        path = normalize_path(path)
        with self._open(repo_name) as repo:
            revision = resolve_ref(repo, ref)
            entries = list_tree(repo, revision, path)
            submodules = submodules_for_entries(
                repo, revision, path, entries, self.settings.link_hosts,
            )
        return TreeListing(
            ref=ref,
            revision=revision.decode("ascii"),
            path=path,
            entries=entries,
            submodules=submodules,
            readme=find_readme(entries),
        )

    def read_file(self, repo_name: str, ref: str, path: str) -> bytes:
        with self._open(repo_name) as repo:
            return read_blob(repo, resolve_ref(repo, ref), path)

    def list_commits(self, repo_name: str, ref: str, limit: int | None = None) -> list[CommitInfo]:
        if limit is None:
            limit = self.settings.commit_page_size
        with self._open(repo_name) as repo:
            return list_commits(repo, resolve_ref(repo, ref), limit)

    def get_commit(self, repo_name: str, commit_id: str) -> CommitInfo:
        with self._open(repo_name) as repo:
            return commit_info(load_commit(repo, parse_commit_id(commit_id)))

    def get_commit_diff(self, repo_name: str, commit_id: str) -> CommitDiff:
        with self._open(repo_name) as repo:
            return get_commit_diff(
                repo,
                commit_id,
                detect_renames=self.settings.detect_renames,
                context_lines=self.settings.diff_context_lines,
            )

    def resolve_submodule(self, repo_name: str, ref: str, path: str) -> SubmoduleInfo:
        with self._open(repo_name) as repo:
            return resolve_submodule(repo, resolve_ref(repo, ref), path, self.settings.link_hosts)

    def submodules_for_path(self, repo_name: str, ref: str, path: str = "") -> dict[str, SubmoduleInfo]:
        path = normalize_path(path)
        with self._open(repo_name) as repo:
            revision = resolve_ref(repo, ref)
            entries = list_tree(repo, revision, path)
            return submodules_for_entries(repo, revision, path, entries, self.settings.link_hosts)


def create_browser(settings: Settings) -> RepoBrowser:
    return RepoBrowser(RepoStore(Path(settings.repos_path)), settings)
