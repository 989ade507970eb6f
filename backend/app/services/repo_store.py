"""
Repository store - locates bare repos on disk and reads their metadata.

Repositories live under a single directory as ``<name>.git``. Visibility is
the presence of the ``git-daemon-export-ok`` marker inside the repo.
Handles are opened per call and never cached.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo as DulwichRepo

from app.services.errors import (
    InvalidRepositoryName,
    RepositoryExists,
    RepositoryNotFound,
)

logger = logging.getLogger(__name__)

PUBLIC_MARKER = "git-daemon-export-ok"
DESCRIPTION_FILE = "description"
# Placeholder text git writes into new repos
DEFAULT_DESCRIPTION_PREFIX = "Unnamed repository"

_REPO_NAME = re.compile(r"^[A-Za-z0-9._-]+$")


def commit_datetime(timestamp: int, offset: int) -> datetime:
    """Build an aware datetime from a git timestamp and its UTC offset in seconds."""
    return datetime.fromtimestamp(timestamp, tz=timezone(timedelta(seconds=offset)))


@dataclass
class RepoSummary:
    """One row of the repository index."""
    name: str
    is_public: bool
    description: str = ""
    last_commit: datetime | None = None


class RepoStore:
    """Manages bare git repositories under one directory."""

    def __init__(self, repos_dir: Path):
        self.repos_dir = Path(repos_dir)

    @staticmethod
    def validate_name(name: str) -> str:
        """Reject names that are empty, contain separators or are dot paths."""
        if not name or name in (".", "..") or not _REPO_NAME.match(name):
            raise InvalidRepositoryName(
                "Invalid repository name - only alphanumeric, dash, underscore, and dot allowed"
            )
        return name

    def get_repo_path(self, name: str) -> Path:
        """Get the path to a bare repo."""
        return self.repos_dir / f"{self.validate_name(name)}.git"

    def repo_exists(self, name: str) -> bool:
        """Check if a repo exists."""
        try:
            return self.get_repo_path(name).is_dir()
        except InvalidRepositoryName:
            return False

    def open_repo(self, name: str) -> DulwichRepo:
        """Open a dulwich Repo, raising RepositoryNotFound if it is missing."""
        if not self.repo_exists(name):
            raise RepositoryNotFound(name)
        try:
            return DulwichRepo(str(self.get_repo_path(name)))
        except NotGitRepository:
            raise RepositoryNotFound(name)

    def is_public(self, name: str) -> bool:
        """A repo is public iff its export marker file exists."""
        if not self.repo_exists(name):
            return False
        return (self.get_repo_path(name) / PUBLIC_MARKER).exists()

    def get_description(self, name: str) -> str:
        path = self.get_repo_path(name) / DESCRIPTION_FILE
        try:
            text = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
        if text.startswith(DEFAULT_DESCRIPTION_PREFIX):
            return ""
        return text

    def get_default_branch(self, name: str) -> str | None:
        """Get the default branch (HEAD) for a repo."""
        repo = self.open_repo(name)
        try:
            head_ref = repo.refs.read_ref(b"HEAD")
        finally:
            repo.close()
        if head_ref and head_ref.startswith(b"ref: refs/heads/"):
            return head_ref[16:].decode("utf-8").strip()
        return None

    def list_branches(self, name: str) -> list[str]:
        """List all branches in a repo."""
        return self._list_refs(name, b"refs/heads/")

    def list_tags(self, name: str) -> list[str]:
        """List all tags in a repo."""
        return self._list_refs(name, b"refs/tags/")

    def _list_refs(self, name: str, prefix: bytes) -> list[str]:
        repo = self.open_repo(name)
        try:
            keys = repo.refs.keys(base=prefix)
        finally:
            repo.close()
        return sorted(key.decode("utf-8") for key in keys)

    def is_empty(self, name: str) -> bool:
        """A repo is empty when HEAD resolves nowhere and no branch exists."""
        repo = self.open_repo(name)
        try:
            try:
                repo.refs[b"HEAD"]
                return False
            except KeyError:
                pass
            return not repo.refs.keys(base=b"refs/heads/")
        finally:
            repo.close()

    def list_repos(self, show_private: bool) -> list[RepoSummary]:
        """List repositories, most recently committed first."""
        if not self.repos_dir.is_dir():
            return []
        repos = []
        for path in self.repos_dir.iterdir():
            if not path.is_dir() or path.suffix != ".git":
                continue
            name = path.stem
            if not self.repo_exists(name):
                continue
            summary = RepoSummary(name=name, is_public=(path / PUBLIC_MARKER).exists())
            if not show_private and not summary.is_public:
                continue
            self._fill_head_summary(summary)
            repos.append(summary)

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        repos.sort(key=lambda r: (r.last_commit or oldest, r.name), reverse=True)
        return repos

    def _fill_head_summary(self, summary: RepoSummary) -> None:
        """Use the HEAD commit's first message line as description when none is set."""
        summary.description = self.get_description(summary.name)
        try:
            repo = self.open_repo(summary.name)
        except RepositoryNotFound:
            return
        try:
            head = repo[repo.refs[b"HEAD"]]
        except KeyError:
            return
        finally:
            repo.close()
        summary.last_commit = commit_datetime(head.author_time, head.author_timezone)
        if not summary.description:
            message = head.message.decode("utf-8", errors="replace").strip()
            summary.description = message.split("\n", 1)[0]

    def create_bare_repo(self, name: str, description: str = "", public: bool = False) -> Path:
        """Create a new bare git repository."""
        repo_path = self.get_repo_path(name)
        if repo_path.exists():
            raise RepositoryExists(f"Repository {name} already exists")

        # dulwich init_bare needs the directory to exist first
        repo_path.mkdir(parents=True, exist_ok=False)
        DulwichRepo.init_bare(str(repo_path)).close()
        logger.info("Created repository %s (public=%s)", name, public)
        self.update_settings(name, description=description, public=public)
        return repo_path

    def update_settings(self, name: str, description: str | None = None, public: bool | None = None) -> None:
        """Write the description file and add or remove the visibility marker."""
        if not self.repo_exists(name):
            raise RepositoryNotFound(name)
        repo_path = self.get_repo_path(name)
        if description is not None:
            (repo_path / DESCRIPTION_FILE).write_text(description.strip(), encoding="utf-8")
        if public is True:
            (repo_path / PUBLIC_MARKER).touch()
        elif public is False:
            (repo_path / PUBLIC_MARKER).unlink(missing_ok=True)
