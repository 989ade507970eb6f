"""
Commit metadata and history walking.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime

from dulwich.objects import Commit
from dulwich.repo import Repo as DulwichRepo
from dulwich.walk import ORDER_DATE, Walker

from app.services.errors import CommitNotFound, UpstreamReadFailure
from app.services.repo_store import commit_datetime

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 8

COMMIT_ID = re.compile(r"^[0-9a-fA-F]{40}$")

_IDENTITY = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")


@dataclass
class CommitInfo:
    """Display metadata for one commit."""
    id: str
    short_id: str
    message: str
    author: str
    email: str
    date: datetime


def short_id(commit_id: str | bytes) -> str:
    if isinstance(commit_id, bytes):
        commit_id = commit_id.decode("ascii")
    return commit_id[:SHORT_ID_LENGTH]


def parse_commit_id(value: str) -> bytes:
    """Validate a full 40-hex commit id, raising CommitNotFound otherwise."""
    if not COMMIT_ID.match(value or ""):
        raise CommitNotFound(value)
    return value.lower().encode("ascii")


def parse_identity(raw: bytes) -> tuple[str, str]:
    """Split ``Name <email>`` into its parts."""
    text = raw.decode("utf-8", errors="replace")
    match = _IDENTITY.match(text)
    if not match:
        return text.strip(), ""
    return match.group("name"), match.group("email")


def commit_info(commit: Commit) -> CommitInfo:
    name, email = parse_identity(commit.author)
    commit_id = commit.id.decode("ascii")
    return CommitInfo(
        id=commit_id,
        short_id=short_id(commit_id),
        message=commit.message.decode("utf-8", errors="replace").strip(),
        author=name,
        email=email,
        date=commit_datetime(commit.author_time, commit.author_timezone),
    )


def list_commits(repo: DulwichRepo, start: bytes, limit: int = 0) -> list[CommitInfo]:
    """History from ``start``, newest commit time first. ``limit <= 0`` means no limit."""
    walker = Walker(
        repo.object_store,
        [start],
        order=ORDER_DATE,
        max_entries=limit if limit > 0 else None,
    )
    commits = []
    try:
        for entry in walker:
            commits.append(commit_info(entry.commit))
    except KeyError as e:
        logger.error("History walk from %s hit a missing object: %s", short_id(start), e)
        raise UpstreamReadFailure(f"History is incomplete: {e}")
    return commits
