"""
Tree navigation and blob reading at a resolved commit.

Paths are slash separated and relative to the repository root; descent is
one segment at a time from the commit's root tree.
"""
import logging
import stat
from dataclasses import dataclass
from enum import Enum

from dulwich.objects import Blob, Commit, S_ISGITLINK, Tree
from dulwich.repo import Repo as DulwichRepo

from app.services.commits import short_id
from app.services.errors import (
    CommitNotFound,
    NotAFile,
    PathNotFound,
    UpstreamReadFailure,
)

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kinds of tree entries, in listing order."""
    DIRECTORY = "dir"
    SUBMODULE = "submodule"
    FILE = "file"


_KIND_ORDER = {
    EntryKind.DIRECTORY: 0,
    EntryKind.SUBMODULE: 1,
    EntryKind.FILE: 2,
}


@dataclass(frozen=True)
class TreeEntry:
    """One child of a directory at a commit."""
    name: str
    kind: EntryKind
    mode: str
    hash: str
    size: int | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_submodule(self) -> bool:
        return self.kind is EntryKind.SUBMODULE


def normalize_path(path: str | None) -> str:
    """Trim leading and trailing slashes; ``""`` and ``"/"`` mean the root."""
    return (path or "").strip("/")


def split_path(path: str | None) -> list[str]:
    return [part for part in normalize_path(path).split("/") if part]


def entry_kind(mode: int) -> EntryKind:
    if S_ISGITLINK(mode):
        return EntryKind.SUBMODULE
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    return EntryKind.FILE


def format_mode(mode: int) -> str:
    """Zero padded octal, e.g. ``0100644`` or ``0040000``."""
    return f"{mode:07o}"


def load_commit(repo: DulwichRepo, commit_id: bytes) -> Commit:
    try:
        obj = repo[commit_id]
    except KeyError:
        raise CommitNotFound(commit_id.decode("ascii", errors="replace"))
    if not isinstance(obj, Commit):
        raise CommitNotFound(commit_id.decode("ascii", errors="replace"))
    return obj


def load_tree(repo: DulwichRepo, tree_id: bytes) -> Tree:
    try:
        obj = repo[tree_id]
    except KeyError:
        logger.error("Tree %s missing from object store", short_id(tree_id))
        raise UpstreamReadFailure(f"Tree {tree_id.decode('ascii')} is missing")
    if not isinstance(obj, Tree):
        raise UpstreamReadFailure(f"Object {tree_id.decode('ascii')} is not a tree")
    return obj


def root_tree(repo: DulwichRepo, commit_id: bytes) -> Tree:
    return load_tree(repo, load_commit(repo, commit_id).tree)


def descend(repo: DulwichRepo, tree: Tree, segments: list[str]) -> Tree:
    """Walk ``segments`` from ``tree``; every segment must be a directory."""
    current = tree
    walked = []
    for segment in segments:
        walked.append(segment)
        try:
            mode, sha = current[segment.encode("utf-8")]
        except KeyError:
            raise PathNotFound("/".join(walked))
        if entry_kind(mode) is not EntryKind.DIRECTORY:
            raise PathNotFound("/".join(walked))
        current = load_tree(repo, sha)
    return current


def find_entry(repo: DulwichRepo, commit_id: bytes, path: str) -> tuple[int, bytes]:
    """Return ``(mode, sha)`` of the entry at ``path``."""
    segments = split_path(path)
    if not segments:
        raise PathNotFound("/")
    parent = descend(repo, root_tree(repo, commit_id), segments[:-1])
    try:
        return parent[segments[-1].encode("utf-8")]
    except KeyError:
        raise PathNotFound("/".join(segments))


def _blob_size(repo: DulwichRepo, sha: bytes) -> int | None:
    try:
        return repo.object_store[sha].raw_length()
    except KeyError:
        logger.warning("Blob %s missing, size unavailable", short_id(sha))
        return None


def list_tree(repo: DulwichRepo, commit_id: bytes, path: str | None = "") -> list[TreeEntry]:
    """List the children of ``path``: directories, then submodules, then files, each by name."""
    tree = descend(repo, root_tree(repo, commit_id), split_path(path))

    entries = []
    for item in tree.iteritems():
        kind = entry_kind(item.mode)
        entries.append(TreeEntry(
            name=item.path.decode("utf-8", errors="replace"),
            kind=kind,
            mode=format_mode(item.mode),
            hash=item.sha.decode("ascii"),
            # Only regular files get a size
            size=_blob_size(repo, item.sha) if kind is EntryKind.FILE else None,
        ))

    entries.sort(key=lambda e: (_KIND_ORDER[e.kind], e.name))
    return entries


def read_blob(repo: DulwichRepo, commit_id: bytes, path: str) -> bytes:
    """Return the full content of the file at ``path``."""
    path = normalize_path(path)
    if not path:
        raise NotAFile("/")
    mode, sha = find_entry(repo, commit_id, path)
    if entry_kind(mode) is not EntryKind.FILE:
        raise NotAFile(path)
    try:
        blob = repo[sha]
    except KeyError:
        logger.error("Blob %s for %s missing from object store", short_id(sha), path)
        raise UpstreamReadFailure(f"Blob for {path} is missing")
    if not isinstance(blob, Blob):
        raise UpstreamReadFailure(f"Object at {path} is not a blob")
    return blob.data
