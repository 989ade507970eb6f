"""
Commit diff engine.

Compares a commit's tree against its first parent's tree (or an empty tree
for root commits) and renders per-file unified hunks.

Tolerated degradations:
- a parent or commit tree that cannot be read gives a metadata-only result
- a change whose action cannot be classified is skipped
"""
import difflib
import logging
from dataclasses import dataclass, field
from enum import Enum

from dulwich.diff_tree import (
    CHANGE_ADD,
    CHANGE_COPY,
    CHANGE_DELETE,
    CHANGE_MODIFY,
    CHANGE_RENAME,
    RenameDetector,
    tree_changes,
)
from dulwich.objects import Blob, S_ISGITLINK
from dulwich.patch import is_binary
from dulwich.repo import Repo as DulwichRepo

from app.services.commits import CommitInfo, commit_info, parse_commit_id, short_id
from app.services.errors import CommitNotFound, UpstreamReadFailure
from app.services.tree import load_commit, load_tree

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 3


class ChangeKind(Enum):
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"


@dataclass(frozen=True)
class ChangeAction:
    """Classified tree change; ``renamed`` only applies to MODIFIED."""
    kind: ChangeKind
    renamed: bool = False


class FileStatus(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


class LineType(str, Enum):
    CONTEXT = "context"
    ADD = "add"
    DELETE = "delete"


@dataclass
class DiffLine:
    type: LineType
    content: str
    old_num: int | None = None
    new_num: int | None = None


@dataclass
class DiffChunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: list[DiffLine] = field(default_factory=list)


@dataclass
class FileDiff:
    name: str
    status: FileStatus
    old_name: str | None = None
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False
    chunks: list[DiffChunk] = field(default_factory=list)


@dataclass
class DiffStats:
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0


@dataclass
class CommitDiff:
    commit: CommitInfo
    parent_hash: str | None = None
    files: list[FileDiff] = field(default_factory=list)
    stats: DiffStats = field(default_factory=DiffStats)


def _entry_path(entry) -> str | None:
    # Adds and deletes carry either None or an all-None entry on the missing side
    if entry is None or entry.path is None:
        return None
    return entry.path.decode("utf-8", errors="replace")


def classify_change(change) -> ChangeAction | None:
    """Map a dulwich TreeChange onto added / deleted / modified(renamed)."""
    if change.type in (CHANGE_ADD, CHANGE_COPY):
        return ChangeAction(ChangeKind.ADDED)
    if change.type == CHANGE_DELETE:
        return ChangeAction(ChangeKind.DELETED)
    if change.type in (CHANGE_MODIFY, CHANGE_RENAME):
        old_path, new_path = _entry_path(change.old), _entry_path(change.new)
        if old_path is None or new_path is None:
            return None
        return ChangeAction(ChangeKind.MODIFIED, renamed=old_path != new_path)
    return None


def _file_diff_for(change, action: ChangeAction) -> FileDiff:
    if action.kind is ChangeKind.ADDED:
        return FileDiff(name=_entry_path(change.new), status=FileStatus.ADDED)
    if action.kind is ChangeKind.DELETED:
        return FileDiff(name=_entry_path(change.old), status=FileStatus.DELETED)
    if action.renamed:
        return FileDiff(
            name=_entry_path(change.new),
            old_name=_entry_path(change.old),
            status=FileStatus.RENAMED,
        )
    return FileDiff(name=_entry_path(change.new), status=FileStatus.MODIFIED)


def _entry_content(repo: DulwichRepo, entry) -> bytes:
    if entry is None or entry.sha is None:
        return b""
    if S_ISGITLINK(entry.mode):
        return b"Subproject commit " + entry.sha + b"\n"
    obj = repo[entry.sha]
    if not isinstance(obj, Blob):
        raise KeyError(entry.sha)
    return obj.data


def split_lines(data: bytes) -> list[str]:
    """Decode and split after each newline, keeping the line endings.

    Endings take part in the comparison, so a file that only gains or loses
    its final newline still differs on its last line.
    """
    lines = [line + "\n" for line in data.decode("utf-8", errors="replace").split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def _display(line: str) -> str:
    return line[:-1] if line.endswith("\n") else line


def _hunk_start(start: int, length: int) -> int:
    # Unified diff convention: an empty range starts at the line before it
    return start + 1 if length else start


def build_chunks(old_lines: list[str], new_lines: list[str], context: int = DEFAULT_CONTEXT_LINES) -> list[DiffChunk]:
    """Group line differences into hunks with ``context`` unchanged lines around them.

    Lines are compared as given; ``DiffLine.content`` drops the trailing newline.
    """
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    chunks = []
    for group in matcher.get_grouped_opcodes(context):
        i1, i2 = group[0][1], group[-1][2]
        j1, j2 = group[0][3], group[-1][4]
        chunk = DiffChunk(
            old_start=_hunk_start(i1, i2 - i1),
            old_lines=i2 - i1,
            new_start=_hunk_start(j1, j2 - j1),
            new_lines=j2 - j1,
        )
        for tag, a1, a2, b1, b2 in group:
            if tag == "equal":
                for offset in range(a2 - a1):
                    chunk.lines.append(DiffLine(
                        type=LineType.CONTEXT,
                        content=_display(old_lines[a1 + offset]),
                        old_num=a1 + offset + 1,
                        new_num=b1 + offset + 1,
                    ))
                continue
            if tag in ("replace", "delete"):
                for num in range(a1, a2):
                    chunk.lines.append(DiffLine(type=LineType.DELETE, content=_display(old_lines[num]), old_num=num + 1))
            if tag in ("replace", "insert"):
                for num in range(b1, b2):
                    chunk.lines.append(DiffLine(type=LineType.ADD, content=_display(new_lines[num]), new_num=num + 1))
        if chunk.lines:
            chunks.append(chunk)
    return chunks


def _fill_lines(repo: DulwichRepo, change, file_diff: FileDiff, stats: DiffStats, context: int) -> None:
    try:
        old_data = _entry_content(repo, change.old)
        new_data = _entry_content(repo, change.new)
    except KeyError:
        logger.warning("Content for %s unavailable, reporting without lines", file_diff.name)
        return

    if is_binary(old_data) or is_binary(new_data):
        file_diff.is_binary = True
        return

    file_diff.chunks = build_chunks(split_lines(old_data), split_lines(new_data), context)
    for chunk in file_diff.chunks:
        for line in chunk.lines:
            if line.type is LineType.ADD:
                file_diff.additions += 1
                stats.additions += 1
            elif line.type is LineType.DELETE:
                file_diff.deletions += 1
                stats.deletions += 1


def get_commit_diff(
    repo: DulwichRepo,
    commit_id: str,
    detect_renames: bool = True,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> CommitDiff:
    """Diff ``commit_id`` against its first parent."""
    commit = load_commit(repo, parse_commit_id(commit_id))
    result = CommitDiff(commit=commit_info(commit))

    base_tree = None
    try:
        if commit.parents:
            parent_id = commit.parents[0]
            result.parent_hash = short_id(parent_id)
            base_tree = load_tree(repo, load_commit(repo, parent_id).tree).id
        target_tree = load_tree(repo, commit.tree).id
    except (CommitNotFound, UpstreamReadFailure) as e:
        logger.warning("Commit %s: %s; returning metadata only", result.commit.short_id, e)
        return result

    rename_detector = RenameDetector(repo.object_store) if detect_renames else None
    try:
        changes = list(tree_changes(
            repo.object_store, base_tree, target_tree, rename_detector=rename_detector,
        ))
    except KeyError as e:
        logger.warning("Commit %s: tree comparison failed (%s); returning metadata only",
                       result.commit.short_id, e)
        return result

    for change in changes:
        action = classify_change(change)
        if action is None:
            logger.warning("Commit %s: skipping unclassifiable change %r",
                           result.commit.short_id, change.type)
            continue
        file_diff = _file_diff_for(change, action)
        _fill_lines(repo, change, file_diff, result.stats, context_lines)
        result.files.append(file_diff)
        result.stats.files_changed += 1

    return result
