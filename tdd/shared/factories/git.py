"""
Bare repository builder for tests.

Writes blobs, trees, commits and refs straight into a dulwich object store so
tests can describe repository states as plain ``{path: content}`` mappings:

    with RepoBuilder.create(repos_dir, "demo", public=True) as builder:
        first = builder.commit({"README.md": "hello\\n", "src/app.py": "print()\\n"})
        builder.commit({"README.md": "hello world\\n"}, parents=[first])
"""
import stat
from dataclasses import dataclass
from pathlib import Path

from dulwich.objects import Blob, Commit, S_IFGITLINK, Tag, Tree
from dulwich.repo import Repo as DulwichRepo

DEFAULT_AUTHOR = b"Test User <test@example.com>"
BASE_TIMESTAMP = 1_700_000_000
FILE_MODE = 0o100644
EXECUTABLE_MODE = 0o100755


@dataclass(frozen=True)
class Gitlink:
    """Placeholder for a submodule entry pinned at ``sha``."""
    sha: str


@dataclass(frozen=True)
class Executable:
    content: bytes | str


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def build_tree(repo: DulwichRepo, files: dict) -> Tree:
    """Store a (possibly nested) tree for a ``{path: content}`` mapping."""
    tree = Tree()
    subdirs: dict[str, dict] = {}
    for path, content in files.items():
        head, _, rest = path.strip("/").partition("/")
        if rest:
            subdirs.setdefault(head, {})[rest] = content
            continue
        if isinstance(content, Gitlink):
            tree.add(head.encode(), S_IFGITLINK, content.sha.encode("ascii"))
            continue
        mode = FILE_MODE
        if isinstance(content, Executable):
            mode, content = EXECUTABLE_MODE, content.content
        blob = Blob.from_string(_as_bytes(content))
        repo.object_store.add_object(blob)
        tree.add(head.encode(), mode, blob.id)

    for name, children in subdirs.items():
        subtree = build_tree(repo, children)
        tree.add(name.encode(), stat.S_IFDIR, subtree.id)

    repo.object_store.add_object(tree)
    return tree


class RepoBuilder:
    """Populates a bare repository commit by commit."""

    def __init__(self, repo: DulwichRepo, branch: str = "main"):
        self.repo = repo
        self.branch = branch
        self._clock = BASE_TIMESTAMP
        repo.refs.set_symbolic_ref(b"HEAD", f"refs/heads/{branch}".encode())

    @classmethod
    def create(cls, repos_dir: Path, name: str, public: bool = False, description: str = "", branch: str = "main"):
        path = Path(repos_dir) / f"{name}.git"
        path.mkdir(parents=True)
        repo = DulwichRepo.init_bare(str(path))
        if public:
            (path / "git-daemon-export-ok").touch()
        if description:
            (path / "description").write_text(description, encoding="utf-8")
        return cls(repo, branch=branch)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self.repo.close()

    def tick(self, seconds: int = 60) -> int:
        self._clock += seconds
        return self._clock

    def commit(
        self,
        files: dict,
        message: str = "Update files",
        parents: list[str] | None = None,
        branch: str | None = None,
        author: bytes = DEFAULT_AUTHOR,
        timestamp: int | None = None,
        timezone: int = 0,
        update_ref: bool = True,
    ) -> str:
        """Store a commit of ``files`` and move ``branch`` to it. Returns the hex id."""
        tree = build_tree(self.repo, files)
        commit = Commit()
        commit.tree = tree.id
        commit.parents = [p.encode("ascii") for p in (parents or [])]
        commit.author = commit.committer = author
        commit.author_time = commit.commit_time = timestamp if timestamp is not None else self.tick()
        commit.author_timezone = commit.commit_timezone = timezone
        commit.encoding = b"UTF-8"
        commit.message = message.encode("utf-8")
        self.repo.object_store.add_object(commit)
        if update_ref:
            self.set_branch(branch or self.branch, commit.id.decode("ascii"))
        return commit.id.decode("ascii")

    def set_branch(self, name: str, sha: str) -> None:
        self.repo.refs[f"refs/heads/{name}".encode()] = sha.encode("ascii")

    def lightweight_tag(self, name: str, sha: str) -> None:
        self.repo.refs[f"refs/tags/{name}".encode()] = sha.encode("ascii")

    def annotated_tag(self, name: str, sha: str, message: str = "Release") -> str:
        tag = Tag()
        tag.tagger = DEFAULT_AUTHOR
        tag.message = message.encode("utf-8")
        tag.name = name.encode("utf-8")
        tag.object = (Commit, sha.encode("ascii"))
        tag.tag_time = self.tick()
        tag.tag_timezone = 0
        self.repo.object_store.add_object(tag)
        self.repo.refs[f"refs/tags/{name}".encode()] = tag.id
        return tag.id.decode("ascii")

    def tree_id(self, commit_id: str) -> str:
        return self.repo[commit_id.encode("ascii")].tree.decode("ascii")
