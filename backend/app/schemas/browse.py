from datetime import datetime
from pydantic import BaseModel

from app.services.commit_diff import FileStatus, LineType
from app.services.submodules import SubmoduleStatus
from app.services.tree import EntryKind


class RepoSummaryRead(BaseModel):
    name: str
    description: str = ""
    is_public: bool
    last_commit: datetime | None = None

    class Config:
        from_attributes = True


class CloneUrls(BaseModel):
    public: str | None = None
    tailnet: str | None = None


class RepoDetail(BaseModel):
    name: str
    description: str = ""
    is_public: bool
    is_empty: bool
    default_branch: str | None = None
    branches: list[str] = []
    tags: list[str] = []
    clone_urls: CloneUrls


class TreeEntryRead(BaseModel):
    name: str
    kind: EntryKind
    mode: str
    hash: str
    size: int | None = None

    class Config:
        from_attributes = True


class SubmoduleRead(BaseModel):
    name: str
    path: str
    url: str = ""
    branch: str = ""
    hash: str
    short_hash: str
    status: SubmoduleStatus
    web_url: str = ""

    class Config:
        from_attributes = True


class TreeListingRead(BaseModel):
    """Directory listing; ``is_empty`` is set instead of an error for empty repos."""
    ref: str
    revision: str | None = None
    path: str = ""
    is_empty: bool = False
    entries: list[TreeEntryRead] = []
    submodules: dict[str, SubmoduleRead] = {}
    readme: str | None = None

    class Config:
        from_attributes = True


class BlobRead(BaseModel):
    """File content; binary files carry no ``content``."""
    name: str
    path: str
    ref: str
    size: int
    is_binary: bool
    content: str | None = None


class CommitRead(BaseModel):
    id: str
    short_id: str
    message: str
    author: str
    email: str
    date: datetime

    class Config:
        from_attributes = True


class CommitListRead(BaseModel):
    ref: str
    is_empty: bool = False
    commits: list[CommitRead] = []


class DiffLineRead(BaseModel):
    type: LineType
    content: str
    old_num: int | None = None
    new_num: int | None = None

    class Config:
        from_attributes = True


class DiffChunkRead(BaseModel):
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: list[DiffLineRead] = []

    class Config:
        from_attributes = True


class FileDiffRead(BaseModel):
    name: str
    old_name: str | None = None
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False
    chunks: list[DiffChunkRead] = []

    class Config:
        from_attributes = True


class DiffStatsRead(BaseModel):
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0

    class Config:
        from_attributes = True


class CommitDiffRead(BaseModel):
    commit: CommitRead
    parent_hash: str | None = None
    files: list[FileDiffRead] = []
    stats: DiffStatsRead

    class Config:
        from_attributes = True
