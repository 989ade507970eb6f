"""
Error taxonomy for repository browsing.

Routers never catch these individually; app.main maps each family to an
HTTP status.
"""


class RepoBrowseError(Exception):
    """Base exception for repository browsing errors."""
    pass


class NotFound(RepoBrowseError):
    """Raised when a repository, path, commit or submodule is absent."""
    pass


class RepositoryNotFound(NotFound):
    """Raised when no repository with the given name exists."""

    def __init__(self, name: str):
        super().__init__(f"Repository not found: {name}")
        self.name = name


class PathNotFound(NotFound):
    """Raised when a path does not exist at the resolved revision."""

    def __init__(self, path: str):
        super().__init__(f"Path not found: {path}")
        self.path = path


class CommitNotFound(NotFound):
    """Raised when a commit id does not name a commit in the repository."""

    def __init__(self, commit_id: str):
        super().__init__(f"Commit not found: {commit_id}")
        self.commit_id = commit_id


class SubmoduleNotFound(NotFound):
    """Raised when no tree entry exists at a submodule path."""

    def __init__(self, path: str):
        super().__init__(f"Submodule not found: {path}")
        self.path = path


class Forbidden(RepoBrowseError):
    """Raised by callers when the access gate denies an operation."""
    pass


class ReferenceUnresolvable(RepoBrowseError):
    """Raised when not even the default reference resolves (empty repository)."""
    pass


class NotAFile(RepoBrowseError):
    """Raised when a blob is requested for a directory or submodule entry."""

    def __init__(self, path: str):
        super().__init__(f"Path is not a file: {path}")
        self.path = path


class NotASubmodule(RepoBrowseError):
    """Raised when submodule details are requested for a non-gitlink entry."""

    def __init__(self, path: str):
        super().__init__(f"Path is not a submodule: {path}")
        self.path = path


class UpstreamReadFailure(RepoBrowseError):
    """Raised when the object store fails in a way not covered above."""
    pass


class InvalidRepositoryName(RepoBrowseError):
    """Raised when a repository name contains disallowed characters."""
    pass


class RepositoryExists(RepoBrowseError):
    """Raised when creating a repository whose name is already taken."""
    pass
