"""
Reference resolution.

Maps a user-supplied ref string to a commit id. First match wins:
branch, tag, HEAD (or empty), raw commit id, then HEAD as a fallback.
"""
import logging

from dulwich.objects import Commit, Tag
from dulwich.refs import check_ref_format
from dulwich.repo import Repo as DulwichRepo

from app.services.commits import COMMIT_ID
from app.services.errors import ReferenceUnresolvable

logger = logging.getLogger(__name__)

DEFAULT_REF = "HEAD"


def _peel(repo: DulwichRepo, sha: bytes) -> bytes | None:
    """Follow annotated tags down to a commit id, or None if it isn't one."""
    try:
        obj = repo[sha]
        while isinstance(obj, Tag):
            obj = repo[obj.object[1]]
    except KeyError:
        return None
    if isinstance(obj, Commit):
        return obj.id
    return None


def _lookup(repo: DulwichRepo, ref_name: bytes) -> bytes | None:
    if ref_name != b"HEAD" and not check_ref_format(ref_name):
        return None
    try:
        sha = repo.refs[ref_name]
    except (KeyError, ValueError):
        return None
    return _peel(repo, sha)


def head_commit(repo: DulwichRepo) -> bytes:
    """Commit the default reference points at."""
    sha = _lookup(repo, DEFAULT_REF.encode())
    if sha is None:
        raise ReferenceUnresolvable("Repository has no resolvable default reference")
    return sha


def resolve_ref(repo: DulwichRepo, ref: str | None) -> bytes:
    """Resolve ``ref`` to a 40-hex commit id (as bytes)."""
    ref = (ref or "").strip()
    if ref:
        name = ref.encode("utf-8")
        sha = _lookup(repo, b"refs/heads/" + name)
        if sha is not None:
            logger.debug("Resolved %r as branch", ref)
            return sha
        sha = _lookup(repo, b"refs/tags/" + name)
        if sha is not None:
            logger.debug("Resolved %r as tag", ref)
            return sha

    if not ref or ref == DEFAULT_REF:
        return head_commit(repo)

    if COMMIT_ID.match(ref):
        try:
            obj = repo[ref.lower().encode("ascii")]
        except KeyError:
            obj = None
        if isinstance(obj, Commit):
            logger.debug("Resolved %r as commit id", ref)
            return obj.id

    logger.debug("Ref %r not found, falling back to %s", ref, DEFAULT_REF)
    return head_commit(repo)
