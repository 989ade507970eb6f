"""
Read-only repository browsing endpoints.

Every repo-scoped endpoint depends on require_read, which answers 404 for
unknown repos and 403 for private repos seen from an untrusted origin.
"""
import posixpath

from dulwich.patch import is_binary
from fastapi import APIRouter, Depends, Query, Response

from app.config import REPOS_API_PREFIX, get_settings
from app.dependencies import get_browser, get_gate, get_origin, get_store, require_read
from app.schemas.browse import (
    BlobRead,
    CloneUrls,
    CommitDiffRead,
    CommitListRead,
    CommitRead,
    RepoDetail,
    RepoSummaryRead,
    SubmoduleRead,
    TreeListingRead,
)
from app.services.access import AccessGate, ClientOrigin
from app.services.errors import ReferenceUnresolvable
from app.services.repo_browser import RepoBrowser
from app.services.repo_store import RepoStore
from app.services.tree import normalize_path

router = APIRouter(prefix=REPOS_API_PREFIX, tags=["browse"])

MAX_COMMIT_LIMIT = 500


@router.get("", response_model=list[RepoSummaryRead])
def list_repos(
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
    store: RepoStore = Depends(get_store),
):
    """List repositories; private ones only for trusted callers."""
    return store.list_repos(show_private=gate.is_trusted(origin))


@router.get("/{repo}", response_model=RepoDetail)
def get_repo(
    repo: str = Depends(require_read),
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
    store: RepoStore = Depends(get_store),
):
    settings = get_settings()
    is_public = store.is_public(repo)
    clone_urls = CloneUrls()
    if is_public and settings.public_url:
        clone_urls.public = f"{settings.public_url.rstrip('/')}/{repo}.git"
    if gate.is_trusted(origin) and settings.tailnet_url:
        clone_urls.tailnet = f"{settings.tailnet_url.rstrip('/')}/{repo}.git"

    return RepoDetail(
        name=repo,
        description=store.get_description(repo),
        is_public=is_public,
        is_empty=store.is_empty(repo),
        default_branch=store.get_default_branch(repo),
        branches=store.list_branches(repo),
        tags=store.list_tags(repo),
        clone_urls=clone_urls,
    )


@router.get("/{repo}/branches", response_model=list[str])
def list_branches(repo: str = Depends(require_read), store: RepoStore = Depends(get_store)):
    return store.list_branches(repo)


@router.get("/{repo}/tree/{ref}", response_model=TreeListingRead)
@router.get("/{repo}/tree/{ref}/{path:path}", response_model=TreeListingRead)
def get_tree(
    ref: str,
    path: str = "",
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    """Directory listing at ``ref``; empty repos answer with ``is_empty``."""
    try:
        listing = browser.list_entries(repo, ref, path)
    except ReferenceUnresolvable:
        return TreeListingRead(ref=ref, path=normalize_path(path), is_empty=True)
    return TreeListingRead.model_validate(listing, from_attributes=True)


@router.get("/{repo}/blob/{ref}/{path:path}", response_model=BlobRead)
def get_blob(
    ref: str,
    path: str,
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    content = browser.read_file(repo, ref, path)
    path = normalize_path(path)
    binary = is_binary(content)
    return BlobRead(
        name=posixpath.basename(path),
        path=path,
        ref=ref,
        size=len(content),
        is_binary=binary,
        content=None if binary else content.decode("utf-8", errors="replace"),
    )


@router.get("/{repo}/raw/{ref}/{path:path}")
def get_raw(
    ref: str,
    path: str,
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    content = browser.read_file(repo, ref, path)
    return Response(content=content, media_type="application/octet-stream")


@router.get("/{repo}/commits/{ref}", response_model=CommitListRead)
def list_commits(
    ref: str,
    limit: int | None = Query(None, ge=1, le=MAX_COMMIT_LIMIT),
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    try:
        commits = browser.list_commits(repo, ref, limit)
    except ReferenceUnresolvable:
        return CommitListRead(ref=ref, is_empty=True)
    return CommitListRead(
        ref=ref,
        commits=[CommitRead.model_validate(c, from_attributes=True) for c in commits],
    )


@router.get("/{repo}/commit/{commit_id}", response_model=CommitDiffRead)
def get_commit(
    commit_id: str,
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    """A commit with its diff against the first parent."""
    diff = browser.get_commit_diff(repo, commit_id)
    return CommitDiffRead.model_validate(diff, from_attributes=True)


@router.get("/{repo}/submodule/{ref}/{path:path}", response_model=SubmoduleRead)
def get_submodule(
    ref: str,
    path: str,
    repo: str = Depends(require_read),
    browser: RepoBrowser = Depends(get_browser),
):
    info = browser.resolve_submodule(repo, ref, path)
    return SubmoduleRead.model_validate(info, from_attributes=True)
