"""
Repository administration endpoints (trusted callers only).
"""
import logging

from fastapi import APIRouter, Depends

from app.config import REPOS_API_PREFIX
from app.dependencies import get_store, require_repo_write, require_trusted
from app.schemas.admin import RepoCreate, RepoSettingsRead, RepoSettingsUpdate, Visibility
from app.services.access import ClientOrigin
from app.services.repo_store import RepoStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix=REPOS_API_PREFIX, tags=["admin"])


def _settings_read(store: RepoStore, repo: str) -> RepoSettingsRead:
    return RepoSettingsRead(
        name=repo,
        description=store.get_description(repo),
        visibility=Visibility.PUBLIC if store.is_public(repo) else Visibility.PRIVATE,
    )


@router.post("", response_model=RepoSettingsRead, status_code=201)
def create_repo(
    payload: RepoCreate,
    origin: ClientOrigin = Depends(require_trusted),
    store: RepoStore = Depends(get_store),
):
    """Create a bare repository, then push to it over the usual git transport."""
    store.create_bare_repo(
        payload.name,
        description=payload.description,
        public=payload.visibility is Visibility.PUBLIC,
    )
    logger.info("Repository %s created by %s", payload.name, origin.client_ip)
    return _settings_read(store, payload.name)


@router.get("/{repo}/settings", response_model=RepoSettingsRead)
def get_repo_settings(repo: str = Depends(require_repo_write), store: RepoStore = Depends(get_store)):
    return _settings_read(store, repo)


@router.patch("/{repo}/settings", response_model=RepoSettingsRead)
def update_repo_settings(
    update: RepoSettingsUpdate,
    repo: str = Depends(require_repo_write),
    store: RepoStore = Depends(get_store),
):
    public = None
    if update.visibility is not None:
        public = update.visibility is Visibility.PUBLIC
    store.update_settings(repo, description=update.description, public=public)
    return _settings_read(store, repo)
