"""
FastAPI dependencies: store, browser, access gate and the request's origin.

Nothing here is cached across requests except settings.
"""
import ipaddress
from pathlib import Path

from fastapi import Depends, Request

from app.config import get_settings
from app.services.access import AccessDecision, AccessGate, ClientOrigin, OperationKind
from app.services.errors import Forbidden, RepositoryNotFound
from app.services.lfs import LFSStorage
from app.services.repo_browser import RepoBrowser
from app.services.repo_store import RepoStore


def get_store() -> RepoStore:
    return RepoStore(Path(get_settings().repos_path))


def get_browser(store: RepoStore = Depends(get_store)) -> RepoBrowser:
    return RepoBrowser(store, get_settings())


def get_gate(store: RepoStore = Depends(get_store)) -> AccessGate:
    return AccessGate(store, ipaddress.IPv4Network(get_settings().trusted_network))


def get_origin(request: Request) -> ClientOrigin:
    return ClientOrigin(
        remote_addr=request.client.host if request.client else None,
        forwarded_for=request.headers.get("x-forwarded-for"),
        real_ip=request.headers.get("x-real-ip"),
    )


def get_lfs_storage(request: Request) -> LFSStorage | None:
    return getattr(request.app.state, "lfs_storage", None)


def enforce(gate: AccessGate, repo: str | None, origin: ClientOrigin, operation: OperationKind) -> None:
    """Turn a gate decision into RepositoryNotFound / Forbidden."""
    decision = gate.decide(repo, origin, operation)
    if decision is AccessDecision.NOT_FOUND:
        raise RepositoryNotFound(repo)
    if decision is AccessDecision.FORBIDDEN:
        if operation in (OperationKind.WRITE, OperationKind.LFS_UPLOAD):
            raise Forbidden("Access denied - Tailnet required")
        raise Forbidden("Access denied")


def require_read(
    repo: str,
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
) -> str:
    enforce(gate, repo, origin, OperationKind.READ)
    return repo


def require_repo_write(
    repo: str,
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
) -> str:
    enforce(gate, repo, origin, OperationKind.WRITE)
    return repo


def require_trusted(
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
) -> ClientOrigin:
    enforce(gate, None, origin, OperationKind.WRITE)
    return origin
