"""
Access gate - per-request authorization from repo visibility and client origin.

Read access: public repo or trusted client.
Write/admin access: trusted client only.
LFS download follows read access; LFS upload needs a trusted client.

Decisions are recomputed on every call; proxy headers can differ per request.
"""
import ipaddress
import logging
from dataclasses import dataclass
from enum import Enum

from app.services.repo_store import RepoStore
from app.services.tailnet import TRUSTED_NETWORK, get_client_ip, is_tailnet_ip

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    READ = "read"
    WRITE = "write"
    LFS_DOWNLOAD = "lfs-download"
    LFS_UPLOAD = "lfs-upload"


class AccessDecision(Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ClientOrigin:
    """Where a request came from, as seen by this server."""
    remote_addr: str | None = None
    forwarded_for: str | None = None
    real_ip: str | None = None

    @property
    def client_ip(self) -> str:
        return get_client_ip(self.remote_addr, self.forwarded_for, self.real_ip)


class AccessGate:
    """Combines repository visibility with the client's network origin."""

    def __init__(self, store: RepoStore, trusted_network: ipaddress.IPv4Network = TRUSTED_NETWORK):
        self.store = store
        self.trusted_network = trusted_network

    def is_trusted(self, origin: ClientOrigin) -> bool:
        return is_tailnet_ip(origin.client_ip, self.trusted_network)

    def decide(self, repo_name: str | None, origin: ClientOrigin, operation: OperationKind) -> AccessDecision:
        """Decide ``operation`` on ``repo_name`` (None for repo-less admin actions)."""
        if repo_name is not None and not self.store.repo_exists(repo_name):
            return AccessDecision.NOT_FOUND

        trusted = self.is_trusted(origin)
        if operation in (OperationKind.WRITE, OperationKind.LFS_UPLOAD):
            allowed = trusted
        else:
            allowed = trusted or (repo_name is not None and self.store.is_public(repo_name))

        logger.debug(
            "%s on %s from %s (trusted=%s): %s",
            operation.value, repo_name, origin.client_ip, trusted, allowed,
        )
        return AccessDecision.ALLOWED if allowed else AccessDecision.FORBIDDEN

    def is_authorized(self, repo_name: str | None, origin: ClientOrigin, operation: OperationKind) -> bool:
        return self.decide(repo_name, origin, operation) is AccessDecision.ALLOWED
