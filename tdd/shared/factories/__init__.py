# Test data factories for repositories, origins and API payloads

from .base import BaseFactory, generate_public_ip, generate_repo_name, generate_tailnet_ip
from .git import Executable, Gitlink, RepoBuilder, build_tree
from .origins import ClientOriginFactory
from .api import (
    lfs_batch_payload,
    lfs_oid,
    public_headers,
    repo_create_payload,
    repo_settings_payload,
    tailnet_headers,
)

__all__ = [
    # Base utilities
    "BaseFactory",
    "generate_repo_name",
    "generate_tailnet_ip",
    "generate_public_ip",
    # Repository builder
    "RepoBuilder",
    "Gitlink",
    "Executable",
    "build_tree",
    # Origin factories
    "ClientOriginFactory",
    # API factories
    "tailnet_headers",
    "public_headers",
    "repo_create_payload",
    "repo_settings_payload",
    "lfs_batch_payload",
    "lfs_oid",
]
