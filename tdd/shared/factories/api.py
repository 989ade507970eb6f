"""
API request/response factories.

These factories create dictionaries suitable for API request payloads
and the headers that place a request inside or outside the tailnet.
"""
from typing import Any

from faker import Faker

from .base import generate_public_ip, generate_repo_name, generate_tailnet_ip

fake = Faker()


# -----------------------------------------------------------------------------
# Origin Headers
# -----------------------------------------------------------------------------

def tailnet_headers(ip: str | None = None) -> dict[str, str]:
    """Headers a reverse proxy would add for a tailnet client."""
    return {"X-Real-IP": ip or generate_tailnet_ip()}


def public_headers(ip: str | None = None) -> dict[str, str]:
    """Headers a reverse proxy would add for an internet client."""
    return {"X-Real-IP": ip or generate_public_ip()}


# -----------------------------------------------------------------------------
# Admin API Factories
# -----------------------------------------------------------------------------

def repo_create_payload(
    name: str | None = None,
    description: str | None = None,
    visibility: str = "private",
) -> dict[str, Any]:
    """Create a payload for POST /api/repos."""
    return {
        "name": name or generate_repo_name(),
        "description": description if description is not None else fake.sentence(nb_words=5),
        "visibility": visibility,
    }


def repo_settings_payload(**kwargs) -> dict[str, Any]:
    """Create a payload for PATCH /api/repos/{repo}/settings.

    Only includes fields that are explicitly provided.
    """
    valid_fields = {"description", "visibility"}
    return {k: v for k, v in kwargs.items() if k in valid_fields}


# -----------------------------------------------------------------------------
# LFS API Factories
# -----------------------------------------------------------------------------

def lfs_oid() -> str:
    return fake.sha256()


def lfs_batch_payload(operation: str = "download", objects: list[dict] | None = None) -> dict[str, Any]:
    """Create a payload for POST /{repo}.git/info/lfs/objects/batch."""
    if objects is None:
        objects = [{"oid": lfs_oid(), "size": fake.random_int(min=1, max=10_000)}]
    return {
        "operation": operation,
        "transfers": ["basic"],
        "objects": objects,
    }
