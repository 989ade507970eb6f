"""
Git LFS batch handling.

Presigned URL issuance belongs to an external object storage collaborator;
this module only builds object keys and the batch response around it.
"""
import logging
import re
from typing import Protocol

from app.schemas.lfs import (
    LFSAction,
    LFSBatchRequest,
    LFSBatchResponse,
    LFSError,
    LFSObjectResponse,
)

logger = logging.getLogger(__name__)

LFS_CONTENT_TYPE = "application/vnd.git-lfs+json"
ACTION_EXPIRES_IN = 3600
OPERATIONS = ("download", "upload")

_OID = re.compile(r"^[0-9a-f]{64}$")


class LFSStorage(Protocol):
    """Object storage able to hand out presigned transfer URLs."""

    def presign_upload(self, key: str, size: int) -> str:
        ...

    def presign_download(self, key: str) -> str | None:
        """Presigned GET URL, or None when the object does not exist."""
        ...


def object_key(repo_name: str, oid: str) -> str:
    """Storage key layout: ``{repo}/{oid[0:2]}/{oid[2:4]}/{oid}``."""
    return f"{repo_name}/{oid[:2]}/{oid[2:4]}/{oid}"


def build_batch_response(storage: LFSStorage, repo_name: str, request: LFSBatchRequest) -> LFSBatchResponse:
    response = LFSBatchResponse(transfer="basic")
    for obj in request.objects:
        item = LFSObjectResponse(oid=obj.oid, size=obj.size)
        response.objects.append(item)

        if not _OID.match(obj.oid):
            item.error = LFSError(code=422, message="Invalid object id")
            continue

        key = object_key(repo_name, obj.oid)
        try:
            if request.operation == "upload":
                href = storage.presign_upload(key, obj.size)
            else:
                href = storage.presign_download(key)
        except Exception as e:
            logger.error("LFS %s presign failed for %s: %s", request.operation, key, e)
            item.error = LFSError(code=500, message=f"Failed to generate {request.operation} URL")
            continue

        if href is None:
            item.error = LFSError(code=404, message="Object not found")
            continue
        item.actions = {request.operation: LFSAction(href=href, expires_in=ACTION_EXPIRES_IN)}
    return response
