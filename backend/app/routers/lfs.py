"""
Git LFS endpoints.

Downloads follow read access; uploads require a trusted client even for
public repos. File locking is not supported and always reports no locks.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.dependencies import enforce, get_gate, get_lfs_storage, get_origin
from app.schemas.lfs import LFSBatchRequest
from app.services.access import AccessGate, ClientOrigin, OperationKind
from app.services.lfs import LFS_CONTENT_TYPE, OPERATIONS, LFSStorage, build_batch_response

router = APIRouter(tags=["lfs"])


@router.post("/{repo}.git/info/lfs/objects/batch")
def lfs_batch(
    repo: str,
    batch: LFSBatchRequest,
    origin: ClientOrigin = Depends(get_origin),
    gate: AccessGate = Depends(get_gate),
    storage: LFSStorage | None = Depends(get_lfs_storage),
):
    if batch.operation not in OPERATIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported operation: {batch.operation}")

    operation = OperationKind.LFS_UPLOAD if batch.operation == "upload" else OperationKind.LFS_DOWNLOAD
    enforce(gate, repo, origin, operation)

    if storage is None:
        raise HTTPException(status_code=503, detail="LFS not configured")

    response = build_batch_response(storage, repo, batch)
    return JSONResponse(
        content=response.model_dump(exclude_none=True),
        media_type=LFS_CONTENT_TYPE,
    )


@router.post("/{repo}.git/info/lfs/locks/verify")
def lfs_locks_verify(repo: str):
    return JSONResponse(content={"ours": [], "theirs": []}, media_type=LFS_CONTENT_TYPE)


@router.get("/{repo}.git/info/lfs/locks")
def lfs_locks(repo: str):
    return JSONResponse(content={"locks": []}, media_type=LFS_CONTENT_TYPE)
