from app.schemas.admin import RepoCreate, RepoSettingsRead, RepoSettingsUpdate, Visibility
from app.schemas.browse import (
    BlobRead,
    CommitDiffRead,
    CommitListRead,
    CommitRead,
    RepoDetail,
    RepoSummaryRead,
    SubmoduleRead,
    TreeListingRead,
)
from app.schemas.lfs import LFSBatchRequest, LFSBatchResponse

__all__ = [
    "RepoCreate",
    "RepoSettingsRead",
    "RepoSettingsUpdate",
    "Visibility",
    "BlobRead",
    "CommitDiffRead",
    "CommitListRead",
    "CommitRead",
    "RepoDetail",
    "RepoSummaryRead",
    "SubmoduleRead",
    "TreeListingRead",
    "LFSBatchRequest",
    "LFSBatchResponse",
]
