from pydantic import BaseModel, Field


class LFSRef(BaseModel):
    name: str


class LFSObject(BaseModel):
    oid: str
    size: int = Field(ge=0)


class LFSBatchRequest(BaseModel):
    """Git LFS batch API request."""
    operation: str
    transfers: list[str] | None = None
    ref: LFSRef | None = None
    objects: list[LFSObject] = []


class LFSAction(BaseModel):
    href: str
    header: dict[str, str] | None = None
    expires_in: int | None = None


class LFSError(BaseModel):
    code: int
    message: str


class LFSObjectResponse(BaseModel):
    oid: str
    size: int
    authenticated: bool | None = None
    actions: dict[str, LFSAction] | None = None
    error: LFSError | None = None


class LFSBatchResponse(BaseModel):
    transfer: str = "basic"
    objects: list[LFSObjectResponse] = []
