from enum import Enum
from pydantic import BaseModel, field_validator


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class RepoCreate(BaseModel):
    """Create a new bare repository."""
    name: str
    description: str = ""
    visibility: Visibility = Visibility.PRIVATE

    @field_validator("name", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class RepoSettingsUpdate(BaseModel):
    description: str | None = None
    visibility: Visibility | None = None


class RepoSettingsRead(BaseModel):
    name: str
    description: str = ""
    visibility: Visibility
