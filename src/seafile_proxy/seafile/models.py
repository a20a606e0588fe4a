"""Seafile API data models."""

from dataclasses import dataclass
from typing import Optional, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

UPLOADED_FILE_HASH_SIZE = 40
REPO_ID_SIZE = 36

T = TypeVar("T")


class DirectoryEntry(BaseModel):
    """One entry of a directory listing."""

    id: str
    type: str  # "file" or "dir"
    name: str
    mtime: Optional[int] = None
    size: Optional[int] = None


class DefaultRepo(BaseModel):
    """Response of ``/api2/default-repo/``."""

    exists: bool
    repo_id: Optional[str] = None


class ErrorBody(BaseModel):
    """Error shape Seafile uses across the API."""

    error_msg: str


class AuthToken(BaseModel):
    """Response of ``/api2/auth-token/``."""

    token: Optional[str] = None
    non_field_errors: list[str] = []


@dataclass(frozen=True)
class SeafileSession:
    """Credentials and identifiers resolved once at startup."""

    base_url: str
    token: str
    repo_id: str
    upload_link: str


JsonString = TypeAdapter(str)
DirectoryListing = TypeAdapter(list[DirectoryEntry])
ErrorAdapter = TypeAdapter(ErrorBody)


def decode_variant(adapter: TypeAdapter[T], content: bytes) -> Union[T, ErrorBody, None]:
    """Decode a JSON body as the success shape, falling back to the error shape.

    Returns None when the body matches neither (including invalid JSON).
    """
    try:
        return adapter.validate_json(content)
    except ValidationError:
        pass
    try:
        return ErrorAdapter.validate_json(content)
    except ValidationError:
        return None
