"""Models for serving and storing uploaded files."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, Field, field_validator
from robyn import status_codes

from rental_uploads.core.errors import ApiError, InvalidRequest
from rental_uploads.models.core import PathModel


SUBDIRECTORY_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class InvalidUploadTarget(ApiError):
    status_code = status_codes.HTTP_400_BAD_REQUEST
    message = "Invalid upload target"


@dataclass(frozen=True, slots=True)
class FileResult:
    """Bytes of a served file with the metadata sent alongside them."""

    content: bytes
    content_type: str
    length: int


class UploadPath(PathModel):
    """Segments of a ``/uploads/*path`` request, still untrusted."""

    invalid_error = InvalidRequest

    path: tuple[str, ...] = Field(min_length=1)

    @field_validator("path", mode="before")
    @classmethod
    def split_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(unquote(segment) for segment in value.split("/") if segment)
        return value

    @property
    def segments(self) -> tuple[str, ...]:
        return self.path


class UploadTarget(PathModel):
    """Destination subdirectory of an image upload."""

    invalid_error = InvalidUploadTarget

    subdirectory: str = Field(pattern=SUBDIRECTORY_PATTERN)


class StoredUpload(BaseModel):
    name: str
    url: str
    size: int


class UploadResponse(BaseModel):
    files: list[StoredUpload]


class DataUriUpload(BaseModel):
    """JSON body carrying one ``data:image/...;base64,`` URI or an already stored URL."""

    data: str


class StoredUrl(BaseModel):
    url: str
