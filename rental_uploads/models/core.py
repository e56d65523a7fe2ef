"""Core models for request/response handling."""

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from rental_uploads.core.errors import ApiError


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"


class UploadFile:
    """Parts of a multipart/form-data request as ordered ``(filename, bytes)`` pairs.

    Parts sharing a filename are kept side by side.
    """

    __slots__ = ("parts",)

    def __init__(self, files: Mapping[str, bytes] | Iterable[tuple[str, bytes]] | None = None) -> None:
        if isinstance(files, Mapping):
            files = files.items()
        self.parts: tuple[tuple[str, bytes], ...] = tuple(files or ())

    def __bool__(self) -> bool:
        return bool(self.parts)

    def __iter__(self):
        return iter(self.parts)

    def __len__(self) -> int:
        return len(self.parts)


class PathModel(BaseModel):
    """Route path parameters validated into a model before the handler runs.

    Handlers annotate a parameter with a subclass; the router fills it from
    ``request.path_params`` and answers with ``invalid_error`` when
    validation fails.
    """

    model_config = ConfigDict(frozen=True)

    invalid_error: ClassVar[type[ApiError] | None] = None
