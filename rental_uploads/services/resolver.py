"""Safe resolution of untrusted upload paths beneath a fixed root.

Two layers stand between a request and the filesystem:

1. every segment is normalized and loses any leading ``../`` (or ``..\\``)
   run before it is joined;
2. the joined, normalized path must still sit inside the root.

The second check is the security boundary. A bare ``..`` segment has no
trailing separator, survives the first layer and is caught only by it.
"""

import asyncio
import mimetypes
import os
import re
from collections.abc import Sequence

from rental_uploads.core.errors import AccessDenied, InternalError, InvalidRequest, NotFound
from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.models.uploads import FileResult

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_LEADING_PARENT_REFS = re.compile(r"^(\.\.[/\\])+")

mimetypes.add_type("image/webp", ".webp")


def sanitize_segment(segment: str) -> str:
    """Collapse ``.``/``..`` inside a segment and drop leading parent references."""
    return _LEADING_PARENT_REFS.sub("", os.path.normpath(segment))


def guess_content_type(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


class UploadResolver:
    """Maps request segments to files under ``root`` and reads them."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = os.path.normpath(os.fspath(root))
        if not os.path.isabs(self._root):
            raise ValueError(f"Upload root must be absolute: {self._root}")

    @property
    def root(self) -> str:
        return self._root

    def contains(self, path: str) -> bool:
        root = self._root.rstrip(os.sep) + os.sep
        return path == self._root or path.startswith(root)

    def resolve(self, segments: Sequence[str]) -> str:
        """Return the absolute path for ``segments``, or raise if it leaves the root."""
        if isinstance(segments, (str, bytes)) or not isinstance(segments, Sequence) or not segments:
            raise InvalidRequest
        if not all(isinstance(segment, str) for segment in segments):
            raise InvalidRequest

        cleaned = [sanitize_segment(segment) for segment in segments]
        resolved = os.path.normpath(os.sep.join([self._root, *cleaned]))

        if not self.contains(resolved):
            logger.warning("Upload path escaped root", icon=LogIcon.FORBIDDEN, path=resolved)
            raise AccessDenied
        return resolved

    async def serve(self, segments: Sequence[str]) -> FileResult:
        """Read the file addressed by ``segments``. Attempted exactly once."""
        path = self.resolve(segments)

        try:
            content = await asyncio.to_thread(_read_file, path)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            raise NotFound from None
        except OSError as ex:
            logger.error("Error reading upload", icon=LogIcon.ERROR, path=path, error=repr(ex))
            raise InternalError from ex

        return FileResult(content=content, content_type=guess_content_type(path), length=len(content))


def _read_file(path: str) -> bytes:
    with open(path, "rb") as file_handle:
        return file_handle.read()
