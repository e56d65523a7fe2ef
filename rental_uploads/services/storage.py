"""Image uploads: normalize, encode as WebP and store under the upload root."""

import asyncio
import base64
import binascii
import io
import os
import re
import uuid
from collections.abc import Sequence
from concurrent.futures import Executor
from functools import partial

from PIL import Image, ImageOps, UnidentifiedImageError

from rental_uploads.core.errors import InternalError, InvalidImage
from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.models.uploads import SUBDIRECTORY_PATTERN, InvalidUploadTarget
from rental_uploads.services.resolver import UploadResolver

DEFAULT_MAX_SIZE = 1024
DEFAULT_WEBP_QUALITY = 80

_DATA_URI = re.compile(r"^data:image/([a-zA-Z]+);base64,(.+)$", re.DOTALL)


def process_image(raw: bytes, max_size: int = DEFAULT_MAX_SIZE, quality: int = DEFAULT_WEBP_QUALITY) -> bytes:
    """EXIF-rotate, fit inside ``max_size`` square without enlarging, encode WebP.

    Module level so it can be shipped to a process pool.
    """
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as ex:
        raise InvalidImage from ex

    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "RGBA"):
        has_alpha = img.mode in ("LA", "PA") or "transparency" in img.info
        img = img.convert("RGBA" if has_alpha else "RGB")

    # thumbnail() never enlarges and keeps the aspect ratio
    img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)

    out = io.BytesIO()
    img.save(out, format="WEBP", quality=quality)
    return out.getvalue()


def decode_data_uri(data: str) -> bytes:
    matches = _DATA_URI.match(data)
    if not matches:
        raise InvalidImage("Invalid base64 image string provided.")
    try:
        return base64.b64decode(matches.group(2), validate=True)
    except binascii.Error as ex:
        raise InvalidImage("Invalid base64 image string provided.") from ex


class UploadStorage:
    """Writes processed images beneath the resolver's root and removes them again."""

    def __init__(
        self,
        resolver: UploadResolver,
        url_prefix: str = "/uploads",
        executor: Executor | None = None,
        max_size: int = DEFAULT_MAX_SIZE,
        quality: int = DEFAULT_WEBP_QUALITY,
    ) -> None:
        self.resolver = resolver
        self.url_prefix = "/" + url_prefix.strip("/")
        self.executor = executor
        self.max_size = max_size
        self.quality = quality

    async def _encode(self, raw: bytes) -> bytes:
        task = partial(process_image, raw, self.max_size, self.quality)
        if self.executor is None:
            return await asyncio.to_thread(task)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, task)

    def target_directory(self, subdirectory: str) -> str:
        """Absolute directory for ``subdirectory``; only simple names are accepted."""
        if not re.fullmatch(SUBDIRECTORY_PATTERN, subdirectory or ""):
            raise InvalidUploadTarget
        return self.resolver.resolve([subdirectory])

    async def _make_directory(self, dir_path: str) -> None:
        try:
            await asyncio.to_thread(os.makedirs, dir_path, exist_ok=True)
        except OSError as ex:
            logger.error("Could not create upload directory", icon=LogIcon.ERROR, path=dir_path, error=repr(ex))
            raise InternalError from ex

    async def _write(self, dir_path: str, processed: bytes) -> str:
        filename = f"{uuid.uuid4()}.webp"
        file_path = os.path.join(dir_path, filename)
        try:
            await asyncio.to_thread(_write_file, file_path, processed)
        except OSError as ex:
            logger.error("Error writing upload", icon=LogIcon.ERROR, path=file_path, error=repr(ex))
            raise InternalError from ex

        logger.info("Stored upload", icon=LogIcon.UPLOAD, path=file_path, size=len(processed))
        return filename

    async def save_image(self, raw: bytes, subdirectory: str) -> str:
        """Store ``raw`` as ``<subdirectory>/<uuid>.webp`` and return its public URL."""
        urls = await self.save_images([raw], subdirectory)
        return urls[0]

    async def save_images(self, raws: Sequence[bytes], subdirectory: str) -> list[str]:
        """Store several images in one go, returning their public URLs in order.

        Every image is encoded before anything touches the disk. If a write
        fails, the files already written by this call are removed again.
        """
        dir_path = self.target_directory(subdirectory)
        processed = [await self._encode(raw) for raw in raws]

        await self._make_directory(dir_path)
        urls: list[str] = []
        try:
            for content in processed:
                filename = await self._write(dir_path, content)
                urls.append(f"{self.url_prefix}/{subdirectory}/{filename}")
        except InternalError:
            for url in urls:
                await self.delete(url)
            raise
        return urls

    async def save_data_uri(self, data: str, subdirectory: str) -> str:
        """Store a ``data:image/...;base64,`` URI. Anything else is an existing URL and comes back as is."""
        if not data or not data.startswith("data:image/"):
            return data
        return await self.save_image(decode_data_uri(data), subdirectory)

    def relative_path(self, public_url: str | None) -> list[str] | None:
        """Segments of a public URL below the prefix, ``None`` for foreign URLs."""
        if not public_url or not public_url.startswith(self.url_prefix + "/"):
            return None
        return [segment for segment in public_url[len(self.url_prefix):].split("/") if segment]

    async def delete(self, public_url: str | None) -> bool:
        """Remove the file behind ``public_url``. True only if something was deleted."""
        segments = self.relative_path(public_url)
        if not segments:
            return False
        return await self.remove(segments)

    async def remove(self, segments: Sequence[str]) -> bool:
        file_path = self.resolver.resolve(segments)
        try:
            await asyncio.to_thread(os.unlink, file_path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return False
        except OSError as ex:
            # best-effort cleanup
            logger.error("Failed to delete upload", icon=LogIcon.ERROR, path=file_path, error=repr(ex))
            return False

        logger.info("Deleted upload", icon=LogIcon.DELETE, path=file_path)
        return True


def _write_file(path: str, content: bytes) -> None:
    with open(path, "wb") as file_handle:
        file_handle.write(content)
