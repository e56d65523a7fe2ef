"""Upload root setup and the services built on it."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from rental_uploads.core.lifespan import BaseEvent
from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.core.settings import settings as st
from rental_uploads.services.resolver import UploadResolver
from rental_uploads.services.storage import UploadStorage


@dataclass(frozen=True, slots=True)
class Uploads:
    """Resolver and storage sharing one upload root."""

    resolver: UploadResolver
    storage: UploadStorage


def build_uploads(root: Path, executor=None) -> Uploads:
    resolver = UploadResolver(root)
    storage = UploadStorage(
        resolver,
        url_prefix=st.UPLOAD_URL_PREFIX,
        executor=executor,
        max_size=st.IMAGE_MAX_SIZE,
        quality=st.IMAGE_WEBP_QUALITY,
    )
    return Uploads(resolver=resolver, storage=storage)


class UploadStorageEvent(BaseEvent[Uploads]):
    """Creates the upload root once and exposes the services bound to it.

    Registered after ImagePoolEvent so the pool, when present, is used for encoding.
    """

    name = "uploads"

    async def startup(self) -> Uploads:
        root = st.upload_root
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        logger.info("Upload root ready", icon=LogIcon.FILE, root=str(root))
        return build_uploads(root, executor=self.state.get("image_pool"))
