"""Process pool for CPU-bound image encoding."""

import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor

from PIL import Image

from rental_uploads.core.lifespan import BaseEvent
from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.core.settings import settings as st


def create_image_pool(max_workers: int | None = None) -> ProcessPoolExecutor:
    """Spawn-context pool whose workers load every Pillow codec up front."""
    return ProcessPoolExecutor(
        max_workers=max_workers or mp.cpu_count(),
        mp_context=mp.get_context("spawn"),
        initializer=Image.init,
    )


class ImagePoolEvent(BaseEvent[ProcessPoolExecutor]):
    """Owns the pool that re-encodes uploaded images."""

    name = "image_pool"

    async def startup(self) -> ProcessPoolExecutor:
        max_workers = st.MAX_WORKERS or mp.cpu_count()
        logger.info("Creating image pool", icon=LogIcon.IMAGE, max_workers=max_workers)
        return create_image_pool(max_workers=max_workers)

    async def shutdown(self, instance: ProcessPoolExecutor) -> None:
        instance.shutdown(wait=True, cancel_futures=True)
        logger.info("Image pool stopped", icon=LogIcon.COMPLETE)
