"""rental-uploads - upload storage and serving for the rental application."""

from robyn import Robyn

from rental_uploads.api.health import router as health_router
from rental_uploads.api.uploads import router as uploads_router
from rental_uploads.core.lifespan import create_lifespan
from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.core.settings import settings as st
from rental_uploads.events.image_pool import ImagePoolEvent
from rental_uploads.events.storage import UploadStorageEvent
from rental_uploads.middlewares.base import MiddlewareHandler
from rental_uploads.middlewares.files import FileUploadOpenAPIMiddleware

app = Robyn(__file__)

# Lifespan events, in dependency order
lifespan = create_lifespan(app)
lifespan.register(ImagePoolEvent).register(UploadStorageEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(health_router)
app.include_router(uploads_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(FileUploadOpenAPIMiddleware)


def main() -> None:
    logger.info(f"Starting {st.API_NAME}", icon=LogIcon.START, host=st.API_HOST, port=st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
