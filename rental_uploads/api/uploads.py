"""Serving and storing uploaded files under /uploads.

Handlers are registered at the bottom of the module so the undecorated
coroutines stay importable on their own.
"""

from robyn import Response, status_codes

from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.core.router import Router
from rental_uploads.events.storage import Uploads
from rental_uploads.models.core import UploadFile
from rental_uploads.models.uploads import (
    DataUriUpload,
    FileResult,
    StoredUpload,
    StoredUrl,
    UploadPath,
    UploadResponse,
    UploadTarget,
)

router = Router(__file__, prefix="/uploads")

# stored file names are never reused
CACHE_CONTROL = "public, max-age=31536000, immutable"


def file_response(result: FileResult) -> Response:
    return Response(
        status_code=status_codes.HTTP_200_OK,
        headers={
            "content-type": result.content_type,
            "content-length": str(result.length),
            "cache-control": CACHE_CONTROL,
        },
        description=result.content,
    )


def json_response(model, status_code: int) -> Response:
    return Response(
        status_code=status_code,
        headers={"content-type": "application/json"},
        description=model.model_dump_json(),
    )


def get_uploads(global_dependencies: dict) -> Uploads:
    return global_dependencies["state"].uploads


async def serve_upload(path: UploadPath, global_dependencies):
    result = await get_uploads(global_dependencies).resolver.serve(path.segments)
    return file_response(result)


async def upload_images(target: UploadTarget, files: UploadFile, global_dependencies):
    """Store every image part of a multipart request under ``subdirectory``.

    All parts are stored or none is.
    """
    storage = get_uploads(global_dependencies).storage
    urls = await storage.save_images([data for _, data in files], target.subdirectory)
    stored = [StoredUpload(name=name, url=url, size=len(data)) for (name, data), url in zip(files, urls)]

    logger.info("Upload request stored", icon=LogIcon.UPLOAD, count=len(stored), subdirectory=target.subdirectory)
    return json_response(UploadResponse(files=stored), status_codes.HTTP_201_CREATED)


async def upload_data_uri(target: UploadTarget, body: DataUriUpload, global_dependencies):
    """Store a base64 data URI; an existing URL is echoed back with 200."""
    storage = get_uploads(global_dependencies).storage
    url = await storage.save_data_uri(body.data, target.subdirectory)
    if url == body.data:
        return json_response(StoredUrl(url=url), status_codes.HTTP_200_OK)
    return json_response(StoredUrl(url=url), status_codes.HTTP_201_CREATED)


router.get("/*path")(serve_upload)
router.post("/:subdirectory")(upload_images)
router.post("/:subdirectory/data")(upload_data_uri)
