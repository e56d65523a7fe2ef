"""OpenAPI patch documenting multipart/form-data upload endpoints."""

import re

import orjson
from robyn import Request, Response

from rental_uploads.core.logger import LogIcon, logger
from rental_uploads.core.router import FILE_UPLOAD_ENDPOINTS
from rental_uploads.middlewares.base import BaseMiddleware

_ROUTE_PARAM = re.compile(r"[:*](\w+)")

MULTIPART_IMAGE_BODY = {
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "additionalProperties": {
                    "type": "string",
                    "format": "binary",
                    "description": "Image file, stored as WebP",
                },
            }
        }
    },
    "required": True,
}


def openapi_path(endpoint: str) -> str:
    """Robyn route syntax (``/uploads/:subdirectory``) to OpenAPI (``/uploads/{subdirectory}``)."""
    return _ROUTE_PARAM.sub(r"{\1}", endpoint)


def patch_upload_endpoints(document: dict, endpoints: set[str]) -> dict:
    paths = document.get("paths", {})
    for endpoint in endpoints:
        for key in {endpoint, openapi_path(endpoint)}:
            for method, operation in paths.get(key, {}).items():
                if method in ("post", "put", "patch"):
                    operation["requestBody"] = MULTIPART_IMAGE_BODY
    return document


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches /openapi.json so upload endpoints advertise a multipart body."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self) -> None:
        super().__init__(self.endpoints)

    def before(self, request: Request) -> Request:
        return request

    def after(self, response: Response) -> Response:
        if not FILE_UPLOAD_ENDPOINTS:
            return response

        try:
            document = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI document left unpatched", icon=LogIcon.WARNING, error=str(ex))
            return response

        response.description = orjson.dumps(patch_upload_endpoints(document, FILE_UPLOAD_ENDPOINTS)).decode()
        return response
