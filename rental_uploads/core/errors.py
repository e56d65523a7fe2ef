"""HTTP-facing error taxonomy."""

from robyn import Response, status_codes


class ApiError(Exception):
    """Request failure carrying an HTTP status and a public plain-text message.

    The message is the only thing sent to the client. Diagnostic details
    (resolved paths, underlying causes) belong in the logs.
    """

    status_code: int = status_codes.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_response(self) -> Response:
        return Response(
            status_code=self.status_code,
            headers={"content-type": "text/plain; charset=utf-8"},
            description=self.message,
        )


class InvalidRequest(ApiError):
    status_code = status_codes.HTTP_400_BAD_REQUEST
    message = "Invalid file path"


class AccessDenied(ApiError):
    status_code = status_codes.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFound(ApiError):
    status_code = status_codes.HTTP_404_NOT_FOUND
    message = "File not found"


class InternalError(ApiError):
    pass


class InvalidImage(ApiError):
    status_code = status_codes.HTTP_400_BAD_REQUEST
    message = "Invalid image"
