"""
Error taxonomy for the file sharing server.

Every error raised while serving a request derives from FileShareError and
carries the HTTP status and the message shown to the client. Messages never
include filesystem paths; the underlying OSError is logged instead.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FileShareError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error!"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class SharedFileNotFound(FileShareError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "File not found!"


class InvalidFilename(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid filename!"


class NoFilesUploaded(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No files uploaded!"


class TooManyFiles(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Too many files uploaded!"


class FileTooLarge(FileShareError):
    status_code = 413
    message = "File too large!"


class StorageIOError(FileShareError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Storage operation failed!"


class StartupError(Exception):
    """The storage root could not be prepared; the server must not start."""


async def file_share_error_handler(request: Request, exc: FileShareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
