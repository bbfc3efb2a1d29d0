from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from typing import BinaryIO, Iterator, List
from urllib.parse import quote
import logging
import mimetypes
import os

from app.core.activity_logger import log_activity
from app.core.config import Settings, get_settings
from app.core.errors import FileShareError, FileTooLarge, NoFilesUploaded, StorageIOError, TooManyFiles
from app.core.notifier import ChangeNotifier, get_notifier
from app.core.storage import CHUNK_SIZE, StorageDirectory, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


class UploadResponse(BaseModel):
    message: str
    filenames: List[str]


class MessageResponse(BaseModel):
    message: str


@router.get("/files", response_model=List[str])
def list_files(storage: StorageDirectory = Depends(get_storage)):
    """List the names of all shared files."""
    return storage.list_files()


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    request: Request,
    storage: StorageDirectory = Depends(get_storage),
    notifier: ChangeNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings)
):
    """
    Upload one or more files from the multipart field `files`.

    Each file is stored under its basename and replaces any existing file of
    the same name. A file that fails to save is skipped; the others are kept.
    Connected clients get one update for the whole batch.
    """
    async with request.form() as form:
        uploads = [
            item for item in form.getlist("files")
            if isinstance(item, UploadFile) and item.filename
        ]

        if not uploads:
            raise NoFilesUploaded()
        if len(uploads) > settings.max_upload_files:
            raise TooManyFiles(f"At most {settings.max_upload_files} files can be uploaded at once!")
        for upload in uploads:
            if upload.size is not None and upload.size > settings.max_file_size:
                raise FileTooLarge(f"File too large! The limit is {settings.max_file_size} bytes.")

        filenames = []
        failures = []
        for upload in uploads:
            try:
                name = await run_in_threadpool(
                    storage.write_file, upload.filename, upload.file, settings.max_file_size
                )
            except FileShareError as e:
                logger.warning(f"Skipping uploaded file: {e.message}")
                failures.append(e)
                continue
            filenames.append(name)

    if not filenames:
        raise failures[0]

    await notifier.broadcast()
    log_activity("FILE_UPLOAD", request, {"filenames": filenames, "failed": len(failures)})

    return UploadResponse(message="Files uploaded successfully!", filenames=filenames)


def _content_disposition(name: str) -> str:
    quoted = quote(name)
    if quoted != name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{name}"'


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


@router.get("/download/{filename:path}")
def download_file(filename: str, storage: StorageDirectory = Depends(get_storage)):
    """
    Stream a shared file as an attachment.

    The file is opened before the response starts, so a delete racing with
    the download either wins (404) or the client gets the complete content.
    """
    handle = storage.open_file(filename)
    name = os.path.basename(handle.name)
    try:
        size = os.fstat(handle.fileno()).st_size
    except OSError as e:
        handle.close()
        logger.error(f"Failed to stat {name}: {e}")
        raise StorageIOError("Failed to download file!") from e

    return StreamingResponse(
        _iter_file(handle),
        media_type=mimetypes.guess_type(name)[0] or "application/octet-stream",
        headers={
            "Content-Disposition": _content_disposition(name),
            "Content-Length": str(size),
        },
    )


@router.delete("/delete/{filename:path}", response_model=MessageResponse)
async def delete_file(
    filename: str,
    request: Request,
    storage: StorageDirectory = Depends(get_storage),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    name = await run_in_threadpool(storage.delete_file, filename)

    await notifier.broadcast()
    log_activity("FILE_DELETE", request, {"filename": name})

    return MessageResponse(message="File deleted successfully!")
