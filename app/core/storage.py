"""
Storage directory manager.

A single directory on disk is the source of truth for every shared file.
Nothing is cached in memory: each listing is a fresh read of the directory.
All client-supplied filenames pass through resolve_path before any disk
access, which keeps every operation inside the storage root.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional

from app.core.config import get_settings
from app.core.errors import (
    FileTooLarge,
    InvalidFilename,
    SharedFileNotFound,
    StartupError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

# Uploads are written here first and renamed into place once complete
STAGING_DIR_NAME = ".incoming"
CHUNK_SIZE = 1024 * 1024


class StorageDirectory:
    def __init__(self, root):
        self.root = Path(root).expanduser().resolve()
        self.staging_dir = self.root / STAGING_DIR_NAME

    def ensure_directory(self) -> None:
        """
        Create the storage root (and missing parents) if it does not exist.

        Raises:
            StartupError: the directory cannot be created or is not usable.
                This is not retried; the server must not start.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.staging_dir.mkdir(exist_ok=True)
            # Uploads cut short by a crash or restart are never completed
            leftovers = list(self.staging_dir.glob("*.part"))
        except OSError as e:
            raise StartupError(f"Cannot create storage directory {self.root}: {e}") from e

        for leftover in leftovers:
            self._discard(str(leftover))
        if leftovers:
            logger.info(f"Removed {len(leftovers)} unfinished uploads")

        if not os.access(self.root, os.R_OK | os.W_OK | os.X_OK):
            raise StartupError(f"Storage directory {self.root} is not readable and writable")

        logger.info(f"Storage directory ready at {self.root}")

    def list_files(self) -> List[str]:
        """Names of the regular files currently in the storage root, in enumeration order."""
        try:
            with os.scandir(self.root) as entries:
                return [
                    entry.name for entry in entries
                    if entry.name != STAGING_DIR_NAME and entry.is_file()
                ]
        except OSError as e:
            logger.error(f"Failed to read storage directory: {e}")
            raise StorageIOError("Unable to list files!") from e

    def resolve_path(self, name: str) -> Path:
        """
        Map a client-supplied filename to an absolute path inside the storage root.

        Directory components are stripped ('/' and '\\' are both treated as
        separators), leaving only the basename.
        """
        basename = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
        if basename in ("", ".", "..", STAGING_DIR_NAME) or "\x00" in basename:
            raise InvalidFilename()

        path = self.root / basename
        if path.parent != self.root:
            raise InvalidFilename()
        return path

    def write_file(self, name: str, source: BinaryIO, max_size: Optional[int] = None) -> str:
        """
        Copy `source` into the storage root under the sanitized basename of `name`.

        An existing file with the same name is replaced. The data is staged
        first and renamed into place, so an interrupted or rejected upload
        never shows up in a listing.

        Returns:
            The basename the file was stored under.
        """
        target = self.resolve_path(name)
        staged = None
        try:
            self.staging_dir.mkdir(exist_ok=True)
            fd, staged = tempfile.mkstemp(dir=self.staging_dir, suffix=".part")
            written = 0
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_size is not None and written > max_size:
                        raise FileTooLarge()
                    out.write(chunk)
            os.replace(staged, target)
        except OSError as e:
            self._discard(staged)
            logger.error(f"Failed to write {target.name}: {e}")
            raise StorageIOError("Failed to save file!") from e
        except BaseException:
            self._discard(staged)
            raise

        logger.debug(f"Stored {target.name} ({written} bytes)")
        return target.name

    def open_file(self, name: str) -> BinaryIO:
        """
        Open an existing shared file for reading.

        The caller streams from the returned handle and must close it. Once
        open, the content stays readable even if the file is deleted meanwhile.
        """
        path = self.resolve_path(name)
        if not path.is_file():
            raise SharedFileNotFound()
        try:
            return open(path, "rb")
        except FileNotFoundError:
            raise SharedFileNotFound() from None
        except OSError as e:
            logger.error(f"Failed to open {path.name}: {e}")
            raise StorageIOError("Failed to download file!") from e

    def delete_file(self, name: str) -> str:
        path = self.resolve_path(name)
        if not path.is_file():
            raise SharedFileNotFound()
        try:
            path.unlink()
        except FileNotFoundError:
            # Lost a race with a concurrent delete
            raise SharedFileNotFound() from None
        except OSError as e:
            logger.error(f"Failed to delete {path.name}: {e}")
            raise StorageIOError("Failed to delete file!") from e
        return path.name

    def _discard(self, staged: Optional[str]) -> None:
        if staged is None:
            return
        try:
            os.remove(staged)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove staged upload {staged}: {e}")


# Lazy initialization - only create when needed
_storage = None


def get_storage() -> StorageDirectory:
    """Storage directory dependency."""
    global _storage
    if _storage is None:
        _storage = StorageDirectory(get_settings().storage_dir)
    return _storage
