"""Local filesystem implementation of StorageClient."""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from image_store.formats import normalize_format
from image_store.repositories import ImageRepository

from .base import (
    ImageNotFoundError,
    StorageClient,
    StorageError,
    StorageInitError,
    StoredImage,
)

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".upload-"
TEMP_SUFFIX = ".tmp"


class LocalStorageClient(StorageClient):
    """Local filesystem storage implementation.

    Stores each image as ``<image_id>.<extension>`` in a single flat
    directory. Files are written to a hidden temporary file first and then
    renamed into place, so a reader never sees a partially written image.

    Without a repository, an image is found by scanning the directory for
    the one filename that starts with its ID. That costs O(n) per lookup;
    pass an ImageRepository to resolve IDs through an index instead.
    """

    def __init__(
        self,
        storage_root: str | Path,
        repository: Optional[ImageRepository] = None,
    ):
        """Initialize local storage client.

        Args:
            storage_root: Root directory for storing images. It is created,
                         along with any missing parents, if it does not exist.
            repository: Optional ID index used instead of directory scans.

        Raises:
            StorageInitError: If the storage directory cannot be created.
        """
        self._storage_root = Path(storage_root)
        self.repository = repository

        self._ensure_storage_dir()
        if self.repository is not None:
            self._sync_repository()
        logger.info(f"Initialized LocalStorageClient with root: {self._storage_root}")

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directory exists."""
        try:
            self._storage_root.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured storage directory exists: {self._storage_root}")
        except OSError as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise StorageInitError(f"Failed to create storage directory: {e}") from e

    def _sync_repository(self) -> None:
        """Record files already on disk that the repository does not know about."""
        added = 0
        try:
            for path in self._storage_root.iterdir():
                name = path.name
                if name.startswith(".") or "." not in name or not path.is_file():
                    continue
                image_id = name.split(".", 1)[0]
                if not self.repository.exists(image_id):
                    self.repository.add_image(image_id, name)
                    added += 1
        except Exception as e:
            logger.error(f"Failed to index storage directory: {e}")
            raise StorageInitError(f"Failed to index storage directory: {e}") from e

        if added:
            logger.info(f"Indexed {added} existing images from {self._storage_root}")

    def put(self, image_id: str, extension: str, content: bytes) -> str:
        """Save image content to the local filesystem.

        Args:
            image_id: Unique identifier of the image.
            extension: File extension, with or without a leading dot.
            content: Raw image bytes to store.

        Returns:
            str: Name of the stored file.

        Raises:
            StorageError: If the image cannot be saved.
        """
        if not image_id:
            raise ValueError("Image ID cannot be empty")
        extension = extension.lstrip(".").lower()
        if not extension:
            raise ValueError("Image extension cannot be empty")

        filename = f"{image_id}.{extension}"
        file_path = self._storage_root / filename

        try:
            fd, temp_name = tempfile.mkstemp(
                dir=self._storage_root, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX
            )
        except OSError as e:
            logger.error(f"Failed to save image {image_id}: {e}")
            raise StorageError(f"Failed to save image: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, file_path)
        except OSError as e:
            logger.error(f"Failed to save image {image_id}: {e}")
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to save image: {e}") from e

        logger.debug(f"Saved image to: {file_path}")

        if self.repository is not None:
            try:
                self.repository.add_image(image_id, filename)
            except Exception as e:
                logger.error(f"Failed to index image {image_id}: {e}")
                raise StorageError(f"Failed to index image: {e}") from e

        return filename

    def find_filename(self, image_id: str) -> Optional[str]:
        """Find the file stored for an image ID.

        Args:
            image_id: Unique identifier of the image.

        Returns:
            Optional[str]: The filename, or None if no image has this ID.

        Raises:
            StorageError: If the directory or index cannot be read.
        """
        if not image_id or image_id.startswith("."):
            return None

        if self.repository is not None:
            try:
                return self.repository.get_filename(image_id)
            except KeyError:
                return None
            except Exception as e:
                logger.error(f"Failed to look up image {image_id} in index: {e}")
                raise StorageError(f"Failed to look up image: {e}") from e

        prefix = f"{image_id}."
        try:
            for path in self._storage_root.iterdir():
                if path.name.startswith(prefix):
                    return path.name
        except OSError as e:
            logger.error(f"Failed to read storage directory {self._storage_root}: {e}")
            raise StorageError(f"Failed to read storage directory: {e}") from e

        return None

    def get(self, image_id: str) -> StoredImage:
        """Read an image from the local filesystem.

        Args:
            image_id: Unique identifier of the image.

        Returns:
            StoredImage: Stored bytes with the extension and format they were
                stored with.

        Raises:
            ImageNotFoundError: If no image has this ID.
            StorageError: If the image cannot be read.
        """
        filename = self.find_filename(image_id)
        if filename is None:
            logger.warning(f"Image not found: {image_id}")
            raise ImageNotFoundError(image_id)

        file_path = self._storage_root / filename
        try:
            content = file_path.read_bytes()
        except FileNotFoundError:
            logger.warning(f"Image file missing for {image_id}: {file_path}")
            raise ImageNotFoundError(image_id)
        except OSError as e:
            logger.error(f"Failed to read image from {file_path}: {e}")
            raise StorageError(f"Failed to read image: {e}") from e

        extension = filename[len(image_id) + 1:]
        logger.debug(f"Successfully read image from: {file_path}")
        return StoredImage(
            image_id=image_id,
            content=content,
            extension=extension,
            format=normalize_format(extension),
        )
