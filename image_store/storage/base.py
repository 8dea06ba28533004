"""Storage client interface for image persistence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from image_store.exceptions import ImageStoreError


@dataclass(frozen=True)
class StoredImage:
    """An image record as read back from storage.

    Attributes:
        image_id: Identifier the image was stored under.
        content: Raw bytes exactly as they were uploaded.
        extension: Lower-cased file extension the image was stored with.
        format: Canonical format derived from the extension.
    """
    image_id: str
    content: bytes
    extension: str
    format: str


@runtime_checkable
class StorageClient(Protocol):
    """Abstract interface for image storage operations.

    This interface defines the minimal contract for storing and retrieving
    images keyed by their identifier. Implementations can use various
    backends such as the local filesystem or an object store.
    """

    @property
    def storage_root(self) -> Path:
        """Root location the images are stored under."""
        ...

    def put(self, image_id: str, extension: str, content: bytes) -> str:
        """Save image content under the given identifier.

        Args:
            image_id: Unique identifier of the image.
            extension: File extension the image is stored with.
            content: Raw image bytes to store.

        Returns:
            str: Name of the stored file.

        Raises:
            StorageError: If the image cannot be saved.
        """
        ...

    def get(self, image_id: str) -> StoredImage:
        """Read an image by its identifier.

        Args:
            image_id: Unique identifier of the image.

        Returns:
            StoredImage: The stored bytes and their format.

        Raises:
            ImageNotFoundError: If no image exists for the identifier.
            StorageError: If the storage cannot be read.
        """
        ...

    def find_filename(self, image_id: str) -> Optional[str]:
        """Find the name of the file stored for an identifier.

        Returns:
            Optional[str]: The filename, or None if there is none.

        Raises:
            StorageError: If the lookup itself fails.
        """
        ...


class StorageError(ImageStoreError):
    """Base exception for storage-related errors."""
    pass


class ImageNotFoundError(ImageStoreError):
    """Raised when no image exists for an identifier."""

    def __init__(self, image_id: str):
        self.image_id = image_id
        super().__init__(f"Image not found: {image_id}")


class StorageInitError(ImageStoreError):
    """Raised when the storage location cannot be prepared at startup."""
    pass
