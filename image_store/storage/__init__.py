"""Storage module for image persistence."""

from .base import (
    ImageNotFoundError,
    StorageClient,
    StorageError,
    StorageInitError,
    StoredImage,
)
from .local import LocalStorageClient

__all__ = [
    "StorageClient",
    "LocalStorageClient",
    "StoredImage",
    "StorageError",
    "StorageInitError",
    "ImageNotFoundError",
]
