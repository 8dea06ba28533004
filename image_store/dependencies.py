"""FastAPI dependency injection configuration."""

import logging
import threading
from typing import Optional

from image_store.codec import ImageCodec, create_codec
from image_store.db import create_db_engine, create_session_factory, init_db
from image_store.repositories import (
    ImageDBRepository,
    ImageRepository,
    InMemoryImageRepository,
)
from image_store.service import ImageService
from image_store.storage.base import StorageClient
from image_store.storage.local import LocalStorageClient
from config import Settings, get_settings

logger = logging.getLogger(__name__)


# Global instance for storage client
_storage_client: StorageClient | None = None

# Global instance for image service
_image_service: ImageService | None = None

# Sync dependencies run in the thread pool, so first use can race
_lock = threading.RLock()


def create_image_repository(settings: Settings) -> Optional[ImageRepository]:
    """Create the image ID index based on configuration.

    This function returns the index implementation selected by the
    INDEX_BACKEND environment variable:
    - "scan": No index; images are found by scanning the storage directory
    - "memory": Uses InMemoryImageRepository (rebuilt from disk on startup)
    - "database": Uses ImageDBRepository (persisted in DATABASE_URL)

    Args:
        settings: Application settings

    Returns:
        Optional[ImageRepository]: The configured index, or None for "scan"
    """
    if settings.index_backend == "database":
        engine = create_db_engine(settings.database_url, echo=settings.database_echo)
        init_db(engine)
        logger.info("Using database repository for the image index")
        return ImageDBRepository(create_session_factory(engine))
    if settings.index_backend == "memory":
        logger.info("Using in-memory repository for the image index")
        return InMemoryImageRepository()
    return None


def get_storage_client() -> StorageClient:
    """Get the storage client, creating it on first use.

    Returns:
        StorageClient: The configured storage client instance

    Raises:
        StorageInitError: If the storage directory cannot be created
    """
    global _storage_client

    with _lock:
        if _storage_client is None:
            settings = get_settings()
            _storage_client = LocalStorageClient(
                storage_root=settings.storage_root,
                repository=create_image_repository(settings),
            )
            logger.info(
                f"Created local storage client with root: {settings.storage_root} "
                f"(index_backend={settings.index_backend})"
            )

    return _storage_client


def get_codec() -> ImageCodec:
    """Get the image codec based on configuration."""
    return create_codec(get_settings())


def get_image_service() -> ImageService:
    """Get the image service, creating it on first use.

    Returns:
        ImageService: The shared image service instance
    """
    global _image_service

    with _lock:
        if _image_service is None:
            _image_service = ImageService(
                storage=get_storage_client(),
                codec=get_codec(),
            )
            logger.info("Created image service")

    return _image_service


def reset_dependencies() -> None:
    """Drop the cached instances so they are rebuilt from current settings.

    This is mainly useful for testing purposes.
    """
    global _storage_client, _image_service
    with _lock:
        _storage_client = None
        _image_service = None
