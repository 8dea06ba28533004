"""Image index repositories mapping image IDs to stored filenames."""

import logging
import threading
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from image_store.models.db import ImageFile

logger = logging.getLogger(__name__)


class ImageRepository(Protocol):
    """Interface for the image ID index.

    This repository manages the mapping between image IDs and the names of
    the files they are stored in, so lookups do not have to scan the storage
    directory. Implementations can use various backends such as in-memory
    or database.
    """

    def add_image(self, image_id: str, filename: str) -> None:
        """Record the file an image is stored in.

        Args:
            image_id: Unique identifier for the image.
            filename: Name of the stored file, relative to the storage root.

        Raises:
            ValueError: If the image ID is already recorded.
        """
        ...

    def get_filename(self, image_id: str) -> str:
        """Get the stored filename for an image.

        Args:
            image_id: Unique identifier for the image.

        Returns:
            str: Name of the stored file.

        Raises:
            KeyError: If image_id does not exist.
        """
        ...

    def exists(self, image_id: str) -> bool:
        """Check if an image exists in the repository."""
        ...

    def count(self) -> int:
        """Get the total number of images in the repository."""
        ...


class InMemoryImageRepository(ImageRepository):
    """In-memory implementation of ImageRepository.

    This implementation stores the index in a simple dictionary. Data is not
    persisted, so the storage client rebuilds it from the storage directory
    on startup.
    """

    def __init__(self):
        """Initialize the in-memory repository."""
        self._storage: dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("Initialized InMemoryImageRepository")

    def add_image(self, image_id: str, filename: str) -> None:
        if not image_id:
            raise ValueError("Image ID cannot be empty")

        with self._lock:
            if image_id in self._storage:
                raise ValueError(
                    f"Image already recorded. "
                    f"ID: {image_id}, existing file: {self._storage[image_id]}"
                )
            self._storage[image_id] = filename

        logger.debug(f"Added image: {image_id} -> {filename}")

    def get_filename(self, image_id: str) -> str:
        if image_id not in self._storage:
            raise KeyError(f"Image with ID {image_id} not found")

        filename = self._storage[image_id]
        logger.debug(f"Retrieved filename for image {image_id}: {filename}")
        return filename

    def exists(self, image_id: str) -> bool:
        return image_id in self._storage

    def count(self) -> int:
        return len(self._storage)

    def clear(self) -> None:
        """Clear all entries from the repository.

        This is mainly useful for testing purposes.
        """
        with self._lock:
            self._storage.clear()
        logger.debug("Cleared all images from repository")


class ImageDBRepository(ImageRepository):
    """SQLAlchemy-based implementation of ImageRepository.

    This implementation stores the index in a database using SQLAlchemy, so
    it survives application restarts. Every call opens its own session from
    the session factory, which makes one instance safe to share between
    request threads.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize the repository with a session factory.

        Args:
            session_factory: SQLAlchemy sessionmaker bound to the index database
        """
        self.session_factory = session_factory
        logger.info("Initialized ImageDBRepository")

    def add_image(self, image_id: str, filename: str) -> None:
        if not image_id:
            raise ValueError("Image ID cannot be empty")

        with self.session_factory() as db:
            try:
                db.add(ImageFile(id=image_id, filename=filename))
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.error(f"Failed to record image {image_id}: {e}")
                raise ValueError(f"Image already recorded. ID: {image_id}") from e
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to record image {image_id}: {e}")
                raise

        logger.info(f"Created image record: {image_id} -> {filename}")

    def get_filename(self, image_id: str) -> str:
        with self.session_factory() as db:
            image = db.get(ImageFile, image_id)
            if image is None:
                raise KeyError(f"Image with ID {image_id} not found")
            filename = image.filename

        logger.debug(f"Retrieved filename for image {image_id}: {filename}")
        return filename

    def exists(self, image_id: str) -> bool:
        with self.session_factory() as db:
            return db.query(ImageFile).filter(ImageFile.id == image_id).count() > 0

    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(ImageFile).count()
