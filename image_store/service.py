"""Image service: stores uploads and serves them back, converting on read."""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .codec import ImageCodec
from .formats import (
    UnsupportedFormatError,
    content_type_for,
    extension_of,
    is_allowed_format,
    normalize_format,
)
from .identifiers import allocate_image_id
from .storage.base import StorageClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievedImage:
    """Image bytes returned to a caller, with the format they are encoded in."""
    content: bytes
    format: str

    @property
    def content_type(self) -> str:
        return content_type_for(self.format)


class ImageService:
    """Stores uploaded images and serves them back in a requested format.

    Stored images are never modified. A conversion requested on read is
    done per request and its result is not persisted. The service holds no
    locks; concurrent calls for different images are independent.
    """

    def __init__(
        self,
        storage: StorageClient,
        codec: ImageCodec,
        id_allocator: Callable[[], str] = allocate_image_id,
    ):
        """Initialize the service.

        Args:
            storage: Storage client holding the image files.
            codec: Codec used for format conversion.
            id_allocator: Callable returning a new unique image ID.
        """
        self.storage = storage
        self.codec = codec
        self.id_allocator = id_allocator

    def store(self, original_filename: str, content: bytes) -> str:
        """Store an uploaded image.

        The image keeps the extension of its original filename, which is
        trusted as the format the bytes are encoded in.

        Args:
            original_filename: Filename the image was uploaded with.
            content: Raw image bytes.

        Returns:
            str: The new image ID.

        Raises:
            ValueError: If the content is empty.
            UnsupportedFormatError: If the filename extension is not a
                supported image format.
            StorageError: If the image cannot be saved.
        """
        if not content:
            raise ValueError("Image content cannot be empty")

        extension = extension_of(original_filename)
        if not is_allowed_format(normalize_format(extension)):
            logger.warning(f"Rejected upload {original_filename!r}: unsupported file type")
            raise UnsupportedFormatError(extension)

        image_id = self.id_allocator()
        self.storage.put(image_id, extension, content)
        logger.info(
            f"Stored image {image_id} ({original_filename}, {len(content)} bytes)"
        )
        return image_id

    def retrieve(self, image_id: str, requested_format: Optional[str] = None) -> RetrievedImage:
        """Retrieve an image, converting it if another format is requested.

        The requested format is validated before the codec is used, and no
        conversion happens when it matches the stored format.

        Args:
            image_id: ID returned by :meth:`store`.
            requested_format: Optional format token, such as ``png`` or ``jpg``.

        Returns:
            RetrievedImage: The image bytes and their format.

        Raises:
            ImageNotFoundError: If no image has this ID.
            StorageError: If the storage cannot be read.
            UnsupportedFormatError: If the requested format is not supported.
            ConversionError: If the image cannot be converted.
        """
        stored = self.storage.get(image_id)

        if not requested_format:
            logger.debug(f"Serving image {image_id} as stored ({stored.format})")
            return RetrievedImage(content=stored.content, format=stored.format)

        target_format = normalize_format(requested_format)
        if not is_allowed_format(target_format):
            logger.warning(f"Rejected request for image {image_id} in format {requested_format!r}")
            raise UnsupportedFormatError(requested_format)

        if target_format == stored.format:
            logger.debug(f"Image {image_id} already stored as {target_format}")
            return RetrievedImage(content=stored.content, format=stored.format)

        converted = self.codec.convert(
            stored.content, target_format, source_format=stored.format
        )
        logger.info(f"Converted image {image_id} from {stored.format} to {target_format}")
        return RetrievedImage(content=converted, format=target_format)
