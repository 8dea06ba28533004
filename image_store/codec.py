"""Image codec used to re-encode stored images into another format."""
import io
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from PIL import Image

from config import Settings

from .exceptions import ImageStoreError

logger = logging.getLogger(__name__)

# Canonical format token -> Pillow encoder name
PIL_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "tiff": "TIFF",
    "gif": "GIF",
}

# Pixel modes each encoder accepts without conversion
_ENCODER_MODES = {
    "jpeg": {"1", "L", "RGB", "CMYK"},
    "png": {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"},
    "webp": {"RGB", "RGBA"},
    "gif": {"1", "L", "P", "RGB", "RGBA"},
}


class ConversionError(ImageStoreError):
    """Raised when an image cannot be decoded or re-encoded."""
    pass


class ImageCodec(ABC):
    """Abstract base class for image codecs."""

    @abstractmethod
    def convert(
        self,
        content: bytes,
        target_format: str,
        source_format: Optional[str] = None,
    ) -> bytes:
        """Re-encode an image into another format.

        Args:
            content: Encoded image bytes.
            target_format: Canonical format to encode into.
            source_format: Format the bytes are believed to be in. This is a
                hint only; the bytes are decoded whatever they contain.

        Returns:
            Image bytes encoded as target_format.

        Raises:
            ConversionError: If the bytes cannot be decoded or the target
                format cannot be encoded.
        """
        pass


class PillowCodec(ImageCodec):
    """Codec backed by Pillow."""

    def __init__(self, jpeg_quality: int = 85, webp_quality: int = 80):
        self.jpeg_quality = jpeg_quality
        self.webp_quality = webp_quality

    def convert(
        self,
        content: bytes,
        target_format: str,
        source_format: Optional[str] = None,
    ) -> bytes:
        pil_format = PIL_FORMATS.get(target_format)
        if pil_format is None:
            logger.error(f"No encoder for image format: {target_format}")
            raise ConversionError(f"No encoder for image format: {target_format}")

        logger.debug(
            f"Converting {len(content)} bytes from {source_format or 'unknown'} "
            f"to {target_format}"
        )
        start_time = time.time()

        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                prepared = self._prepare(img, target_format)
                output = io.BytesIO()
                prepared.save(output, format=pil_format, **self._save_options(target_format))
        except Exception as e:
            logger.error(
                f"Failed to convert image from {source_format or 'unknown'} "
                f"to {target_format}: {e}"
            )
            raise ConversionError(
                f"Failed to convert image to {target_format}: {e}"
            ) from e

        converted = output.getvalue()
        elapsed_time = time.time() - start_time
        logger.info(
            f"Converted image to {target_format} in {elapsed_time:.3f}s "
            f"({len(content)} -> {len(converted)} bytes)"
        )
        return converted

    def _prepare(self, img: Image.Image, target_format: str) -> Image.Image:
        """Convert the pixel mode to one the target encoder accepts."""
        allowed = _ENCODER_MODES.get(target_format)
        if allowed is None or img.mode in allowed:
            return img

        has_alpha = "A" in img.getbands() or "transparency" in img.info
        if has_alpha and "RGBA" in allowed:
            return img.convert("RGBA")
        # JPEG has no alpha channel
        return img.convert("RGB")

    def _save_options(self, target_format: str) -> dict[str, object]:
        if target_format == "jpeg":
            return {"quality": self.jpeg_quality}
        if target_format == "webp":
            return {"quality": self.webp_quality}
        if target_format == "png":
            return {"optimize": True}
        return {}


def create_codec(settings: Settings) -> ImageCodec:
    """Factory function to create the image codec based on settings.

    Args:
        settings: Application settings

    Returns:
        ImageCodec instance
    """
    logger.info(
        f"Creating PillowCodec (jpeg_quality={settings.jpeg_quality}, "
        f"webp_quality={settings.webp_quality})"
    )
    return PillowCodec(
        jpeg_quality=settings.jpeg_quality,
        webp_quality=settings.webp_quality,
    )
