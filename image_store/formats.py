"""Image format normalization and validation."""

from pathlib import PurePath

from .exceptions import ImageStoreError

# Formats the service accepts on upload and produces on conversion
CANONICAL_FORMATS = frozenset({"jpeg", "png", "webp", "tiff", "gif"})

FORMAT_ALIASES = {
    "jpg": "jpeg",
    "jpe": "jpeg",
    "tif": "tiff",
}

MIME_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "tiff": "image/tiff",
    "gif": "image/gif",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UnsupportedFormatError(ImageStoreError, ValueError):
    """Raised when a format token is not in the canonical format set."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Unsupported image format: {token!r}")


def normalize_format(token: str) -> str:
    """Map a user-supplied format token to its canonical spelling.

    Tokens are trimmed and lower-cased, then aliases such as ``jpg`` are
    mapped onto their canonical name. Unknown tokens are returned lower-cased
    rather than rejected; use :func:`is_allowed_format` to validate.

    Args:
        token: Format name as given by a user or a file extension.

    Returns:
        str: The canonical format token.
    """
    lowered = token.strip().lower()
    return FORMAT_ALIASES.get(lowered, lowered)


def is_allowed_format(canonical: str) -> bool:
    """Check whether a normalized format token is in the canonical set."""
    return canonical in CANONICAL_FORMATS


def extension_of(filename: str) -> str:
    """Get the lower-cased extension of a filename, without the dot.

    Returns an empty string if the filename has no extension.
    """
    return PurePath(filename).suffix.lstrip(".").lower()


def content_type_for(fmt: str) -> str:
    """Get the MIME type for a canonical format token."""
    return MIME_TYPES.get(fmt, DEFAULT_CONTENT_TYPE)
