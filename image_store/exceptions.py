"""Base exception for the image store."""


class ImageStoreError(Exception):
    """Base exception for all errors raised by the image store core."""
    pass
