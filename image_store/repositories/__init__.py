"""Repository implementations for the image ID index."""

from .image import ImageDBRepository, ImageRepository, InMemoryImageRepository

__all__ = [
    "ImageRepository",
    "InMemoryImageRepository",
    "ImageDBRepository",
]
