"""Pydantic schemas for request/response validation."""

from .image import ImageUploadResponse

__all__ = [
    "ImageUploadResponse",
]
