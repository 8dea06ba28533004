"""Database models for the image store service."""

from .db import Base, ImageFile

__all__ = ["Base", "ImageFile"]
