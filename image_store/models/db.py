"""SQLAlchemy database models."""

from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base

# Create the declarative base
Base = declarative_base()


class ImageFile(Base):
    """Model mapping an image ID to the file it is stored in."""
    __tablename__ = "images"

    # Canonical UUID string (36 chars)
    id = Column(String(36), primary_key=True, nullable=False)

    # Filename relative to the storage root, e.g. "<id>.jpg"
    filename = Column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<ImageFile(id={self.id[:8]}..., filename={self.filename})>"
