"""Image-related Pydantic schemas for API responses."""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageUploadResponse(BaseModel):
    """Response model for a successful image upload.

    The id is returned when an image is uploaded and stored. It is used to
    retrieve the image, optionally in another format, in subsequent calls.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"id": "3f2b8c1e-9d4a-4e6b-8f7a-2c1d0e9b8a76"}
            ]
        }
    )

    id: str = Field(
        ...,
        description="Unique identifier for the uploaded image (a UUID).",
        min_length=36,
        max_length=36,
        examples=["3f2b8c1e-9d4a-4e6b-8f7a-2c1d0e9b8a76"]
    )

    @field_validator("id", mode="before")
    @classmethod
    def normalize_and_validate_uuid(cls, v: str) -> str:
        """Normalize and validate that the id is a canonical UUID string."""
        if not isinstance(v, str):
            raise ValueError("id must be a string")

        v = v.lower()

        try:
            parsed = uuid.UUID(v)
        except ValueError:
            raise ValueError("id must be a valid UUID")

        if str(parsed) != v:
            raise ValueError("id must be in canonical UUID form")

        return v
