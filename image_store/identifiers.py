"""Identifier allocation for stored images."""

import uuid


def allocate_image_id() -> str:
    """Allocate a new image identifier.

    The identifier is a random UUID4 rendered in its canonical 36-character
    form. It is used as the filename prefix of the stored image, so it must
    never contain a path separator or start with a dot.

    Returns:
        str: A new, globally unique image identifier.
    """
    return str(uuid.uuid4())
