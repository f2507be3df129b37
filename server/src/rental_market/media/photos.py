"""Listing photo handling.

Photos are stored inline on the listing row as data URLs.
"""

import base64

from rental_market.exceptions import ValidationError

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": (".jpeg", ".jpg"),
    "image/png": (".png",),
    "image/webp": (".webp",),
}

DEFAULT_MAX_PHOTOS = 10


def content_type_for(filename: str) -> str | None:
    """Guess an allowed image content type from a file name."""
    lowered = filename.lower()
    for content_type, extensions in ALLOWED_CONTENT_TYPES.items():
        if lowered.endswith(extensions):
            return content_type
    return None


def encode_photo(data: bytes, content_type: str) -> str:
    """Encode image bytes as a ``data:`` URL.

    Args:
        data: Raw image bytes
        content_type: One of the allowed image types

    Returns:
        The data URL

    Raises:
        ValidationError: Empty file or unsupported type
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(f"Unsupported image type: {content_type}", field="photos")
    if not data:
        raise ValidationError("Photo file is empty", field="photos")
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def add_photos(
    existing: list[str],
    new: list[str],
    max_photos: int = DEFAULT_MAX_PHOTOS,
) -> list[str]:
    """Append photos, refusing to go over ``max_photos``.

    Raises:
        ValidationError: The result would exceed the cap
    """
    if len(existing) + len(new) > max_photos:
        raise ValidationError(
            f"You can only upload up to {max_photos} photos", field="photos"
        )
    return [*existing, *new]


def remove_photo(photos: list[str], index: int) -> list[str]:
    """Return ``photos`` without the one at ``index``."""
    if not 0 <= index < len(photos):
        raise ValidationError(f"No photo at position {index}", field="photos")
    return [photo for i, photo in enumerate(photos) if i != index]
