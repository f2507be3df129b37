"""Photo encoding for listings."""

from rental_market.media.photos import add_photos, encode_photo, remove_photo

__all__ = ["add_photos", "encode_photo", "remove_photo"]
