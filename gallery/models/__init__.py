"""Local Gallery models."""

from gallery.models.album import Album
from gallery.models.media import MediaItem, MediaType

__all__ = [
    "Album",
    "MediaItem",
    "MediaType",
]
