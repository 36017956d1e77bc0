"""Error types raised by the storage engine."""


class GalleryError(Exception):
    """Base class for all storage engine errors."""


class ValidationError(GalleryError):
    """Caller supplied bad input (e.g. an empty album name)."""


class AlbumNotFoundError(GalleryError):
    """Media was targeted at an album that does not exist."""

    def __init__(self, album_id: str):
        super().__init__(f"Album not found: {album_id}")
        self.album_id = album_id


class FileTooLargeError(GalleryError):
    def __init__(self, filename: str, size: int, limit: int):
        super().__init__(
            f"{filename} exceeds {limit // (1024 * 1024)}MB limit ({size} bytes)"
        )
        self.filename = filename
        self.size = size
        self.limit = limit


class UnsupportedTypeError(GalleryError):
    def __init__(self, filename: str, mime_type: str):
        super().__init__(f"{filename} is not a supported file type ({mime_type})")
        self.filename = filename
        self.mime_type = mime_type


class DuplicateIdError(GalleryError):
    """A record with the same id already exists. Never overwritten."""

    def __init__(self, record_id: str):
        super().__init__(f"duplicate:{record_id}")
        self.record_id = record_id


class StorageQuotaError(GalleryError):
    """The storage medium refused the write for lack of space."""


class StorageIOError(GalleryError):
    """Any other failure reported by the storage medium."""
