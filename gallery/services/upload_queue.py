"""Sequential batch ingestion with per-item status.

Files are read and ingested one at a time, so only one file is held in
memory and decoded at once. A failing item is marked ``error`` and the
queue moves on; items already stored stay stored.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from gallery.errors import GalleryError
from gallery.models.media import MediaItem
from gallery.services.library import Library
from gallery.utils.ids import new_id

logger = logging.getLogger(__name__)


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


Reader = Callable[[], Awaitable[bytes]]


@dataclass
class UploadItem:
    """One queued file. Its bytes are only read when the item is processed."""

    filename: str
    mime_type: str
    size: Optional[int]  # None until read when the source does not report it
    reader: Reader = field(repr=False)
    id: str = field(default_factory=lambda: new_id("upl_"))
    status: UploadStatus = UploadStatus.PENDING
    error: Optional[str] = None
    media_id: Optional[str] = None


ProgressCallback = Callable[[int, int, UploadItem], None]


class UploadQueue:
    """Queue of files bound for one album."""

    def __init__(self, library: Library, album_id: str):
        self.library = library
        self.album_id = album_id
        self.items: list[UploadItem] = []
        self._running = False

    def add(self, filename: str, mime_type: str, data: bytes) -> UploadItem:
        """Queue bytes already in memory."""

        async def read() -> bytes:
            return data

        return self.add_reader(filename, mime_type, len(data), read)

    def add_reader(
        self, filename: str, mime_type: str, size: Optional[int], reader: Reader
    ) -> UploadItem:
        """Queue a file whose bytes are fetched by ``reader`` when its turn comes."""
        item = UploadItem(filename=filename, mime_type=mime_type, size=size, reader=reader)
        self.items.append(item)
        return item

    def remove(self, item_id: str) -> bool:
        """Drop a pending item. Items already processed stay in the list."""
        for i, item in enumerate(self.items):
            if item.id == item_id and item.status == UploadStatus.PENDING:
                del self.items[i]
                return True
        return False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def completed(self) -> int:
        return sum(1 for i in self.items if i.status == UploadStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if i.status == UploadStatus.ERROR)

    async def run(self, on_progress: ProgressCallback | None = None) -> list[UploadItem]:
        """Process every item that has not completed yet, in order."""
        self._running = True
        try:
            total = len(self.items)
            for item in list(self.items):
                if item.status == UploadStatus.COMPLETED:
                    continue
                await self._process(item)
                if on_progress:
                    on_progress(self.completed, total, item)
        finally:
            self._running = False

        logger.info(
            "Upload to album %s finished: %d/%d files uploaded",
            self.album_id, self.completed, len(self.items),
        )
        return self.items

    async def _process(self, item: UploadItem) -> None:
        item.status = UploadStatus.UPLOADING
        item.error = None
        try:
            # Reject on the reported size before loading the file
            if item.size is not None:
                self.library.check_file(item.filename, item.size, item.mime_type)
            data = await item.reader()
            item.size = len(data)
            media: MediaItem = await self.library.add_media(
                self.album_id, data, item.mime_type, item.filename
            )
        except GalleryError as e:
            item.status = UploadStatus.ERROR
            item.error = str(e)
            logger.warning("Upload of %s failed: %s", item.filename, e)
            return

        item.status = UploadStatus.COMPLETED
        item.media_id = media.id
