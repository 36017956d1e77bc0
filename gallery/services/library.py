"""Media library: album and media operations that keep both stores consistent.

Album records live in the metadata store; binaries live in the blob store.
``media_count`` and ``cover_image`` on an album are derived from the blob
store and recomputed after every media mutation.
"""

import asyncio
import logging
from typing import Any, Optional

from gallery.config import Settings
from gallery.errors import (
    AlbumNotFoundError,
    FileTooLargeError,
    UnsupportedTypeError,
)
from gallery.models.album import DATA, THUMBNAIL, Album, cover_ref, parse_cover_ref
from gallery.models.media import MediaItem, MediaType
from gallery.services.blob_store import BlobStore, KeyedLocks, MediaSummary
from gallery.services.metadata_store import MetadataStore
from gallery.utils.image import ThumbnailDeriver

logger = logging.getLogger(__name__)


class Library:
    """Entry point for every album/media operation."""

    def __init__(
        self,
        metadata: MetadataStore,
        blobs: BlobStore,
        thumbnails: ThumbnailDeriver,
        settings: Settings,
    ):
        self.metadata = metadata
        self.blobs = blobs
        self.thumbnails = thumbnails
        self.settings = settings
        self._album_locks = KeyedLocks()

    @classmethod
    async def open(cls, settings: Settings) -> "Library":
        """Build the stores from settings, run the schema hook and sweep orphans."""
        settings.ensure_dirs()
        library = cls(
            metadata=MetadataStore(settings.albums_file),
            blobs=BlobStore.from_path(
                settings.media_db_file,
                quota_bytes=settings.storage_quota_bytes,
                echo=settings.debug,
            ),
            thumbnails=ThumbnailDeriver.from_settings(settings),
            settings=settings,
        )
        await library.blobs.open()
        await library.sweep_orphans()
        logger.info(
            "Library opened: %s, %s", settings.albums_file, settings.media_db_file
        )
        return library

    async def close(self) -> None:
        await self.blobs.close()

    # --- Albums ---

    def list_albums(self) -> list[Album]:
        """All albums, newest first."""
        return sorted(self.metadata.list(), key=lambda a: a.created_at, reverse=True)

    def get_album(self, album_id: str) -> Optional[Album]:
        return self.metadata.get(album_id)

    def create_album(self, name: str, description: str = "") -> Album:
        return self.metadata.create(name, description)

    def update_album(self, album_id: str, fields: dict[str, Any]) -> Optional[Album]:
        return self.metadata.update(album_id, fields)

    def increment_album_views(self, album_id: str) -> None:
        self.metadata.increment_views(album_id)

    async def delete_album(self, album_id: str) -> bool:
        """Delete an album and every media item in it.

        The album record goes first; media left behind by a crash before the
        blob cascade finishes are removed by sweep_orphans() on next open.
        """
        async with self._album_locks.hold(album_id):
            removed = self.metadata.delete(album_id)
            deleted_media = await self.blobs.delete_by_album(album_id)
        if removed or deleted_media:
            logger.info("Album %s deleted with %d media item(s)", album_id, deleted_media)
        return removed

    async def get_cover(self, album_id: str) -> Optional[bytes]:
        """Bytes of the album's cover image, if it has one."""
        album = self.metadata.get(album_id)
        if not album or not album.cover_image:
            return None
        media_id, payload = parse_cover_ref(album.cover_image)
        item = await self.blobs.get_by_id(media_id)
        if item is None:
            return None
        if payload == THUMBNAIL and item.thumbnail:
            return item.thumbnail
        return item.data

    # --- Media ---

    def check_file(self, filename: str, size: int, mime_type: str) -> None:
        """Raise if a file may not be ingested."""
        if size > self.settings.max_file_size:
            raise FileTooLargeError(filename, size, self.settings.max_file_size)
        if mime_type not in self.settings.allowed_mime_types:
            raise UnsupportedTypeError(filename, mime_type)

    async def add_media(
        self, album_id: str, raw: bytes, mime_type: str, filename: str
    ) -> MediaItem:
        """Store one photo or video in an album.

        1. Validate size, type and album
        2. Derive thumbnail (may be None)
        3. Insert blob record
        4. Recount album and assign cover
        """
        self.check_file(filename, len(raw), mime_type)
        if self.metadata.get(album_id) is None:
            raise AlbumNotFoundError(album_id)

        thumbnail = await self.thumbnails.derive(raw, mime_type)
        if thumbnail is None:
            logger.info("No thumbnail for %s (%s)", filename, mime_type)

        item = MediaItem(
            album_id=album_id,
            name=filename,
            type=MediaType.from_mime(mime_type),
            mime_type=mime_type,
            size=len(raw),
            data=raw,
            thumbnail=thumbnail,
        )
        # Re-check under the album lock so a concurrent delete_album cannot
        # cascade between the check and the insert
        async with self._album_locks.hold(album_id):
            if self.metadata.get(album_id) is None:
                raise AlbumNotFoundError(album_id)
            item = await self.blobs.put(item)
        logger.info("Added %s %s (%s) to album %s", item.type.value, item.id, filename, album_id)

        await self.refresh_album(album_id)
        return item

    async def get_album_media(self, album_id: str) -> list[MediaItem]:
        """Media of an album, oldest first."""
        media = await self.blobs.get_by_album(album_id)
        return sorted(media, key=lambda m: (m.timestamp, m.id))

    async def get_media_item(self, media_id: str) -> Optional[MediaItem]:
        return await self.blobs.get_by_id(media_id)

    async def get_all_media(self) -> list[MediaItem]:
        return await self.blobs.list_all()

    async def increment_download_count(self, media_id: str) -> None:
        await self.blobs.increment_downloads(media_id)

    async def delete_media(self, media_id: str) -> bool:
        """Delete one media item and recount its album. Unknown ids are a no-op."""
        item = await self.blobs.get_by_id(media_id)
        if item is None:
            return False

        await self.blobs.delete_by_id(media_id)
        await self.refresh_album(item.album_id)
        return True

    async def search_media(self, query: str) -> list[MediaItem]:
        from gallery.services.search_service import search_media

        return await search_media(query, self)

    async def get_storage_stats(self) -> dict:
        from gallery.services.search_service import get_storage_stats

        return await get_storage_stats(self)

    # --- Derived fields ---

    async def refresh_album(self, album_id: str) -> None:
        """Recompute media_count and cover_image, retrying on storage failures.

        Never raises: a failed recount is logged and left for the next
        mutation or the next sweep.
        """
        attempts = max(1, self.settings.recount_attempts)
        for attempt in range(1, attempts + 1):
            try:
                async with self._album_locks.hold(album_id):
                    await self._recount(album_id)
                return
            except Exception as e:
                if attempt == attempts:
                    logger.error(
                        "Recount of album %s failed after %d attempts: %s",
                        album_id, attempts, e,
                    )
                    return
                logger.warning("Recount of album %s failed (attempt %d): %s", album_id, attempt, e)
                await asyncio.sleep(self.settings.recount_backoff_seconds * attempt)

    async def _recount(self, album_id: str) -> None:
        album = self.metadata.get(album_id)
        if album is None:
            return

        media = await self.blobs.summarize_album(album_id)
        cover = album.cover_image
        if cover:
            cover_media_id, _ = parse_cover_ref(cover)
            if not any(m.id == cover_media_id for m in media):
                cover = None
        if cover is None:
            cover = _pick_cover(media)

        self.metadata.set_counters(album_id, media_count=len(media), cover_image=cover)

    async def sweep_orphans(self) -> int:
        """Delete media whose album is gone and recount every album.

        Nothing is deleted while some album records could not be loaded:
        their media would look orphaned.
        """
        known = {a.id for a in self.metadata.list()}
        removed = 0
        if self.metadata.unreadable_count:
            logger.warning(
                "Skipping orphan sweep: %d album record(s) in %s could not be loaded",
                self.metadata.unreadable_count, self.metadata.path,
            )
        else:
            for album_id in await self.blobs.album_ids():
                if album_id not in known:
                    removed += await self.blobs.delete_by_album(album_id)
            if removed:
                logger.warning("Removed %d orphaned media item(s)", removed)

        for album_id in known:
            await self.refresh_album(album_id)
        return removed


def _pick_cover(media: list[MediaSummary]) -> Optional[str]:
    """Cover ref from the first photo: its thumbnail, else its full image."""
    for m in media:
        if m.type == MediaType.PHOTO:
            return cover_ref(m.id, THUMBNAIL if m.has_thumbnail else DATA)
    return None
