"""Media blob store: media binaries and thumbnails in an async SQLite database."""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from gallery.database import create_blob_engine, init_db
from gallery.errors import DuplicateIdError, StorageIOError, StorageQuotaError
from gallery.models.media import MediaItem, MediaType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaSummary:
    """Columns needed for recounts, without the binary payloads."""

    id: str
    type: MediaType
    has_thumbnail: bool
    timestamp: int


class KeyedLocks:
    """One asyncio.Lock per key, dropped again when nobody holds or waits on it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: defaultdict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


def _storage_error(e: SQLAlchemyError, action: str) -> Exception:
    message = str(e).lower()
    if isinstance(e, OperationalError) and ("full" in message or "quota" in message):
        return StorageQuotaError(f"Storage full while trying to {action}")
    return StorageIOError(f"Failed to {action}: {e}")


class BlobStore:
    """Asynchronous, indexed media record set.

    Lookups by album and by type go through the ``album_id`` and ``type``
    indexes. Operations on the same media id are serialized.
    """

    def __init__(self, engine: AsyncEngine, quota_bytes: int = 0):
        self._engine = engine
        self._quota_bytes = quota_bytes
        self._record_locks = KeyedLocks()

    @classmethod
    def from_path(cls, db_path: Path, quota_bytes: int = 0, echo: bool = False) -> "BlobStore":
        return cls(create_blob_engine(db_path, echo=echo), quota_bytes=quota_bytes)

    async def open(self) -> None:
        await init_db(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()

    def _session(self) -> AsyncSession:
        return AsyncSession(self._engine, expire_on_commit=False)

    async def put(self, item: MediaItem) -> MediaItem:
        """Insert a new media item. Existing ids are never overwritten."""
        async with self._record_locks.hold(item.id):
            async with self._session() as session:
                try:
                    existing = await session.exec(
                        select(MediaItem.id).where(MediaItem.id == item.id)
                    )
                    if existing.first() is not None:
                        raise DuplicateIdError(item.id)
                    if self._quota_bytes:
                        used = await self._total_size(session)
                        if used + item.size > self._quota_bytes:
                            raise StorageQuotaError(
                                f"Storage quota of {self._quota_bytes} bytes exceeded"
                            )
                    session.add(item)
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise DuplicateIdError(item.id) from e
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise _storage_error(e, f"store media {item.id}") from e
        logger.debug("Stored media %s (%d bytes) in album %s", item.id, item.size, item.album_id)
        return item

    async def get_by_id(self, media_id: str) -> Optional[MediaItem]:
        async with self._session() as session:
            return await session.get(MediaItem, media_id)

    async def get_by_album(self, album_id: str) -> list[MediaItem]:
        async with self._session() as session:
            result = await session.exec(
                select(MediaItem).where(MediaItem.album_id == album_id)
            )
            return list(result.all())

    async def get_by_type(
        self, media_type: MediaType, album_id: str | None = None
    ) -> list[MediaItem]:
        query = select(MediaItem).where(MediaItem.type == media_type)
        if album_id:
            query = query.where(MediaItem.album_id == album_id)
        async with self._session() as session:
            result = await session.exec(query)
            return list(result.all())

    async def list_all(self) -> list[MediaItem]:
        async with self._session() as session:
            result = await session.exec(select(MediaItem))
            return list(result.all())

    async def count(self) -> int:
        async with self._session() as session:
            result = await session.exec(select(func.count()).select_from(MediaItem))
            return result.one()

    async def count_by_album(self, album_id: str) -> int:
        async with self._session() as session:
            result = await session.exec(
                select(func.count()).select_from(MediaItem).where(
                    MediaItem.album_id == album_id
                )
            )
            return result.one()

    async def summarize_album(self, album_id: str) -> list[MediaSummary]:
        """Id, type, thumbnail presence and timestamp of an album's media, oldest first."""
        async with self._session() as session:
            result = await session.exec(
                select(
                    MediaItem.id,
                    MediaItem.type,
                    col(MediaItem.thumbnail).is_not(None),
                    MediaItem.timestamp,
                )
                .where(MediaItem.album_id == album_id)
                .order_by(col(MediaItem.timestamp), col(MediaItem.id))
            )
            return [
                MediaSummary(id=row[0], type=MediaType(row[1]), has_thumbnail=bool(row[2]), timestamp=row[3])
                for row in result.all()
            ]

    async def album_ids(self) -> set[str]:
        """Distinct album ids referenced by stored media."""
        async with self._session() as session:
            result = await session.exec(select(MediaItem.album_id).distinct())
            return set(result.all())

    async def total_size(self) -> int:
        async with self._session() as session:
            return await self._total_size(session)

    async def _total_size(self, session: AsyncSession) -> int:
        result = await session.exec(select(func.coalesce(func.sum(MediaItem.size), 0)))
        return int(result.one())

    async def delete_by_id(self, media_id: str) -> bool:
        """Delete one item. Unknown ids are a no-op."""
        async with self._record_locks.hold(media_id):
            async with self._session() as session:
                try:
                    result = await session.exec(
                        sa_delete(MediaItem).where(col(MediaItem.id) == media_id)
                    )
                    await session.commit()
                    if not result.rowcount:
                        return False
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise _storage_error(e, f"delete media {media_id}") from e
        logger.debug("Deleted media %s", media_id)
        return True

    async def delete_by_album(self, album_id: str) -> int:
        """Delete every item of an album in one transaction. Returns the count."""
        async with self._session() as session:
            try:
                result = await session.exec(
                    select(MediaItem.id).where(MediaItem.album_id == album_id)
                )
                ids = list(result.all())
                if not ids:
                    return 0
                await session.exec(
                    sa_delete(MediaItem).where(col(MediaItem.id).in_(ids))
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise _storage_error(e, f"delete media of album {album_id}") from e
        logger.info("Deleted %d media item(s) of album %s", len(ids), album_id)
        return len(ids)

    async def increment_downloads(self, media_id: str) -> None:
        async with self._record_locks.hold(media_id):
            async with self._session() as session:
                try:
                    item = await session.get(MediaItem, media_id)
                    if item is None:
                        return
                    item.downloads += 1
                    session.add(item)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise _storage_error(e, f"count download of {media_id}") from e
