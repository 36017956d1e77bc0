"""Album metadata store: a single JSON document rewritten atomically.

All reads are served from an in-memory snapshot loaded at construction;
every mutation runs under one lock, updates the snapshot and rewrites the
whole document.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from gallery.errors import StorageIOError, ValidationError
from gallery.models.album import Album
from gallery.utils.ids import now_ms
from gallery.utils.storage import atomic_write_text

logger = logging.getLogger(__name__)

COLLECTION_KEY = "gallery_albums"

# Fields callers may change through update(); counters and cover are derived
EDITABLE_FIELDS = {"name", "description"}


class MetadataStore:
    """Synchronous album record set."""

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.RLock()
        # Records that failed validation; written back untouched on every commit
        self._unreadable: list[Any] = []
        self._albums: dict[str, Album] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def unreadable_count(self) -> int:
        """Number of stored records that could not be loaded."""
        return len(self._unreadable)

    def _load(self) -> dict[str, Album]:
        """Read the document, skipping invalid records.

        A document that cannot be read or parsed at all raises
        StorageIOError instead of loading as empty.
        """
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageIOError(f"Unreadable album metadata at {self._path}: {e}") from e
        records = raw.get(COLLECTION_KEY, []) if isinstance(raw, dict) else None
        if not isinstance(records, list):
            raise StorageIOError(f"Malformed album metadata at {self._path}")

        albums: dict[str, Album] = {}
        for record in records:
            try:
                album = Album.model_validate(record)
            except PydanticValidationError as e:
                self._unreadable.append(record)
                logger.error("Skipping invalid album record in %s: %s", self._path, e)
                continue
            albums[album.id] = album
        return albums

    def _persist(self, albums: dict[str, Album]) -> None:
        payload = {COLLECTION_KEY: [a.model_dump() for a in albums.values()] + self._unreadable}
        try:
            atomic_write_text(self._path, json.dumps(payload, ensure_ascii=False))
        except OSError as e:
            raise StorageIOError(f"Failed to write album metadata: {e}") from e

    def _commit(self, albums: dict[str, Album]) -> None:
        # Write first so a failed write leaves the snapshot untouched
        self._persist(albums)
        self._albums = albums

    def list(self) -> list[Album]:
        with self._lock:
            return [a.model_copy() for a in self._albums.values()]

    def get(self, album_id: str) -> Optional[Album]:
        with self._lock:
            album = self._albums.get(album_id)
            return album.model_copy() if album else None

    def create(self, name: str, description: str = "") -> Album:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Album name is required")

        now = now_ms()
        album = Album(
            name=name,
            description=(description or "").strip(),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            albums = dict(self._albums)
            albums[album.id] = album
            self._commit(albums)
        logger.info("Created album %s (%s)", album.id, album.name)
        return album.model_copy()

    def update(self, album_id: str, fields: dict[str, Any]) -> Optional[Album]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise ValidationError("Album name is required")
            fields = {**fields, "name": name}

        with self._lock:
            current = self._albums.get(album_id)
            if current is None:
                return None
            merged = current.model_dump() | fields | {"updated_at": now_ms()}
            try:
                updated = Album.model_validate(merged)
            except PydanticValidationError as e:
                raise ValidationError(str(e)) from e
            albums = dict(self._albums)
            albums[album_id] = updated
            self._commit(albums)
            return updated.model_copy()

    def set_counters(
        self, album_id: str, media_count: int, cover_image: Optional[str]
    ) -> Optional[Album]:
        """Write derived fields without touching updated_at."""
        with self._lock:
            current = self._albums.get(album_id)
            if current is None:
                return None
            if current.media_count == media_count and current.cover_image == cover_image:
                return current.model_copy()
            updated = current.model_copy(
                update={"media_count": media_count, "cover_image": cover_image}
            )
            albums = dict(self._albums)
            albums[album_id] = updated
            self._commit(albums)
            return updated.model_copy()

    def delete(self, album_id: str) -> bool:
        with self._lock:
            if album_id not in self._albums:
                return False
            albums = {k: v for k, v in self._albums.items() if k != album_id}
            self._commit(albums)
        logger.info("Deleted album %s", album_id)
        return True

    def increment_views(self, album_id: str) -> None:
        with self._lock:
            current = self._albums.get(album_id)
            if current is None:
                return
            albums = dict(self._albums)
            albums[album_id] = current.model_copy(update={"views": current.views + 1})
            self._commit(albums)
