"""Media item model, persisted by the blob store."""

from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from gallery.utils.ids import new_id, now_ms


class MediaType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"

    @classmethod
    def from_mime(cls, mime_type: str) -> "MediaType":
        return cls.VIDEO if mime_type.startswith("video/") else cls.PHOTO


class MediaItem(SQLModel, table=True):
    __tablename__ = "media"

    id: str = Field(default_factory=lambda: new_id("med_"), primary_key=True)
    album_id: str = Field(index=True)  # checked by the library, not the store
    name: str
    type: MediaType = Field(index=True)
    mime_type: str
    size: int
    data: bytes
    thumbnail: Optional[bytes] = None
    timestamp: int = Field(default_factory=now_ms, index=True)
    downloads: int = Field(default=0)
