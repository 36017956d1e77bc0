"""Album model, persisted by the metadata store."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from gallery.utils.ids import new_id, now_ms

THUMBNAIL = "thumbnail"
DATA = "data"


class Album(BaseModel):
    id: str = Field(default_factory=lambda: new_id("alb_"))
    name: str
    description: str = ""
    cover_image: Optional[str] = None  # blob ref, see cover_ref()
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    media_count: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)

    @field_validator("cover_image")
    @classmethod
    def check_cover_ref(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_cover_ref(v)
        return v


def cover_ref(media_id: str, payload: str) -> str:
    """Reference to one payload ('thumbnail' or 'data') of a media item."""
    if payload not in (THUMBNAIL, DATA):
        raise ValueError(f"unknown payload: {payload}")
    return f"{media_id}/{payload}"


def parse_cover_ref(ref: str) -> tuple[str, str]:
    """Split a cover ref into (media_id, payload)."""
    media_id, _, payload = ref.rpartition("/")
    if not media_id or payload not in (THUMBNAIL, DATA):
        raise ValueError(f"malformed cover ref: {ref!r}")
    return media_id, payload
