"""Album request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class AlbumCreateRequest(BaseModel):
    name: str
    description: str = ""


class AlbumUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class AlbumResponse(BaseModel):
    id: str
    name: str
    description: str
    cover_image: Optional[str]
    cover_url: Optional[str]
    media_count: int
    views: int
    created_at: int
    updated_at: int
