"""Media request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class MediaResponse(BaseModel):
    id: str
    album_id: str
    name: str
    type: str  # 'photo' | 'video'
    mime_type: str
    size: int
    timestamp: int
    downloads: int
    has_thumbnail: bool
    file_url: str
    thumb_url: str


class UploadItemResponse(BaseModel):
    id: str
    filename: str
    size: Optional[int] = None
    status: str  # 'pending' | 'uploading' | 'completed' | 'error'
    media_id: Optional[str] = None
    error: Optional[str] = None


class UploadBatchResponse(BaseModel):
    album_id: str
    total: int
    completed: int
    failed: int
    items: list[UploadItemResponse]


class SearchResponse(BaseModel):
    query: str
    total: int
    media: list[MediaResponse]


class StorageStatsResponse(BaseModel):
    total_albums: int
    total_media: int
    total_size: int
    formatted_size: str
    average_size: float
    disk_total_bytes: int
    disk_free_bytes: int
    disk_usage_percent: float
