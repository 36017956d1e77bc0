"""Media API endpoints."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from gallery.api.deps import get_library, require_authorized
from gallery.models.media import MediaItem, MediaType
from gallery.schemas.media import MediaResponse
from gallery.services.library import Library

router = APIRouter(prefix="/media", tags=["media"])


def media_to_response(m: MediaItem) -> MediaResponse:
    return MediaResponse(
        id=m.id,
        album_id=m.album_id,
        name=m.name,
        type=MediaType(m.type).value,
        mime_type=m.mime_type,
        size=m.size,
        timestamp=m.timestamp,
        downloads=m.downloads,
        has_thumbnail=m.thumbnail is not None,
        file_url=f"/api/v1/media/{m.id}/file",
        thumb_url=f"/api/v1/media/{m.id}/thumb",
    )


async def _get_media_or_404(media_id: str, library: Library) -> MediaItem:
    item = await library.get_media_item(media_id)
    if not item:
        raise HTTPException(status_code=404, detail="Media not found")
    return item


@router.get("", response_model=list[MediaResponse])
async def list_media(
    type: MediaType | None = Query(default=None),
    library: Library = Depends(get_library),
):
    """All media, optionally only photos or only videos."""
    if type is not None:
        media = await library.blobs.get_by_type(type)
    else:
        media = await library.get_all_media()
    return [media_to_response(m) for m in media]


@router.get("/{media_id}", response_model=MediaResponse)
async def get_media(media_id: str, library: Library = Depends(get_library)):
    """Get media details."""
    return media_to_response(await _get_media_or_404(media_id, library))


@router.get("/{media_id}/file")
async def get_media_file(media_id: str, library: Library = Depends(get_library)):
    """Download the original file."""
    item = await _get_media_or_404(media_id, library)
    return Response(
        content=item.data,
        media_type=item.mime_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(item.name)}"},
    )


@router.get("/{media_id}/thumb")
async def get_media_thumbnail(media_id: str, library: Library = Depends(get_library)):
    """Thumbnail JPEG. Photos without one fall back to the original image."""
    item = await _get_media_or_404(media_id, library)
    if item.thumbnail:
        return Response(content=item.thumbnail, media_type="image/jpeg")
    if item.type == MediaType.PHOTO:
        return Response(content=item.data, media_type=item.mime_type)
    raise HTTPException(status_code=404, detail="Thumbnail not found")


@router.post("/{media_id}/downloads", status_code=status.HTTP_204_NO_CONTENT)
async def count_download(media_id: str, library: Library = Depends(get_library)):
    """Count one download of a media item."""
    await library.increment_download_count(media_id)


@router.delete(
    "/{media_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_authorized)],
)
async def delete_media(media_id: str, library: Library = Depends(get_library)):
    """Delete a media item. Unknown ids are ignored."""
    await library.delete_media(media_id)
