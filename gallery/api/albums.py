"""Album API endpoints."""

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from gallery.api.deps import get_library, require_authorized
from gallery.api.media import media_to_response
from gallery.models.album import Album
from gallery.schemas.album import AlbumCreateRequest, AlbumResponse, AlbumUpdateRequest
from gallery.schemas.media import MediaResponse, UploadBatchResponse, UploadItemResponse
from gallery.services.library import Library
from gallery.services.upload_queue import UploadQueue

router = APIRouter(prefix="/albums", tags=["albums"])


def album_to_response(album: Album) -> AlbumResponse:
    return AlbumResponse(
        id=album.id,
        name=album.name,
        description=album.description,
        cover_image=album.cover_image,
        cover_url=f"/api/v1/albums/{album.id}/cover" if album.cover_image else None,
        media_count=album.media_count,
        views=album.views,
        created_at=album.created_at,
        updated_at=album.updated_at,
    )


def _get_album_or_404(album_id: str, library: Library) -> Album:
    album = library.get_album(album_id)
    if not album:
        raise HTTPException(status_code=404, detail="Album not found")
    return album


@router.get("", response_model=list[AlbumResponse])
def list_albums(library: Library = Depends(get_library)):
    """List all albums, newest first."""
    return [album_to_response(a) for a in library.list_albums()]


@router.post(
    "",
    response_model=AlbumResponse,
    status_code=201,
    dependencies=[Depends(require_authorized)],
)
def create_album(request: AlbumCreateRequest, library: Library = Depends(get_library)):
    """Create a new album."""
    album = library.create_album(request.name, request.description)
    return album_to_response(album)


@router.get("/{album_id}", response_model=AlbumResponse)
def get_album(album_id: str, library: Library = Depends(get_library)):
    """Get album details."""
    return album_to_response(_get_album_or_404(album_id, library))


@router.patch(
    "/{album_id}",
    response_model=AlbumResponse,
    dependencies=[Depends(require_authorized)],
)
def update_album(
    album_id: str,
    request: AlbumUpdateRequest,
    library: Library = Depends(get_library),
):
    """Update album name or description."""
    album = library.update_album(album_id, request.model_dump(exclude_none=True))
    if not album:
        raise HTTPException(status_code=404, detail="Album not found")
    return album_to_response(album)


@router.delete(
    "/{album_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_authorized)],
)
async def delete_album(album_id: str, library: Library = Depends(get_library)):
    """Delete an album and all of its media. Unknown albums are ignored."""
    await library.delete_album(album_id)


@router.post("/{album_id}/views", status_code=status.HTTP_204_NO_CONTENT)
def add_album_view(album_id: str, library: Library = Depends(get_library)):
    """Count one view of an album."""
    library.increment_album_views(album_id)


@router.get("/{album_id}/cover")
async def get_album_cover(album_id: str, library: Library = Depends(get_library)):
    """Cover image bytes (thumbnail of the first photo)."""
    _get_album_or_404(album_id, library)
    cover = await library.get_cover(album_id)
    if cover is None:
        raise HTTPException(status_code=404, detail="Album has no cover")
    return Response(content=cover, media_type=_sniff_image_type(cover))


@router.get("/{album_id}/media", response_model=list[MediaResponse])
async def list_album_media(album_id: str, library: Library = Depends(get_library)):
    """Media of an album, oldest first."""
    _get_album_or_404(album_id, library)
    return [media_to_response(m) for m in await library.get_album_media(album_id)]


@router.post(
    "/{album_id}/media",
    response_model=UploadBatchResponse,
    dependencies=[Depends(require_authorized)],
)
async def upload_media(
    album_id: str,
    files: list[UploadFile] = File(...),
    library: Library = Depends(get_library),
):
    """Upload photos/videos. Files are stored one by one; each gets a status."""
    _get_album_or_404(album_id, library)

    queue = UploadQueue(library, album_id)
    for f in files:
        queue.add_reader(
            filename=f.filename or "upload",
            mime_type=f.content_type or "application/octet-stream",
            size=f.size,
            reader=_upload_reader(f),
        )
    items = await queue.run()

    return UploadBatchResponse(
        album_id=album_id,
        total=len(items),
        completed=queue.completed,
        failed=queue.failed,
        items=[
            UploadItemResponse(
                id=i.id,
                filename=i.filename,
                size=i.size,
                status=i.status.value,
                media_id=i.media_id,
                error=i.error,
            )
            for i in items
        ],
    )


def _upload_reader(f: UploadFile):
    """Read a spooled upload from the start, only when the queue reaches it."""

    async def read() -> bytes:
        await f.seek(0)
        return await f.read()

    return read


def _sniff_image_type(data: bytes) -> str:
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"
