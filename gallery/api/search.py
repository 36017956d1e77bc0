"""Search API endpoints."""

from fastapi import APIRouter, Depends, Query

from gallery.api.deps import get_library
from gallery.api.media import media_to_response
from gallery.schemas.media import SearchResponse
from gallery.services.library import Library
from gallery.services.search_service import search_media

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(default=""),
    library: Library = Depends(get_library),
):
    """Search media by album name, album description or file name."""
    results = await search_media(q, library)
    return SearchResponse(
        query=q,
        total=len(results),
        media=[media_to_response(m) for m in results],
    )
