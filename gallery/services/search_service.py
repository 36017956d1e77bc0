"""Search and storage statistics across albums and media."""

from gallery.services.library import Library
from gallery.models.media import MediaItem
from gallery.utils.storage import format_file_size


async def search_media(query: str, library: Library) -> list[MediaItem]:
    """Case-insensitive substring search.

    Matches album name/description (contributing all of that album's media)
    and media file names. Each item appears once, in first-match order.
    """
    needle = query.strip().lower()
    if not needle:
        return []

    results: list[MediaItem] = []

    # 1. Albums whose name or description matches
    for album in library.list_albums():
        if needle in album.name.lower() or needle in (album.description or "").lower():
            results.extend(await library.get_album_media(album.id))

    # 2. Media whose name matches
    for item in await library.get_all_media():
        if needle in item.name.lower():
            results.append(item)

    seen: set[str] = set()
    unique = []
    for item in results:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


async def get_storage_stats(library: Library) -> dict:
    """Media count and size totals."""
    total_media = await library.blobs.count()
    total_size = await library.blobs.total_size()
    return {
        "total_albums": len(library.list_albums()),
        "total_media": total_media,
        "total_size": total_size,
        "formatted_size": format_file_size(total_size),
        "average_size": total_size / total_media if total_media else 0,
    }
