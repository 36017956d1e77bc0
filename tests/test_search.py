import pytest

from gallery.services.search_service import get_storage_stats, search_media
from gallery.utils.storage import format_file_size

from conftest import make_image


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1 MB"),
        (int(2.25 * 1024 ** 3), "2.25 GB"),
        (5 * 1024 ** 4, "5120 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


@pytest.mark.asyncio
async def test_search_matches_albums_and_media_once(library):
    beach = library.create_album("Beach Trip")
    office = library.create_album("Office", "quarterly offsite")
    in_beach = await library.add_media(beach.id, make_image(), "image/jpeg", "IMG_001.jpg")
    sunset = await library.add_media(office.id, make_image(), "image/jpeg", "beach_sunset.jpg")
    await library.add_media(office.id, make_image(), "image/jpeg", "desk.jpg")

    results = await search_media("BEACH", library)
    ids = [m.id for m in results]
    assert sorted(ids) == sorted([in_beach.id, sunset.id])
    assert len(ids) == len(set(ids))


@pytest.mark.asyncio
async def test_search_album_description_and_dedup(library):
    album = library.create_album("Holiday", "Sunset at the lake")
    item = await library.add_media(album.id, make_image(), "image/jpeg", "sunset.jpg")

    results = await search_media("sunset", library)
    assert [m.id for m in results] == [item.id]


@pytest.mark.asyncio
async def test_search_empty_query(library):
    album = library.create_album("Anything")
    await library.add_media(album.id, make_image(), "image/jpeg", "a.jpg")
    assert await search_media("   ", library) == []
    assert await search_media("zzz", library) == []


@pytest.mark.asyncio
async def test_storage_stats(library):
    empty = await get_storage_stats(library)
    assert empty == {
        "total_albums": 0,
        "total_media": 0,
        "total_size": 0,
        "formatted_size": "0 Bytes",
        "average_size": 0,
    }

    album = library.create_album("Stats")
    await library.add_media(album.id, b"\x00" * 1024, "image/png", "a.png")
    await library.add_media(album.id, b"\x00" * 2048, "video/webm", "b.webm")

    stats = await get_storage_stats(library)
    assert stats["total_albums"] == 1
    assert stats["total_media"] == 2
    assert stats["total_size"] == 3072
    assert stats["formatted_size"] == "3 KB"
    assert stats["average_size"] == 1536


@pytest.mark.asyncio
async def test_library_exposes_search_and_stats(library):
    album = library.create_album("Garden")
    item = await library.add_media(album.id, make_image(), "image/jpeg", "rose.jpg")

    assert [m.id for m in await library.search_media("ROSE")] == [item.id]
    assert (await library.get_storage_stats())["total_media"] == 1
