import shutil
import subprocess
from io import BytesIO

import pytest
from PIL import Image

from gallery.utils.image import ThumbnailDeriver, bounded_size, generate_image_thumbnail

from conftest import make_image


@pytest.mark.parametrize(
    "size,expected",
    [
        ((800, 600), (400, 300)),
        ((600, 800), (300, 400)),
        ((1000, 1000), (400, 400)),
        ((400, 400), (400, 400)),
        ((120, 90), (120, 90)),
        ((4000, 5), (400, 1)),
    ],
)
def test_bounded_size(size, expected):
    assert bounded_size(*size, 400) == expected


def test_image_thumbnail_is_bounded_jpeg():
    thumb = generate_image_thumbnail(make_image(1600, 900, "PNG"))
    img = Image.open(BytesIO(thumb))
    assert img.format == "JPEG"
    assert img.size == (400, 225)


def test_small_image_keeps_dimensions():
    thumb = generate_image_thumbnail(make_image(64, 48, "GIF"))
    img = Image.open(BytesIO(thumb))
    assert img.format == "JPEG"
    assert img.size == (64, 48)


@pytest.mark.asyncio
async def test_derive_image():
    deriver = ThumbnailDeriver(max_size=100)
    thumb = await deriver.derive(make_image(300, 150), "image/jpeg")
    assert Image.open(BytesIO(thumb)).size == (100, 50)


@pytest.mark.asyncio
async def test_derive_unknown_type_is_none():
    deriver = ThumbnailDeriver()
    assert await deriver.derive(b"%PDF-1.4", "application/pdf") is None


@pytest.mark.asyncio
async def test_derive_corrupt_image_is_none():
    deriver = ThumbnailDeriver()
    assert await deriver.derive(b"definitely not a jpeg", "image/jpeg") is None


@pytest.mark.asyncio
async def test_derive_video_without_ffmpeg_is_none():
    deriver = ThumbnailDeriver(ffmpeg="ffmpeg-not-installed")
    assert await deriver.derive(b"\x00\x00\x00\x18ftypmp42", "video/mp4") is None


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
@pytest.mark.asyncio
async def test_derive_short_video_uses_first_frame(tmp_path):
    clip = tmp_path / "clip.mp4"
    subprocess.run(
        [
            "ffmpeg", "-v", "error", "-f", "lavfi", "-i", "color=c=red:s=64x48:d=0.5",
            "-pix_fmt", "yuv420p", "-y", str(clip),
        ],
        check=True,
        capture_output=True,
    )
    deriver = ThumbnailDeriver(ffmpeg="ffmpeg", video_seconds=1.0)
    thumb = await deriver.derive(clip.read_bytes(), "video/mp4")
    img = Image.open(BytesIO(thumb))
    assert img.format == "JPEG"
    assert img.size == (64, 48)
