import os
from io import BytesIO

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from PIL import Image

from gallery.config import Settings
from gallery.main import create_app
from gallery.services.library import Library


def make_image(width: int = 800, height: int = 600, fmt: str = "JPEG", color=(200, 120, 40)) -> bytes:
    """Encode a solid-colour test image."""
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = color + (255,) if mode == "RGBA" else color
    out = BytesIO()
    Image.new(mode, (width, height), fill).save(out, fmt)
    return out.getvalue()


class NoThumbnails:
    """Deriver stand-in that never produces a preview."""

    def __init__(self):
        self.calls = []

    async def derive(self, raw: bytes, mime_type: str):
        self.calls.append(mime_type)
        return None


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        ffmpeg_binary=os.environ.get("GALLERY_TEST_FFMPEG", "ffmpeg-not-installed"),
        ffmpeg_timeout_seconds=10,
        recount_backoff_seconds=0,
    )


@pytest_asyncio.fixture
async def library(app_settings):
    lib = await Library.open(app_settings)
    yield lib
    await lib.close()


@pytest.fixture
def client(app_settings):
    with TestClient(create_app(app_settings)) as c:
        yield c
