"""Thumbnail derivation: bounded JPEG previews for photos and videos."""

import asyncio
import logging
import subprocess
import tempfile
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMB_MAX_SIZE = 400
THUMB_QUALITY = 80

VIDEO_SUFFIXES = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
}


def bounded_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Fit (width, height) into a max_size box, keeping aspect ratio.

    Never upscales: sizes already inside the box are returned unchanged.
    """
    if width <= max_size and height <= max_size:
        return width, height
    if width >= height:
        return max_size, max(1, round(height * max_size / width))
    return max(1, round(width * max_size / height)), max_size


def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
    # Convert to RGB if needed (RGBA, P, etc.)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = BytesIO()
    img.save(out, "JPEG", quality=quality)
    return out.getvalue()


def generate_image_thumbnail(
    image_data: bytes,
    max_size: int = THUMB_MAX_SIZE,
    quality: int = THUMB_QUALITY,
) -> bytes:
    """Decode an image and re-encode it as a JPEG no larger than max_size."""
    img = Image.open(BytesIO(image_data))
    img = _auto_orient(img)
    img.load()

    size = bounded_size(img.width, img.height, max_size)
    if size != img.size:
        img = img.resize(size, Image.LANCZOS)
    return _encode_jpeg(img, quality)


def _extract_frame(
    ffmpeg: str, video_path: str, seconds: float, timeout: int
) -> bytes:
    result = subprocess.run(
        [
            ffmpeg, "-v", "error",
            "-ss", f"{seconds:.3f}", "-i", video_path,
            "-frames:v", "1",
            "-f", "image2pipe", "-vcodec", "png", "-",
        ],
        capture_output=True,
        timeout=timeout,
    )
    return result.stdout


def generate_video_thumbnail(
    video_data: bytes,
    mime_type: str,
    seconds: float = 1.0,
    quality: int = THUMB_QUALITY,
    ffmpeg: str = "ffmpeg",
    timeout: int = 30,
) -> bytes | None:
    """Grab the frame at ``seconds`` (or the first frame of shorter clips).

    The frame keeps its native resolution and is re-encoded as JPEG.
    Returns None when no frame can be decoded.
    """
    suffix = VIDEO_SUFFIXES.get(mime_type, ".bin")
    with tempfile.TemporaryDirectory(prefix="gallery-video-") as tmp:
        video_path = Path(tmp) / f"source{suffix}"
        video_path.write_bytes(video_data)

        frame = _extract_frame(ffmpeg, str(video_path), seconds, timeout)
        if not frame and seconds > 0:
            # Clip shorter than the seek point: take the first frame instead
            frame = _extract_frame(ffmpeg, str(video_path), 0.0, timeout)
    if not frame:
        return None

    img = Image.open(BytesIO(frame))
    return _encode_jpeg(img, quality)


class ThumbnailDeriver:
    """Best-effort preview generation. derive() never raises."""

    def __init__(
        self,
        max_size: int = THUMB_MAX_SIZE,
        quality: int = THUMB_QUALITY,
        video_seconds: float = 1.0,
        ffmpeg: str = "ffmpeg",
        ffmpeg_timeout: int = 30,
    ):
        self.max_size = max_size
        self.quality = quality
        self.video_seconds = video_seconds
        self.ffmpeg = ffmpeg
        self.ffmpeg_timeout = ffmpeg_timeout

    @classmethod
    def from_settings(cls, settings) -> "ThumbnailDeriver":
        return cls(
            max_size=settings.thumbnail_max_size,
            quality=settings.thumbnail_quality,
            video_seconds=settings.video_frame_seconds,
            ffmpeg=settings.ffmpeg_binary,
            ffmpeg_timeout=settings.ffmpeg_timeout_seconds,
        )

    async def derive(self, raw: bytes, mime_type: str) -> bytes | None:
        """Return thumbnail bytes, or None for unknown types and decode failures."""
        try:
            if mime_type.startswith("image/"):
                return await asyncio.to_thread(
                    generate_image_thumbnail, raw, self.max_size, self.quality
                )
            if mime_type.startswith("video/"):
                return await asyncio.to_thread(
                    generate_video_thumbnail,
                    raw,
                    mime_type,
                    self.video_seconds,
                    self.quality,
                    self.ffmpeg,
                    self.ffmpeg_timeout,
                )
        except subprocess.TimeoutExpired:
            logger.warning("ffmpeg timed out extracting a %s frame", mime_type)
        except FileNotFoundError:
            logger.warning("ffmpeg not found (%s), video thumbnails disabled", self.ffmpeg)
        except UnidentifiedImageError as e:
            logger.warning("Thumbnail decode failed for %s: %s", mime_type, e)
        except Exception as e:
            logger.error("Thumbnail generation failed for %s: %s", mime_type, e)
        return None


def _auto_orient(img: Image.Image) -> Image.Image:
    """Auto-rotate image based on EXIF orientation tag."""
    try:
        exif = img.getexif()
        orientation = exif.get(0x0112)  # Orientation tag
    except Exception:
        return img
    if orientation == 3:
        img = img.rotate(180, expand=True)
    elif orientation == 6:
        img = img.rotate(270, expand=True)
    elif orientation == 8:
        img = img.rotate(90, expand=True)
    return img
