"""Local Gallery configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings

MiB = 1024 * 1024


class Settings(BaseSettings):
    # Server
    app_name: str = "Local Gallery"
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    data_dir: Path = Path.home() / "local-gallery" / "data"
    metadata_path: Path | None = None  # defaults to <data_dir>/albums.json
    blob_db_path: Path | None = None  # defaults to <data_dir>/media.db

    # Ingestion
    max_file_size: int = 50 * MiB
    allowed_mime_types: list[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/quicktime",
        "video/webm",
    ]
    storage_quota_bytes: int = 0  # 0 = limited only by the disk

    # Thumbnails
    thumbnail_max_size: int = 400
    thumbnail_quality: int = 80
    video_frame_seconds: float = 1.0
    ffmpeg_binary: str = "ffmpeg"
    ffmpeg_timeout_seconds: int = 30

    # Counters
    recount_attempts: int = 3
    recount_backoff_seconds: float = 0.05

    # Local caller check; empty means the local caller is trusted
    access_token: str = ""

    model_config = {"env_prefix": "GALLERY_"}

    @property
    def albums_file(self) -> Path:
        return self.metadata_path or self.data_dir / "albums.json"

    @property
    def media_db_file(self) -> Path:
        return self.blob_db_path or self.data_dir / "media.db"

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.albums_file.parent, self.media_db_file.parent]:
            d.mkdir(parents=True, exist_ok=True)


settings = Settings()
