"""Blob database connection and initialization."""

from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

# Import all table models so SQLModel registers them
import gallery.models  # noqa: F401


def create_blob_engine(db_path: Path, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=echo,
        connect_args={"check_same_thread": False},
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the media table and its indexes, and enable WAL mode.

    This is the only schema hook: it is a no-op on an existing database.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    # Enable WAL mode for better concurrent read performance
    async with engine.connect() as conn:
        await conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        await conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        await conn.commit()
