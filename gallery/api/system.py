"""System status API endpoints."""

from fastapi import APIRouter, Depends

from gallery.api.deps import get_library
from gallery.schemas.media import StorageStatsResponse
from gallery.services.library import Library
from gallery.services.search_service import get_storage_stats
from gallery.utils.storage import get_disk_info

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/ping")
def system_ping():
    """Lightweight health check."""
    return {"status": "ok"}


@router.get("/stats", response_model=StorageStatsResponse)
async def storage_stats(library: Library = Depends(get_library)):
    """Media totals plus free space on the data volume."""
    stats = await get_storage_stats(library)
    disk = get_disk_info(library.settings.data_dir)
    return StorageStatsResponse(
        **stats,
        disk_total_bytes=disk["total_bytes"],
        disk_free_bytes=disk["free_bytes"],
        disk_usage_percent=disk["usage_percent"],
    )
