"""Health-check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...core.config import settings
from ...services import ExportCoordinator, get_export_coordinator

router = APIRouter()


@router.get("/", summary="Service health status")
def healthcheck(coordinator: ExportCoordinator = Depends(get_export_coordinator)) -> dict[str, str | int]:
    """Liveness payload; does not contact the metadata provider."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.env,
        "dialects": len(coordinator.registry),
    }
