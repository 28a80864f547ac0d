from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from todo_api import metrics
from todo_api.core.config import SettingsDep

router = APIRouter(prefix="/api/v1", tags=["service"])


@router.get("/info")
async def info(settings: SettingsDep):
    """Public information about this instance"""
    return {
        "version": settings.service_version,
        "registration_enabled": settings.enable_registration,
        "link_sharing_enabled": settings.enable_link_sharing,
        "max_items_per_page": settings.max_items_per_page,
    }


# Only mounted when metrics are enabled
metrics_router = APIRouter(prefix="/api/v1", tags=["service"])


@metrics_router.get("/metrics")
async def get_metrics():
    return Response(
        content=await metrics.metrics_latest(), media_type=CONTENT_TYPE_LATEST
    )
