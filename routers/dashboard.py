from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_dashboard_service
from responses import ok
from services.dashboard import DashboardService

router = APIRouter()


@router.get("/stats")
def get_channel_stats(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    return ok(service.channel_stats(current_user["_id"]), "Channel stats fetched successfully")


@router.get("/videos")
def get_channel_videos(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    videos = service.channel_videos(current_user["_id"])
    if not videos:
        return ok(videos, "No videos uploaded yet")
    return ok(videos, "Channel videos fetched successfully")
