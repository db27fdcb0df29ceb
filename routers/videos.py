from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from dependencies import get_current_user, get_video_service
from responses import ok
from services.videos import VideoService

router = APIRouter()


@router.get("")
def list_videos(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_type: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    result = service.list_videos(page, limit, query, sort_by, sort_type, user_id)
    if result.is_empty:
        return ok(result, "No videos are available")
    return ok(result, "Videos fetched successfully")


@router.post("")
def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: float = Form(0),
    video_file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.publish(current_user["_id"], title, description, video_file, thumbnail, duration)
    return ok(video, "Video uploaded successfully", status_code=201)


@router.get("/{video_id}")
def get_video(
    video_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.get_video(video_id, current_user["_id"])
    return ok(video, "Video details fetched successfully")


@router.patch("/{video_id}")
def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.update_video(video_id, current_user["_id"], title, description, thumbnail)
    return ok(video, "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    service.delete_video(video_id, current_user["_id"])
    return ok({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    status = service.toggle_publish(video_id, current_user["_id"])
    return ok(status, "Video publish status toggled successfully")
