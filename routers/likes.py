from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_like_service
from responses import ok
from services.likes import LikeService

router = APIRouter()


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: LikeService = Depends(get_like_service),
):
    result = service.toggle_video_like(video_id, current_user["_id"])
    return ok(result, "Video liked" if result["is_liked"] else "Video unliked")


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: LikeService = Depends(get_like_service),
):
    result = service.toggle_comment_like(comment_id, current_user["_id"])
    return ok(result, "Comment liked" if result["is_liked"] else "Comment unliked")


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(
    tweet_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: LikeService = Depends(get_like_service),
):
    result = service.toggle_tweet_like(tweet_id, current_user["_id"])
    return ok(result, "Tweet liked" if result["is_liked"] else "Tweet unliked")


@router.get("/videos")
def get_liked_videos(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: LikeService = Depends(get_like_service),
):
    videos = service.liked_videos(current_user["_id"])
    if not videos:
        return ok(videos, "No liked videos yet")
    return ok(videos, "Liked videos fetched successfully")
