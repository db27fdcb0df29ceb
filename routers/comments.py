from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from dependencies import get_comment_service, get_current_user
from responses import ok
from schemas import ContentRequest
from services.comments import CommentService

router = APIRouter()


@router.get("/{video_id}")
def get_video_comments(
    video_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    comments = service.list_comments(video_id, current_user["_id"], page, limit)
    if comments.is_empty:
        return ok(comments, "No comments available for this video")
    return ok(comments, "Comments fetched successfully")


@router.post("/{video_id}")
def add_comment(
    video_id: str,
    payload: ContentRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    comment = service.add_comment(video_id, current_user["_id"], payload.content)
    return ok(comment, "Comment added successfully", status_code=201)


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    payload: ContentRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    comment = service.update_comment(comment_id, current_user["_id"], payload.content)
    return ok(comment, "Comment edited successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    deleted_id = service.delete_comment(comment_id, current_user["_id"])
    return ok({"comment_id": deleted_id}, "Comment deleted successfully")
