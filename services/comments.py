from typing import Any, Dict

from bson import ObjectId
from pymongo.database import Database

from database import objid
from errors import NotFoundError
from guard import ensure_owner
from pagination import Page, from_paginate_result, parse_pagination
from pipelines import video_comments_pipeline
from repositories import CommentRepository, LikeRepository, VideoRepository
from schemas import COMMENT_MAX_LENGTH, Comment
from services.common import require_content


class CommentService:
    def __init__(self, db: Database):
        self.comments = CommentRepository(db)
        self.videos = VideoRepository(db)
        self.likes = LikeRepository(db)

    def _load(self, comment_id: ObjectId) -> Dict[str, Any]:
        comment = self.comments.find_by_id(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    def list_comments(self, video_id: str, viewer_id: ObjectId, page: Any = None, limit: Any = None) -> Page:
        params = parse_pagination(page, limit)
        vid = objid(video_id, "video_id")
        if not self.videos.exists({"_id": vid}):
            raise NotFoundError("Video not found")
        result = self.comments.paginate(video_comments_pipeline(vid, viewer_id), params)
        return from_paginate_result(result, params)

    def add_comment(self, video_id: str, owner_id: ObjectId, content: str) -> Dict[str, Any]:
        vid = objid(video_id, "video_id")
        content = require_content(content, "Comment content is required", COMMENT_MAX_LENGTH)
        if not self.videos.exists({"_id": vid}):
            raise NotFoundError("Video not found")
        comment = Comment(content=content, video=vid, owner=owner_id)
        return self.comments.create(comment.model_dump())

    def update_comment(self, comment_id: str, caller_id: ObjectId, content: str) -> Dict[str, Any]:
        cid = objid(comment_id, "comment_id")
        content = require_content(content, "Comment content is required", COMMENT_MAX_LENGTH)
        comment = self._load(cid)
        ensure_owner(comment, caller_id, "edit this comment")
        updated = self.comments.update_by_id(cid, {"$set": {"content": content}})
        if not updated:
            raise NotFoundError("Comment not found")
        return updated

    def delete_comment(self, comment_id: str, caller_id: ObjectId) -> ObjectId:
        cid = objid(comment_id, "comment_id")
        comment = self._load(cid)
        ensure_owner(comment, caller_id, "delete this comment")
        self.comments.delete_by_id(cid)
        self.likes.delete_many({"comment": cid})
        return cid
