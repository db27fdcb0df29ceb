from typing import Any, Dict, List

from bson import ObjectId
from pymongo.database import Database

from database import objid
from errors import NotFoundError
from pipelines import liked_videos_pipeline
from repositories import (
    BaseRepository,
    CommentRepository,
    LikeRepository,
    TweetRepository,
    VideoRepository,
)
from schemas import Like


class LikeService:
    def __init__(self, db: Database):
        self.likes = LikeRepository(db)
        self.videos = VideoRepository(db)
        self.comments = CommentRepository(db)
        self.tweets = TweetRepository(db)

    def _toggle(self, target: str, target_id: str, repo: BaseRepository, caller_id: ObjectId) -> Dict[str, Any]:
        tid = objid(target_id, f"{target}_id")
        if not repo.exists({"_id": tid}):
            raise NotFoundError(f"{target.capitalize()} not found")

        existing = self.likes.find_one({target: tid, "liked_by": caller_id})
        if existing:
            self.likes.delete_by_id(existing["_id"])
            return {"is_liked": False}

        self.likes.create(Like(**{target: tid, "liked_by": caller_id}).model_dump(exclude_none=True))
        return {"is_liked": True}

    def toggle_video_like(self, video_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        return self._toggle("video", video_id, self.videos, caller_id)

    def toggle_comment_like(self, comment_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        return self._toggle("comment", comment_id, self.comments, caller_id)

    def toggle_tweet_like(self, tweet_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        return self._toggle("tweet", tweet_id, self.tweets, caller_id)

    def liked_videos(self, user_id: ObjectId) -> List[Dict[str, Any]]:
        return [row["liked_video"] for row in self.likes.aggregate(liked_videos_pipeline(user_id))]
