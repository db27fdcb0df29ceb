import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from fastapi import UploadFile
from pymongo.database import Database

from config import settings
from database import objid
from errors import BadRequestError, NotFoundError
from guard import authorize, ensure_owner
from pagination import Page, from_facet, parse_pagination
from pipelines import video_detail_pipeline, video_listing_pipeline
from repositories import (
    CommentRepository,
    LikeRepository,
    PlaylistRepository,
    UserRepository,
    VideoRepository,
)
from schemas import AssetRef, Video
from services.common import optional_objid, require_text
from storage import IMAGE, VIDEO, Asset, LocalAssetHost, validate_format

logger = logging.getLogger(__name__)


class VideoService:
    def __init__(self, db: Database, assets: LocalAssetHost):
        self.videos = VideoRepository(db)
        self.users = UserRepository(db)
        self.comments = CommentRepository(db)
        self.likes = LikeRepository(db)
        self.playlists = PlaylistRepository(db)
        self.assets = assets

    def _load(self, video_id: ObjectId) -> Dict[str, Any]:
        video = self.videos.find_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    def list_videos(
        self,
        page: Any = None,
        limit: Any = None,
        query: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Page:
        params = parse_pagination(page, limit)
        owner_id = optional_objid(user_id, "user_id")
        stages = video_listing_pipeline(
            params,
            query=query,
            sort_by=sort_by,
            sort_type=sort_type,
            owner_id=owner_id,
            search_index=settings.SEARCH_INDEX_NAME,
        )
        return from_facet(self.videos.aggregate(stages), params)

    def publish(
        self,
        owner_id: ObjectId,
        title: Optional[str],
        description: Optional[str],
        video_file: Optional[UploadFile],
        thumbnail: Optional[UploadFile],
        duration: float = 0,
    ) -> Dict[str, Any]:
        title = require_text(title, "Title is required")
        description = require_text(description, "Description is required")
        if video_file is None:
            raise BadRequestError("Video file is required")
        if thumbnail is None:
            raise BadRequestError("Thumbnail file is required")
        if duration is None or duration < 0:
            raise BadRequestError("Invalid duration")
        validate_format(video_file.filename, VIDEO)
        validate_format(thumbnail.filename, IMAGE)

        uploaded: List[Tuple[Asset, str]] = []
        try:
            video_asset = self.assets.store(video_file, VIDEO)
            uploaded.append((video_asset, VIDEO))
            thumbnail_asset = self.assets.store(thumbnail, IMAGE)
            uploaded.append((thumbnail_asset, IMAGE))

            video = Video(
                video_file=AssetRef(**video_asset.model_dump()),
                thumbnail=AssetRef(**thumbnail_asset.model_dump()),
                title=title,
                description=description,
                duration=duration,
                owner=owner_id,
            )
            created = self.videos.create(video.model_dump())
        except Exception:
            self.assets.discard(uploaded)
            raise

        logger.info("Video %s published by %s", created["_id"], owner_id)
        return created

    def get_video(self, video_id: str, viewer_id: ObjectId) -> Dict[str, Any]:
        """
        Video detail with owner card and like info.

        A successful fetch counts one view and records the video in the
        viewer's watch history (set semantics, repeated fetches add it once).
        Unpublished videos are only visible to their owner.
        """
        vid = objid(video_id, "video_id")
        result = self.videos.aggregate(video_detail_pipeline(vid, viewer_id))
        if not result:
            raise NotFoundError("Video not found")
        video = result[0]
        owner_id = (video.get("owner") or {}).get("_id")
        if not video.get("is_published", True) and not authorize(owner_id, viewer_id).allowed:
            raise NotFoundError("Video not found")

        self.videos.increment_views(vid)
        self.users.add_to_watch_history(viewer_id, vid)
        video["views"] = video.get("views", 0) + 1
        return video

    def update_video(
        self,
        video_id: str,
        caller_id: ObjectId,
        title: Optional[str],
        description: Optional[str],
        thumbnail: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        vid = objid(video_id, "video_id")
        title = require_text(title, "Title is required")
        description = require_text(description, "Description is required")
        video = self._load(vid)
        ensure_owner(video, caller_id, "edit this video")

        fields: Dict[str, Any] = {"title": title, "description": description}
        new_thumbnail = None
        if thumbnail is not None:
            new_thumbnail = self.assets.store(thumbnail, IMAGE)
            fields["thumbnail"] = new_thumbnail.model_dump()

        try:
            updated = self.videos.update_by_id(vid, {"$set": fields})
        except Exception:
            if new_thumbnail:
                self.assets.discard([(new_thumbnail, IMAGE)])
            raise
        if not updated:
            raise NotFoundError("Video not found")

        if new_thumbnail:
            self.assets.delete((video.get("thumbnail") or {}).get("public_id"), IMAGE)
        return updated

    def delete_video(self, video_id: str, caller_id: ObjectId) -> None:
        """Delete a video together with its comments, likes and playlist entries."""
        vid = objid(video_id, "video_id")
        video = self._load(vid)
        ensure_owner(video, caller_id, "delete this video")

        if not self.videos.delete_by_id(vid):
            raise NotFoundError("Video not found")

        comment_ids = self.comments.ids_for_video(vid)
        self.likes.delete_many({"$or": [{"video": vid}, {"comment": {"$in": comment_ids}}]})
        self.comments.delete_many({"video": vid})
        self.playlists.pull_video_everywhere(vid)

        self.assets.delete((video.get("video_file") or {}).get("public_id"), VIDEO)
        self.assets.delete((video.get("thumbnail") or {}).get("public_id"), IMAGE)
        logger.info("Video %s deleted with %d comments", vid, len(comment_ids))

    def toggle_publish(self, video_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        vid = objid(video_id, "video_id")
        video = self._load(vid)
        ensure_owner(video, caller_id, "change the status of this video")
        updated = self.videos.update_by_id(vid, {"$set": {"is_published": not video.get("is_published", True)}})
        if not updated:
            raise NotFoundError("Video not found")
        return {"is_published": updated["is_published"]}
