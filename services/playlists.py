import logging
from typing import Any, Dict, List, Tuple

from bson import ObjectId
from pymongo.database import Database

from database import objid
from errors import NotFoundError
from guard import ensure_owner
from pipelines import playlist_detail_pipeline, user_playlists_pipeline
from repositories import PlaylistRepository, UserRepository, VideoRepository
from schemas import Playlist
from services.common import require_text

logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(self, db: Database):
        self.playlists = PlaylistRepository(db)
        self.videos = VideoRepository(db)
        self.users = UserRepository(db)

    def _load(self, playlist_id: ObjectId) -> Dict[str, Any]:
        playlist = self.playlists.find_by_id(playlist_id)
        if not playlist:
            raise NotFoundError("Playlist not found")
        return playlist

    def create_playlist(self, owner_id: ObjectId, name: str, description: str) -> Dict[str, Any]:
        name = require_text(name, "Name is required")
        description = require_text(description, "Description is required")
        playlist = Playlist(name=name, description=description, owner=owner_id)
        created = self.playlists.create(playlist.model_dump())
        logger.info("Playlist %s created for user %s", created["_id"], owner_id)
        return created

    def user_playlists(self, user_id: str) -> List[Dict[str, Any]]:
        uid = objid(user_id, "user_id")
        if not self.users.exists({"_id": uid}):
            raise NotFoundError("User not found")
        return self.playlists.aggregate(user_playlists_pipeline(uid))

    def get_playlist(self, playlist_id: str) -> Dict[str, Any]:
        pid = objid(playlist_id, "playlist_id")
        result = self.playlists.aggregate(playlist_detail_pipeline(pid))
        if not result:
            raise NotFoundError("Playlist not found")
        return result[0]

    def _load_pair(self, playlist_id: str, video_id: str) -> Tuple[Dict[str, Any], ObjectId]:
        pid = objid(playlist_id, "playlist_id")
        vid = objid(video_id, "video_id")
        playlist = self._load(pid)
        if not self.videos.exists({"_id": vid}):
            raise NotFoundError("Video not found")
        return playlist, vid

    def add_video(self, playlist_id: str, video_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        playlist, vid = self._load_pair(playlist_id, video_id)
        ensure_owner(playlist, caller_id, "add videos to this playlist")
        updated = self.playlists.add_video(playlist["_id"], vid)
        if not updated:
            raise NotFoundError("Playlist not found")
        return updated

    def remove_video(self, playlist_id: str, video_id: str, caller_id: ObjectId) -> Dict[str, Any]:
        playlist, vid = self._load_pair(playlist_id, video_id)
        ensure_owner(playlist, caller_id, "remove videos from this playlist")
        updated = self.playlists.remove_video(playlist["_id"], vid)
        if not updated:
            raise NotFoundError("Playlist not found")
        return updated

    def update_playlist(self, playlist_id: str, caller_id: ObjectId, name: str, description: str) -> Dict[str, Any]:
        pid = objid(playlist_id, "playlist_id")
        name = require_text(name, "Name is required")
        description = require_text(description, "Description is required")
        playlist = self._load(pid)
        ensure_owner(playlist, caller_id, "update this playlist")
        updated = self.playlists.update_by_id(pid, {"$set": {"name": name, "description": description}})
        if not updated:
            raise NotFoundError("Playlist not found")
        return updated

    def delete_playlist(self, playlist_id: str, caller_id: ObjectId) -> None:
        pid = objid(playlist_id, "playlist_id")
        playlist = self._load(pid)
        ensure_owner(playlist, caller_id, "delete this playlist")
        self.playlists.delete_by_id(pid)
