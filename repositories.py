"""
Repository layer: one class per collection over the injected ``Database``.
"""

from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

import database
from pagination import PageParams, aggregate_paginate
from pipelines import compile_pipeline

PUBLIC_USER_PROJECTION = {"password": 0, "refresh_token": 0}


class BaseRepository:
    collection_name: str = ""

    def __init__(self, db: Database):
        self.db = db

    @property
    def collection(self) -> Collection:
        return self.db[self.collection_name]

    def find_by_id(self, doc_id: ObjectId, projection: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": doc_id}, projection)

    def find_one(self, filter_dict: Dict[str, Any], projection: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return self.collection.find_one(filter_dict, projection)

    def exists(self, filter_dict: Dict[str, Any]) -> bool:
        return self.collection.count_documents(filter_dict, limit=1) > 0

    def count(self, filter_dict: Dict[str, Any]) -> int:
        return self.collection.count_documents(filter_dict)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return database.create_document(self.db, self.collection_name, data)

    def update_by_id(
        self,
        doc_id: ObjectId,
        update: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply ``update`` (operator document) and return the updated document."""
        update = {**update, "$set": {**update.get("$set", {}), "updated_at": database.utcnow()}}
        return self.collection.find_one_and_update(
            {"_id": doc_id},
            update,
            projection=projection,
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_id(self, doc_id: ObjectId) -> bool:
        return self.collection.delete_one({"_id": doc_id}).deleted_count == 1

    def delete_many(self, filter_dict: Dict[str, Any]) -> int:
        return self.collection.delete_many(filter_dict).deleted_count

    def aggregate(self, stages: Sequence[Any]) -> List[Dict[str, Any]]:
        return list(self.collection.aggregate(compile_pipeline(stages)))

    def paginate(self, stages: Sequence[Any], params: PageParams) -> Dict[str, Any]:
        return aggregate_paginate(self.collection, compile_pipeline(stages), params)


class UserRepository(BaseRepository):
    collection_name = database.USER

    def find_public(self, user_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.find_by_id(user_id, PUBLIC_USER_PROJECTION)

    def find_by_username_or_email(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        clauses = []
        if username:
            clauses.append({"username": username.strip().lower()})
        if email:
            clauses.append({"email": email.strip().lower()})
        if not clauses:
            return None
        return self.find_one({"$or": clauses})

    def update_public(self, user_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_id(user_id, {"$set": fields}, PUBLIC_USER_PROJECTION)

    def set_refresh_token(self, user_id: ObjectId, token: str) -> None:
        self.collection.update_one({"_id": user_id}, {"$set": {"refresh_token": token}})

    def clear_refresh_token(self, user_id: ObjectId) -> None:
        self.collection.update_one({"_id": user_id}, {"$unset": {"refresh_token": 1}})

    def add_to_watch_history(self, user_id: ObjectId, video_id: ObjectId) -> None:
        self.collection.update_one({"_id": user_id}, {"$addToSet": {"watch_history": video_id}})


class VideoRepository(BaseRepository):
    collection_name = database.VIDEO

    def increment_views(self, video_id: ObjectId) -> None:
        self.collection.update_one({"_id": video_id}, {"$inc": {"views": 1}})


class CommentRepository(BaseRepository):
    collection_name = database.COMMENT

    def ids_for_video(self, video_id: ObjectId) -> List[ObjectId]:
        return [c["_id"] for c in self.collection.find({"video": video_id}, {"_id": 1})]


class TweetRepository(BaseRepository):
    collection_name = database.TWEET


class PlaylistRepository(BaseRepository):
    collection_name = database.PLAYLIST

    def add_video(self, playlist_id: ObjectId, video_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.update_by_id(playlist_id, {"$addToSet": {"videos": video_id}})

    def remove_video(self, playlist_id: ObjectId, video_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.update_by_id(playlist_id, {"$pull": {"videos": video_id}})

    def pull_video_everywhere(self, video_id: ObjectId) -> int:
        return self.collection.update_many({"videos": video_id}, {"$pull": {"videos": video_id}}).modified_count


class LikeRepository(BaseRepository):
    collection_name = database.LIKE


class SubscriptionRepository(BaseRepository):
    collection_name = database.SUBSCRIPTION
