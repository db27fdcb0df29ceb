"""
MongoDB connection handling and small document helpers.

The client is created once at application startup (see ``main.lifespan``)
and closed on shutdown. Repositories receive the ``Database`` handle
through ``get_db`` instead of importing a global.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from errors import BadRequestError, InternalError

logger = logging.getLogger(__name__)

USER = "user"
VIDEO = "video"
COMMENT = "comment"
TWEET = "tweet"
PLAYLIST = "playlist"
LIKE = "like"
SUBSCRIPTION = "subscription"

_client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(url: str, database_name: str) -> Database:
    global _client, db
    _client = MongoClient(url, serverSelectionTimeoutMS=5000, tz_aware=True)
    db = _client[database_name]
    logger.info("Connected to MongoDB database %s", database_name)
    return db


def close() -> None:
    global _client, db
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    db = None


def get_db() -> Database:
    if db is None:
        raise InternalError("Database connection is not initialised")
    return db


def ensure_indexes(database: Database) -> None:
    database[USER].create_index([("username", ASCENDING)], unique=True)
    database[USER].create_index([("email", ASCENDING)], unique=True)
    database[VIDEO].create_index([("owner", ASCENDING), ("created_at", ASCENDING)])
    database[COMMENT].create_index([("video", ASCENDING)])
    database[LIKE].create_index([("video", ASCENDING), ("liked_by", ASCENDING)])
    database[SUBSCRIPTION].create_index([("channel", ASCENDING), ("subscriber", ASCENDING)])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def objid(id_str: Any, name: str = "id") -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise BadRequestError(f"Invalid {name}")


def create_document(database: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert ``data`` with timestamps and return the stored document."""
    now = utcnow()
    doc = {**data, "created_at": now, "updated_at": now}
    inserted_id = database[collection_name].insert_one(doc).inserted_id
    doc["_id"] = inserted_id
    return doc

