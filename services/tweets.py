from typing import Any, Dict, List

from bson import ObjectId
from pymongo.database import Database

from database import objid
from errors import NotFoundError
from guard import ensure_owner
from pipelines import user_tweets_pipeline
from repositories import LikeRepository, TweetRepository, UserRepository
from schemas import TWEET_MAX_LENGTH, Tweet
from services.common import require_content


class TweetService:
    def __init__(self, db: Database):
        self.tweets = TweetRepository(db)
        self.users = UserRepository(db)
        self.likes = LikeRepository(db)

    def _load(self, tweet_id: ObjectId) -> Dict[str, Any]:
        tweet = self.tweets.find_by_id(tweet_id)
        if not tweet:
            raise NotFoundError("Tweet not found")
        return tweet

    def create_tweet(self, owner_id: ObjectId, content: str) -> Dict[str, Any]:
        content = require_content(content, "Content is required", TWEET_MAX_LENGTH)
        return self.tweets.create(Tweet(content=content, owner=owner_id).model_dump())

    def user_tweets(self, user_id: str, viewer_id: ObjectId) -> List[Dict[str, Any]]:
        uid = objid(user_id, "user_id")
        if not self.users.exists({"_id": uid}):
            raise NotFoundError("User not found")
        return self.tweets.aggregate(user_tweets_pipeline(uid, viewer_id))

    def update_tweet(self, tweet_id: str, caller_id: ObjectId, content: str) -> Dict[str, Any]:
        tid = objid(tweet_id, "tweet_id")
        content = require_content(content, "Content is required", TWEET_MAX_LENGTH)
        tweet = self._load(tid)
        ensure_owner(tweet, caller_id, "update this tweet")
        updated = self.tweets.update_by_id(tid, {"$set": {"content": content}})
        if not updated:
            raise NotFoundError("Tweet not found")
        return updated

    def delete_tweet(self, tweet_id: str, caller_id: ObjectId) -> None:
        tid = objid(tweet_id, "tweet_id")
        tweet = self._load(tid)
        ensure_owner(tweet, caller_id, "delete this tweet")
        self.tweets.delete_by_id(tid)
        self.likes.delete_many({"tweet": tid})
