from typing import Any, Dict, List

from bson import ObjectId
from pymongo.database import Database

from pipelines import channel_stats_pipeline, channel_videos_pipeline
from repositories import SubscriptionRepository, TweetRepository, VideoRepository


class DashboardService:
    """Numbers for the signed-in user's own channel."""

    def __init__(self, db: Database):
        self.videos = VideoRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.tweets = TweetRepository(db)

    def channel_stats(self, owner_id: ObjectId) -> Dict[str, Any]:
        result = self.videos.aggregate(channel_stats_pipeline(owner_id))
        stats = result[0] if result else {"total_videos": 0, "total_views": 0, "total_likes": 0}
        stats["total_subscribers"] = self.subscriptions.count({"channel": owner_id})
        stats["total_tweets"] = self.tweets.count({"owner": owner_id})
        return stats

    def channel_videos(self, owner_id: ObjectId) -> List[Dict[str, Any]]:
        return self.videos.aggregate(channel_videos_pipeline(owner_id))
