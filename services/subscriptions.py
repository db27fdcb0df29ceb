import logging
from typing import Any, Dict, List

from bson import ObjectId
from pymongo.database import Database

from database import objid
from errors import BadRequestError, NotFoundError
from pipelines import channel_subscribers_pipeline, subscribed_channels_pipeline
from repositories import SubscriptionRepository, UserRepository
from schemas import Subscription

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, db: Database):
        self.subscriptions = SubscriptionRepository(db)
        self.users = UserRepository(db)

    def toggle_subscription(self, channel_id: str, subscriber_id: ObjectId) -> Dict[str, Any]:
        cid = objid(channel_id, "channel_id")
        if str(cid) == str(subscriber_id):
            raise BadRequestError("You cannot subscribe to your own channel")
        if not self.users.exists({"_id": cid}):
            raise NotFoundError("Channel not found")

        existing = self.subscriptions.find_one({"channel": cid, "subscriber": subscriber_id})
        if existing:
            self.subscriptions.delete_by_id(existing["_id"])
            logger.info("User %s unsubscribed from %s", subscriber_id, cid)
            return {"is_subscribed": False}

        self.subscriptions.create(Subscription(channel=cid, subscriber=subscriber_id).model_dump())
        logger.info("User %s subscribed to %s", subscriber_id, cid)
        return {"is_subscribed": True}

    def channel_subscribers(self, channel_id: str) -> List[Dict[str, Any]]:
        cid = objid(channel_id, "channel_id")
        if not self.users.exists({"_id": cid}):
            raise NotFoundError("Channel not found")
        return [row["subscriber"] for row in self.subscriptions.aggregate(channel_subscribers_pipeline(cid))]

    def subscribed_channels(self, subscriber_id: str) -> List[Dict[str, Any]]:
        sid = objid(subscriber_id, "subscriber_id")
        if not self.users.exists({"_id": sid}):
            raise NotFoundError("User not found")
        return [
            row["subscribed_channel"]
            for row in self.subscriptions.aggregate(subscribed_channels_pipeline(sid))
        ]
