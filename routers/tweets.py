from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_tweet_service
from responses import ok
from schemas import ContentRequest
from services.tweets import TweetService

router = APIRouter()


@router.post("")
def create_tweet(
    payload: ContentRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: TweetService = Depends(get_tweet_service),
):
    tweet = service.create_tweet(current_user["_id"], payload.content)
    return ok(tweet, "Tweet created successfully", status_code=201)


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: TweetService = Depends(get_tweet_service),
):
    tweets = service.user_tweets(user_id, current_user["_id"])
    if not tweets:
        return ok(tweets, "Tweets are not available")
    return ok(tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    payload: ContentRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: TweetService = Depends(get_tweet_service),
):
    tweet = service.update_tweet(tweet_id, current_user["_id"], payload.content)
    return ok(tweet, "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(
    tweet_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: TweetService = Depends(get_tweet_service),
):
    service.delete_tweet(tweet_id, current_user["_id"])
    return ok({}, "Tweet deleted successfully")
