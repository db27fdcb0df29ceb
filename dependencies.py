import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pymongo.database import Database

from database import get_db
from errors import UnauthorizedError
from repositories import UserRepository
from security import ACCESS, decode_token
from services.comments import CommentService
from services.dashboard import DashboardService
from services.likes import LikeService
from services.playlists import PlaylistService
from services.subscriptions import SubscriptionService
from services.tweets import TweetService
from services.users import UserService
from services.videos import VideoService
from storage import LocalAssetHost, get_asset_host

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    """
    Resolve the caller from the access token.
    1) Authorization: Bearer header
    2) otherwise the ``access_token`` cookie
    The returned user never carries password or refresh token.
    """
    token = token or request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    payload = decode_token(token, ACCESS)
    if not ObjectId.is_valid(payload["sub"]):
        raise UnauthorizedError("Invalid access token")
    user = UserRepository(db).find_public(ObjectId(payload["sub"]))
    if not user:
        logger.warning("Access token for unknown user %s", payload["sub"])
        raise UnauthorizedError("Invalid access token")
    return user


def get_user_service(
    db: Database = Depends(get_db),
    assets: LocalAssetHost = Depends(get_asset_host),
) -> UserService:
    return UserService(db, assets)


def get_video_service(
    db: Database = Depends(get_db),
    assets: LocalAssetHost = Depends(get_asset_host),
) -> VideoService:
    return VideoService(db, assets)


def get_comment_service(db: Database = Depends(get_db)) -> CommentService:
    return CommentService(db)


def get_tweet_service(db: Database = Depends(get_db)) -> TweetService:
    return TweetService(db)


def get_playlist_service(db: Database = Depends(get_db)) -> PlaylistService:
    return PlaylistService(db)


def get_like_service(db: Database = Depends(get_db)) -> LikeService:
    return LikeService(db)


def get_subscription_service(db: Database = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


def get_dashboard_service(db: Database = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
