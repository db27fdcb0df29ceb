import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from fastapi import UploadFile
from pydantic import EmailStr, TypeAdapter
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from pipelines import channel_profile_pipeline, watch_history_pipeline
from repositories import PUBLIC_USER_PROJECTION, UserRepository
from schemas import AssetRef, User
from security import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from services.common import require_password, require_text
from storage import IMAGE, Asset, LocalAssetHost

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k not in PUBLIC_USER_PROJECTION}


class UserService:
    """Accounts, sessions and channel pages."""

    def __init__(self, db: Database, assets: LocalAssetHost):
        self.users = UserRepository(db)
        self.assets = assets

    # -------------------- Accounts --------------------

    def register(
        self,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar: Optional[UploadFile],
        cover_image: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        full_name = require_text(full_name, "Full name is required")
        email = require_text(email, "Email is required").lower()
        username = require_text(username, "Username is required").lower()
        password = require_password(password)
        _email_adapter.validate_python(email)

        if self.users.find_by_username_or_email(username, email):
            raise ConflictError("User with email or username already exists")
        if avatar is None:
            raise BadRequestError("Avatar file is required")

        uploaded: List[Tuple[Asset, str]] = []
        try:
            avatar_asset = self.assets.store(avatar, IMAGE)
            uploaded.append((avatar_asset, IMAGE))
            cover_asset = None
            if cover_image is not None:
                cover_asset = self.assets.store(cover_image, IMAGE)
                uploaded.append((cover_asset, IMAGE))

            user = User(
                username=username,
                email=email,
                full_name=full_name,
                password=hash_password(password),
                avatar=AssetRef(**avatar_asset.model_dump()),
                cover_image=AssetRef(**cover_asset.model_dump()) if cover_asset else None,
            )
            created = self.users.create(user.model_dump())
        except DuplicateKeyError:
            self.assets.discard(uploaded)
            raise ConflictError("User with email or username already exists")
        except Exception:
            self.assets.discard(uploaded)
            raise

        logger.info("User registered: %s", username)
        return public_user(created)

    def login(self, username: Optional[str], email: Optional[str], password: str) -> Dict[str, Any]:
        if not username and not email:
            raise BadRequestError("Username or email is required")
        require_password(password)

        user = self.users.find_by_username_or_email(username, email)
        if not user:
            raise NotFoundError("User does not exist")
        if not verify_password(password, user.get("password", "")):
            logger.warning("Failed login for %s", user["username"])
            raise UnauthorizedError("Invalid user credentials")

        access_token, refresh_token = self._issue_tokens(user)
        return {
            "user": public_user(user),
            "access_token": access_token,
            "refresh_token": refresh_token,
        }

    def logout(self, user_id: ObjectId) -> None:
        self.users.clear_refresh_token(user_id)

    def refresh_access_token(self, incoming_token: Optional[str]) -> Dict[str, str]:
        if not incoming_token:
            raise UnauthorizedError("Unauthorized request")

        payload = decode_token(incoming_token, REFRESH)
        if not ObjectId.is_valid(payload["sub"]):
            raise UnauthorizedError("Invalid refresh token")
        user = self.users.find_by_id(ObjectId(payload["sub"]))
        if not user:
            raise UnauthorizedError("Invalid refresh token")
        if incoming_token != user.get("refresh_token"):
            raise UnauthorizedError("Refresh token is expired or used")

        access_token, refresh_token = self._issue_tokens(user)
        return {"access_token": access_token, "refresh_token": refresh_token}

    def _issue_tokens(self, user: Dict[str, Any]) -> Tuple[str, str]:
        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user["_id"])
        self.users.set_refresh_token(user["_id"], refresh_token)
        return access_token, refresh_token

    def change_password(self, user_id: ObjectId, old_password: str, new_password: str) -> None:
        new_password = require_password(new_password, "New password is required")
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(old_password, user.get("password", "")):
            raise BadRequestError("Invalid old password")
        self.users.update_by_id(user_id, {"$set": {"password": hash_password(new_password)}})

    def update_account(self, user_id: ObjectId, full_name: str, email: str) -> Dict[str, Any]:
        email = email.strip().lower()
        if self.users.exists({"email": email, "_id": {"$ne": user_id}}):
            raise ConflictError("Email is already in use")
        user = self.users.update_public(user_id, {"full_name": full_name.strip(), "email": email})
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_avatar(self, user_id: ObjectId, avatar: Optional[UploadFile]) -> Dict[str, Any]:
        if avatar is None:
            raise BadRequestError("Avatar file is missing")
        return self._replace_image(user_id, avatar, "avatar")

    def update_cover_image(self, user_id: ObjectId, cover_image: Optional[UploadFile]) -> Dict[str, Any]:
        if cover_image is None:
            raise BadRequestError("Cover image file is missing")
        return self._replace_image(user_id, cover_image, "cover_image")

    def _replace_image(self, user_id: ObjectId, upload: UploadFile, field: str) -> Dict[str, Any]:
        current = self.users.find_by_id(user_id, {field: 1})
        if not current:
            raise NotFoundError("User not found")

        asset = self.assets.store(upload, IMAGE)
        try:
            user = self.users.update_public(user_id, {field: asset.model_dump()})
        except Exception:
            self.assets.discard([(asset, IMAGE)])
            raise

        old = current.get(field) or {}
        self.assets.delete(old.get("public_id"), IMAGE)
        return user

    # -------------------- Channel pages --------------------

    def channel_profile(self, username: str, viewer_id: Optional[ObjectId]) -> Dict[str, Any]:
        username = require_text(username, "Username is missing")
        channel = self.users.aggregate(channel_profile_pipeline(username, viewer_id))
        if not channel:
            raise NotFoundError("Channel does not exist")
        return channel[0]

    def watch_history(self, user_id: ObjectId) -> List[Dict[str, Any]]:
        result = self.users.aggregate(watch_history_pipeline(user_id))
        if not result:
            raise NotFoundError("User not found")
        return result[0].get("watch_history", [])
