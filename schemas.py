"""
Database Schemas for the video sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Comment -> comment
- Tweet -> tweet
- Playlist -> playlist
- Like -> like
- Subscription -> subscription

References between documents are stored as ObjectId so aggregation lookups can join on ``_id``.
"""

from typing import Annotated, List, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


COMMENT_MAX_LENGTH = 500
TWEET_MAX_LENGTH = 280


class AssetRef(BaseModel):
    url: str
    public_id: str


class _Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


class User(_Document):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=80)
    password: str = Field(..., description="Bcrypt hash")
    avatar: AssetRef
    cover_image: Optional[AssetRef] = None
    watch_history: List[ObjectId] = Field(default_factory=list)

    @field_validator("username", "email")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.strip().lower()


class Video(_Document):
    video_file: AssetRef
    thumbnail: AssetRef
    title: str = Field(..., min_length=1, max_length=120)
    description: str
    duration: float = Field(0, ge=0)
    views: int = 0
    is_published: bool = True
    owner: ObjectId


class Comment(_Document):
    content: str = Field(..., min_length=1, max_length=COMMENT_MAX_LENGTH)
    video: ObjectId
    owner: ObjectId


class Tweet(_Document):
    content: str = Field(..., min_length=1, max_length=TWEET_MAX_LENGTH)
    owner: ObjectId


class Playlist(_Document):
    name: str = Field(..., min_length=1, max_length=100)
    description: str
    owner: ObjectId
    videos: List[ObjectId] = Field(default_factory=list)


class Like(_Document):
    video: Optional[ObjectId] = None
    comment: Optional[ObjectId] = None
    tweet: Optional[ObjectId] = None
    liked_by: ObjectId

    @model_validator(mode="after")
    def single_target(self):
        targets = [t for t in (self.video, self.comment, self.tweet) if t is not None]
        if len(targets) != 1:
            raise ValueError("A like targets exactly one of video, comment or tweet")
        return self


class Subscription(_Document):
    channel: ObjectId = Field(..., description="The user id of the channel being subscribed to")
    subscriber: ObjectId = Field(..., description="The user id of the subscriber")


# -------------------- Request bodies --------------------

def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


def _has_text(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


# Passwords are checked for content but kept exactly as typed
PasswordStr = Annotated[str, AfterValidator(_has_text)]


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: str

    @model_validator(mode="after")
    def username_or_email(self):
        if not (self.username and self.username.strip()) and not self.email:
            raise ValueError("Username or email is required")
        return self


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: PasswordStr


class UpdateAccountRequest(BaseModel):
    full_name: NonBlankStr
    email: EmailStr


class ContentRequest(BaseModel):
    content: NonBlankStr


class PlaylistRequest(BaseModel):
    name: NonBlankStr
    description: NonBlankStr
