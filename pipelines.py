"""
Aggregation pipeline builder.

Each stage is a small frozen pydantic model tagged by ``kind``. Builders are
pure functions from request parameters to an ordered list of stages; only
``compile_pipeline`` turns them into the documents MongoDB executes. Keeping
the intermediate form typed makes the pipelines easy to assert on in tests
and to dump for debugging (``model_dump()``).

Stage set: Search, Match, Sort, Join, Unwind, Derive, Group, Project, Paginate.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from database import COMMENT, LIKE, SUBSCRIPTION, USER, VIDEO
from errors import BadRequestError
from pagination import PageParams

SORTABLE_VIDEO_FIELDS = ("created_at", "updated_at", "views", "duration", "title")
DEFAULT_SORT_FIELD = "created_at"


class _StageBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_stage(self) -> Dict[str, Any]:
        raise NotImplementedError


class Search(_StageBase):
    """Full-text search over title (boosted) and description, tolerant of one typo."""
    kind: Literal["search"] = "search"
    query: str
    index: str = "default"
    title_boost: int = 5
    description_boost: int = 1
    max_edits: int = 1

    def _clause(self, path: str, boost: int) -> Dict[str, Any]:
        return {
            "text": {
                "query": self.query,
                "path": path,
                "score": {"boost": {"value": boost}},
                "fuzzy": {"maxEdits": self.max_edits},
            }
        }

    def to_stage(self) -> Dict[str, Any]:
        return {
            "$search": {
                "index": self.index,
                "compound": {
                    "should": [
                        self._clause("title", self.title_boost),
                        self._clause("description", self.description_boost),
                    ]
                },
            }
        }


class Match(_StageBase):
    kind: Literal["match"] = "match"
    predicate: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$match": dict(self.predicate)}


class Sort(_StageBase):
    kind: Literal["sort"] = "sort"
    field: str
    direction: Literal[1, -1] = -1

    def to_stage(self) -> Dict[str, Any]:
        return {"$sort": {self.field: self.direction}}


class Join(_StageBase):
    """``$lookup`` of ``collection`` where ``local_field`` equals ``foreign_field``."""
    kind: Literal["join"] = "join"
    collection: str
    local_field: str
    foreign_field: str
    as_field: str
    pipeline: List["Stage"] = Field(default_factory=list)

    def to_stage(self) -> Dict[str, Any]:
        lookup: Dict[str, Any] = {
            "from": self.collection,
            "localField": self.local_field,
            "foreignField": self.foreign_field,
            "as": self.as_field,
        }
        if self.pipeline:
            lookup["pipeline"] = compile_pipeline(self.pipeline)
        return {"$lookup": lookup}


class Unwind(_StageBase):
    kind: Literal["unwind"] = "unwind"
    path: str
    preserve_empty: bool = False

    def to_stage(self) -> Dict[str, Any]:
        if self.preserve_empty:
            return {"$unwind": {"path": f"${self.path}", "preserveNullAndEmptyArrays": True}}
        return {"$unwind": f"${self.path}"}


class Derive(_StageBase):
    kind: Literal["derive"] = "derive"
    fields: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$addFields": dict(self.fields)}


class Group(_StageBase):
    kind: Literal["group"] = "group"
    key: Any = None
    accumulators: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$group": {"_id": self.key, **self.accumulators}}


class Project(_StageBase):
    kind: Literal["project"] = "project"
    fields: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$project": dict(self.fields)}


class Paginate(_StageBase):
    """Single-pass count + slice, read back by ``pagination.from_facet``."""
    kind: Literal["paginate"] = "paginate"
    page: int = Field(ge=1)
    limit: int = Field(ge=1)

    def to_stage(self) -> Dict[str, Any]:
        return {
            "$facet": {
                "metadata": [{"$count": "total"}],
                "results": [
                    {"$skip": (self.page - 1) * self.limit},
                    {"$limit": self.limit},
                ],
            }
        }


Stage = Annotated[
    Union[Search, Match, Sort, Join, Unwind, Derive, Group, Project, Paginate],
    Field(discriminator="kind"),
]

Join.model_rebuild()


def compile_pipeline(stages: Sequence[_StageBase]) -> List[Dict[str, Any]]:
    return [stage.to_stage() for stage in stages]


# -------------------- Expressions --------------------

def size_of(path: str) -> Dict[str, Any]:
    return {"$size": f"${path}"}


def sum_of(path: str) -> Dict[str, Any]:
    return {"$sum": f"${path}"}


def first_of(path: str) -> Dict[str, Any]:
    return {"$first": f"${path}"}


def contains(value: Any, path: str) -> Dict[str, Any]:
    return {"$cond": {"if": {"$in": [value, f"${path}"]}, "then": True, "else": False}}


# -------------------- Shared pieces --------------------

OWNER_CARD_FIELDS = {"username": 1, "full_name": 1, "avatar.url": 1}


def owner_join(as_field: str = "owner", local_field: str = "owner", fields: Optional[Dict[str, Any]] = None) -> Join:
    return Join(
        collection=USER,
        local_field=local_field,
        foreign_field="_id",
        as_field=as_field,
        pipeline=[Project(fields=fields or OWNER_CARD_FIELDS)],
    )


def published_only() -> Match:
    return Match(predicate={"is_published": True})


def newest_first() -> Sort:
    return Sort(field=DEFAULT_SORT_FIELD, direction=-1)


def sort_stage(sort_by: Optional[str], sort_type: Optional[str]) -> Sort:
    field = sort_by or DEFAULT_SORT_FIELD
    if field not in SORTABLE_VIDEO_FIELDS:
        raise BadRequestError(f"Invalid sort_by value: {field}")
    direction = (sort_type or "desc").lower()
    if direction not in ("asc", "desc"):
        raise BadRequestError(f"Invalid sort_type value: {sort_type}")
    return Sort(field=field, direction=1 if direction == "asc" else -1)


# -------------------- Builders --------------------

def video_listing_pipeline(
    params: PageParams,
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    owner_id: Optional[ObjectId] = None,
    search_index: str = "default",
) -> List[_StageBase]:
    """
    Published videos, optionally text-searched and filtered by owner.

    ``$search`` has to be the first stage of a pipeline, so it is added
    before the published filter.
    """
    stages: List[_StageBase] = []
    if query and query.strip():
        stages.append(Search(query=query.strip(), index=search_index))
    stages.append(published_only())
    if owner_id is not None:
        stages.append(Match(predicate={"owner": owner_id}))
    stages.append(sort_stage(sort_by, sort_type))
    stages.append(owner_join(as_field="owner_details", fields={"username": 1, "avatar.url": 1}))
    stages.append(Unwind(path="owner_details"))
    stages.append(Paginate(page=params.page, limit=params.limit))
    return stages


def channel_profile_pipeline(username: str, viewer_id: Optional[ObjectId]) -> List[_StageBase]:
    return [
        Match(predicate={"username": username.strip().lower()}),
        Join(collection=SUBSCRIPTION, local_field="_id", foreign_field="channel", as_field="subscribers"),
        Join(collection=SUBSCRIPTION, local_field="_id", foreign_field="subscriber", as_field="subscribed_to"),
        Derive(fields={
            "subscribers_count": size_of("subscribers"),
            "channels_subscribed_to_count": size_of("subscribed_to"),
            "is_subscribed": contains(viewer_id, "subscribers.subscriber"),
        }),
        Project(fields={
            "full_name": 1,
            "username": 1,
            "email": 1,
            "avatar": 1,
            "cover_image": 1,
            "subscribers_count": 1,
            "channels_subscribed_to_count": 1,
            "is_subscribed": 1,
            "created_at": 1,
        }),
    ]


def video_detail_pipeline(video_id: ObjectId, viewer_id: Optional[ObjectId]) -> List[_StageBase]:
    owner_card = [
        Join(collection=SUBSCRIPTION, local_field="_id", foreign_field="channel", as_field="subscribers"),
        Derive(fields={
            "subscribers_count": size_of("subscribers"),
            "is_subscribed": contains(viewer_id, "subscribers.subscriber"),
        }),
        Project(fields={**OWNER_CARD_FIELDS, "subscribers_count": 1, "is_subscribed": 1}),
    ]
    return [
        Match(predicate={"_id": video_id}),
        Join(collection=USER, local_field="owner", foreign_field="_id", as_field="owner", pipeline=owner_card),
        Unwind(path="owner", preserve_empty=True),
        Join(
            collection=LIKE,
            local_field="_id",
            foreign_field="video",
            as_field="likes",
            pipeline=[Project(fields={"liked_by": 1})],
        ),
        Join(
            collection=COMMENT,
            local_field="_id",
            foreign_field="video",
            as_field="comments",
            pipeline=[Project(fields={"_id": 1})],
        ),
        Derive(fields={
            "likes_count": size_of("likes"),
            "comments_count": size_of("comments"),
            "is_liked": contains(viewer_id, "likes.liked_by"),
        }),
        Project(fields={
            "video_file.url": 1,
            "thumbnail.url": 1,
            "title": 1,
            "description": 1,
            "duration": 1,
            "views": 1,
            "is_published": 1,
            "owner": 1,
            "likes_count": 1,
            "comments_count": 1,
            "is_liked": 1,
            "created_at": 1,
            "updated_at": 1,
        }),
    ]


def watch_history_pipeline(user_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"_id": user_id}),
        Join(
            collection=VIDEO,
            local_field="watch_history",
            foreign_field="_id",
            as_field="watch_history",
            pipeline=[
                owner_join(fields={"full_name": 1, "username": 1, "avatar": 1}),
                Derive(fields={"owner": first_of("owner")}),
            ],
        ),
        Project(fields={"watch_history": 1}),
    ]


def playlist_detail_pipeline(playlist_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"_id": playlist_id}),
        Join(
            collection=VIDEO,
            local_field="videos",
            foreign_field="_id",
            as_field="videos",
            pipeline=[published_only()],
        ),
        Join(collection=USER, local_field="owner", foreign_field="_id", as_field="owner"),
        Derive(fields={
            "total_videos": size_of("videos"),
            "total_views": sum_of("videos.views"),
            "owner": first_of("owner"),
        }),
        Project(fields={
            "name": 1,
            "description": 1,
            "created_at": 1,
            "updated_at": 1,
            "total_videos": 1,
            "total_views": 1,
            "videos._id": 1,
            "videos.video_file.url": 1,
            "videos.thumbnail.url": 1,
            "videos.title": 1,
            "videos.description": 1,
            "videos.duration": 1,
            "videos.views": 1,
            "videos.created_at": 1,
            "owner._id": 1,
            "owner.username": 1,
            "owner.full_name": 1,
            "owner.avatar.url": 1,
        }),
    ]


def user_playlists_pipeline(owner_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"owner": owner_id}),
        newest_first(),
        Join(
            collection=VIDEO,
            local_field="videos",
            foreign_field="_id",
            as_field="videos",
            pipeline=[published_only()],
        ),
        Derive(fields={
            "total_videos": size_of("videos"),
            "total_views": sum_of("videos.views"),
        }),
        Project(fields={
            "name": 1,
            "description": 1,
            "total_videos": 1,
            "total_views": 1,
            "created_at": 1,
            "updated_at": 1,
        }),
    ]


def user_tweets_pipeline(owner_id: ObjectId, viewer_id: Optional[ObjectId]) -> List[_StageBase]:
    return [
        Match(predicate={"owner": owner_id}),
        newest_first(),
        owner_join(as_field="owner_details", fields={"username": 1, "avatar.url": 1}),
        Join(
            collection=LIKE,
            local_field="_id",
            foreign_field="tweet",
            as_field="like_details",
            pipeline=[Project(fields={"liked_by": 1})],
        ),
        Derive(fields={
            "likes_count": size_of("like_details"),
            "owner_details": first_of("owner_details"),
            "is_liked": contains(viewer_id, "like_details.liked_by"),
        }),
        Project(fields={
            "content": 1,
            "owner_details": 1,
            "likes_count": 1,
            "is_liked": 1,
            "created_at": 1,
        }),
    ]


def video_comments_pipeline(video_id: ObjectId, viewer_id: Optional[ObjectId]) -> List[_StageBase]:
    """Comments of a video, newest first. Paginated by the caller."""
    return [
        Match(predicate={"video": video_id}),
        newest_first(),
        Join(collection=USER, local_field="owner", foreign_field="_id", as_field="owner_details"),
        Unwind(path="owner_details"),
        Join(
            collection=LIKE,
            local_field="_id",
            foreign_field="comment",
            as_field="likes",
            pipeline=[Project(fields={"liked_by": 1})],
        ),
        Derive(fields={
            "likes_count": size_of("likes"),
            "is_liked": contains(viewer_id, "likes.liked_by"),
        }),
        Project(fields={
            "content": 1,
            "owner": {
                "_id": "$owner_details._id",
                "username": "$owner_details.username",
                "avatar_url": "$owner_details.avatar.url",
            },
            "likes_count": 1,
            "is_liked": 1,
            "created_at": 1,
        }),
    ]


def liked_videos_pipeline(user_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"liked_by": user_id, "video": {"$exists": True}}),
        newest_first(),
        Join(
            collection=VIDEO,
            local_field="video",
            foreign_field="_id",
            as_field="liked_video",
            pipeline=[
                published_only(),
                owner_join(as_field="owner_details", fields={"username": 1, "full_name": 1, "avatar.url": 1}),
                Unwind(path="owner_details"),
            ],
        ),
        Unwind(path="liked_video"),
        Project(fields={
            "_id": 0,
            "liked_video._id": 1,
            "liked_video.video_file.url": 1,
            "liked_video.thumbnail.url": 1,
            "liked_video.title": 1,
            "liked_video.description": 1,
            "liked_video.duration": 1,
            "liked_video.views": 1,
            "liked_video.created_at": 1,
            "liked_video.owner_details": 1,
        }),
    ]


def channel_subscribers_pipeline(channel_id: ObjectId) -> List[_StageBase]:
    """Subscribers of a channel, each flagged with whether the channel follows them back."""
    return [
        Match(predicate={"channel": channel_id}),
        newest_first(),
        Join(
            collection=USER,
            local_field="subscriber",
            foreign_field="_id",
            as_field="subscriber",
            pipeline=[
                Join(
                    collection=SUBSCRIPTION,
                    local_field="_id",
                    foreign_field="channel",
                    as_field="subscribed_to_subscriber",
                ),
                Derive(fields={
                    "subscribed_to_subscriber": contains(channel_id, "subscribed_to_subscriber.subscriber"),
                    "subscribers_count": size_of("subscribed_to_subscriber"),
                }),
                Project(fields={**OWNER_CARD_FIELDS, "subscribed_to_subscriber": 1, "subscribers_count": 1}),
            ],
        ),
        Unwind(path="subscriber"),
        Project(fields={"_id": 0, "subscriber": 1}),
    ]


def subscribed_channels_pipeline(subscriber_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"subscriber": subscriber_id}),
        newest_first(),
        Join(
            collection=USER,
            local_field="channel",
            foreign_field="_id",
            as_field="subscribed_channel",
            pipeline=[
                Join(
                    collection=VIDEO,
                    local_field="_id",
                    foreign_field="owner",
                    as_field="videos",
                    pipeline=[published_only(), newest_first()],
                ),
                Derive(fields={"latest_video": first_of("videos")}),
                Project(fields={
                    **OWNER_CARD_FIELDS,
                    "latest_video._id": 1,
                    "latest_video.title": 1,
                    "latest_video.thumbnail.url": 1,
                    "latest_video.duration": 1,
                    "latest_video.views": 1,
                    "latest_video.created_at": 1,
                }),
            ],
        ),
        Unwind(path="subscribed_channel"),
        Project(fields={"_id": 0, "subscribed_channel": 1}),
    ]


def channel_stats_pipeline(owner_id: ObjectId) -> List[_StageBase]:
    return [
        Match(predicate={"owner": owner_id}),
        Join(
            collection=LIKE,
            local_field="_id",
            foreign_field="video",
            as_field="likes",
            pipeline=[Project(fields={"_id": 1})],
        ),
        Derive(fields={"likes_count": size_of("likes")}),
        Group(accumulators={
            "total_videos": {"$sum": 1},
            "total_views": {"$sum": "$views"},
            "total_likes": {"$sum": "$likes_count"},
        }),
        Project(fields={"_id": 0, "total_videos": 1, "total_views": 1, "total_likes": 1}),
    ]


def channel_videos_pipeline(owner_id: ObjectId) -> List[_StageBase]:
    """Every video of the caller's own channel, published or not."""
    return [
        Match(predicate={"owner": owner_id}),
        newest_first(),
        Join(
            collection=LIKE,
            local_field="_id",
            foreign_field="video",
            as_field="likes",
            pipeline=[Project(fields={"_id": 1})],
        ),
        Derive(fields={"likes_count": size_of("likes")}),
        Project(fields={
            "title": 1,
            "description": 1,
            "video_file.url": 1,
            "thumbnail.url": 1,
            "duration": 1,
            "views": 1,
            "is_published": 1,
            "likes_count": 1,
            "created_at": 1,
            "updated_at": 1,
        }),
    ]
