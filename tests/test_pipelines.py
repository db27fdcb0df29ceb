import pytest
from bson import ObjectId
from pydantic import ValidationError

from errors import BadRequestError
from pagination import PageParams
from pipelines import (
    Join,
    Match,
    Paginate,
    Project,
    Search,
    Unwind,
    channel_profile_pipeline,
    channel_stats_pipeline,
    compile_pipeline,
    playlist_detail_pipeline,
    sort_stage,
    video_comments_pipeline,
    video_detail_pipeline,
    video_listing_pipeline,
    watch_history_pipeline,
)


def test_listing_without_query_starts_with_published_filter():
    stages = video_listing_pipeline(PageParams(page=1, limit=10))
    compiled = compile_pipeline(stages)

    assert compiled[0] == {"$match": {"is_published": True}}
    assert not any("$search" in stage for stage in compiled)
    assert compiled[1] == {"$sort": {"created_at": -1}}


def test_listing_with_query_puts_search_first():
    stages = video_listing_pipeline(PageParams(), query="  cats  ", search_index="videos")
    search = compile_pipeline(stages)[0]["$search"]

    assert isinstance(stages[0], Search)
    assert search["index"] == "videos"
    title, description = search["compound"]["should"]
    assert title["text"]["path"] == "title"
    assert title["text"]["query"] == "cats"
    assert title["text"]["score"]["boost"]["value"] == 5
    assert description["text"]["score"]["boost"]["value"] == 1
    assert title["text"]["fuzzy"] == {"maxEdits": 1}


def test_listing_blank_query_is_ignored():
    stages = video_listing_pipeline(PageParams(), query="   ")
    assert not isinstance(stages[0], Search)


def test_listing_owner_filter_and_facet_slice():
    owner = ObjectId()
    compiled = compile_pipeline(video_listing_pipeline(PageParams(page=3, limit=5), owner_id=owner))

    assert {"$match": {"owner": owner}} in compiled
    facet = compiled[-1]["$facet"]
    assert facet["metadata"] == [{"$count": "total"}]
    assert facet["results"] == [{"$skip": 10}, {"$limit": 5}]


def test_listing_joins_owner_details():
    compiled = compile_pipeline(video_listing_pipeline(PageParams()))
    lookup = next(stage["$lookup"] for stage in compiled if "$lookup" in stage)

    assert lookup["from"] == "user"
    assert lookup["as"] == "owner_details"
    assert lookup["pipeline"] == [{"$project": {"username": 1, "avatar.url": 1}}]
    assert {"$unwind": "$owner_details"} in compiled


@pytest.mark.parametrize("sort_by,sort_type,expected", [
    (None, None, {"created_at": -1}),
    ("views", "asc", {"views": 1}),
    ("duration", "DESC", {"duration": -1}),
])
def test_sort_stage(sort_by, sort_type, expected):
    assert sort_stage(sort_by, sort_type).to_stage() == {"$sort": expected}


@pytest.mark.parametrize("sort_by,sort_type", [
    ("password", "asc"),
    ("views", "sideways"),
])
def test_sort_stage_rejects_unknown_values(sort_by, sort_type):
    with pytest.raises(BadRequestError):
        sort_stage(sort_by, sort_type)


def test_paginate_requires_positive_values():
    with pytest.raises(ValidationError):
        Paginate(page=0, limit=10)
    with pytest.raises(ValidationError):
        Paginate(page=1, limit=0)


def test_stages_are_immutable():
    stage = Match(predicate={"a": 1})
    with pytest.raises(ValidationError):
        stage.predicate = {"b": 2}


def test_join_compiles_nested_pipeline():
    join = Join(
        collection="like",
        local_field="_id",
        foreign_field="video",
        as_field="likes",
        pipeline=[Project(fields={"liked_by": 1})],
    )
    assert join.to_stage() == {
        "$lookup": {
            "from": "like",
            "localField": "_id",
            "foreignField": "video",
            "as": "likes",
            "pipeline": [{"$project": {"liked_by": 1}}],
        }
    }


def test_join_without_sub_pipeline_omits_key():
    join = Join(collection="user", local_field="owner", foreign_field="_id", as_field="owner")
    assert "pipeline" not in join.to_stage()["$lookup"]


def test_unwind_preserve_empty():
    assert Unwind(path="owner", preserve_empty=True).to_stage() == {
        "$unwind": {"path": "$owner", "preserveNullAndEmptyArrays": True}
    }


def test_video_detail_flags_viewer():
    video_id, viewer = ObjectId(), ObjectId()
    compiled = compile_pipeline(video_detail_pipeline(video_id, viewer))

    assert compiled[0] == {"$match": {"_id": video_id}}
    derived = next(stage["$addFields"] for stage in compiled if "is_liked" in stage.get("$addFields", {}))
    assert derived["likes_count"] == {"$size": "$likes"}
    assert derived["is_liked"]["$cond"]["if"] == {"$in": [viewer, "$likes.liked_by"]}

    owner_lookup = compiled[1]["$lookup"]
    owner_fields = owner_lookup["pipeline"][1]["$addFields"]
    assert owner_fields["is_subscribed"]["$cond"]["if"] == {"$in": [viewer, "$subscribers.subscriber"]}


def test_playlist_detail_counts_only_published_videos():
    compiled = compile_pipeline(playlist_detail_pipeline(ObjectId()))
    videos_lookup = compiled[1]["$lookup"]

    assert videos_lookup["from"] == "video"
    assert videos_lookup["pipeline"] == [{"$match": {"is_published": True}}]
    derived = compiled[3]["$addFields"]
    assert derived["total_videos"] == {"$size": "$videos"}
    assert derived["total_views"] == {"$sum": "$videos.views"}
    assert derived["owner"] == {"$first": "$owner"}


def test_comment_pipeline_has_no_pagination_stage():
    compiled = compile_pipeline(video_comments_pipeline(ObjectId(), ObjectId()))
    assert not any("$facet" in stage for stage in compiled)
    assert compiled[1] == {"$sort": {"created_at": -1}}


def test_channel_stats_groups_everything():
    owner = ObjectId()
    compiled = compile_pipeline(channel_stats_pipeline(owner))
    group = next(stage["$group"] for stage in compiled if "$group" in stage)

    assert compiled[0] == {"$match": {"owner": owner}}
    assert group["_id"] is None
    assert group["total_views"] == {"$sum": "$views"}
    assert group["total_likes"] == {"$sum": "$likes_count"}


def test_channel_profile_joins_both_sides_of_follow_graph():
    viewer = ObjectId()
    compiled = compile_pipeline(channel_profile_pipeline("  Alice ", viewer))

    assert compiled[0] == {"$match": {"username": "alice"}}
    lookups = [stage["$lookup"] for stage in compiled if "$lookup" in stage]
    assert [(lk["from"], lk["localField"], lk["foreignField"], lk["as"]) for lk in lookups] == [
        ("subscription", "_id", "channel", "subscribers"),
        ("subscription", "_id", "subscriber", "subscribed_to"),
    ]

    derived = next(stage["$addFields"] for stage in compiled if "$addFields" in stage)
    assert derived["subscribers_count"] == {"$size": "$subscribers"}
    assert derived["channels_subscribed_to_count"] == {"$size": "$subscribed_to"}
    assert derived["is_subscribed"] == {
        "$cond": {"if": {"$in": [viewer, "$subscribers.subscriber"]}, "then": True, "else": False}
    }


def test_channel_profile_projects_public_fields_only():
    projection = compile_pipeline(channel_profile_pipeline("alice", None))[-1]["$project"]

    assert "password" not in projection
    assert "refresh_token" not in projection
    assert "watch_history" not in projection
    for field in ("username", "full_name", "avatar", "cover_image", "subscribers_count",
                  "channels_subscribed_to_count", "is_subscribed"):
        assert projection[field] == 1


def test_watch_history_flattens_owner():
    user_id = ObjectId()
    compiled = compile_pipeline(watch_history_pipeline(user_id))

    assert compiled[0] == {"$match": {"_id": user_id}}
    history = compiled[1]["$lookup"]
    assert (history["from"], history["localField"], history["foreignField"], history["as"]) == (
        "video", "watch_history", "_id", "watch_history",
    )

    owner_lookup, flatten = history["pipeline"]
    assert owner_lookup["$lookup"]["from"] == "user"
    assert owner_lookup["$lookup"]["as"] == "owner"
    owner_projection = owner_lookup["$lookup"]["pipeline"][0]["$project"]
    assert "password" not in owner_projection
    assert "refresh_token" not in owner_projection
    assert flatten == {"$addFields": {"owner": {"$first": "$owner"}}}
    assert compiled[-1] == {"$project": {"watch_history": 1}}
