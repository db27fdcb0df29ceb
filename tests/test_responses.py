import json
from datetime import datetime, timezone

from bson import ObjectId

from pagination import Page
from responses import fail, ok, to_str_id


def test_to_str_id_converts_nested_documents():
    video_id, owner_id = ObjectId(), ObjectId()
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    doc = {
        "_id": video_id,
        "owner": {"_id": owner_id, "username": "bob"},
        "tags": [ObjectId(), "x"],
        "created_at": created,
    }

    out = to_str_id(doc)

    assert out["id"] == str(video_id)
    assert "_id" not in out
    assert out["owner"] == {"id": str(owner_id), "username": "bob"}
    assert isinstance(out["tags"][0], str)
    assert out["created_at"] == created.isoformat()


def test_to_str_id_dumps_models():
    page = Page(items=[{"_id": ObjectId()}], total_count=1)
    out = to_str_id(page)
    assert isinstance(out["items"][0]["id"], str)
    assert out["total_count"] == 1


def test_ok_envelope():
    response = ok({"_id": ObjectId()}, "Created", status_code=201)
    body = json.loads(response.body)

    assert response.status_code == 201
    assert body["status_code"] == 201
    assert body["success"] is True
    assert body["message"] == "Created"
    assert "id" in body["data"]


def test_fail_envelope():
    response = fail(404, "not_found", "Video not found")
    body = json.loads(response.body)

    assert response.status_code == 404
    assert body == {
        "status_code": 404,
        "error_kind": "not_found",
        "message": "Video not found",
        "success": False,
    }
