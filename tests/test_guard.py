import pytest
from bson import ObjectId

from errors import ForbiddenError
from guard import authorize, ensure_owner


def test_same_owner_as_objectid_and_string():
    owner = ObjectId()
    assert authorize(owner, str(owner)).allowed
    assert authorize(str(owner), owner).allowed


def test_different_owner_is_denied():
    decision = authorize(ObjectId(), ObjectId())
    assert not decision.allowed
    assert decision.reason


@pytest.mark.parametrize("owner,caller", [(None, ObjectId()), (ObjectId(), None), (None, None)])
def test_missing_ids_are_denied(owner, caller):
    assert not authorize(owner, caller).allowed


def test_ensure_owner_raises_forbidden():
    resource = {"owner": ObjectId()}
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_owner(resource, ObjectId(), "delete this tweet")
    assert exc_info.value.message == "You cannot delete this tweet as you are not the owner"
    assert exc_info.value.status_code == 403


def test_ensure_owner_custom_field():
    caller = ObjectId()
    ensure_owner({"liked_by": caller}, caller, "remove this like", owner_field="liked_by")


def test_ensure_owner_message_carries_deny_reason():
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_owner({"title": "orphan"}, ObjectId(), "edit this video")
    assert exc_info.value.message == (
        "You cannot edit this video as the resource has no owner or the caller is anonymous"
    )
