from datetime import timedelta

import pytest
from bson import ObjectId

from errors import UnauthorizedError
from security import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)


@pytest.fixture
def user():
    return {"_id": ObjectId(), "email": "carol@example.com", "username": "carol", "full_name": "Carol"}


def test_password_round_trip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_without_hash():
    assert not verify_password("anything", "")


def test_access_token_claims(user):
    payload = decode_token(create_access_token(user), ACCESS)
    assert payload["sub"] == str(user["_id"])
    assert payload["username"] == "carol"
    assert payload["type"] == ACCESS


def test_refresh_token_is_not_an_access_token(user):
    refresh = create_refresh_token(user["_id"])
    assert decode_token(refresh, REFRESH)["sub"] == str(user["_id"])
    with pytest.raises(UnauthorizedError):
        decode_token(refresh, ACCESS)


def test_expired_token_is_rejected(user):
    token = create_access_token(user, expires_delta=timedelta(seconds=-5))
    with pytest.raises(UnauthorizedError):
        decode_token(token, ACCESS)


def test_garbage_token_is_rejected():
    with pytest.raises(UnauthorizedError):
        decode_token("not-a-jwt", ACCESS)
