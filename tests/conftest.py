from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import get_db
from dependencies import get_current_user
from main import app
from storage import Asset, LocalAssetHost, get_asset_host


class FakeDatabase(dict):
    """``db[name]`` hands out one MagicMock collection per name, created on first use."""

    def __init__(self):
        super().__init__()
        self.command = MagicMock(return_value={"ok": 1.0})
        self.list_collection_names = MagicMock(return_value=[])

    def __missing__(self, name):
        coll = MagicMock(name=f"collection:{name}")
        coll.find_one.return_value = None
        coll.find.return_value = []
        coll.aggregate.return_value = []
        coll.count_documents.return_value = 0
        coll.insert_one.side_effect = lambda doc: MagicMock(inserted_id=ObjectId())
        coll.find_one_and_update.return_value = None
        coll.delete_one.return_value = MagicMock(deleted_count=1)
        coll.delete_many.return_value = MagicMock(deleted_count=0)
        coll.update_many.return_value = MagicMock(modified_count=0)
        self[name] = coll
        return coll


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def assets():
    host = MagicMock(spec=LocalAssetHost)
    host.store.side_effect = lambda upload, kind: Asset(
        url=f"/static/{kind}s/{upload.filename}", public_id=f"{kind}s/{upload.filename}"
    )
    return host


@pytest.fixture
def current_user():
    return {
        "_id": ObjectId(),
        "username": "alice",
        "email": "alice@example.com",
        "full_name": "Alice Example",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def client(fake_db, assets, current_user):
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_asset_host] = lambda: assets
    app.dependency_overrides[get_current_user] = lambda: current_user
    test_client = TestClient(app, raise_server_exceptions=False)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(fake_db, assets):
    """Client that goes through the real token check."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_asset_host] = lambda: assets
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
