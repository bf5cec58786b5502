from typing import Dict, Tuple

import pytest
from fastapi.testclient import TestClient

from social_feed_api.app.core.config import settings
from social_feed_api.app.core.db import init_db
from social_feed_api.app.core.image_store import ImageStoreError, get_image_store
from social_feed_api.app.core.security import create_access_token
from social_feed_api.app.main import create_app


class FakeImageStore:
    """In-memory stand-in for the hosted image store."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False

    def upload(self, file: str) -> str:
        if self.fail_upload:
            raise ImageStoreError("store unavailable")
        self.uploads.append(file)
        return f"https://res.example.com/demo/image/upload/v1700000000/img{len(self.uploads)}.jpg"

    def destroy(self, public_id: str) -> None:
        if self.fail_destroy:
            raise ImageStoreError("store unavailable")
        self.destroyed.append(public_id)


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "test.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    init_db()
    return path


@pytest.fixture()
def image_store():
    return FakeImageStore()


@pytest.fixture()
def client(db_path, image_store):
    app = create_app()
    app.dependency_overrides[get_image_store] = lambda: image_store
    with TestClient(app) as c:
        yield c


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture()
def make_user(client):
    """Sign a user up and return ``(user, headers)`` for bearer auth."""

    def _make_user(username: str, **overrides) -> Tuple[dict, Dict[str, str]]:
        payload = {
            "name": username.title(),
            "email": f"{username}@example.com",
            "username": username,
            "password": "password123",
        }
        payload.update(overrides)
        res = client.post("/api/v1/users/signup", json=payload)
        assert res.status_code == 201, res.text
        client.cookies.clear()
        user = res.json()
        return user, auth_headers(user["id"])

    return _make_user
