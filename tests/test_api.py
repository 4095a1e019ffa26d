from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.middleware.rate_limit import limiter
from api.routes.keywords import get_storage
from core.config import get_config
from core.state import CommentSource, MatchSource
from modules.database.storage import MatchStorage


@pytest.fixture
def client(storage: MatchStorage):
    app.dependency_overrides[get_storage] = lambda: storage
    limiter.enabled = False
    client = TestClient(app, raise_server_exceptions=False)
    client.headers.update({"X-API-Key": get_config().api_key})
    yield client
    app.dependency_overrides.clear()
    limiter.enabled = True


def test_requires_api_key(client: TestClient) -> None:
    response = client.get("/api/v1/keywords", headers={"X-API-Key": "wrong"})
    assert response.status_code == 401
    assert response.json()["error"]["error_code"] == "http_401"


def test_add_and_list_keywords(client: TestClient) -> None:
    response = client.post("/api/v1/keywords", json={"word": " Черный Кот ", "category": "фразы", "is_phrase": True})
    assert response.status_code == 201
    body = response.json()
    assert body["word"] == "черный кот"
    assert body["is_phrase"] is True

    client.post("/api/v1/keywords", json={"word": "пес"})

    words = [k["word"] for k in client.get("/api/v1/keywords").json()]
    assert words == ["пес", "черный кот"]

    found = client.get("/api/v1/keywords", params={"search": "фраз"}).json()
    assert [k["word"] for k in found] == ["черный кот"]


def test_blank_keyword_is_rejected(client: TestClient) -> None:
    response = client.post("/api/v1/keywords", json={"word": "   "})
    assert response.status_code == 422
    assert response.json()["error"]["error_code"] == "validation_error"


def test_bulk_and_import(client: TestClient) -> None:
    response = client.post("/api/v1/keywords/bulk", json={"words": ["кот", "", "Кот"]})
    assert response.status_code == 200
    body = response.json()
    assert body["stats"] == {"total": 3, "success": 2, "failed": 1, "created": 1, "updated": 1}
    assert body["failed"][0]["word"] == ""

    response = client.post("/api/v1/keywords/import", json={"content": "сыр;еда\nкот;животные"})
    assert response.json()["stats"]["created"] == 1
    assert response.json()["stats"]["updated"] == 1


def test_delete_keywords(client: TestClient) -> None:
    keyword_id = client.post("/api/v1/keywords", json={"word": "кот"}).json()["id"]
    client.post("/api/v1/keywords", json={"word": "пес"})

    assert client.delete(f"/api/v1/keywords/{keyword_id}").json() == {"success": True, "id": keyword_id, "count": None}

    missing = client.delete(f"/api/v1/keywords/{keyword_id}")
    assert missing.status_code == 404
    assert missing.json()["error"]["error_code"] == "not_found"

    assert client.delete("/api/v1/keywords").json()["count"] == 1


def test_recalculate_matches(client: TestClient, storage: MatchStorage, make_comment) -> None:
    comment_id = storage.upsert_comment(make_comment("мой кот"), source=CommentSource.TASK)
    keyword_id = client.post("/api/v1/keywords", json={"word": "кот"}).json()["id"]

    response = client.post("/api/v1/keywords/recalculate-matches")

    assert response.status_code == 200
    assert response.json() == {"processed": 1, "updated": 1, "created": 1, "deleted": 0}
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [keyword_id]


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["services"]["database"]["status"] == "healthy"

    assert client.get("/").json()["name"] == "VK Keyword Match API"
