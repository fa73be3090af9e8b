"""End-to-end requests through the FastAPI app."""

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from xmarks.web.server import create_fastapi_app


@pytest.fixture
def client(app, config):
    with TestClient(create_fastapi_app(app, config), follow_redirects=False) as test_client:
        yield test_client


def sign_in(client: TestClient) -> None:
    response = client.get("/auth/x")
    assert response.status_code == 302
    state = parse_qs(urlsplit(response.headers["location"]).query)["state"][0]
    response = client.get("/auth/x/callback", params={"code": "auth-code", "state": state})
    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestLogin:
    def test_start_login_redirects_to_provider(self, client):
        response = client.get("/auth/x")
        assert response.status_code == 302
        location = urlsplit(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == "https://twitter.com/i/oauth2/authorize"
        assert "session" in response.cookies

    def test_full_login(self, client):
        sign_in(client)
        response = client.get("/api/v1/auth/session")
        assert response.status_code == 200
        assert response.json() == {"user_id": "1001", "username": "alice"}

        profile = client.get("/api/v1/profile")
        assert profile.json() == {"user_id": "1001", "username": "alice"}

    def test_callback_without_login(self, client):
        response = client.get("/auth/x/callback", params={"code": "auth-code", "state": "forged"})
        assert response.status_code == 400
        assert response.json()["type"] == "csrf_mismatch"

    def test_callback_missing_params(self, client):
        client.get("/auth/x")
        response = client.get("/auth/x/callback")
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_request"

    def test_provider_rejects_client(self, client, provider):
        provider.token_status = 401
        response = client.get("/auth/x")
        state = parse_qs(urlsplit(response.headers["location"]).query)["state"][0]
        response = client.get("/auth/x/callback", params={"code": "auth-code", "state": state})
        assert response.status_code == 403
        assert response.json()["type"] == "token_exchange_error"
        assert "test-client-secret" not in response.text

    def test_profile_failure(self, client, provider):
        provider.profile_status = 500
        response = client.get("/auth/x")
        state = parse_qs(urlsplit(response.headers["location"]).query)["state"][0]
        response = client.get("/auth/x/callback", params={"code": "auth-code", "state": state})
        assert response.status_code == 502
        assert response.json()["type"] == "profile_fetch_error"

    def test_start_login_without_saved_session(self, client, fail_session_store):
        fail_session_store()
        response = client.get("/auth/x")
        assert response.status_code == 500
        assert response.json()["type"] == "session_persist_error"
        assert "location" not in response.headers

    def test_logout(self, client):
        sign_in(client)
        assert client.post("/api/v1/auth/logout").status_code == 204
        response = client.get("/api/v1/auth/session")
        assert response.status_code == 401
        assert response.json()["type"] == "unauthorized"


class TestUnauthenticated:
    @pytest.mark.parametrize("path", ["/api/v1/folders", "/api/v1/bookmarks", "/api/v1/profile", "/api/v1/auth/session"])
    def test_requires_login(self, client, path):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json()["type"] == "unauthorized"


class TestFolderApi:
    def test_folder_flow(self, client):
        sign_in(client)
        work = client.post("/api/v1/folders", json={"name": "Work", "is_parent_root": True})
        assert work.status_code == 201
        work_id = work.json()["id"]

        projects = client.post(
            "/api/v1/folders", json={"name": "Projects", "is_parent_root": False, "parent_folder": work_id}
        )
        assert projects.status_code == 201
        assert projects.json()["parent_folder"] == work_id

        duplicate = client.post(
            "/api/v1/folders", json={"name": "Projects", "is_parent_root": False, "parent_folder": work_id}
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["type"] == "duplicate_name"

        cyclic = client.put(f"/api/v1/folders/{work_id}/move", json={"new_parent_folder": projects.json()["id"]})
        assert cyclic.status_code == 400
        assert cyclic.json()["type"] == "cyclic_move"

        copy = client.post(f"/api/v1/folders/{work_id}/copy")
        assert copy.status_code == 201
        assert copy.json()["name"] == "Work 2"

        found = client.get("/api/v1/folders/search", params={"query": "proj"})
        assert [f["name"] for f in found.json()] == ["Projects"]

        bookmark = client.post(
            "/api/v1/bookmarks", json={"title": "Repo", "url": "https://example.com", "folder": projects.json()["id"]}
        )
        assert bookmark.status_code == 201

        deleted = client.delete(f"/api/v1/folders/{work_id}")
        assert deleted.status_code == 200
        assert deleted.json() == {"deleted_folders": 2, "deleted_bookmarks": 1}
        assert [f["name"] for f in client.get("/api/v1/folders").json()] == ["Work 2"]
        assert client.get("/api/v1/bookmarks").json() == []

    def test_missing_parent(self, client):
        sign_in(client)
        response = client.post("/api/v1/folders", json={"name": "Orphan", "is_parent_root": False})
        assert response.status_code == 400
        assert response.json()["type"] == "missing_parent"

    def test_invalid_folder_id(self, client):
        sign_in(client)
        response = client.get("/api/v1/folders/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_request"

    def test_unknown_folder(self, client):
        sign_in(client)
        response = client.get("/api/v1/folders/00000000-0000-4000-8000-000000000000")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"


class TestBookmarkApi:
    def test_bookmark_flow(self, client):
        sign_in(client)
        folder_id = client.post("/api/v1/folders", json={"name": "Reading", "is_parent_root": True}).json()["id"]
        created = client.post("/api/v1/bookmarks", json={"title": "Docs", "url": "https://docs.example.com"})
        assert created.status_code == 201
        bookmark_id = created.json()["id"]

        moved = client.put(f"/api/v1/bookmarks/{bookmark_id}/move", json={"folder": folder_id})
        assert moved.json()["folder"] == folder_id

        renamed = client.patch(f"/api/v1/bookmarks/{bookmark_id}", json={"title": "Reference"})
        assert renamed.json()["title"] == "Reference"

        copied = client.post(f"/api/v1/bookmarks/{bookmark_id}/copy", json={"folder": None})
        assert copied.status_code == 201
        assert copied.json()["folder"] is None

        in_folder = client.get(f"/api/v1/folders/{folder_id}/bookmarks").json()
        assert [bm["id"] for bm in in_folder] == [bookmark_id]

        assert client.delete(f"/api/v1/bookmarks/{bookmark_id}").status_code == 204
        assert client.get(f"/api/v1/bookmarks/{bookmark_id}").status_code == 404

    def test_blank_title(self, client):
        sign_in(client)
        response = client.post("/api/v1/bookmarks", json={"title": " ", "url": "https://example.com"})
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_title"


def test_openapi_marks_login_endpoints_public(client):
    schema = client.get("/openapi.json").json()
    assert "SessionCookie" in schema["components"]["securitySchemes"]
    assert schema["paths"]["/auth/x"]["get"]["security"] == []
    assert "security" not in schema["paths"]["/api/v1/folders"]["get"]
    assert schema["paths"]["/api/v1/auth/logout"]["post"]["security"] == []
