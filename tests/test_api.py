"""HTTP surface tests: routers, auth dependency and error mapping, over in-memory stores."""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from docvault import main
from docvault.api.deps import get_blob_store, get_identity_client, get_metadata_store
from docvault.core.config import settings
from docvault.core.exceptions import AuthError, TransportError
from docvault.main import app
from docvault.schemas.schemas import NewProfile, PendingAccount, Role, SessionTokens

pytestmark = [pytest.mark.asyncio, pytest.mark.api]


def token_for(subject, secret="test-secret", expires_in=300):
    claims = {
        "sub": subject,
        "aud": "authenticated",
        "email": f"{subject}@example.com",
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(subject, **kwargs):
    return {"Authorization": f"Bearer {token_for(subject, **kwargs)}"}


@pytest.fixture
def identity():
    client = AsyncMock()
    client.sign_in.return_value = SessionTokens(access_token="issued")
    client.sign_up.return_value = PendingAccount(id="new-1", email="new@example.com")
    return client


@pytest_asyncio.fixture
async def api(metadata, blobs, identity):
    await metadata.insert_profile(
        NewProfile(id="admin-1", email="admin@example.com", display_name="Admin", role=Role.ADMIN)
    )
    await metadata.insert_profile(NewProfile(id="user-1", email="user@example.com", display_name="User"))

    app.dependency_overrides[get_metadata_store] = lambda: metadata
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_identity_client] = lambda: identity
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def upload(api, *files, who="admin-1", **data):
    parts = [("files", f) for f in files]
    return await api.post("/api/files/upload", files=parts, data=data, headers=bearer(who))


class TestAuth:
    async def test_health_is_open(self, api):
        resp = await api.get("/api/health")
        assert resp.json() == {"status": "ok"}
        assert "X-Request-Id" in resp.headers

    async def test_missing_token(self, api):
        assert (await api.get("/api/files/")).status_code == 401

    async def test_bad_signature(self, api):
        resp = await api.get("/api/files/", headers=bearer("admin-1", secret="wrong"))
        assert resp.status_code == 401

    async def test_expired_token(self, api):
        resp = await api.get("/api/files/", headers=bearer("admin-1", expires_in=-60))
        assert resp.status_code == 401

    async def test_role_comes_from_profile(self, api):
        resp = await api.get("/api/profiles/me", headers=bearer("user-1"))
        assert resp.json()["role"] == "user"
        resp = await upload(api, ("a.txt", b"hi", "text/plain"), who="user-1")
        assert resp.status_code == 403
        assert resp.json()["error"] == "ForbiddenError"

    async def test_unknown_caller_is_plain_user(self, api):
        resp = await upload(api, ("a.txt", b"hi", "text/plain"), who="stranger")
        assert resp.status_code == 403

    async def test_login(self, api, identity):
        resp = await api.post("/api/auth/login", json={"email": "a@example.com", "password": "pw"})
        assert resp.status_code == 200
        assert resp.json()["access_token"] == "issued"

    async def test_login_rejected(self, api, identity):
        identity.sign_in.side_effect = AuthError("Invalid login credentials")
        resp = await api.post("/api/auth/login", json={"email": "a@example.com", "password": "x"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid login credentials"

    async def test_logout(self, api, identity):
        headers = bearer("user-1")
        resp = await api.post("/api/auth/logout", headers=headers)
        assert resp.status_code == 200
        identity.sign_out.assert_awaited_once_with(headers["Authorization"].split()[1])


class TestFiles:
    async def test_upload_then_browse(self, api):
        resp = await upload(
            api,
            ("report.pdf", b"%" * 2048, "application/pdf"),
            ("notes.txt", b"hello", "text/plain"),
            descriptions=["Q3 report"],
            tags=["finance, q3"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert [o["status"] for o in body["outcomes"]] == ["stored", "stored"]
        report = body["outcomes"][0]["record"]
        assert report["category"] == "pdf"
        assert report["size_bytes"] == 2048
        assert report["tags"] == ["finance", "q3"]
        assert report["storage_path"].startswith("admin-1/")
        assert len(body["refreshed"]) == 2

        resp = await api.get("/api/files/", params={"text": "finance"}, headers=bearer("user-1"))
        assert [r["name"] for r in resp.json()] == ["report.pdf"]

        resp = await api.get(
            "/api/files/", params={"sort": "size_bytes", "dir": "asc"}, headers=bearer("user-1")
        )
        assert [r["size_bytes"] for r in resp.json()] == [5, 2048]

    async def test_browse_unknown_category(self, api):
        resp = await api.get("/api/files/", params={"category": "nope"}, headers=bearer("user-1"))
        assert resp.status_code == 422

    async def test_browse_by_category(self, api):
        await upload(api, ("a.png", b"png", "image/png"), ("b.txt", b"t", "text/plain"))
        resp = await api.get("/api/files/", params={"category": "image"}, headers=bearer("user-1"))
        assert [r["name"] for r in resp.json()] == ["a.png"]

    async def test_access_link(self, api):
        body = (await upload(api, ("a.png", b"png", "image/png"))).json()
        file_id = body["outcomes"][0]["record"]["id"]

        first = (await api.get(f"/api/files/{file_id}/link", headers=bearer("user-1"))).json()
        second = (await api.get(f"/api/files/{file_id}/link", headers=bearer("user-1"))).json()
        assert first["file_name"] == "a.png"
        assert first["url"] != second["url"]
        assert "expires_at" in first

    async def test_unknown_file(self, api):
        resp = await api.get("/api/files/nope", headers=bearer("user-1"))
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFoundError"

    async def test_patch(self, api):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]

        resp = await api.patch(
            f"/api/files/{file_id}",
            json={"name": " b.txt ", "description": "  "},
            headers=bearer("admin-1"),
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "b.txt"
        assert resp.json()["description"] is None

    async def test_patch_empty_name(self, api):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]
        resp = await api.patch(f"/api/files/{file_id}", json={"name": ""}, headers=bearer("admin-1"))
        assert resp.status_code == 422

    async def test_patch_bad_name_keeps_description(self, api, metadata):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]
        resp = await api.patch(
            f"/api/files/{file_id}",
            json={"name": " ", "description": "new words"},
            headers=bearer("admin-1"),
        )
        assert resp.status_code == 422
        assert metadata.rows[file_id].description is None

    async def test_patch_forbidden(self, api):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]
        resp = await api.patch(f"/api/files/{file_id}", json={"name": "b"}, headers=bearer("user-1"))
        assert resp.status_code == 403

    async def test_delete_twice(self, api, blobs):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]

        resp = await api.delete(f"/api/files/{file_id}", headers=bearer("admin-1"))
        assert resp.json()["message"] == "File deleted"
        assert blobs.objects == {}
        resp = await api.delete(f"/api/files/{file_id}", headers=bearer("admin-1"))
        assert resp.status_code == 200
        assert resp.json()["message"] == "File already deleted"

    async def test_delete_forbidden(self, api):
        resp = await api.delete("/api/files/whatever", headers=bearer("user-1"))
        assert resp.status_code == 403

    async def test_storage_failure_maps_to_502(self, api, blobs):
        body = (await upload(api, ("a.txt", b"x", "text/plain"))).json()
        file_id = body["outcomes"][0]["record"]["id"]
        blobs.failures.fail("remove")
        resp = await api.delete(f"/api/files/{file_id}", headers=bearer("admin-1"))
        assert resp.status_code == 502


class TestProfiles:
    async def test_admin_list(self, api):
        resp = await api.get("/api/admin/profiles", headers=bearer("admin-1"))
        assert {p["id"] for p in resp.json()} == {"admin-1", "user-1"}
        resp = await api.get("/api/admin/profiles", headers=bearer("user-1"))
        assert resp.status_code == 403

    async def test_promote(self, api):
        resp = await api.put(
            "/api/admin/profiles/user-1", json={"role": "admin"}, headers=bearer("admin-1")
        )
        assert resp.json()["role"] == "admin"
        resp = await upload(api, ("a.txt", b"x", "text/plain"), who="user-1")
        assert resp.status_code == 200

    async def test_remove(self, api):
        resp = await api.delete("/api/admin/profiles/user-1", headers=bearer("admin-1"))
        assert resp.status_code == 200
        resp = await api.get("/api/profiles/me", headers=bearer("user-1"))
        assert resp.status_code == 404

    async def test_provision(self, api, identity):
        resp = await api.post(
            "/api/admin/accounts",
            json={"email": "new@example.com", "password": "pw123456", "display_name": "New"},
            headers=bearer("admin-1"),
        )
        assert resp.status_code == 202
        assert resp.json()["email"] == "new@example.com"
        identity.sign_up.assert_awaited_once_with("new@example.com", "pw123456", "New", Role.USER)

    async def test_callback_registers_profile(self, api):
        resp = await api.post(
            "/api/profiles/callback",
            json={"id": "u-9", "email": "nine@example.com", "display_name": "Nine"},
            headers={"X-Identity-Secret": "hook-secret"},
        )
        assert resp.status_code == 201
        resp = await api.get("/api/profiles/me", headers=bearer("u-9"))
        assert resp.json()["display_name"] == "Nine"

    async def test_callback_bad_secret(self, api):
        resp = await api.post(
            "/api/profiles/callback",
            json={"id": "u-9", "email": "nine@example.com", "display_name": "Nine"},
            headers={"X-Identity-Secret": "guess"},
        )
        assert resp.status_code == 403

    async def test_callback_non_ascii_secret(self, api):
        resp = await api.post(
            "/api/profiles/callback",
            json={"id": "u-9", "email": "nine@example.com", "display_name": "Nine"},
            headers={"X-Identity-Secret": "café".encode("latin-1")},
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "ForbiddenError"

    async def test_callback_refused_without_configured_secret(self, api, metadata, monkeypatch):
        monkeypatch.setattr(settings, "IDENTITY_WEBHOOK_SECRET", "")
        resp = await api.post(
            "/api/profiles/callback",
            json={"id": "u-9", "email": "nine@example.com", "display_name": "Nine", "role": "admin"},
            headers={"X-Identity-Secret": ""},
        )
        assert resp.status_code == 403
        assert "u-9" not in metadata.profiles


class TestLifespan:
    async def test_bucket_check_runs_off_the_event_loop(self, monkeypatch):
        seen = {}

        class UnreachableStore:
            def ensure_bucket(self):
                seen["thread"] = threading.get_ident()
                raise TransportError("minio:9000 unreachable")

        monkeypatch.setattr(main, "get_blob_store", lambda: UnreachableStore())
        async with main.lifespan(main.app):
            pass
        assert seen["thread"] != threading.get_ident()
