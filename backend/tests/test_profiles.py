"""Tests for profile and account directory endpoints."""
from group_reminders.config import settings
from tests.conftest import create_test_profile, make_account


class TestProfiles:
    """Profile create / get / search / lookup."""

    def test_create_profile(self, client):
        data = create_test_profile(client, email="alice@example.com", name="Alice", tz="US/Eastern")
        assert data["email"] == "alice@example.com"
        assert data["full_name"] == "Alice"
        assert data["timezone"] == "US/Eastern"
        assert "id" in data

    def test_unknown_timezone_rejected(self, client):
        resp = client.post("/api/profiles/", json={"email": "mars@example.com", "timezone": "Mars/Base"})
        assert resp.status_code == 422
        assert client.get("/api/profiles/lookup", params={"email": "mars@example.com"}).status_code == 404

    def test_timezone_defaults_to_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "DEFAULT_TIMEZONE", "Europe/Paris")
        resp = client.post("/api/profiles/", json={"email": "paris@example.com"})
        assert resp.status_code == 201
        assert resp.json()["timezone"] == "Europe/Paris"

    def test_stored_profile_timezone_defaults_to_configured(self, store, monkeypatch):
        monkeypatch.setattr(settings, "DEFAULT_TIMEZONE", "Asia/Tokyo")
        account = make_account(store, "tokyo@example.com")
        [row] = store.select("profiles", id=account.id)
        assert row["timezone"] == "Asia/Tokyo"

    def test_create_duplicate_email(self, client):
        create_test_profile(client, email="alice@example.com")
        resp = client.post("/api/profiles/", json={"email": "alice@example.com"})
        assert resp.status_code == 409

    def test_get_profile(self, client):
        profile = create_test_profile(client)
        resp = client.get(f"/api/profiles/{profile['id']}")
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Test User"

    def test_get_profile_not_found(self, client):
        resp = client.get("/api/profiles/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404

    def test_search_excludes_caller(self, client):
        me = create_test_profile(client, email="me@family.org", name="Me")
        create_test_profile(client, email="mum@family.org", name="Mum")
        create_test_profile(client, email="boss@work.com", name="Boss")
        resp = client.get("/api/profiles/search", params={"q": "family", "exclude": me["id"]})
        assert resp.status_code == 200
        assert [p["email"] for p in resp.json()] == ["mum@family.org"]

    def test_search_needs_three_characters(self, client):
        create_test_profile(client, email="ab@example.com")
        resp = client.get("/api/profiles/search", params={"q": "ab"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_search_is_limited(self, client):
        for i in range(8):
            create_test_profile(client, email=f"user{i}@example.com", name=f"User {i}")
        resp = client.get("/api/profiles/search", params={"q": "example"})
        assert len(resp.json()) == 5

    def test_lookup_by_email(self, client):
        profile = create_test_profile(client, email="Carol@Example.com", name="Carol")
        resp = client.get("/api/profiles/lookup", params={"email": "carol@example.com"})
        assert resp.status_code == 200
        assert resp.json()["id"] == profile["id"]
        assert client.get("/api/profiles/lookup", params={"email": "nobody@example.com"}).status_code == 404
