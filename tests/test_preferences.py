"""Tests for preference and event history endpoints."""

from app.models.voice_event import PROCESSING_TYPE_API, PROCESSING_TYPE_WEBHOOK
from app.services.prompts import EnhancementKind
from app.services.user import UserService, enhancement_kinds_for, extract_slug, is_valid_api_key_format
from app.services.voice_event import VoiceEventService


class TestPreferences:
    def test_defaults_are_off(self, client, api_headers, test_user):
        response = client.get("/api/v1/preferences/", headers=api_headers)

        assert response.status_code == 200
        assert response.json() == {
            "user_id": test_user.id,
            "send_cleaned_transcript": False,
            "send_summary": False,
            "enhancement_types": [],
        }

    def test_update(self, client, api_headers):
        response = client.put(
            "/api/v1/preferences/",
            json={"send_cleaned_transcript": True, "send_summary": True},
            headers=api_headers,
        )

        assert response.status_code == 200
        assert response.json()["enhancement_types"] == ["cleanup", "summary"]
        assert client.get("/api/v1/preferences/", headers=api_headers).json()["send_summary"] is True

    def test_update_rejects_non_boolean(self, client, api_headers):
        response = client.put(
            "/api/v1/preferences/",
            json={"send_cleaned_transcript": "yes", "send_summary": False},
            headers=api_headers,
        )
        assert response.status_code == 422

    def test_requires_api_key(self, client):
        assert client.get("/api/v1/preferences/").status_code == 401

    def test_kinds_follow_fixed_order(self, db_session, test_user):
        prefs = UserService().update_preferences(
            db_session, test_user.id, send_cleaned_transcript=False, send_summary=True
        )
        assert enhancement_kinds_for(prefs) == [EnhancementKind.SUMMARY]
        assert enhancement_kinds_for(None) == []


class TestEvents:
    def _seed(self, db_session, user_id, count=3):
        events = VoiceEventService()
        return [
            events.create_event(
                db_session,
                user_id=user_id,
                file_size_bytes=1000 * (i + 1),
                duration_seconds=0.1,
                processing_type=PROCESSING_TYPE_WEBHOOK if i % 2 else PROCESSING_TYPE_API,
                enhancements=[EnhancementKind.CLEANUP] if i == 0 else None,
            )
            for i in range(count)
        ]

    def test_list_newest_first(self, client, db_session, test_user, api_headers):
        created = self._seed(db_session, test_user.id)

        response = client.get("/api/v1/events/", headers=api_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert [e["id"] for e in body["items"]] == [e.id for e in reversed(created)]
        assert body["items"][-1]["enhancements_requested"] == ["cleanup"]
        assert body["items"][-1]["status"] == "processing"

    def test_pagination(self, client, db_session, test_user, api_headers):
        self._seed(db_session, test_user.id, count=5)

        body = client.get("/api/v1/events/", params={"limit": 2, "offset": 4}, headers=api_headers).json()

        assert body["total"] == 5
        assert len(body["items"]) == 1

    def test_only_own_events(self, client, db_session, test_user, api_headers):
        other = UserService().create_user(db_session, "lee@example.com", approved=True)
        theirs = self._seed(db_session, other.id, count=1)[0]

        assert client.get("/api/v1/events/", headers=api_headers).json()["total"] == 0
        assert client.get(f"/api/v1/events/{theirs.id}", headers=api_headers).status_code == 404

    def test_get_one(self, client, db_session, test_user, api_headers):
        event = self._seed(db_session, test_user.id, count=1)[0]

        response = client.get(f"/api/v1/events/{event.id}", headers=api_headers)

        assert response.status_code == 200
        assert response.json()["file_size_bytes"] == 1000


class TestUserService:
    def test_create_user_generates_slug_and_key(self, db_session):
        user = UserService().create_user(db_session, "  Lee@Example.com ")

        assert user.email == "lee@example.com"
        assert extract_slug(f"{user.slug}@in.example.com") == user.slug
        assert is_valid_api_key_format(user.api_key)
        assert not user.approved

    def test_regenerate_api_key(self, db_session, test_user):
        service = UserService()
        old_key = test_user.api_key

        new_key = service.regenerate_api_key(db_session, test_user)

        assert new_key != old_key
        assert service.get_by_api_key(db_session, old_key) is None
        assert service.get_by_api_key(db_session, new_key).id == test_user.id
