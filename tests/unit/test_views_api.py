"""
Tests for the read and admin routers:
chatbot/api/dialogs.py, chatbot/api/transcripts.py, chatbot/api/activities.py
"""

from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatbot.api import activities, dialogs, transcripts
from database import get_db
from shared.models.entities import Activity, User
from shared.repositories import ConversationRepository, ExchangeRepository


@pytest.fixture
def app_and_client(db_session, auth_headers):
    app = FastAPI()
    app.include_router(dialogs.router)
    app.include_router(transcripts.router)
    app.include_router(activities.router)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return app, TestClient(app), auth_headers


@pytest.fixture
def shared_conversation(db_session, activity, users):
    """A finished, shared conversation of the student with one exchange."""
    repo = ConversationRepository(db_session)
    conversation = repo.create_current(users["student"].id, activity.id)
    ExchangeRepository(db_session).append(
        conversation.id, "Why are leaves green?", "Chlorophyll.", timestamp=datetime(2025, 2, 1, 10, 0)
    )
    repo.finish(conversation.id)
    repo.set_shared(conversation.id, users["student"].id, activity.id)
    return conversation.id


# ===========================================================================
# Dialog listings
# ===========================================================================

class TestDialogViews:

    def test_chat_state(self, app_and_client, activity, users):
        _, client, headers = app_and_client
        resp = client.get(f"/chatbot/activities/{activity.id}/state", headers=headers(users["student"].id))

        assert resp.status_code == 200
        data = resp.json()
        assert data["conversation_id"] is None
        assert data["attempts_remaining"] == 2

    def test_not_enrolled(self, app_and_client, activity, db_session):
        _, client, headers = app_and_client
        db_session.add(User(id=50, firstname="Out", lastname="Sider"))
        db_session.commit()

        resp = client.get(f"/chatbot/activities/{activity.id}/state", headers=headers(50))
        assert resp.status_code == 403

    def test_student_dialogs(self, app_and_client, activity, users, shared_conversation):
        _, client, headers = app_and_client
        resp = client.get(f"/chatbot/activities/{activity.id}/dialogs", headers=headers(users["student"].id))

        data = resp.json()
        assert data["has_shared"] is True
        assert data["shared_conversation_id"] == shared_conversation

    def test_teacher_dialogs_for_teacher_only(self, app_and_client, activity, users, shared_conversation):
        _, client, headers = app_and_client
        url = f"/chatbot/activities/{activity.id}/dialogs/shared"

        assert client.get(url, headers=headers(users["student"].id)).status_code == 403

        resp = client.get(url, params={"tilast": "a"}, headers=headers(users["teacher"].id))
        assert resp.status_code == 200
        entries = resp.json()["conversations"]
        assert [e["user_fullname"] for e in entries] == ["Alice Anders"]
        assert entries[0]["conversation_id"] == shared_conversation

    def test_public_dialogs(self, app_and_client, activity, users, shared_conversation, db_session):
        _, client, headers = app_and_client
        ConversationRepository(db_session).toggle_public(shared_conversation, users["student"].id)

        resp = client.get(f"/chatbot/activities/{activity.id}/public", headers=headers(users["other"].id))
        assert resp.json() == [
            {"id": shared_conversation, "user_id": users["student"].id, "user_fullname": "Alice Anders"}
        ]

    def test_unknown_activity(self, app_and_client, users):
        _, client, headers = app_and_client
        resp = client.get("/chatbot/activities/999/state", headers=headers(users["student"].id))
        assert resp.status_code == 404


# ===========================================================================
# Transcript export
# ===========================================================================

class TestTranscriptPdf:

    def test_preview_and_download_have_same_bytes(self, app_and_client, users, shared_conversation):
        _, client, headers = app_and_client
        url = f"/chatbot/conversations/{shared_conversation}/pdf"

        preview = client.get(url, params={"action": "preview"}, headers=headers(users["teacher"].id))
        download = client.get(url, params={"action": "download"}, headers=headers(users["teacher"].id))

        assert preview.status_code == 200
        assert preview.headers["content-type"] == "application/pdf"
        assert preview.headers["content-disposition"].startswith("inline")
        assert download.headers["content-disposition"] == 'attachment; filename="conversation.pdf"'
        assert preview.content == download.content

    def test_denied_for_other_student(self, app_and_client, users, shared_conversation):
        _, client, headers = app_and_client
        resp = client.get(
            f"/chatbot/conversations/{shared_conversation}/pdf", headers=headers(users["other"].id)
        )
        assert resp.status_code == 403

    def test_missing_conversation(self, app_and_client, users):
        _, client, headers = app_and_client
        resp = client.get("/chatbot/conversations/4040/pdf", headers=headers(users["student"].id))
        assert resp.status_code == 404

    def test_invalid_action(self, app_and_client, users, shared_conversation):
        _, client, headers = app_and_client
        resp = client.get(
            f"/chatbot/conversations/{shared_conversation}/pdf",
            params={"action": "print"},
            headers=headers(users["student"].id),
        )
        assert resp.status_code == 422


# ===========================================================================
# Activity administration and completion
# ===========================================================================

class TestActivities:

    def _payload(self, **overrides):
        payload = {"course_id": 10, "name": "Genetics", "attempts": 2, "interactions": 4}
        payload.update(overrides)
        return payload

    def test_teacher_creates_activity(self, app_and_client, users, db_session):
        _, client, headers = app_and_client
        resp = client.post("/activities", json=self._payload(), headers=headers(users["teacher"].id))

        assert resp.status_code == 201
        assert resp.json()["name"] == "Genetics"
        assert db_session.query(Activity).count() == 1

    def test_student_cannot_create(self, app_and_client, users):
        _, client, headers = app_and_client
        resp = client.post("/activities", json=self._payload(), headers=headers(users["student"].id))
        assert resp.status_code == 403

    def test_validation_error(self, app_and_client, users):
        _, client, headers = app_and_client
        resp = client.post("/activities", json=self._payload(attempts=0), headers=headers(users["teacher"].id))

        assert resp.status_code == 422
        assert "attempts" in resp.json()["detail"]["errors"]

    def test_update_and_delete(self, app_and_client, activity, users, db_session):
        _, client, headers = app_and_client
        teacher = headers(users["teacher"].id)

        resp = client.put(f"/activities/{activity.id}", json={
            "name": "Renamed", "attempts": 1, "interactions": 1,
        }, headers=teacher)
        assert resp.json()["name"] == "Renamed"

        assert client.delete(f"/activities/{activity.id}", headers=teacher).status_code == 204
        assert db_session.query(Activity).count() == 0

    def test_channels(self, app_and_client, users):
        _, client, headers = app_and_client
        resp = client.get("/activities/channels", headers=headers(users["student"].id))

        assert resp.status_code == 200
        assert "default" in resp.json()["channels"]

    def test_completion_for_self(self, app_and_client, activity, users, shared_conversation):
        _, client, headers = app_and_client
        resp = client.get(f"/activities/{activity.id}/completion", headers=headers(users["student"].id))

        data = resp.json()
        assert data["completionshare"] is True
        assert data["completionattempts"] is False
        assert data["sort_order"] == ["completionview", "completionattempts", "completionshare"]

    def test_completion_for_other_user_needs_teacher(self, app_and_client, activity, users, shared_conversation):
        _, client, headers = app_and_client
        url = f"/activities/{activity.id}/completion"
        params = {"userid": users["student"].id}

        assert client.get(url, params=params, headers=headers(users["other"].id)).status_code == 403
        resp = client.get(url, params=params, headers=headers(users["teacher"].id))
        assert resp.json()["user_id"] == users["student"].id
