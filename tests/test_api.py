"""Tests for the HTTP and WebSocket API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from kora_tutor.api import create_app
from kora_tutor.speech import Transcription, TranscriptionError
from kora_tutor.tutor import CompletionAdapter, InMemoryUsageLedger, SessionStore, TutoringController

PNG = b"\x89PNG\r\n\x1a\nfake image data"


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def app(controller, sessions):
    return create_app(controller, sessions=sessions)


@pytest.fixture
def client(app):
    return TestClient(app)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_api_prefix(self, client):
        assert client.get("/api/health").status_code == 200


class TestTutoringEndpoints:
    """Tests for the tutoring endpoints."""

    def test_ask(self, client, provider):
        response = client.post(
            "/tutoring/ask",
            json={
                "question": "Résoudre 3x + 8 = 9",
                "messages": [
                    {"content": "Hi!", "sender": "user"},
                    {"content": "Hello! How can I help?", "sender": "assistant"},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"]
        assert "timestamp" in data
        assert "sessionId" not in data
        assert "different example" in provider.calls[0]["system_prompt"]
        assert [m.content for m in provider.calls[0]["prompt"]] == [
            "Hi!",
            "Hello! How can I help?",
            "Résoudre 3x + 8 = 9",
        ]

    def test_reexplain(self, client, provider):
        response = client.post(
            "/tutoring/reexplain",
            json={"originalQuestion": "What is a verb?", "originalExplanation": "A word for an action."},
        )

        assert response.status_code == 200
        assert response.json()["content"]
        assert provider.call_count == 1

    def test_reexplain_missing_context(self, client, provider, tutor_config):
        """An empty exchange is a client error, not a provider call."""
        response = client.post("/tutoring/reexplain", json={"originalQuestion": "", "messages": []})

        assert response.status_code == 400
        assert response.json()["message"] == tutor_config.messages.missing_context
        assert provider.call_count == 0

    def test_challenge(self, client, provider):
        provider.set_response("Solve 7x - 3 = 25.\n\nApproach: undo the subtraction first.")

        response = client.post(
            "/tutoring/challenge",
            json={"originalQuestion": "How do I solve 2x + 1 = 5?", "explanation": "Isolate x step by step."},
        )

        data = response.json()
        assert response.status_code == 200
        assert data["challengeId"].startswith("challenge-")
        assert data["content"].startswith("Solve 7x - 3 = 25.")

    def test_hint(self, client, provider):
        response = client.post("/tutoring/hint", json={"exerciseContent": "Solve 7x - 3 = 25."})

        assert response.status_code == 200
        assert "Solve 7x - 3 = 25." in provider.calls[0]["system_prompt"]

    def test_hint_always_answers(self, client, provider, tutor_config):
        """Provider failures and missing exercises still produce a hint."""
        provider.set_should_fail(True)

        failed = client.post("/tutoring/hint", json={"exerciseContent": "Solve 7x - 3 = 25."})
        empty = client.post("/tutoring/hint", json={})

        assert failed.status_code == 200
        assert failed.json()["content"] in tutor_config.messages.canned_hints
        assert failed.json()["degraded"] is True
        assert empty.status_code == 200
        assert empty.json()["content"] in tutor_config.messages.canned_hints

    def test_provider_failure_keeps_persona(self, client, provider, tutor_config):
        provider.set_should_fail(True)

        response = client.post("/tutoring/ask", json={"question": "What is an atom?"})

        assert response.status_code == 200
        assert response.json()["content"] == tutor_config.messages.apology

    def test_invalid_body(self, client):
        assert client.post("/tutoring/ask", json={"messages": []}).status_code == 422

    def test_api_prefix(self, client):
        response = client.post("/api/tutoring/ask", json={"question": "What is an atom?"})
        assert response.status_code == 200


class TestSessions:
    """HTTP calls scoped to a session."""

    def test_session_flow(self, client, provider, sessions):
        """Follow-up calls act on the session's conversation."""
        provider.queue_responses(
            "An atom is the smallest unit of an element. Does that help?",
            "Picture a tiny solar system. Clearer?",
            "How many protons does carbon have?",
        )

        ask = client.post("/tutoring/ask", json={"question": "What is an atom?", "sessionId": "s1"})
        reexplain = client.post("/tutoring/reexplain", json={"sessionId": "s1"})
        challenge = client.post("/tutoring/challenge", json={"sessionId": "s1"})
        hint = client.post("/tutoring/hint", json={"sessionId": "s1"})

        assert ask.json()["sessionId"] == "s1"
        assert reexplain.status_code == 200
        assert hint.json()["challengeId"] == challenge.json()["challengeId"]
        conversation = sessions.get("s1")
        assert len(conversation) == 5
        assert conversation.active_challenge.content == "How many protons does carbon have?"


class TestHistory:
    """Tests for the learning history endpoint."""

    def test_recent_interactions(self, client):
        client.post("/tutoring/ask", json={"question": "What is an atom?", "sessionId": "s1"})
        client.post("/tutoring/ask", json={"question": "What is a verb?", "sessionId": "s2"})
        client.post("/tutoring/ask", json={"question": "What is a cell?", "sessionId": "s1"})

        everything = client.get("/history").json()["interactions"]
        latest = client.get("/history", params={"limit": 1}).json()["interactions"]
        scoped = client.get("/history", params={"sessionId": "s1"}).json()["interactions"]

        assert [i["question"] for i in everything] == ["What is a cell?", "What is a verb?", "What is an atom?"]
        assert [i["question"] for i in latest] == ["What is a cell?"]
        assert [i["question"] for i in scoped] == ["What is a cell?", "What is an atom?"]
        assert scoped[0]["sessionId"] == "s1"
        assert scoped[0]["type"] == "ask"
        assert {"answer", "subjectDomain", "createdAt"} <= scoped[0].keys()

    def test_without_interaction_log(self, provider, tutor_config):
        controller = TutoringController(tutor_config, CompletionAdapter(provider))
        client = TestClient(create_app(controller))

        response = client.get("/history")

        assert response.status_code == 200
        assert response.json() == {"interactions": []}

    def test_invalid_limit(self, client):
        assert client.get("/history", params={"limit": 0}).status_code == 422


class TestUsageGate:
    """Tests for the usage ledger."""

    @pytest.fixture
    def client(self, controller):
        app = create_app(controller, usage_ledger=InMemoryUsageLedger(anonymous_limit=1))
        return TestClient(app)

    def test_limit_reached(self, client, provider, tutor_config):
        first = client.post("/tutoring/ask", json={"question": "What is an atom?"})
        second = client.post("/tutoring/ask", json={"question": "What is a cell?"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["detail"] == tutor_config.messages.usage_exhausted
        assert provider.call_count == 1

    def test_authenticated_users_unlimited(self, client):
        headers = {"X-User-Id": "student-42"}
        for _ in range(3):
            response = client.post("/tutoring/ask", json={"question": "What is an atom?"}, headers=headers)
            assert response.status_code == 200


class TestImageAnalysis:
    """Tests for the image upload endpoint."""

    def test_analyze_image(self, client, provider):
        provider.queue_responses(
            '{"subject_domain": "science", "content_type": "diagram"}',
            "This diagram shows the water cycle. Which stage interests you?",
        )

        response = client.post(
            "/image-analysis",
            files={"image": ("cycle.png", PNG, "image/png")},
            data={"query": "What does this show?", "mode": "detailed", "sessionId": "img"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"].startswith("This diagram shows the water cycle.")
        assert data["sessionId"] == "img"
        message = provider.calls[1]["prompt"][-1]
        assert message.images[0].startswith("data:image/png;base64,")

    def test_unknown_mode_falls_back(self, client):
        response = client.post(
            "/image-analysis",
            files={"image": ("a.png", PNG, "image/png")},
            data={"mode": "poetic"},
        )
        assert response.status_code == 200

    def test_rejects_non_image(self, client, provider):
        response = client.post("/image-analysis", files={"image": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400
        assert provider.call_count == 0

    def test_rejects_empty(self, client):
        response = client.post("/image-analysis", files={"image": ("a.png", b"", "image/png")})
        assert response.status_code == 400

    def test_rejects_oversized(self, controller):
        controller.config.upload.max_image_bytes = 10
        client = TestClient(create_app(controller))

        response = client.post("/image-analysis", files={"image": ("a.png", PNG, "image/png")})

        assert response.status_code == 413


class TestTranscribe:
    """Tests for the transcription endpoint."""

    def make_client(self, controller, transcriber):
        return TestClient(create_app(controller, transcriber=transcriber))

    def test_transcribe(self, controller):
        transcriber = MagicMock()
        transcriber.transcribe = AsyncMock(return_value=Transcription(text="Qu'est-ce qu'un atome ?", language="fr"))
        client = self.make_client(controller, transcriber)

        response = client.post("/transcribe", files={"audio": ("q.webm", b"audio", "audio/webm")})

        assert response.status_code == 200
        assert response.json() == {"text": "Qu'est-ce qu'un atome ?", "language": "fr"}
        args, kwargs = transcriber.transcribe.call_args
        assert args == (b"audio", None)
        assert kwargs["filename"] == "q.webm"

    def test_language_forwarded(self, controller):
        transcriber = MagicMock()
        transcriber.transcribe = AsyncMock(return_value=Transcription(text="Hello", language="en"))
        client = self.make_client(controller, transcriber)

        client.post("/transcribe", files={"audio": ("q.webm", b"audio", "audio/webm")}, data={"language": "en"})

        assert transcriber.transcribe.call_args.args[1] == "en"

    def test_failure(self, controller, tutor_config):
        transcriber = MagicMock()
        transcriber.transcribe = AsyncMock(side_effect=TranscriptionError("boom"))
        client = self.make_client(controller, transcriber)

        response = client.post("/transcribe", files={"audio": ("q.webm", b"audio", "audio/webm")})

        assert response.status_code == 502
        assert response.json()["detail"] == tutor_config.messages.transcription_failed

    def test_not_configured(self, client):
        response = client.post("/transcribe", files={"audio": ("q.webm", b"audio", "audio/webm")})
        assert response.status_code == 503


class TestWebSocket:
    """Tests for the WebSocket session channel."""

    def test_welcome_and_chat(self, client, tutor_config):
        with client.websocket_connect("/ws?sessionId=ws1") as ws:
            welcome = ws.receive_json()
            assert welcome["content"] == tutor_config.messages.welcome
            assert welcome["sessionId"] == "ws1"

            ws.send_json({"type": "chat", "content": "What is an atom?"})
            status = ws.receive_json()
            message = ws.receive_json()

        assert status == {"type": "status", "status": "thinking"}
        assert message["type"] == "message"
        assert message["allowActions"] is True
        assert message["isReExplanation"] is False
        assert message["messageId"].startswith("turn-")

    def test_follow_ups_and_history(self, client, provider):
        provider.queue_responses("First answer.", "Second answer.", "Try this problem.", "Look at the signs.")

        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_json({"type": "chat", "content": "What is a verb?"})
            ws.receive_json()
            first = ws.receive_json()

            ws.send_json({"type": "reexplain", "messageId": first["messageId"]})
            ws.receive_json()
            reexplained = ws.receive_json()

            ws.send_json({"type": "challenge"})
            ws.receive_json()
            challenge = ws.receive_json()

            ws.send_json({"type": "hint"})
            ws.receive_json()
            hint = ws.receive_json()

            ws.send_json({"type": "load_history"})
            history = ws.receive_json()

        assert reexplained["isReExplanation"] is True
        assert challenge["isChallenge"] is True
        assert challenge["challengeId"].startswith("challenge-")
        assert hint["isHint"] is True
        assert hint["challengeId"] == challenge["challengeId"]
        assert history["type"] == "history"
        assert [m["content"] for m in history["history"]] == [
            "What is a verb?",
            "First answer.",
            "Second answer.",
            "Try this problem.",
            "Look at the signs.",
        ]

    def test_malformed_frame(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_text("not json")
            error = ws.receive_json()

            ws.send_json({"type": "dance"})
            second_error = ws.receive_json()

        assert error["type"] == "error"
        assert second_error["type"] == "error"

    def test_missing_context(self, client, tutor_config):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_json({"type": "reexplain"})
            ws.receive_json()
            error = ws.receive_json()

        assert error["code"] == "missing_context"
        assert error["message"] == tutor_config.messages.missing_context

    def test_usage_limit(self, controller, tutor_config):
        client = TestClient(create_app(controller, usage_ledger=InMemoryUsageLedger(anonymous_limit=1)))

        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_json({"type": "chat", "content": "What is an atom?"})
            ws.receive_json()
            ws.receive_json()

            ws.send_json({"type": "chat", "content": "What is a cell?"})
            error = ws.receive_json()

        assert error["code"] == "usage_limit"
        assert error["message"] == tutor_config.messages.usage_exhausted

    def test_authenticated_user_unlimited(self, controller):
        """Signed-in students are not throttled on the socket either."""
        client = TestClient(create_app(controller, usage_ledger=InMemoryUsageLedger(anonymous_limit=1)))

        with client.websocket_connect("/ws", headers={"X-User-Id": "student-42"}) as ws:
            ws.receive_json()
            frames = []
            for question in ("What is an atom?", "What is a cell?", "What is a gene?"):
                ws.send_json({"type": "chat", "content": question})
                frames.append((ws.receive_json(), ws.receive_json()))

        for status, message in frames:
            assert status == {"type": "status", "status": "thinking"}
            assert message["type"] == "message"

    def test_session_survives_reconnect(self, client, sessions):
        with client.websocket_connect("/ws?sessionId=keep") as ws:
            ws.receive_json()
            ws.send_json({"type": "chat", "content": "What is a verb?"})
            ws.receive_json()
            ws.receive_json()

        with client.websocket_connect("/ws?sessionId=keep") as ws:
            ws.receive_json()
            ws.send_json({"type": "load_history"})
            history = ws.receive_json()

        assert len(history["history"]) == 2
        assert len(sessions.get("keep")) == 2
