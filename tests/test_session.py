"""
Tests for sessions, the usage ledger and the interaction log.
"""

import json

import pytest

from kora_tutor.tutor import (
    Conversation,
    ConversationTurn,
    InMemoryInteractionLog,
    InMemoryUsageLedger,
    InteractionRecord,
    JsonlInteractionLog,
    SessionStore,
    TurnRole,
    UsageLimitExceeded,
)


class TestConversation:
    """Tests for the conversation transcript."""

    def test_from_messages(self):
        conversation = Conversation.from_messages([
            ("user", "What is a verb?"),
            ("assistant", "A word for an action."),
            ("user", ""),
        ])

        assert [t.role for t in conversation.turns] == [TurnRole.STUDENT, TurnRole.TUTOR]

    def test_from_exercise_issues_challenge(self):
        conversation = Conversation.from_exercise("Solve 3x = 12.")

        assert conversation.active_challenge is not None
        assert conversation.active_challenge.content == "Solve 3x = 12."
        assert conversation.active_challenge.source_turn_id == conversation.turns[0].id

    def test_from_exercise_empty(self):
        conversation = Conversation.from_exercise("")
        assert conversation.active_challenge is None
        assert len(conversation) == 0

    def test_issue_challenge_replaces_previous(self):
        conversation = Conversation()
        first = conversation.issue_challenge(conversation.append(ConversationTurn.tutor("Problem A")))
        second = conversation.issue_challenge(conversation.append(ConversationTurn.tutor("Problem B")))

        assert first.id != second.id
        assert conversation.active_challenge == second

    def test_lookup_and_window(self):
        conversation = Conversation.from_messages([("user", "q1"), ("tutor", "a1"), ("user", "q2")])
        tutor_turn = conversation.turns[1]

        assert conversation.get_turn(tutor_turn.id) is tutor_turn
        assert conversation.index_of(tutor_turn.id) == 1
        assert conversation.index_of("turn-unknown") == -1
        assert conversation.latest_turn(TurnRole.STUDENT).text == "q2"
        assert [t.text for t in conversation.window(2)] == ["a1", "q2"]
        assert conversation.window(0) == []

    def test_turn_ids_unique(self):
        ids = {ConversationTurn.student("same").id for _ in range(50)}
        assert len(ids) == 50


class TestSessionStore:
    """Tests for SessionStore."""

    def test_get_or_create(self):
        store = SessionStore()

        created = store.get_or_create("abc")
        again = store.get_or_create("abc")

        assert created is again
        assert created.session_id == "abc"
        assert "abc" in store
        assert len(store) == 1

    def test_generated_id(self):
        store = SessionStore()
        conversation = store.get_or_create()

        assert conversation.session_id
        assert store.get(conversation.session_id) is conversation

    def test_end(self):
        store = SessionStore()
        store.get_or_create("abc")

        assert store.end("abc") is True
        assert store.end("abc") is False
        assert store.get("abc") is None


class TestUsageLedger:
    """Tests for InMemoryUsageLedger."""

    def test_anonymous_limit(self):
        ledger = InMemoryUsageLedger(anonymous_limit=2)

        assert ledger.consume("1.2.3.4") == 1
        assert ledger.consume("1.2.3.4") == 0
        with pytest.raises(UsageLimitExceeded) as exc_info:
            ledger.consume("1.2.3.4")

        assert exc_info.value.identity == "1.2.3.4"
        assert exc_info.value.limit == 2
        assert ledger.used("1.2.3.4") == 2

    def test_identities_are_independent(self):
        ledger = InMemoryUsageLedger(anonymous_limit=1)
        ledger.consume("a")

        assert ledger.remaining("a") == 0
        assert ledger.remaining("b") == 1

    def test_authenticated_unlimited(self):
        ledger = InMemoryUsageLedger(anonymous_limit=0)

        for _ in range(20):
            assert ledger.consume("user-1", authenticated=True) is None
        assert ledger.remaining("user-1", authenticated=True) is None

    def test_reset(self):
        ledger = InMemoryUsageLedger(anonymous_limit=1)
        ledger.consume("a")
        ledger.consume("b")

        ledger.reset("a")
        assert ledger.remaining("a") == 1
        assert ledger.remaining("b") == 0

        ledger.reset()
        assert ledger.remaining("b") == 1


class TestJsonlInteractionLog:
    """Tests for the JSON-lines interaction log."""

    def make_record(self, question: str, session_id: str = "s1") -> InteractionRecord:
        return InteractionRecord(
            question=question,
            answer="An answer",
            subject_domain="math",
            type="ask",
            session_id=session_id,
        )

    def test_record_and_load(self, tmp_path):
        log = JsonlInteractionLog(tmp_path / "logs" / "interactions.jsonl")

        log.record(self.make_record("first"))
        log.record(self.make_record("second"))

        records = log.load()
        assert [r.question for r in records] == ["second", "first"]
        assert records[0].subject_domain == "math"

    def test_file_format(self, tmp_path):
        path = tmp_path / "interactions.jsonl"
        JsonlInteractionLog(path).record(self.make_record("Résoudre 3x + 8 = 9"))

        data = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
        assert data["question"] == "Résoudre 3x + 8 = 9"
        assert data["type"] == "ask"
        assert "created_at" in data

    def test_limit_and_session_filter(self, tmp_path):
        log = JsonlInteractionLog(tmp_path / "interactions.jsonl")
        for i in range(3):
            log.record(self.make_record(f"q{i}", session_id="s1"))
        log.record(self.make_record("other", session_id="s2"))

        assert [r.question for r in log.load(limit=2)] == ["other", "q2"]
        assert [r.question for r in log.load(session_id="s1")] == ["q2", "q1", "q0"]

    def test_malformed_lines_skipped(self, tmp_path):
        path = tmp_path / "interactions.jsonl"
        log = JsonlInteractionLog(path)
        log.record(self.make_record("good"))
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n\n")

        assert [r.question for r in log.load()] == ["good"]

    def test_load_missing_file(self, tmp_path):
        assert JsonlInteractionLog(tmp_path / "none.jsonl").load() == []

    def test_in_memory_log_matches_file_log(self, tmp_path):
        file_log = JsonlInteractionLog(tmp_path / "interactions.jsonl")
        memory_log = InMemoryInteractionLog()
        for question, session_id in [("q0", "s1"), ("q1", "s2"), ("q2", "s1")]:
            file_log.record(self.make_record(question, session_id=session_id))
            memory_log.record(self.make_record(question, session_id=session_id))

        for kwargs in ({}, {"limit": 1}, {"session_id": "s1"}):
            assert [r.question for r in memory_log.load(**kwargs)] == [
                r.question for r in file_log.load(**kwargs)
            ]
