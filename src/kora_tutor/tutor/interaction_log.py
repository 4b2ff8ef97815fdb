"""
Interaction log for the tutor.

Records every successful question/answer pair for learning history.
Recording is fire-and-forget from the controller's point of view: the
controller catches and logs any failure here.

Storage structure (file store):
    {path}              # one JSON object per line, oldest first
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class InteractionRecord:
    """One recorded tutoring interaction."""

    question: str
    """What the student asked (or the follow-up request)."""

    answer: str
    """The tutor reply delivered."""

    subject_domain: str
    """Classified subject domain."""

    type: str
    """Submission kind (ask, reexplain, challenge, hint, image)."""

    session_id: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "question": self.question,
            "answer": self.answer,
            "subject_domain": self.subject_domain,
            "type": self.type,
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionRecord":
        """Create from dictionary."""
        return cls(
            question=data.get("question", ""),
            answer=data.get("answer", ""),
            subject_domain=data.get("subject_domain", "general"),
            type=data.get("type", "ask"),
            session_id=data.get("session_id"),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
        )


def select_recent(
    records: Iterable[InteractionRecord],
    limit: Optional[int] = None,
    session_id: Optional[str] = None,
) -> list[InteractionRecord]:
    """Newest first, optionally restricted to one session."""
    selected = [r for r in records if session_id is None or r.session_id == session_id]
    selected.reverse()
    if limit is not None:
        selected = selected[:limit]
    return selected


class InteractionLog(Protocol):
    """Protocol for interaction log backends."""

    def record(self, record: InteractionRecord) -> None:
        """Store one interaction."""
        ...

    def load(
        self,
        limit: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> list[InteractionRecord]:
        """Recorded interactions, newest first."""
        ...


class InMemoryInteractionLog:
    """Keeps records in a list. Used by tests and the interactive CLI."""

    def __init__(self) -> None:
        self.records: list[InteractionRecord] = []

    def record(self, record: InteractionRecord) -> None:
        self.records.append(record)

    def load(
        self,
        limit: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> list[InteractionRecord]:
        return select_recent(self.records, limit, session_id)

    def __len__(self) -> int:
        return len(self.records)


class JsonlInteractionLog:
    """
    Append-only JSON-lines interaction log.

    Usage:
        log = JsonlInteractionLog(Path("~/.kora/interactions.jsonl"))
        log.record(InteractionRecord(question="...", answer="...",
                                     subject_domain="math", type="ask"))
        recent = log.load(limit=20)
    """

    def __init__(self, path: Path) -> None:
        """
        Initialize the log.

        Args:
            path: JSON-lines file (created on first record)
        """
        self.path = Path(path).expanduser().resolve()

    def record(self, record: InteractionRecord) -> None:
        """Append one record."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")
            logger.debug(f"Recorded {record.type} interaction in {self.path}")
        except OSError as e:
            logger.error(f"Failed to write interaction to {self.path}: {e}")
            raise

    def load(
        self,
        limit: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> list[InteractionRecord]:
        """
        Load records, newest first.

        Args:
            limit: Maximum number of records to return
            session_id: Only records of this session

        Returns:
            List of InteractionRecord objects
        """
        if not self.path.exists():
            return []

        records = []
        with open(self.path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(InteractionRecord.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning(f"Skipping malformed line {line_number} in {self.path}: {e}")

        return select_recent(records, limit, session_id)
