from __future__ import annotations

from datetime import date, datetime, time, timedelta
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid4())


class CaseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    citation: str
    defendant: str
    court_date: date
    court_time: time
    room: str
    court_type: str | None = None


class PendingQuestion(str, Enum):
    NONE = "none"
    REMINDER = "awaiting_reminder_confirm"
    QUEUE = "awaiting_queue_confirm"


class ConversationState(BaseModel):
    """What a sender has been asked and what the question refers to.

    ``matched_case`` is a copy taken when the question was asked, not a live
    reference to the case row. ``version`` is the stored revision this state
    was loaded from (0 when it has never been stored).
    """

    phone: str
    pending_question: PendingQuestion = PendingQuestion.NONE
    matched_case: CaseRecord | None = None
    pending_citation_text: str | None = None
    version: int = 0

    def idle(self) -> ConversationState:
        return ConversationState(phone=self.phone, version=self.version)

    def awaiting_reminder(self, case: CaseRecord) -> ConversationState:
        return ConversationState(
            phone=self.phone,
            pending_question=PendingQuestion.REMINDER,
            matched_case=case.model_copy(),
            pending_citation_text=case.citation,
            version=self.version,
        )

    def awaiting_queue(self, citation_text: str) -> ConversationState:
        return ConversationState(
            phone=self.phone,
            pending_question=PendingQuestion.QUEUE,
            pending_citation_text=citation_text,
            version=self.version,
        )


class QueuedLookup(BaseModel):
    id: str = Field(default_factory=_new_id)
    citation_text: str
    phone: str
    created_at: datetime
    expires_at: datetime
    resolved_at: datetime | None = None
    outcome: str | None = None

    @classmethod
    def open(
        cls, *, citation_text: str, phone: str, now: datetime, ttl_days: int
    ) -> QueuedLookup:
        return cls(
            citation_text=citation_text,
            phone=phone,
            created_at=now,
            expires_at=now + timedelta(days=ttl_days),
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class ReminderSubscription(BaseModel):
    id: str = Field(default_factory=_new_id)
    case_id: str
    phone: str
    original_case: CaseRecord
    created_at: datetime | None = None


class DialogueTurn(BaseModel):
    replies: list[str] = Field(default_factory=list)
    state: ConversationState | None = None
    outcome: str
    reminder: ReminderSubscription | None = None
    queued_lookup: QueuedLookup | None = None


class SweepReport(BaseModel):
    checked: int = 0
    found: int = 0
    expired: int = 0
    pending: int = 0
    failed: int = 0
