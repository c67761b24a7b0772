from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Column, String
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid4())


class Case(SQLModel, table=True):
    __tablename__ = "cases"

    id: str = Field(default_factory=_new_id, primary_key=True)
    citation: str = Field(index=True)
    defendant: str = Field(index=True)
    court_date: date
    court_time: time
    room: str
    court_type: str | None = Field(default=None, sa_column=Column(String(16), nullable=True))


class QueuedLookupRecord(SQLModel, table=True):
    __tablename__ = "queued_lookups"

    id: str = Field(default_factory=_new_id, primary_key=True)
    citation_text: str
    phone: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime
    resolved_at: datetime | None = Field(default=None, index=True)
    outcome: str | None = Field(default=None, sa_column=Column(String(16), nullable=True))


class Reminder(SQLModel, table=True):
    __tablename__ = "reminders"

    id: str = Field(default_factory=_new_id, primary_key=True)
    case_id: str = Field(index=True)
    phone: str = Field(index=True)
    original_case: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ConversationRecord(SQLModel, table=True):
    __tablename__ = "conversation_states"

    phone: str = Field(primary_key=True)
    pending_question: str = Field(
        default="none", sa_column=Column(String(32), nullable=False)
    )
    matched_case: dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )
    pending_citation_text: str | None = None
    version: int = Field(default=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
