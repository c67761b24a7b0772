"""SQLModel-backed implementations of the courtbot store ports.

Within a dialogue turn the subscription writes are only flushed; the
conversation-state write at the end of the turn commits them together. A
store built with ``autocommit=True`` (the sweep) commits every resolution on
its own.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from courtbot_core.errors import StateConflict, StoreUnavailable
from courtbot_core.types import (
    CaseRecord,
    ConversationState,
    PendingQuestion,
    QueuedLookup,
    ReminderSubscription,
)

from .models import Case, ConversationRecord, QueuedLookupRecord, Reminder

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands datetimes back without tzinfo; everything is stored in UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def case_to_record(case: Case) -> CaseRecord:
    return CaseRecord(
        id=case.id,
        citation=case.citation,
        defendant=case.defendant,
        court_date=case.court_date,
        court_time=case.court_time,
        room=case.room,
        court_type=case.court_type,
    )


def lookup_to_domain(row: QueuedLookupRecord) -> QueuedLookup:
    return QueuedLookup(
        id=row.id,
        citation_text=row.citation_text,
        phone=row.phone,
        created_at=_aware(row.created_at),
        expires_at=_aware(row.expires_at),
        resolved_at=_aware(row.resolved_at),
        outcome=row.outcome,
    )


class _SqlStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _unavailable(self, action: str, exc: SQLAlchemyError) -> StoreUnavailable:
        self.session.rollback()
        logger.error("Database error while trying to %s: %s", action, exc)
        return StoreUnavailable(f"Could not {action}: {exc}")


class SqlCitationStore(_SqlStore):
    def find_exact(self, citation_text: str) -> list[CaseRecord]:
        try:
            rows = self.session.exec(
                select(Case).where(Case.citation == citation_text)
            ).all()
        except SQLAlchemyError as exc:
            raise self._unavailable("look up citation", exc) from exc
        return [case_to_record(row) for row in rows]

    def find_fuzzy(self, query_text: str, limit: int = 50) -> list[CaseRecord]:
        pattern = f"%{query_text.strip().lower()}%"
        try:
            rows = self.session.exec(
                select(Case)
                .where(
                    or_(
                        Case.citation == query_text.strip().upper(),
                        func.lower(Case.defendant).like(pattern),
                    )
                )
                .order_by(Case.court_date.asc(), Case.defendant.asc())
                .limit(max(1, min(limit, 500)))
            ).all()
        except SQLAlchemyError as exc:
            raise self._unavailable("search cases", exc) from exc
        return [case_to_record(row) for row in rows]


class SqlSubscriptionStore(_SqlStore):
    def __init__(self, session: Session, *, autocommit: bool = False) -> None:
        super().__init__(session)
        self.autocommit = autocommit

    def _finish(self) -> None:
        if self.autocommit:
            self.session.commit()
        else:
            self.session.flush()

    def create_reminder(self, reminder: ReminderSubscription) -> ReminderSubscription:
        row = Reminder(
            id=reminder.id,
            case_id=reminder.case_id,
            phone=reminder.phone,
            original_case=reminder.original_case.model_dump(mode="json"),
            created_at=reminder.created_at or datetime.now(UTC),
        )
        try:
            self.session.add(row)
            self._finish()
        except SQLAlchemyError as exc:
            raise self._unavailable("create reminder", exc) from exc
        return reminder

    def create_queued_lookup(self, lookup: QueuedLookup) -> QueuedLookup:
        try:
            existing = self.session.exec(
                select(QueuedLookupRecord).where(
                    QueuedLookupRecord.phone == lookup.phone,
                    QueuedLookupRecord.citation_text == lookup.citation_text,
                    col(QueuedLookupRecord.resolved_at).is_(None),
                )
            ).first()
            if existing is not None:
                return lookup_to_domain(existing)

            self.session.add(
                QueuedLookupRecord(
                    id=lookup.id,
                    citation_text=lookup.citation_text,
                    phone=lookup.phone,
                    created_at=lookup.created_at,
                    expires_at=lookup.expires_at,
                )
            )
            self._finish()
        except SQLAlchemyError as exc:
            raise self._unavailable("create queued lookup", exc) from exc
        return lookup

    def find_queued_lookup_by_sender(self, phone: str) -> QueuedLookup | None:
        try:
            row = self.session.exec(
                select(QueuedLookupRecord)
                .where(
                    QueuedLookupRecord.phone == phone,
                    col(QueuedLookupRecord.resolved_at).is_(None),
                )
                .order_by(col(QueuedLookupRecord.created_at).desc())
            ).first()
        except SQLAlchemyError as exc:
            raise self._unavailable("find queued lookup", exc) from exc
        return lookup_to_domain(row) if row is not None else None

    def list_unresolved_queued_lookups(self) -> list[QueuedLookup]:
        try:
            rows = self.session.exec(
                select(QueuedLookupRecord)
                .where(col(QueuedLookupRecord.resolved_at).is_(None))
                .order_by(
                    col(QueuedLookupRecord.created_at).asc(),
                    col(QueuedLookupRecord.id).asc(),
                )
            ).all()
        except SQLAlchemyError as exc:
            raise self._unavailable("list queued lookups", exc) from exc
        return [lookup_to_domain(row) for row in rows]

    def resolve_queued_lookup(
        self, lookup_id: str, *, outcome: str, resolved_at: datetime
    ) -> bool:
        try:
            result = self.session.execute(
                update(QueuedLookupRecord)
                .where(
                    col(QueuedLookupRecord.id) == lookup_id,
                    col(QueuedLookupRecord.resolved_at).is_(None),
                )
                .values(resolved_at=resolved_at, outcome=outcome)
            )
            self._finish()
        except SQLAlchemyError as exc:
            raise self._unavailable("resolve queued lookup", exc) from exc
        return result.rowcount == 1


class SqlConversationStore(_SqlStore):
    def load(self, phone: str) -> ConversationState | None:
        try:
            row = self.session.exec(
                select(ConversationRecord).where(ConversationRecord.phone == phone)
            ).first()
        except SQLAlchemyError as exc:
            raise self._unavailable("load conversation state", exc) from exc
        if row is None:
            return None
        return ConversationState(
            phone=row.phone,
            pending_question=PendingQuestion(row.pending_question),
            matched_case=(
                CaseRecord.model_validate(row.matched_case) if row.matched_case else None
            ),
            pending_citation_text=row.pending_citation_text,
            version=row.version,
        )

    def save(self, state: ConversationState) -> ConversationState:
        values: dict[str, Any] = {
            "pending_question": state.pending_question.value,
            "matched_case": (
                state.matched_case.model_dump(mode="json") if state.matched_case else None
            ),
            "pending_citation_text": state.pending_citation_text,
            "version": state.version + 1,
            "updated_at": datetime.now(UTC),
        }
        try:
            if state.version == 0:
                self.session.add(ConversationRecord(phone=state.phone, **values))
                self.session.flush()
            else:
                result = self.session.execute(
                    update(ConversationRecord)
                    .where(
                        col(ConversationRecord.phone) == state.phone,
                        col(ConversationRecord.version) == state.version,
                    )
                    .values(**values)
                )
                if result.rowcount != 1:
                    self.session.rollback()
                    raise StateConflict(
                        f"Conversation for {state.phone} moved past version {state.version}"
                    )
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise StateConflict(
                f"Conversation for {state.phone} was created concurrently"
            ) from exc
        except SQLAlchemyError as exc:
            raise self._unavailable("save conversation state", exc) from exc
        return state.model_copy(update={"version": state.version + 1})
