from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, Session, create_engine, select
from unittest.mock import patch

from app.db import Case, ConversationRecord, QueuedLookupRecord, Reminder
from app.main import health, index, list_cases, receive_sms
from app.settings import settings

PHONE = "+15555550100"


def _make_engine(tmp_path):
    db_path = tmp_path / "sms-test.db"
    engine = create_engine(
        f"sqlite:///{db_path}", connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)
    return engine


def _insert_case(session: Session, citation: str = "Z-9", **overrides) -> Case:
    case = Case(
        citation=citation,
        defendant=overrides.get("defendant", "john q public"),
        court_date=overrides.get("court_date", date(2024, 3, 4)),
        court_time=overrides.get("court_time", time(14, 30)),
        room=overrides.get("room", "101"),
        court_type="district",
    )
    session.add(case)
    session.commit()
    session.refresh(case)
    return case


def _sms(session: Session, body: str, phone: str = PHONE) -> str:
    response = receive_sms(from_number=phone, body=body, session=session)
    assert response.media_type == "application/xml"
    return response.body.decode("utf-8")


def _state(session: Session, phone: str = PHONE) -> ConversationRecord | None:
    session.expire_all()
    return session.exec(
        select(ConversationRecord).where(ConversationRecord.phone == phone)
    ).first()


def test_unique_match_replies_with_case_summary(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        _insert_case(session)

        xml = _sms(session, "z-9")
        state = _state(session)

    assert (
        "<Message>Found a case for John Q Public scheduled on Mon, Mar 4th at 2:30 PM, "
        "at 101. Would you like a courtesy reminder the day before? (reply YES or NO)"
        "</Message>"
    ) in xml
    assert state is not None
    assert state.pending_question == "awaiting_reminder_confirm"
    assert state.matched_case["citation"] == "Z-9"


def test_reminder_confirmation_survives_restart(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        case_id = _insert_case(session).id
        _sms(session, "Z-9")

    # A new session stands in for a restarted process.
    with Session(engine) as session:
        first = _sms(session, "yes")
        second = _sms(session, "yes")
        reminders = session.exec(select(Reminder)).all()

    assert "(1/2) Sounds good." in first
    assert f"(2/2) You should always confirm your case date and time by going to {settings.court_public_url}" in first
    assert second.endswith("<Response/>")
    assert len(reminders) == 1
    assert reminders[0].case_id == case_id
    assert reminders[0].phone == PHONE
    assert reminders[0].original_case["defendant"] == "john q public"


def test_unfound_citation_offers_queue_and_stores_lookup(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        offer = _sms(session, "abc123")
        state = _state(session)
        assert state is not None
        assert state.pending_question == "awaiting_queue_confirm"
        assert state.pending_citation_text == "ABC123"

        silent = _sms(session, "maybe")
        accepted = _sms(session, "Y")
        lookups = session.exec(select(QueuedLookupRecord)).all()

    assert "(1/2) Could not find a case with that number." in offer
    assert f"(2/2) Would you like us to keep checking for the next {settings.queue_ttl_days} days" in offer
    assert silent.endswith("<Response/>")
    assert f"OK. We will keep checking for up to {settings.queue_ttl_days} days." in accepted
    assert len(lookups) == 1
    assert lookups[0].citation_text == "ABC123"
    assert lookups[0].resolved_at is None
    created = lookups[0].created_at
    assert lookups[0].expires_at - created == timedelta(days=settings.queue_ttl_days)


def test_short_citation_gets_format_message(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        xml = _sms(session, "123")
        state = _state(session)

    assert xml.count("<Message>") == 1
    assert "Case identifier should be 6 to 25 numbers and/or letters in length." in xml
    assert state is not None
    assert state.pending_question == "none"


def test_stored_lookup_answers_without_conversation_row(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    now = datetime.now(UTC)
    with Session(engine) as session:
        session.add(
            QueuedLookupRecord(
                citation_text="ABC123",
                phone=PHONE,
                created_at=now,
                expires_at=now + timedelta(days=10),
            )
        )
        session.commit()

        xml = _sms(session, "no")
        lookup = session.exec(select(QueuedLookupRecord)).one()

    assert "OK. You can always go to" in xml
    assert lookup.outcome == "declined"
    assert lookup.resolved_at is not None


def test_database_failure_returns_apology(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        with patch.object(
            Session,
            "exec",
            side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
        ):
            xml = _sms(session, "ABC123")

    assert "Sorry, we are having trouble looking up court cases right now." in xml


def test_reply_text_is_xml_escaped(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        _insert_case(session, citation="R&D-100", room="<B>")
        xml = _sms(session, "r&d-100")

    assert "at &lt;B&gt;." in xml


def test_case_search_returns_readable_dates(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        _insert_case(session, citation="ABC123", defendant="MARY SMITH")
        _insert_case(session, citation="XYZ999", defendant="JOHN DOE")

        by_name = list_cases(q="smith", session=session)
        by_citation = list_cases(q="xyz999", session=session)

    assert [result.citation for result in by_name] == ["ABC123"]
    assert by_name[0].readable_date == "Monday, Mar 4th"
    assert [result.defendant for result in by_citation] == ["JOHN DOE"]


def test_case_search_requires_query(tmp_path) -> None:
    engine = _make_engine(tmp_path)
    with Session(engine) as session:
        with pytest.raises(HTTPException) as excinfo:
            list_cases(q="  ", session=session)

    assert excinfo.value.status_code == 400


def test_index_and_health() -> None:
    assert index().startswith("Hello, I am Courtbot.")
    assert health() == {"status": "ok"}
