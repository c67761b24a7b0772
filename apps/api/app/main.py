from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, time
import logging
import traceback

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel
from sqlmodel import Session

from courtbot_core import DialogueController, SenderLocks, StoreUnavailable
from courtbot_core.dialogue.replies import format_readable_date
from courtbot_core.matching import search_cases

from app.db import (
    SqlCitationStore,
    SqlConversationStore,
    SqlSubscriptionStore,
    get_session,
    init_db,
)
from app.logging_config import configure_logging
from app.settings import settings
from app.twiml import render_messages

logger = logging.getLogger(__name__)

GREETING = (
    "Hello, I am Courtbot. I have a heart of justice and a knowledge of court cases."
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    init_db()
    yield


app = FastAPI(title="Courtbot API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["X-Requested-With"],
)

sender_locks = SenderLocks(timeout_seconds=settings.store_timeout_seconds)


class CaseSearchResult(BaseModel):
    id: str
    citation: str
    defendant: str
    court_date: date
    court_time: time
    room: str
    court_type: str | None = None
    readable_date: str


def build_dialogue_controller(session: Session) -> DialogueController:
    return DialogueController(
        SqlCitationStore(session),
        SqlSubscriptionStore(session),
        SqlConversationStore(session),
        queue_ttl_days=settings.queue_ttl_days,
        court_public_url=settings.court_public_url,
        locks=sender_locks,
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.app_env != "production":
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return PlainTextResponse(detail, status_code=500)
    return PlainTextResponse("Sorry, internal server error", status_code=500)


@app.get("/", response_class=PlainTextResponse)
def index() -> str:
    return GREETING


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/cases", response_model=list[CaseSearchResult])
def list_cases(
    q: str | None = None,
    session: Session = Depends(get_session),
) -> list[CaseSearchResult]:
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="q is required")

    try:
        records = search_cases(q, SqlCitationStore(session).find_fuzzy)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return [
        CaseSearchResult(
            **record.model_dump(),
            readable_date=format_readable_date(record.court_date),
        )
        for record in records
    ]


@app.post("/sms")
def receive_sms(
    from_number: str = Form(..., alias="From"),
    body: str = Form("", alias="Body"),
    session: Session = Depends(get_session),
) -> Response:
    controller = build_dialogue_controller(session)
    turn = controller.handle(from_number, body)
    logger.info(
        "SMS from %s handled: outcome=%s replies=%d",
        from_number,
        turn.outcome,
        len(turn.replies),
    )
    return Response(content=render_messages(turn.replies), media_type="application/xml")
