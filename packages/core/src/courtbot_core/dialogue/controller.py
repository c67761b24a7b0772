from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

from courtbot_core.errors import StateConflict, StoreUnavailable
from courtbot_core.matching import MatchKind, classify_answer, match_citation, normalize_query
from courtbot_core.matching.engine import Answer
from courtbot_core.ports import CitationStore, ConversationStore, SubscriptionStore
from courtbot_core.types import (
    ConversationState,
    DialogueTurn,
    PendingQuestion,
    QueuedLookup,
    ReminderSubscription,
)

from . import replies
from .locks import SenderLocks

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DialogueController:
    """Turns one inbound message into replies and store writes.

    Each turn runs under the sender's lock and ends with a conditional write
    of the conversation state, so a sender's turns are applied one at a time
    even across processes.
    """

    def __init__(
        self,
        citations: CitationStore,
        subscriptions: SubscriptionStore,
        conversations: ConversationStore,
        *,
        queue_ttl_days: int,
        court_public_url: str,
        locks: SenderLocks | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.citations = citations
        self.subscriptions = subscriptions
        self.conversations = conversations
        self.queue_ttl_days = queue_ttl_days
        self.court_public_url = court_public_url
        self.locks = locks if locks is not None else SenderLocks()
        self.clock = clock

    def handle(self, phone: str, body: str) -> DialogueTurn:
        try:
            with self.locks.hold(phone):
                return self._handle_locked(phone, body)
        except StoreUnavailable as exc:
            logger.error("Store unavailable while handling message from %s: %s", phone, exc)
            return DialogueTurn(replies=replies.apology(), outcome="store_unavailable")
        except StateConflict as exc:
            logger.warning("Dropped conflicting turn from %s: %s", phone, exc)
            return DialogueTurn(outcome="stale_confirmation")

    def _handle_locked(self, phone: str, body: str) -> DialogueTurn:
        text = normalize_query(body)
        answer = classify_answer(text)

        state = self.conversations.load(phone)
        if state is None:
            resumed = self.subscriptions.find_queued_lookup_by_sender(phone)
            if resumed is not None and answer is not None:
                logger.info("Resuming queue confirmation for %s from stored lookup", phone)
                return self._answer_queue(
                    ConversationState(phone=phone).awaiting_queue(resumed.citation_text),
                    answer,
                    resumed=resumed,
                )
            state = ConversationState(phone=phone)

        if state.pending_question is PendingQuestion.REMINDER:
            if answer is None:
                return DialogueTurn(state=state, outcome="awaiting_answer")
            return self._answer_reminder(state, answer)

        if state.pending_question is PendingQuestion.QUEUE:
            if answer is None:
                return DialogueTurn(state=state, outcome="awaiting_answer")
            return self._answer_queue(state, answer)

        if answer is not None:
            logger.info("Ignoring %s from %s with no pending question", text, phone)
            return DialogueTurn(state=state, outcome="stale_confirmation")

        return self._lookup(state, text)

    def _lookup(self, state: ConversationState, text: str) -> DialogueTurn:
        result = match_citation(text, self.citations.find_exact)

        if result.kind is MatchKind.UNIQUE and result.case is not None:
            next_state = self.conversations.save(state.awaiting_reminder(result.case))
            return DialogueTurn(
                replies=replies.case_found(result.case),
                state=next_state,
                outcome="case_found",
            )

        if result.queueable:
            if result.candidates > 1:
                logger.info(
                    "Citation %s matched %d cases; treating as not found",
                    result.query_text,
                    result.candidates,
                )
            next_state = self.conversations.save(state.awaiting_queue(result.query_text))
            return DialogueTurn(
                replies=replies.case_not_found(self.queue_ttl_days),
                state=next_state,
                outcome="case_not_found",
            )

        next_state = self.conversations.save(state.idle())
        return DialogueTurn(
            replies=replies.malformed_citation(),
            state=next_state,
            outcome="malformed_citation",
        )

    def _answer_reminder(self, state: ConversationState, answer: Answer) -> DialogueTurn:
        if answer == "no" or state.matched_case is None:
            next_state = self.conversations.save(state.idle())
            return DialogueTurn(
                replies=replies.declined(self.court_public_url),
                state=next_state,
                outcome="reminder_declined",
            )

        case = state.matched_case
        reminder = self.subscriptions.create_reminder(
            ReminderSubscription(
                case_id=case.id,
                phone=state.phone,
                original_case=case,
                created_at=self.clock(),
            )
        )
        next_state = self.conversations.save(state.idle())
        return DialogueTurn(
            replies=replies.reminder_confirmed(self.court_public_url),
            state=next_state,
            outcome="reminder_created",
            reminder=reminder,
        )

    def _answer_queue(
        self,
        state: ConversationState,
        answer: Answer,
        resumed: QueuedLookup | None = None,
    ) -> DialogueTurn:
        if answer == "no" or not state.pending_citation_text:
            if resumed is not None:
                self.subscriptions.resolve_queued_lookup(
                    resumed.id, outcome="declined", resolved_at=self.clock()
                )
            next_state = self.conversations.save(state.idle())
            return DialogueTurn(
                replies=replies.declined(self.court_public_url),
                state=next_state,
                outcome="queue_declined",
            )

        lookup = self.subscriptions.create_queued_lookup(
            QueuedLookup.open(
                citation_text=state.pending_citation_text,
                phone=state.phone,
                now=self.clock(),
                ttl_days=self.queue_ttl_days,
            )
        )
        next_state = self.conversations.save(state.idle())
        return DialogueTurn(
            replies=replies.queue_confirmed(self.queue_ttl_days, self.court_public_url),
            state=next_state,
            outcome="queue_created",
            queued_lookup=lookup,
        )
