"""Thread-safe in-memory store implementations for development and tests.

These stores have no transactions: a reminder or queued lookup written
during a turn stays even if the closing conversation save raises
StateConflict. Turns are only atomic when every controller sharing these
stores also shares one SenderLocks registry.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Iterable

from .errors import StateConflict
from .types import CaseRecord, ConversationState, QueuedLookup, ReminderSubscription


class InMemoryCitationStore:
    def __init__(self, cases: Iterable[CaseRecord] = ()) -> None:
        self._cases = list(cases)

    def add(self, case: CaseRecord) -> None:
        self._cases.append(case)

    def find_exact(self, citation_text: str) -> list[CaseRecord]:
        return [case for case in self._cases if case.citation == citation_text]

    def find_fuzzy(self, query_text: str) -> list[CaseRecord]:
        needle = query_text.strip().lower()
        citation = query_text.strip().upper()
        return [
            case
            for case in self._cases
            if case.citation == citation or needle in case.defendant.lower()
        ]


class InMemorySubscriptionStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reminders: list[ReminderSubscription] = []
        self.queued: dict[str, QueuedLookup] = {}

    def create_reminder(self, reminder: ReminderSubscription) -> ReminderSubscription:
        with self._lock:
            self.reminders.append(reminder)
        return reminder

    def create_queued_lookup(self, lookup: QueuedLookup) -> QueuedLookup:
        with self._lock:
            for existing in self.queued.values():
                if (
                    existing.resolved_at is None
                    and existing.phone == lookup.phone
                    and existing.citation_text == lookup.citation_text
                ):
                    return existing
            self.queued[lookup.id] = lookup
        return lookup

    def find_queued_lookup_by_sender(self, phone: str) -> QueuedLookup | None:
        with self._lock:
            pending = [
                lookup
                for lookup in self.queued.values()
                if lookup.phone == phone and lookup.resolved_at is None
            ]
        if not pending:
            return None
        return max(pending, key=lambda lookup: lookup.created_at)

    def list_unresolved_queued_lookups(self) -> list[QueuedLookup]:
        with self._lock:
            pending = [lookup for lookup in self.queued.values() if lookup.resolved_at is None]
        return sorted(pending, key=lambda lookup: lookup.created_at)

    def resolve_queued_lookup(
        self, lookup_id: str, *, outcome: str, resolved_at: datetime
    ) -> bool:
        with self._lock:
            lookup = self.queued.get(lookup_id)
            if lookup is None or lookup.resolved_at is not None:
                return False
            self.queued[lookup_id] = lookup.model_copy(
                update={"resolved_at": resolved_at, "outcome": outcome}
            )
        return True


class InMemoryConversationStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, ConversationState] = {}

    def load(self, phone: str) -> ConversationState | None:
        with self._lock:
            return self._states.get(phone)

    def save(self, state: ConversationState) -> ConversationState:
        with self._lock:
            current = self._states.get(state.phone)
            current_version = current.version if current is not None else 0
            if current_version != state.version:
                raise StateConflict(
                    f"Expected version {state.version}, found {current_version}"
                )
            stored = state.model_copy(update={"version": state.version + 1})
            self._states[state.phone] = stored
        return stored
