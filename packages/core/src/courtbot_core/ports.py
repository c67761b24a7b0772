from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .types import CaseRecord, ConversationState, QueuedLookup, ReminderSubscription


class CitationStore(Protocol):
    def find_exact(self, citation_text: str) -> list[CaseRecord]: ...

    def find_fuzzy(self, query_text: str) -> list[CaseRecord]: ...


class SubscriptionStore(Protocol):
    def create_reminder(self, reminder: ReminderSubscription) -> ReminderSubscription: ...

    def create_queued_lookup(self, lookup: QueuedLookup) -> QueuedLookup:
        """Store ``lookup`` unless the phone already has an unresolved lookup
        for the same citation text, in which case that one is returned."""
        ...

    def find_queued_lookup_by_sender(self, phone: str) -> QueuedLookup | None: ...

    def list_unresolved_queued_lookups(self) -> list[QueuedLookup]: ...

    def resolve_queued_lookup(
        self, lookup_id: str, *, outcome: str, resolved_at: datetime
    ) -> bool:
        """Mark a lookup resolved. Returns False if it was already resolved."""
        ...


class ConversationStore(Protocol):
    def load(self, phone: str) -> ConversationState | None: ...

    def save(self, state: ConversationState) -> ConversationState:
        """Persist ``state`` if the stored version still equals ``state.version``.

        Returns the state with its new version; raises ``StateConflict``
        otherwise.
        """
        ...


class Notifier(Protocol):
    def send(self, phone: str, body: str) -> None: ...
