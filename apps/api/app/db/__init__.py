from __future__ import annotations

from .models import Case, ConversationRecord, QueuedLookupRecord, Reminder
from .session import get_session, init_db, reset_db
from .stores import (
    SqlCitationStore,
    SqlConversationStore,
    SqlSubscriptionStore,
    case_to_record,
)

__all__ = [
    "Case",
    "ConversationRecord",
    "QueuedLookupRecord",
    "Reminder",
    "SqlCitationStore",
    "SqlConversationStore",
    "SqlSubscriptionStore",
    "case_to_record",
    "get_session",
    "init_db",
    "reset_db",
]
