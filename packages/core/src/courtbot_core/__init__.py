from .dialogue import DialogueController, SenderLocks
from .errors import (
    CourtbotError,
    DeliveryError,
    LockTimeout,
    StateConflict,
    StoreUnavailable,
)
from .matching import MatchKind, MatchResult, match_citation, normalize_query
from .sweep import sweep_queued_lookups
from .types import (
    CaseRecord,
    ConversationState,
    DialogueTurn,
    PendingQuestion,
    QueuedLookup,
    ReminderSubscription,
    SweepReport,
)

__all__ = [
    "CaseRecord",
    "ConversationState",
    "DialogueTurn",
    "PendingQuestion",
    "QueuedLookup",
    "ReminderSubscription",
    "SweepReport",
    "CourtbotError",
    "DeliveryError",
    "LockTimeout",
    "StateConflict",
    "StoreUnavailable",
    "MatchKind",
    "MatchResult",
    "match_citation",
    "normalize_query",
    "DialogueController",
    "SenderLocks",
    "sweep_queued_lookups",
]
