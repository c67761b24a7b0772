from __future__ import annotations


class CourtbotError(RuntimeError):
    """Base class for errors raised by courtbot components."""


class StoreUnavailable(CourtbotError):
    """A backing store call failed or did not finish within its timeout."""


class LockTimeout(StoreUnavailable):
    """Another request for the same sender held the lock for too long."""


class StateConflict(CourtbotError):
    """The stored conversation state changed underneath the current turn."""


class DeliveryError(CourtbotError):
    """An outbound message could not be delivered."""
