from __future__ import annotations

import logging
from datetime import datetime

from .dialogue import replies
from .errors import DeliveryError, StoreUnavailable
from .matching import MatchKind, match_citation
from .ports import CitationStore, Notifier, SubscriptionStore
from .types import QueuedLookup, SweepReport

logger = logging.getLogger(__name__)


def sweep_queued_lookups(
    subscriptions: SubscriptionStore,
    citations: CitationStore,
    notifier: Notifier,
    *,
    now: datetime,
    court_public_url: str,
    notify_on_expiry: bool = True,
) -> SweepReport:
    """Check every unresolved queued lookup once.

    A lookup whose notice cannot be delivered stays unresolved and is tried
    again on the next sweep; it never stops the remaining lookups.
    """
    report = SweepReport()
    lookups = subscriptions.list_unresolved_queued_lookups()

    for lookup in lookups:
        report.checked += 1
        try:
            outcome = _sweep_one(
                lookup,
                subscriptions,
                citations,
                notifier,
                now=now,
                court_public_url=court_public_url,
                notify_on_expiry=notify_on_expiry,
            )
        except (DeliveryError, StoreUnavailable) as exc:
            logger.error("Queued lookup %s failed this sweep: %s", lookup.id, exc)
            report.failed += 1
            continue

        if outcome == "found":
            report.found += 1
        elif outcome == "expired":
            report.expired += 1
        else:
            report.pending += 1

    logger.info(
        "Sweep finished: checked=%d found=%d expired=%d pending=%d failed=%d",
        report.checked,
        report.found,
        report.expired,
        report.pending,
        report.failed,
    )
    return report


def _sweep_one(
    lookup: QueuedLookup,
    subscriptions: SubscriptionStore,
    citations: CitationStore,
    notifier: Notifier,
    *,
    now: datetime,
    court_public_url: str,
    notify_on_expiry: bool,
) -> str:
    result = match_citation(lookup.citation_text, citations.find_exact)

    if result.kind is MatchKind.UNIQUE and result.case is not None:
        notifier.send(lookup.phone, replies.queued_case_found(result.case))
        _resolve(subscriptions, lookup, "found", now)
        return "found"

    if lookup.is_expired(now):
        if notify_on_expiry:
            notifier.send(
                lookup.phone,
                replies.queued_case_expired(lookup.citation_text, court_public_url),
            )
        _resolve(subscriptions, lookup, "expired", now)
        return "expired"

    return "pending"


def _resolve(
    subscriptions: SubscriptionStore, lookup: QueuedLookup, outcome: str, now: datetime
) -> None:
    if not subscriptions.resolve_queued_lookup(lookup.id, outcome=outcome, resolved_at=now):
        logger.info("Queued lookup %s was already resolved elsewhere", lookup.id)
    else:
        logger.info("Queued lookup %s resolved as %s", lookup.id, outcome)
