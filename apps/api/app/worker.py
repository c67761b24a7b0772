from __future__ import annotations

import argparse
from datetime import UTC, datetime
import logging
import time

from sqlmodel import Session

from courtbot_core import SweepReport, sweep_queued_lookups
from courtbot_core.ports import Notifier

from app.db import SqlCitationStore, SqlSubscriptionStore, init_db
from app.db.session import engine
from app.logging_config import configure_logging
from app.settings import settings
from app.sms import SmsClient

logger = logging.getLogger(__name__)


def run_sweep_iteration(
    session: Session,
    notifier: Notifier,
    *,
    now: datetime | None = None,
    court_public_url: str | None = None,
    notify_on_expiry: bool | None = None,
) -> SweepReport:
    return sweep_queued_lookups(
        SqlSubscriptionStore(session, autocommit=True),
        SqlCitationStore(session),
        notifier,
        now=now or datetime.now(UTC),
        court_public_url=court_public_url or settings.court_public_url,
        notify_on_expiry=(
            settings.queue_notify_on_expiry if notify_on_expiry is None else notify_on_expiry
        ),
    )


def run_sweep_loop(
    *,
    interval_seconds: float,
    once: bool,
    notifier: Notifier | None = None,
) -> None:
    safe_interval = max(1.0, interval_seconds)
    if notifier is None:
        notifier = SmsClient.from_settings(settings)
    while True:
        started = time.monotonic()
        try:
            with Session(engine) as session:
                run_sweep_iteration(session, notifier)
        except Exception:
            # The next scheduled sweep retries whatever was left unresolved.
            if once:
                raise
            logger.exception("Queue sweep failed")

        if once:
            return

        time.sleep(max(0.0, safe_interval - (time.monotonic() - started)))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Courtbot queued lookup sweep")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit",
    )
    parser.add_argument(
        "--interval-seconds",
        type=float,
        default=settings.sweep_interval_seconds,
        help="Seconds between sweeps",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    configure_logging(settings.log_level)
    init_db()
    run_sweep_loop(interval_seconds=args.interval_seconds, once=args.once)


if __name__ == "__main__":
    main()
