#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]
for package_root in (REPO_ROOT / "apps" / "api", REPO_ROOT / "packages" / "core" / "src"):
    if str(package_root) not in sys.path:
        sys.path.insert(0, str(package_root))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load court cases from a CSV export.")
    parser.add_argument("csv_path", help="CSV with citation,defendant,date,time,room,court_type")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate every table before loading",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete existing cases before loading",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        print(f"CSV file not found: {csv_path}", file=sys.stderr)
        return 2

    from sqlmodel import Session

    from app.db import init_db, reset_db
    from app.db.session import engine
    from app.loader import CaseLoadError, load_cases_csv
    from app.logging_config import configure_logging
    from app.settings import settings

    configure_logging(settings.log_level)
    if args.reset:
        reset_db()
    else:
        init_db()

    try:
        with Session(engine) as session:
            loaded = load_cases_csv(session, csv_path, replace=args.replace)
    except CaseLoadError as exc:
        print(f"Loading failed: {exc}", file=sys.stderr)
        return 1

    print(f"Loaded {loaded} case(s) into {settings.database_url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
