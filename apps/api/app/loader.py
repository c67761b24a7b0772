"""Bulk load court case rows from a CSV export."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import delete
from sqlmodel import Session

from courtbot_core.types import CaseRecord

from app.db import Case

logger = logging.getLogger(__name__)

CSV_FIELDS = ("citation", "defendant", "date", "time", "room", "court_type")


class CaseLoadError(ValueError):
    """Raised when a case export cannot be parsed."""


def read_case_rows(path: str | Path) -> list[CaseRecord]:
    records: list[CaseRecord] = []
    with open(path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        missing = [field for field in CSV_FIELDS[:-1] if field not in (reader.fieldnames or [])]
        if missing:
            raise CaseLoadError(f"Missing CSV columns: {', '.join(missing)}")

        for line_number, row in enumerate(reader, start=2):
            try:
                records.append(
                    CaseRecord(
                        id=(row.get("id") or "").strip() or str(uuid4()),
                        citation=row["citation"].strip().upper(),
                        defendant=row["defendant"].strip(),
                        court_date=row["date"].strip(),
                        court_time=row["time"].strip(),
                        room=row["room"].strip(),
                        court_type=(row.get("court_type") or "").strip() or None,
                    )
                )
            except ValidationError as exc:
                raise CaseLoadError(f"Invalid case row on line {line_number}: {exc}") from exc
    return records


def load_cases_csv(session: Session, path: str | Path, *, replace: bool = False) -> int:
    records = read_case_rows(path)
    if replace:
        session.execute(delete(Case))
    session.add_all(Case(**record.model_dump()) for record in records)
    session.commit()
    logger.info("Loaded %d case(s) from %s", len(records), path)
    return len(records)
