from __future__ import annotations

from enum import Enum
from typing import Callable, Literal

from pydantic import BaseModel

from courtbot_core.types import CaseRecord

from .rules import (
    AFFIRMATIVE_ANSWERS,
    MAX_CITATION_LENGTH,
    MIN_CITATION_LENGTH,
    NEGATIVE_ANSWERS,
)

FindCases = Callable[[str], list[CaseRecord]]
Answer = Literal["yes", "no"]


class MatchKind(str, Enum):
    UNIQUE = "unique"
    PLAUSIBLE = "plausible"
    MALFORMED = "malformed"


class MatchResult(BaseModel):
    kind: MatchKind
    query_text: str
    case: CaseRecord | None = None
    candidates: int = 0

    @property
    def queueable(self) -> bool:
        return self.kind is MatchKind.PLAUSIBLE


def normalize_query(text: str) -> str:
    return text.strip().upper()


def is_plausible_citation(query_text: str) -> bool:
    return MIN_CITATION_LENGTH <= len(query_text) <= MAX_CITATION_LENGTH


def classify_answer(query_text: str) -> Answer | None:
    if query_text in AFFIRMATIVE_ANSWERS:
        return "yes"
    if query_text in NEGATIVE_ANSWERS:
        return "no"
    return None


def match_citation(text: str, find_exact: FindCases) -> MatchResult:
    query_text = normalize_query(text)
    records = find_exact(query_text)

    # Several cases sharing a citation number cannot be told apart, so they
    # are reported exactly like a miss.
    if len(records) == 1:
        return MatchResult(
            kind=MatchKind.UNIQUE,
            query_text=query_text,
            case=records[0],
            candidates=1,
        )

    kind = MatchKind.PLAUSIBLE if is_plausible_citation(query_text) else MatchKind.MALFORMED
    return MatchResult(kind=kind, query_text=query_text, candidates=len(records))


def search_cases(text: str, find_fuzzy: FindCases) -> list[CaseRecord]:
    query_text = text.strip()
    if not query_text:
        return []
    return find_fuzzy(query_text)
