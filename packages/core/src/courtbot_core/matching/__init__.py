from .engine import (
    MatchKind,
    MatchResult,
    classify_answer,
    is_plausible_citation,
    match_citation,
    normalize_query,
    search_cases,
)
from .rules import MAX_CITATION_LENGTH, MIN_CITATION_LENGTH

__all__ = [
    "MatchKind",
    "MatchResult",
    "MIN_CITATION_LENGTH",
    "MAX_CITATION_LENGTH",
    "classify_answer",
    "is_plausible_citation",
    "match_citation",
    "normalize_query",
    "search_cases",
]
