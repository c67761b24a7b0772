from __future__ import annotations

MIN_CITATION_LENGTH = 6
MAX_CITATION_LENGTH = 25

AFFIRMATIVE_ANSWERS: frozenset[str] = frozenset({"YES", "Y", "YEA", "YUP"})
NEGATIVE_ANSWERS: frozenset[str] = frozenset({"NO", "N"})
