from datetime import date, time

from courtbot_core.matching import (
    MatchKind,
    classify_answer,
    is_plausible_citation,
    match_citation,
    normalize_query,
    search_cases,
)
from courtbot_core.memory import InMemoryCitationStore
from courtbot_core.types import CaseRecord


def _case(citation: str, defendant: str = "JANE DOE", case_id: str = "case-1") -> CaseRecord:
    return CaseRecord(
        id=case_id,
        citation=citation,
        defendant=defendant,
        court_date=date(2024, 3, 4),
        court_time=time(9, 0),
        room="101",
    )


def test_normalize_query_trims_and_upper_cases() -> None:
    assert normalize_query("  abc123 \n") == "ABC123"


def test_classify_answer_vocabulary() -> None:
    for word in ("YES", "Y", "YEA", "YUP"):
        assert classify_answer(word) == "yes"
    for word in ("NO", "N"):
        assert classify_answer(word) == "no"
    assert classify_answer("MAYBE") is None
    assert classify_answer("YESS") is None


def test_unique_match_returns_case() -> None:
    store = InMemoryCitationStore([_case("ABC123")])

    result = match_citation(" abc123 ", store.find_exact)

    assert result.kind is MatchKind.UNIQUE
    assert result.case is not None
    assert result.case.citation == "ABC123"
    assert result.query_text == "ABC123"


def test_duplicate_citation_is_reported_like_a_miss() -> None:
    store = InMemoryCitationStore(
        [_case("ABC123", case_id="one"), _case("ABC123", case_id="two")]
    )

    result = match_citation("ABC123", store.find_exact)

    assert result.kind is MatchKind.PLAUSIBLE
    assert result.case is None
    assert result.candidates == 2
    assert result.queueable


def test_length_bounds_decide_between_plausible_and_malformed() -> None:
    store = InMemoryCitationStore()

    for length in (6, 7, 24, 25):
        assert match_citation("A" * length, store.find_exact).kind is MatchKind.PLAUSIBLE
    for length in (1, 5, 26, 40):
        result = match_citation("A" * length, store.find_exact)
        assert result.kind is MatchKind.MALFORMED
        assert not result.queueable


def test_length_is_checked_after_trimming() -> None:
    assert is_plausible_citation(normalize_query("  12345  ")) is False
    assert is_plausible_citation(normalize_query("  123456  ")) is True


def test_match_citation_never_mutates_store() -> None:
    store = InMemoryCitationStore([_case("ABC123")])

    match_citation("ZZZZZZ", store.find_exact)
    match_citation("ABC123", store.find_exact)

    assert [case.citation for case in store.find_exact("ABC123")] == ["ABC123"]


def test_search_cases_matches_name_fragment_or_citation() -> None:
    store = InMemoryCitationStore(
        [
            _case("ABC123", defendant="JOHN Q PUBLIC", case_id="one"),
            _case("XYZ999", defendant="MARY SMITH", case_id="two"),
        ]
    )

    assert [c.id for c in search_cases("public", store.find_fuzzy)] == ["one"]
    assert [c.id for c in search_cases("xyz999", store.find_fuzzy)] == ["two"]
    assert search_cases("   ", store.find_fuzzy) == []
