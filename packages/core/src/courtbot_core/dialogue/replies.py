from __future__ import annotations

import re
from datetime import date, datetime, time

from courtbot_core.matching.rules import MAX_CITATION_LENGTH, MIN_CITATION_LENGTH
from courtbot_core.types import CaseRecord

# Twilio refuses message bodies longer than this.
MAX_SEGMENT_LENGTH = 1600
_PREFIX_ROOM = len("(99/99) ")

# Only the clock part of a court time is meaningful.
_REFERENCE_DATE = date(1980, 1, 1)

_WORD_RE = re.compile(r"\w\S*")


def cleanup_name(name: str) -> str:
    """Render ``JOHN Q PUBLIC`` / ``john q public`` as ``John Q Public``."""
    return _WORD_RE.sub(
        lambda match: match.group(0)[:1].upper() + match.group(0)[1:].lower(),
        name.strip(),
    )


def ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_court_date(value: date) -> str:
    return f"{value:%a, %b} {ordinal(value.day)}"


def format_readable_date(value: date) -> str:
    return f"{value:%A, %b} {ordinal(value.day)}"


def format_court_time(value: time) -> str:
    stamp = datetime.combine(_REFERENCE_DATE, value)
    return stamp.strftime("%I:%M %p").lstrip("0")


def split_segment(text: str, limit: int = MAX_SEGMENT_LENGTH) -> list[str]:
    if len(text) <= limit:
        return [text]

    pieces: list[str] = []
    current = ""
    for word in text.split():
        while len(word) > limit:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:limit])
            word = word[limit:]
        candidate = f"{current} {word}" if current else word
        if len(candidate) > limit:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def number_segments(*parts: str, limit: int = MAX_SEGMENT_LENGTH) -> list[str]:
    """Split oversize parts and prefix each segment with ``(i/n)`` when n > 1."""
    segments = [piece for part in parts for piece in split_segment(part, limit)]
    if len(segments) == 1:
        return segments

    segments = [
        piece for part in parts for piece in split_segment(part, limit - _PREFIX_ROOM)
    ]
    count = len(segments)
    return [f"({index}/{count}) {segment}" for index, segment in enumerate(segments, start=1)]


def case_found(case: CaseRecord) -> list[str]:
    return number_segments(
        f"Found a case for {cleanup_name(case.defendant)} scheduled on "
        f"{format_court_date(case.court_date)} at {format_court_time(case.court_time)}, "
        f"at {case.room}. Would you like a courtesy reminder the day before? "
        "(reply YES or NO)"
    )


def case_not_found(queue_ttl_days: int) -> list[str]:
    return number_segments(
        "Could not find a case with that number. It can take several days for a "
        "case to appear in our system.",
        f"Would you like us to keep checking for the next {queue_ttl_days} days and "
        "text you if we find it? (reply YES or NO)",
    )


def malformed_citation() -> list[str]:
    return [
        "Couldn't find your case. Case identifier should be "
        f"{MIN_CITATION_LENGTH} to {MAX_CITATION_LENGTH} numbers and/or letters in length."
    ]


def reminder_confirmed(court_public_url: str) -> list[str]:
    return number_segments(
        "Sounds good. We will attempt to text you a courtesy reminder the day before "
        "your case. Note that case schedules frequently change.",
        "You should always confirm your case date and time by going to "
        f"{court_public_url}",
    )


def queue_confirmed(queue_ttl_days: int, court_public_url: str) -> list[str]:
    return number_segments(
        f"OK. We will keep checking for up to {queue_ttl_days} days. You can always "
        f"go to {court_public_url} for more information about your case and contact "
        "information."
    )


def declined(court_public_url: str) -> list[str]:
    return number_segments(
        f"OK. You can always go to {court_public_url} for more information about "
        "your case and contact information."
    )


def apology() -> list[str]:
    return [
        "Sorry, we are having trouble looking up court cases right now. "
        "Please try again in a few minutes."
    ]


def queued_case_found(case: CaseRecord) -> str:
    return (
        f"Hello from the court. We found a case for {cleanup_name(case.defendant)} "
        f"scheduled on {format_court_date(case.court_date)} at "
        f"{format_court_time(case.court_time)}, at {case.room}. Text {case.citation} "
        "to this number if you would like a courtesy reminder the day before."
    )


def queued_case_expired(citation_text: str, court_public_url: str) -> str:
    return (
        f"We haven't been able to find your court case {citation_text}. You can "
        f"always go to {court_public_url} for more information about your case and "
        "contact information."
    )
