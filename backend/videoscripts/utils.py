"""
Text helpers shared by the stage processors.

- truncate_text: word-boundary truncation for stored fields
- truncate_transcript: sentence/line-boundary truncation for prompt budgets
- truncate_words: word-budget truncation for script source excerpts
- parse_timestamp / format_timestamp: "HH:MM:SS" <-> timedelta
- strip_code_fences: unwrap ```json ... ``` model output
"""

import re
from datetime import timedelta
from typing import Optional

ELLIPSIS = "..."

_HMS_PATTERN = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")
_MS_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_SECONDS_PATTERN = re.compile(r"^(\d+)$")


def truncate_text(text: Optional[str], max_length: int) -> Optional[str]:
    """
    Truncate to max_length, preferring the last word boundary.

    Strings that fit are returned unchanged. Otherwise the cut happens at the
    last space when it sits past 80% of the limit, else at the limit itself,
    and "..." is appended. The result never exceeds max_length + 3.
    """
    if text is None or len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + ELLIPSIS
    return truncated + ELLIPSIS


def truncate_transcript(text: str, max_chars: int, min_ratio: float = 0.8) -> str:
    """
    Fit a transcript into a character budget.

    Cuts after the last sentence end (". ") or line break inside the budget
    when it lies beyond min_ratio * max_chars; otherwise cuts at max_chars and
    appends "...".
    """
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]
    boundary = max(truncated.rfind(". "), truncated.rfind("\n"))
    if boundary > max_chars * min_ratio:
        return truncated[:boundary + 1].rstrip()
    return truncated + ELLIPSIS


def truncate_words(text: str, max_words: int, marker: str = "... [truncated]") -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + marker


def count_words(text: Optional[str]) -> int:
    return len(text.split()) if text else 0


def parse_timestamp(value: Optional[str]) -> timedelta:
    """
    Parse "HH:MM:SS", "MM:SS" or bare seconds into a timedelta.

    Anything else yields timedelta(0); this never raises.
    """
    if not value:
        return timedelta(0)

    value = str(value).strip()

    match = _HMS_PATTERN.match(value)
    if match:
        hours, minutes, seconds = (int(g) for g in match.groups())
        return timedelta(hours=hours, minutes=minutes, seconds=seconds)

    match = _MS_PATTERN.match(value)
    if match:
        minutes, seconds = (int(g) for g in match.groups())
        return timedelta(minutes=minutes, seconds=seconds)

    match = _SECONDS_PATTERN.match(value)
    if match:
        return timedelta(seconds=int(match.group(1)))

    return timedelta(0)


def format_timestamp(value: Optional[timedelta]) -> str:
    """Format a timedelta as HH:MM:SS."""
    total = int(value.total_seconds()) if value else 0
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()
