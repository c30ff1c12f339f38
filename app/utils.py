"""Utility helpers for the ReelScout service."""

from __future__ import annotations

import re
from datetime import datetime, timezone


WHITESPACE_RE = re.compile(r"\s+")
SEASON_SUFFIX_RE = re.compile(r"\s+-\s+Season\b.*$", re.IGNORECASE)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"


def collapse_whitespace(value: str) -> str:
    """Trim the value and squeeze internal whitespace runs to one space."""

    return WHITESPACE_RE.sub(" ", value).strip()


def strip_season_suffix(title: str) -> str:
    """Remove a trailing ``" - Season ..."`` marker from a display title."""

    return SEASON_SUFFIX_RE.sub("", title or "").strip()


def parse_timestamp(value: object) -> datetime:
    """Return an aware datetime, falling back to the epoch for bad input."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return EPOCH
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return EPOCH
    else:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_image_url(path: str | None, base_url: str = POSTER_BASE_URL) -> str | None:
    """Return an absolute artwork URL for a TMDB image path."""

    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"{base_url}{path}"
