from datetime import datetime, timezone

from app.utils import (
    EPOCH,
    build_image_url,
    collapse_whitespace,
    parse_timestamp,
    strip_season_suffix,
)


def test_collapse_whitespace():
    assert collapse_whitespace("  the \t dark\n knight ") == "the dark knight"


def test_strip_season_suffix():
    assert strip_season_suffix("Breaking Bad - Season 2") == "Breaking Bad"
    assert strip_season_suffix("Spider-Man - season 1 (2019)") == "Spider-Man"
    assert strip_season_suffix("Spider-Man") == "Spider-Man"


def test_parse_timestamp_handles_iso_strings_and_datetimes():
    assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(
        2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc
    )
    assert parse_timestamp(datetime(2024, 1, 2)).tzinfo is timezone.utc


def test_parse_timestamp_falls_back_to_epoch():
    assert parse_timestamp("yesterday-ish") == EPOCH
    assert parse_timestamp(None) == EPOCH
    assert parse_timestamp("") == EPOCH


def test_build_image_url():
    assert build_image_url("/p.jpg") == "https://image.tmdb.org/t/p/w500/p.jpg"
    assert build_image_url("https://cdn.example.com/p.jpg") == "https://cdn.example.com/p.jpg"
    assert build_image_url(None) is None
