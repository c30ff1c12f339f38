"""Tests for collapsing per-season library records."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.grouping import compress_ranges, format_season_label, group_season_records
from app.models import SeasonRecord
from app.utils import EPOCH


def season(
    season_number: int | None,
    activity_at: object,
    *,
    content_id: int = 1399,
    media_type: str = "series",
    title: str = "Game of Thrones",
    poster: str | None = None,
) -> SeasonRecord:
    return SeasonRecord(
        content_id=content_id,
        media_type=media_type,
        title=title,
        season_number=season_number,
        activity_at=activity_at,
        poster_path=poster,
    )


def test_compress_ranges_merges_contiguous_numbers() -> None:
    assert compress_ranges([5, 1, 3, 2, 3]) == [(1, 3), (5, 5)]
    assert compress_ranges([]) == []


@pytest.mark.parametrize(
    ("numbers", "label"),
    [
        ([1, 2, 3, 5], "Seasons 1-3, 5"),
        ([4], "Season 4"),
        ([2, 2], "Season 2"),
        ([3, 1, 2], "Season 1-3"),
        ([1, 3, 5], "Seasons 1, 3, 5"),
        ([], None),
    ],
)
def test_format_season_label(numbers: list[int], label: str | None) -> None:
    assert format_season_label(numbers) == label


def test_movie_passes_through_without_season_info() -> None:
    record = season(
        None,
        "2024-05-01T10:00:00Z",
        content_id=603,
        media_type="movie",
        title="The Matrix",
        poster="/matrix.jpg",
    )

    [grouped] = group_season_records([record])

    assert grouped.season_info is None
    assert grouped.title == "The Matrix"
    assert grouped.poster_path == "/matrix.jpg"
    assert grouped.activity_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert grouped.model_dump(mode="json", by_alias=True)["seasonInfo"] is None


def test_season_records_collapse_into_one_entry() -> None:
    records = [
        season(2, "2024-02-01T00:00:00Z", title="Game of Thrones - Season 2", poster="/s2.jpg"),
        season(1, "2024-01-01T00:00:00Z", title="Game of Thrones - Season 1", poster="/s1.jpg"),
        season(5, "2024-04-01T00:00:00Z", title="Game of Thrones - Season 5", poster="/s5.jpg"),
        season(3, "2024-03-01T00:00:00Z", title="Game of Thrones - Season 3", poster="/s3.jpg"),
    ]

    [grouped] = group_season_records(records)

    assert grouped.title == "Game of Thrones"
    assert grouped.season_info == "Seasons 1-3, 5"
    assert grouped.seasons == [1, 2, 3, 5]
    assert grouped.poster_path == "/s1.jpg"
    assert grouped.activity_at == datetime(2024, 4, 1, tzinfo=timezone.utc)


def test_poster_falls_back_to_first_member_without_season_one() -> None:
    records = [
        season(4, "2024-01-01T00:00:00Z", poster="/s4.jpg"),
        season(6, "2024-01-02T00:00:00Z", poster="/s6.jpg"),
    ]

    [grouped] = group_season_records(records)

    assert grouped.poster_path == "/s4.jpg"
    assert grouped.season_info == "Seasons 4, 6"


def test_series_tracked_as_a_whole_passes_through() -> None:
    records = [
        season(None, "2024-01-01T00:00:00Z", title="Dark"),
        season(0, "2024-06-01T00:00:00Z", title="Dark"),
    ]

    [grouped] = group_season_records(records)

    assert grouped.season_info is None
    assert grouped.activity_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_whole_series_row_mixed_with_seasons_keeps_only_positive_seasons() -> None:
    records = [
        season(0, "2024-01-01T00:00:00Z", title="Dark"),
        season(2, "2024-03-01T00:00:00Z", title="Dark - Season 2"),
        season(1, "2024-02-01T00:00:00Z", title="Dark - Season 1", poster="/s1.jpg"),
    ]

    [grouped] = group_season_records(records)

    assert grouped.title == "Dark"
    assert grouped.season_info == "Season 1-2"
    assert grouped.seasons == [1, 2]
    assert grouped.poster_path == "/s1.jpg"
    assert grouped.activity_at == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_whole_series_row_can_carry_the_latest_activity() -> None:
    records = [
        season(1, "2024-02-01T00:00:00Z", title="Dark - Season 1"),
        season(0, "2024-09-01T00:00:00Z", title="Dark"),
    ]

    [grouped] = group_season_records(records)

    assert grouped.season_info == "Season 1"
    assert grouped.activity_at == datetime(2024, 9, 1, tzinfo=timezone.utc)


def test_entries_are_sorted_by_most_recent_activity() -> None:
    records = [
        season(1, "2023-01-01T00:00:00Z", content_id=1),
        season(None, "2024-01-01T00:00:00Z", content_id=2, media_type="movie"),
        season(2, "2024-06-01T00:00:00Z", content_id=1),
        season(None, "2023-06-01T00:00:00Z", content_id=3, media_type="movie"),
    ]

    grouped = group_season_records(records)

    assert [entry.content_id for entry in grouped] == [1, 2, 3]


def test_malformed_timestamps_sort_last_without_raising() -> None:
    records = [
        season(None, "not-a-date", content_id=10, media_type="movie"),
        season(None, "2022-01-01", content_id=11, media_type="movie"),
        season(None, None, content_id=12, media_type="movie"),
    ]

    grouped = group_season_records(records)

    assert grouped[0].content_id == 11
    assert {entry.activity_at for entry in grouped[1:]} == {EPOCH}


def test_movie_and_series_with_same_id_are_separate_titles() -> None:
    records = [
        season(None, "2024-01-01T00:00:00Z", content_id=7, media_type="movie"),
        season(1, "2024-01-02T00:00:00Z", content_id=7, media_type="series"),
    ]

    grouped = group_season_records(records)

    assert [(entry.media_type, entry.season_info) for entry in grouped] == [
        ("series", "Season 1"),
        ("movie", None),
    ]


def test_upstream_tv_spelling_is_accepted() -> None:
    record = SeasonRecord.model_validate(
        {
            "contentId": 1,
            "mediaType": "tv",
            "title": "Severance",
            "seasonNumber": 1,
            "watchedAt": "2024-01-01T00:00:00Z",
        }
    )

    assert record.media_type == "series"
    assert group_season_records([record])[0].season_info == "Season 1"
