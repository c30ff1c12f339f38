"""Collapse per-season library records into one display entry per title."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import GroupedDisplayRecord, SeasonRecord
from .utils import parse_timestamp, strip_season_suffix


def compress_ranges(numbers: Iterable[int]) -> list[tuple[int, int]]:
    """Return the minimal contiguous ``(start, end)`` ranges covering ``numbers``."""

    ranges: list[tuple[int, int]] = []
    for number in sorted(set(numbers)):
        if ranges and number == ranges[-1][1] + 1:
            ranges[-1] = (ranges[-1][0], number)
        else:
            ranges.append((number, number))
    return ranges


def format_season_label(numbers: Iterable[int]) -> str | None:
    """Render season numbers as e.g. ``"Season 4"`` or ``"Seasons 1-3, 5"``."""

    ranges = compress_ranges(numbers)
    if not ranges:
        return None
    parts = [
        str(start) if start == end else f"{start}-{end}" for start, end in ranges
    ]
    prefix = "Seasons" if len(ranges) > 1 else "Season"
    return f"{prefix} {', '.join(parts)}"


def _passthrough(record: SeasonRecord) -> GroupedDisplayRecord:
    return GroupedDisplayRecord(
        content_id=record.content_id,
        media_type=record.media_type,
        title=record.title,
        poster_path=record.poster_path,
        season_info=None,
        activity_at=parse_timestamp(record.activity_at),
    )


def _collapse_bucket(bucket: Sequence[SeasonRecord]) -> GroupedDisplayRecord:
    first = bucket[0]
    seasons = sorted({record.season_number for record in bucket if record.season_number})

    poster = first.poster_path
    for record in bucket:
        if record.season_number == 1 and record.poster_path:
            poster = record.poster_path
            break

    return GroupedDisplayRecord(
        content_id=first.content_id,
        media_type=first.media_type,
        title=strip_season_suffix(first.title) or first.title,
        poster_path=poster,
        season_info=format_season_label(seasons),
        seasons=seasons,
        activity_at=max(parse_timestamp(record.activity_at) for record in bucket),
    )


def group_season_records(records: Iterable[SeasonRecord]) -> list[GroupedDisplayRecord]:
    """Group records per title, most recent activity first.

    Movies and titles tracked as a whole pass through unchanged. Series
    tracked per season are merged into one entry whose ``season_info``
    describes the covered seasons.
    """

    buckets: dict[tuple[str, int], list[SeasonRecord]] = {}
    for record in records:
        buckets.setdefault(record.title_key, []).append(record)

    grouped: list[GroupedDisplayRecord] = []
    for bucket in buckets.values():
        first = bucket[0]
        season_scoped = first.media_type == "series" and any(
            record.is_season_scoped for record in bucket
        )
        if season_scoped:
            grouped.append(_collapse_bucket(bucket))
        else:
            grouped.append(_passthrough(first))

    grouped.sort(key=lambda entry: entry.activity_at, reverse=True)
    return grouped
