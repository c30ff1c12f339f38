"""Pydantic models describing search results and library payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .utils import build_image_url

MediaKind = Literal["movie", "series"]

_KIND_SYNONYMS = {"tv": "series", "show": "series", "film": "movie"}


def coerce_media_kind(value: object) -> object:
    """Map the upstream ``tv`` spelling (and friends) onto ``series``."""

    if isinstance(value, str):
        lowered = value.strip().lower()
        return _KIND_SYNONYMS.get(lowered, lowered)
    return value


class LibraryList(str, Enum):
    """Named per-profile lists stored in the library."""

    WATCHLIST = "watchlist"
    WATCHED = "watched"


class CandidateItem(BaseModel):
    """A single movie or series returned by the catalog."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    kind: MediaKind = Field(alias="mediaType")
    poster_path: str | None = Field(default=None, alias="posterPath")
    popularity: float = 0.0

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: object) -> object:
        return coerce_media_kind(value)

    @property
    def identity(self) -> tuple[str, int]:
        """Return the key used to deduplicate results across queries."""

        return (self.kind, self.id)

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase payload served by the API."""

        payload = self.model_dump(mode="json", by_alias=True)
        payload["posterUrl"] = build_image_url(self.poster_path)
        return payload


class SeasonRecord(BaseModel):
    """A watchlist or watched entry for one title, optionally one season."""

    model_config = ConfigDict(populate_by_name=True)

    content_id: int = Field(alias="contentId")
    media_type: MediaKind = Field(alias="mediaType")
    title: str
    season_number: int | None = Field(default=None, alias="seasonNumber")
    activity_at: datetime | str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "activityAt", "activity_at", "addedAt", "watchedAt"
        ),
        serialization_alias="activityAt",
    )
    poster_path: str | None = Field(default=None, alias="posterPath")
    rating: float | None = None

    @field_validator("media_type", mode="before")
    @classmethod
    def _normalise_kind(cls, value: object) -> object:
        return coerce_media_kind(value)

    @property
    def title_key(self) -> tuple[str, int]:
        return (self.media_type, self.content_id)

    @property
    def is_season_scoped(self) -> bool:
        return bool(self.season_number)


class GroupedDisplayRecord(BaseModel):
    """One display entry collapsing all season records of a title."""

    model_config = ConfigDict(populate_by_name=True)

    content_id: int = Field(alias="contentId")
    media_type: MediaKind = Field(alias="mediaType")
    title: str
    poster_path: str | None = Field(default=None, alias="posterPath")
    season_info: str | None = Field(default=None, alias="seasonInfo")
    seasons: list[int] = Field(default_factory=list)
    activity_at: datetime = Field(alias="activityAt")


class WatchRecordIn(BaseModel):
    """Payload accepted when saving a title to a library list."""

    model_config = ConfigDict(populate_by_name=True)

    content_id: int = Field(alias="contentId", ge=1)
    media_type: MediaKind = Field(alias="mediaType")
    title: str = Field(min_length=1)
    poster_path: str | None = Field(default=None, alias="posterPath")
    rating: float | None = Field(default=None, ge=0, le=10)
    season_number: int | None = Field(default=None, alias="seasonNumber", ge=0)

    @field_validator("media_type", mode="before")
    @classmethod
    def _normalise_kind(cls, value: object) -> object:
        return coerce_media_kind(value)


class WatchRecordKey(BaseModel):
    """Identifies a single library row for deletion."""

    model_config = ConfigDict(populate_by_name=True)

    content_id: int = Field(alias="contentId", ge=1)
    media_type: MediaKind = Field(alias="mediaType")
    season_number: int | None = Field(default=None, alias="seasonNumber", ge=0)

    @field_validator("media_type", mode="before")
    @classmethod
    def _normalise_kind(cls, value: object) -> object:
        return coerce_media_kind(value)
