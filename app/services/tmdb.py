"""Client for The Movie Database (TMDB) search, listing and details endpoints."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Annotated, Any, Literal, Union

import httpx
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..config import Settings
from ..errors import ProviderError
from ..models import CandidateItem, MediaKind

logger = logging.getLogger(__name__)

TrendingMedia = Literal["all", "movie", "series"]
TrendingWindow = Literal["day", "week"]


class TMDBMovieResult(BaseModel):
    """Movie entry as returned by TMDB listing endpoints."""

    media_type: Literal["movie"] = "movie"
    id: int
    title: str | None = None
    original_title: str | None = None
    poster_path: str | None = None
    popularity: float | None = None

    def to_candidate(self) -> CandidateItem:
        return CandidateItem(
            id=self.id,
            title=self.title or self.original_title or "Untitled",
            kind="movie",
            poster_path=self.poster_path,
            popularity=self.popularity or 0.0,
        )


class TMDBSeriesResult(BaseModel):
    """TV series entry as returned by TMDB listing endpoints."""

    media_type: Literal["tv"] = "tv"
    id: int
    name: str | None = None
    original_name: str | None = None
    poster_path: str | None = None
    popularity: float | None = None

    def to_candidate(self) -> CandidateItem:
        return CandidateItem(
            id=self.id,
            title=self.name or self.original_name or "Untitled",
            kind="series",
            poster_path=self.poster_path,
            popularity=self.popularity or 0.0,
        )


TMDBTitleResult = Annotated[
    Union[TMDBMovieResult, TMDBSeriesResult], Field(discriminator="media_type")
]
_TITLE_ADAPTER: TypeAdapter[TMDBMovieResult | TMDBSeriesResult] = TypeAdapter(
    TMDBTitleResult
)

_TMDB_MEDIA_SEGMENT: dict[str, str] = {"movie": "movie", "series": "tv", "all": "all"}

# Keyword ids excluded from discover listings: nudity, erotic movie, softcore.
ADULT_KEYWORD_IDS: tuple[str, ...] = ("281741", "190370", "155477")
CAST_LIMIT = 15


class TMDBGenre(BaseModel):
    id: int
    name: str


_GENRES_ADAPTER: TypeAdapter[list[TMDBGenre]] = TypeAdapter(list[TMDBGenre])


class TMDBCastMember(BaseModel):
    id: int
    name: str
    character: str | None = None
    profile_path: str | None = None


class TMDBSeasonSummary(BaseModel):
    """Season entry embedded in a series details payload."""

    season_number: int
    name: str | None = None
    episode_count: int | None = None
    air_date: str | None = None
    poster_path: str | None = None


class TMDBEpisode(BaseModel):
    episode_number: int
    name: str | None = None
    overview: str | None = None
    air_date: str | None = None
    runtime: int | None = None
    still_path: str | None = None
    vote_average: float | None = None


class TMDBSeasonDetails(BaseModel):
    """A single season of a series with its episodes."""

    id: int | None = None
    season_number: int
    name: str | None = None
    overview: str | None = None
    air_date: str | None = None
    poster_path: str | None = None
    episodes: list[TMDBEpisode] = Field(default_factory=list)


class _TMDBDetailsExtras(BaseModel):
    overview: str | None = None
    genres: list[TMDBGenre] = Field(default_factory=list)
    release_date: str | None = None
    first_air_date: str | None = None
    runtime: int | None = None
    episode_run_time: list[int] = Field(default_factory=list)
    number_of_seasons: int | None = None
    seasons: list[TMDBSeasonSummary] = Field(default_factory=list)


class TitleDetails(BaseModel):
    """Full record of one movie or series with providers and top billed cast."""

    item: CandidateItem
    overview: str | None = None
    genres: list[TMDBGenre] = Field(default_factory=list)
    release_date: str | None = None
    runtime: int | None = None
    number_of_seasons: int | None = None
    seasons: list[TMDBSeasonSummary] = Field(default_factory=list)
    providers: dict[str, Any] = Field(default_factory=dict)
    cast: list[TMDBCastMember] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            **self.item.to_payload(),
            "overview": self.overview,
            "genres": [genre.model_dump() for genre in self.genres],
            "releaseDate": self.release_date,
            "runtime": self.runtime,
            "numberOfSeasons": self.number_of_seasons,
            "seasons": [season.model_dump() for season in self.seasons],
            "providers": self.providers,
            "cast": [member.model_dump() for member in self.cast],
        }


class TMDBClient:
    """Client responsible for catalog lookups against TMDB."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def search(self, query: str) -> list[CandidateItem]:
        """Run a multi search (movies and series) for the first page of results."""

        payload = await self._get_json(
            "/search/multi",
            {"query": query, "page": 1, "include_adult": "false"},
            description=f"search for {query!r}",
        )
        return self._parse_results(payload, description=f"search for {query!r}")

    async def related(self, kind: MediaKind, tmdb_id: int) -> list[CandidateItem]:
        """Return titles related to the given movie or series.

        Movies use TMDB's recommendation list, series the similar-titles list.
        """

        if kind == "movie":
            path = f"/movie/{tmdb_id}/recommendations"
        else:
            path = f"/tv/{tmdb_id}/similar"
        payload = await self._get_json(
            path, {"page": 1}, description=f"related titles for {kind} {tmdb_id}"
        )
        return self._parse_results(
            payload,
            description=f"related titles for {kind} {tmdb_id}",
            default_media_type=_TMDB_MEDIA_SEGMENT[kind],
        )

    async def trending(
        self, media: TrendingMedia = "all", window: TrendingWindow = "week"
    ) -> list[CandidateItem]:
        """Return the trending titles for the requested media and time window."""

        segment = _TMDB_MEDIA_SEGMENT[media]
        payload = await self._get_json(
            f"/trending/{segment}/{window}",
            {"page": 1},
            description=f"trending {media}/{window}",
        )
        return self._parse_results(
            payload,
            description=f"trending {media}/{window}",
            default_media_type=None if media == "all" else segment,
        )

    async def top_rated(self, kind: MediaKind) -> list[CandidateItem]:
        segment = _TMDB_MEDIA_SEGMENT[kind]
        return await self._listing(f"/{segment}/top_rated", f"top rated {kind}", segment)

    async def upcoming(self) -> list[CandidateItem]:
        return await self._listing("/movie/upcoming", "upcoming movies", "movie")

    async def now_playing(self) -> list[CandidateItem]:
        return await self._listing("/movie/now_playing", "movies now playing", "movie")

    async def genres(self, kind: MediaKind) -> list[TMDBGenre]:
        """Return TMDB's genre list for movies or series."""

        description = f"{kind} genres"
        payload = await self._get_json(
            f"/genre/{_TMDB_MEDIA_SEGMENT[kind]}/list", {}, description=description
        )
        if not isinstance(payload, dict):
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload", query=description
            )
        try:
            return _GENRES_ADAPTER.validate_python(payload.get("genres"))
        except ValidationError as exc:
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload",
                query=description,
                original_exception=exc,
            ) from exc

    async def discover(
        self,
        kind: MediaKind,
        genre_ids: Sequence[int | str],
        *,
        origin_country: str | None = None,
        excluded_keywords: Sequence[int | str] = ADULT_KEYWORD_IDS,
    ) -> list[CandidateItem]:
        """Return the most popular titles in the given genres.

        Titles tagged with any of ``excluded_keywords`` are left out.
        """

        segment = _TMDB_MEDIA_SEGMENT[kind]
        params: dict[str, Any] = {
            "page": 1,
            "sort_by": "popularity.desc",
            "include_adult": "false",
            "with_genres": ",".join(str(genre_id) for genre_id in genre_ids),
        }
        if excluded_keywords:
            params["without_keywords"] = "|".join(str(k) for k in excluded_keywords)
        if origin_country:
            params["with_origin_country"] = origin_country
        description = f"discover {kind} genres {params['with_genres']}"
        payload = await self._get_json(
            f"/discover/{segment}", params, description=description
        )
        return self._parse_results(
            payload, description=description, default_media_type=segment
        )

    async def details(self, kind: MediaKind, tmdb_id: int) -> TitleDetails:
        """Return a title with its streaming providers and top billed cast.

        The details, providers and credits lookups run concurrently and any
        failing lookup fails the whole call.
        """

        segment = _TMDB_MEDIA_SEGMENT[kind]
        description = f"details for {kind} {tmdb_id}"
        base, providers, credits = await asyncio.gather(
            self._get_json(f"/{segment}/{tmdb_id}", {}, description=description),
            self._get_json(
                f"/{segment}/{tmdb_id}/watch/providers",
                {},
                description=f"providers for {kind} {tmdb_id}",
            ),
            self._get_json(
                f"/{segment}/{tmdb_id}/credits",
                {},
                description=f"credits for {kind} {tmdb_id}",
            ),
        )
        if not isinstance(base, dict):
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload", query=description
            )
        try:
            title = _TITLE_ADAPTER.validate_python({**base, "media_type": segment})
            extras = _TMDBDetailsExtras.model_validate(base)
        except ValidationError as exc:
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload",
                query=description,
                original_exception=exc,
            ) from exc

        regions = providers.get("results") if isinstance(providers, dict) else None
        runtime = extras.runtime
        if runtime is None and extras.episode_run_time:
            runtime = extras.episode_run_time[0]
        return TitleDetails(
            item=title.to_candidate(),
            overview=extras.overview,
            genres=extras.genres,
            release_date=extras.release_date or extras.first_air_date,
            runtime=runtime,
            number_of_seasons=extras.number_of_seasons,
            seasons=extras.seasons,
            providers=regions if isinstance(regions, dict) else {},
            cast=self._parse_cast(credits, description=description),
        )

    async def season_details(self, tmdb_id: int, season_number: int) -> TMDBSeasonDetails:
        """Return one season of a series with its episode list."""

        description = f"season {season_number} of series {tmdb_id}"
        payload = await self._get_json(
            f"/tv/{tmdb_id}/season/{season_number}", {}, description=description
        )
        try:
            return TMDBSeasonDetails.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload",
                query=description,
                original_exception=exc,
            ) from exc

    async def _listing(
        self, path: str, description: str, media_segment: str
    ) -> list[CandidateItem]:
        payload = await self._get_json(path, {"page": 1}, description=description)
        return self._parse_results(
            payload, description=description, default_media_type=media_segment
        )

    async def _get_json(
        self, path: str, params: dict[str, Any], *, description: str
    ) -> Any:
        request_params = {
            **params,
            "language": self._settings.tmdb_language,
            "api_key": self._settings.tmdb_api_key,
        }
        try:
            response = await self._client.get(path, params=request_params)
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"TMDB {description} failed: {exc.__class__.__name__}",
                query=description,
                original_exception=exc,
            ) from exc

        if response.status_code >= 400:
            raise ProviderError(
                f"TMDB {description} failed with status {response.status_code}",
                query=description,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                f"TMDB {description} returned invalid JSON",
                query=description,
                original_exception=exc,
            ) from exc

    @staticmethod
    def _parse_results(
        payload: Any,
        *,
        description: str,
        default_media_type: str | None = None,
    ) -> list[CandidateItem]:
        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise ProviderError(
                f"TMDB {description} returned an unexpected payload",
                query=description,
            )

        candidates: list[CandidateItem] = []
        for entry in payload["results"]:
            if not isinstance(entry, dict):
                continue
            data = dict(entry)
            if default_media_type and not data.get("media_type"):
                data["media_type"] = default_media_type
            if data.get("media_type") not in {"movie", "tv"}:
                # People and other non-title results.
                continue
            try:
                result = _TITLE_ADAPTER.validate_python(data)
            except ValidationError as exc:
                logger.debug("Skipping malformed TMDB result in %s: %s", description, exc)
                continue
            candidates.append(result.to_candidate())
        return candidates

    @staticmethod
    def _parse_cast(payload: Any, *, description: str) -> list[TMDBCastMember]:
        if not isinstance(payload, dict) or not isinstance(payload.get("cast"), list):
            return []
        cast: list[TMDBCastMember] = []
        for entry in payload["cast"]:
            try:
                cast.append(TMDBCastMember.model_validate(entry))
            except ValidationError as exc:
                logger.debug("Skipping malformed cast entry in %s: %s", description, exc)
                continue
            if len(cast) >= CAST_LIMIT:
                break
        return cast
