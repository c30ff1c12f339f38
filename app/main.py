"""Entry point for the FastAPI-powered ReelScout service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Awaitable, TypeVar

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .config import settings
from .database import Database
from .errors import ProviderError
from .models import (
    LibraryList,
    MediaKind,
    WatchRecordIn,
    WatchRecordKey,
    coerce_media_kind,
)
from .search import SearchRanker
from .services.library import LibraryService
from .services.recommendations import RecommendationService
from .services.tmdb import TMDBClient, TrendingMedia, TrendingWindow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI

_ServiceT = TypeVar("_ServiceT")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.tmdb_base_url,
            timeout=httpx.Timeout(10.0, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    tmdb = TMDBClient(settings, tmdb_http_client)
    fastapi_app.state.tmdb_client = tmdb
    fastapi_app.state.search_ranker = SearchRanker(
        tmdb,
        variant_limit=settings.search_variant_limit,
        soft_cap=settings.search_soft_cap,
    )
    fastapi_app.state.library_service = LibraryService(database.session_factory)
    fastapi_app.state.recommendation_service = RecommendationService(
        tmdb,
        seed_count=settings.recommendation_seed_count,
        per_seed=settings.recommendation_per_seed,
        limit=settings.recommendation_limit,
    )
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Typo-tolerant movie and series search with watch tracking",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def _get_service(fastapi_app: FastAPI, name: str, expected: type[_ServiceT]) -> _ServiceT:
    service = getattr(fastapi_app.state, name, None)
    if not isinstance(service, expected):
        raise RuntimeError(f"{expected.__name__} not initialised")
    return service


def get_search_ranker(fastapi_app: FastAPI) -> SearchRanker:
    return _get_service(fastapi_app, "search_ranker", SearchRanker)


def get_tmdb_client(fastapi_app: FastAPI) -> TMDBClient:
    return _get_service(fastapi_app, "tmdb_client", TMDBClient)


def get_library_service(fastapi_app: FastAPI) -> LibraryService:
    return _get_service(fastapi_app, "library_service", LibraryService)


def get_recommendation_service(fastapi_app: FastAPI) -> RecommendationService:
    return _get_service(fastapi_app, "recommendation_service", RecommendationService)


_PayloadT = TypeVar("_PayloadT", bound=BaseModel)
_ResultT = TypeVar("_ResultT")


async def _read_payload(request: Request, model: type[_PayloadT]) -> _PayloadT:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400, detail=exc.errors(include_url=False, include_context=False)
        ) from exc


def _require_media_kind(value: str | None) -> MediaKind:
    if not value:
        raise HTTPException(status_code=400, detail="mediaType is required")
    kind = coerce_media_kind(value)
    if kind not in ("movie", "series"):
        raise HTTPException(status_code=400, detail=f"Unsupported mediaType {value!r}")
    return kind  # type: ignore[return-value]


async def _fetch_catalog(call: Awaitable[_ResultT], label: str) -> _ResultT:
    try:
        return await call
    except ProviderError as exc:
        logger.error("%s lookup failed: %s", label, exc)
        raise HTTPException(
            status_code=503, detail=f"{label} are temporarily unavailable"
        ) from exc


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/search")
    async def search_endpoint(query: str = Query(default="")) -> JSONResponse:
        ranker = get_search_ranker(fastapi_app)
        try:
            results = await ranker.rank(query)
        except ProviderError as exc:
            logger.error("Search for %r failed on every catalog call: %s", query, exc)
            raise HTTPException(
                status_code=503, detail="Search is temporarily unavailable"
            ) from exc
        return JSONResponse(
            {
                "query": query.strip(),
                "results": [item.to_payload() for item in results],
            }
        )

    @fastapi_app.get("/api/trending")
    async def trending_endpoint(
        media: TrendingMedia = "all", window: TrendingWindow = "week"
    ) -> JSONResponse:
        tmdb = get_tmdb_client(fastapi_app)
        try:
            results = await tmdb.trending(media, window)
        except ProviderError as exc:
            logger.error("Trending lookup failed: %s", exc)
            raise HTTPException(
                status_code=503, detail="Trending titles are temporarily unavailable"
            ) from exc
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/top-rated")
    async def top_rated_endpoint(
        media_type: str | None = Query(default=None, alias="mediaType")
    ) -> JSONResponse:
        kind = _require_media_kind(media_type)
        tmdb = get_tmdb_client(fastapi_app)
        results = await _fetch_catalog(tmdb.top_rated(kind), "Top rated titles")
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/upcoming")
    async def upcoming_endpoint() -> JSONResponse:
        tmdb = get_tmdb_client(fastapi_app)
        results = await _fetch_catalog(tmdb.upcoming(), "Upcoming movies")
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/now-playing")
    async def now_playing_endpoint() -> JSONResponse:
        tmdb = get_tmdb_client(fastapi_app)
        results = await _fetch_catalog(tmdb.now_playing(), "Movies now playing")
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/genres")
    async def genres_endpoint(
        media_type: str | None = Query(default=None, alias="mediaType")
    ) -> JSONResponse:
        kind = _require_media_kind(media_type)
        tmdb = get_tmdb_client(fastapi_app)
        genres = await _fetch_catalog(tmdb.genres(kind), "Genres")
        return JSONResponse([genre.model_dump() for genre in genres])

    @fastapi_app.get("/api/discover")
    async def discover_endpoint(
        media_type: str | None = Query(default=None, alias="mediaType"),
        genre_id: str | None = Query(default=None, alias="genreId"),
    ) -> JSONResponse:
        if not media_type or not genre_id:
            raise HTTPException(
                status_code=400, detail="mediaType and genreId are required"
            )
        kind = _require_media_kind(media_type)
        tmdb = get_tmdb_client(fastapi_app)
        results = await _fetch_catalog(
            tmdb.discover(kind, [genre_id]), "Discover results"
        )
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/titles/{media_type}/{tmdb_id}")
    async def title_details_endpoint(media_type: str, tmdb_id: int) -> JSONResponse:
        kind = _require_media_kind(media_type)
        tmdb = get_tmdb_client(fastapi_app)
        details = await _fetch_catalog(tmdb.details(kind, tmdb_id), "Title details")
        return JSONResponse(details.to_payload())

    @fastapi_app.get("/api/titles/series/{tmdb_id}/seasons/{season_number}")
    async def season_details_endpoint(tmdb_id: int, season_number: int) -> JSONResponse:
        tmdb = get_tmdb_client(fastapi_app)
        season = await _fetch_catalog(
            tmdb.season_details(tmdb_id, season_number), "Season details"
        )
        return JSONResponse(season.model_dump(mode="json"))

    @fastapi_app.get("/api/profiles/{profile_id}/recommendations")
    async def recommendations_endpoint(profile_id: str) -> JSONResponse:
        library = get_library_service(fastapi_app)
        recommender = get_recommendation_service(fastapi_app)
        watched = await library.list_records(profile_id, LibraryList.WATCHED)
        results = await recommender.recommend(watched)
        return JSONResponse({"results": [item.to_payload() for item in results]})

    @fastapi_app.get("/api/profiles/{profile_id}/{list_name}")
    async def list_records_endpoint(
        profile_id: str, list_name: LibraryList
    ) -> JSONResponse:
        library = get_library_service(fastapi_app)
        records = await library.list_records(profile_id, list_name)
        return JSONResponse(
            [record.model_dump(mode="json", by_alias=True) for record in records]
        )

    @fastapi_app.get("/api/profiles/{profile_id}/{list_name}/grouped")
    async def list_grouped_endpoint(
        profile_id: str, list_name: LibraryList
    ) -> JSONResponse:
        library = get_library_service(fastapi_app)
        grouped = await library.list_grouped(profile_id, list_name)
        return JSONResponse(
            [entry.model_dump(mode="json", by_alias=True) for entry in grouped]
        )

    @fastapi_app.post("/api/profiles/{profile_id}/{list_name}")
    async def save_record_endpoint(
        request: Request, profile_id: str, list_name: LibraryList
    ) -> JSONResponse:
        library = get_library_service(fastapi_app)
        entry = await _read_payload(request, WatchRecordIn)
        record = await library.save(profile_id, list_name, entry)
        payload: dict[str, Any] = {
            "ok": True,
            "record": record.model_dump(mode="json", by_alias=True),
        }
        return JSONResponse(payload)

    @fastapi_app.delete("/api/profiles/{profile_id}/{list_name}")
    async def delete_record_endpoint(
        request: Request, profile_id: str, list_name: LibraryList
    ) -> JSONResponse:
        library = get_library_service(fastapi_app)
        key = await _read_payload(request, WatchRecordKey)
        removed = await library.remove(profile_id, list_name, key)
        if not removed:
            raise HTTPException(status_code=404, detail="Entry not found")
        return JSONResponse({"ok": True})


app = create_app()
