"""Content-based recommendations seeded from a profile's watched titles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from ..errors import ProviderError
from ..models import CandidateItem, MediaKind, SeasonRecord

logger = logging.getLogger(__name__)


class RelatedTitlesProvider(Protocol):
    async def related(self, kind: MediaKind, tmdb_id: int) -> list[CandidateItem]:
        ...


class RecommendationService:
    """Merges related-title lists for recently watched titles."""

    def __init__(
        self,
        provider: RelatedTitlesProvider,
        *,
        seed_count: int = 20,
        per_seed: int = 5,
        limit: int = 40,
    ) -> None:
        self._provider = provider
        self._seed_count = seed_count
        self._per_seed = per_seed
        self._limit = limit

    async def recommend(self, watched: Sequence[SeasonRecord]) -> list[CandidateItem]:
        """Return popular related titles the profile has not watched yet.

        ``watched`` is expected most recent first; only the first
        ``seed_count`` distinct titles are used as seeds.
        """

        watched_keys = {record.title_key for record in watched}
        seeds: list[tuple[str, int]] = []
        for record in watched:
            if record.title_key in seeds:
                continue
            seeds.append(record.title_key)
            if len(seeds) >= self._seed_count:
                break
        if not seeds:
            return []

        batches = await asyncio.gather(
            *(self._provider.related(kind, tmdb_id) for kind, tmdb_id in seeds),
            return_exceptions=True,
        )

        merged: dict[tuple[str, int], CandidateItem] = {}
        for (kind, tmdb_id), batch in zip(seeds, batches):
            if isinstance(batch, ProviderError):
                logger.warning(
                    "Related titles for %s %s unavailable: %s", kind, tmdb_id, batch
                )
                continue
            if isinstance(batch, BaseException):
                raise batch
            for item in batch[: self._per_seed]:
                if item.identity in watched_keys:
                    continue
                merged.setdefault(item.identity, item)

        ranked = sorted(merged.values(), key=lambda item: item.popularity, reverse=True)
        return ranked[: self._limit]
