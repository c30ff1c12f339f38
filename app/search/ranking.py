"""Fuse results from the exact query and its typo variants into one ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ..errors import InvalidQuery, ProviderError, require_searchable
from ..models import CandidateItem
from .variants import generate_variants

logger = logging.getLogger(__name__)

EXACT_TIER = 100
SAME_LENGTH_TIER = 80
VARIANT_TIER = 60

SEARCHABLE_KINDS = frozenset({"movie", "series"})
MIN_VARIANT_LENGTH = 3


class CatalogSearchProvider(Protocol):
    """Anything able to run a single free-text catalog search."""

    async def search(self, query: str) -> list[CandidateItem]:
        ...


@dataclass(slots=True)
class RankedCandidate:
    """Accumulator entry pairing a result with the tier that found it."""

    item: CandidateItem
    tier: int


class SearchRanker:
    """Runs the exact query plus bounded variants and orders the merged set."""

    def __init__(
        self,
        provider: CatalogSearchProvider,
        *,
        variant_limit: int = 12,
        soft_cap: int = 30,
    ) -> None:
        self._provider = provider
        self._variant_limit = variant_limit
        self._soft_cap = soft_cap

    async def rank(self, raw_query: str) -> list[CandidateItem]:
        """Return results for ``raw_query`` ordered by tier then popularity."""

        try:
            trimmed = require_searchable(raw_query)
        except InvalidQuery:
            return []

        accumulator: dict[tuple[str, int], RankedCandidate] = {}
        calls = 0
        failures: list[ProviderError] = []

        calls += 1
        try:
            exact_results = await self._provider.search(trimmed)
        except ProviderError as exc:
            logger.warning("Exact catalog search for %r failed: %s", trimmed, exc)
            failures.append(exc)
        else:
            self._merge(accumulator, exact_results, EXACT_TIER)

        lowered = trimmed.lower()
        issued = 0
        for variant in generate_variants(raw_query):
            if variant == lowered or len(variant) < MIN_VARIANT_LENGTH:
                continue
            if issued >= self._variant_limit:
                break
            issued += 1
            calls += 1
            try:
                variant_results = await self._provider.search(variant)
            except ProviderError as exc:
                logger.warning(
                    "Catalog search for variant %r of %r failed: %s",
                    variant,
                    trimmed,
                    exc,
                )
                failures.append(exc)
                continue

            tier = SAME_LENGTH_TIER if len(variant) == len(trimmed) else VARIANT_TIER
            self._merge(accumulator, variant_results, tier)
            if len(accumulator) >= self._soft_cap:
                logger.debug(
                    "Stopping variant search for %r after %s variants (%s results)",
                    trimmed,
                    issued,
                    len(accumulator),
                )
                break

        if failures and len(failures) == calls:
            raise ProviderError(
                f"Catalog search unavailable for {trimmed!r}",
                query=trimmed,
                original_exception=failures[-1],
            ) from failures[-1]

        ranked = sorted(
            accumulator.values(),
            key=lambda entry: (-entry.tier, -entry.item.popularity),
        )
        return [entry.item for entry in ranked]

    @staticmethod
    def _merge(
        accumulator: dict[tuple[str, int], RankedCandidate],
        items: list[CandidateItem],
        tier: int,
    ) -> None:
        for item in items:
            if item.kind not in SEARCHABLE_KINDS:
                continue
            accumulator.setdefault(item.identity, RankedCandidate(item=item, tier=tier))
