"""Exceptions shared by the search, catalog and library layers."""

from __future__ import annotations


class ProviderError(Exception):
    """Raised when the upstream catalog cannot answer a request."""

    def __init__(
        self,
        message: str,
        *,
        query: str | None = None,
        original_exception: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.query = query
        self.original_exception = original_exception


class InvalidQuery(ValueError):
    """Raised when a search query is too short to be worth sending upstream."""


MIN_QUERY_LENGTH = 2


def require_searchable(query: str | None) -> str:
    """Return the trimmed query or raise :class:`InvalidQuery`."""

    trimmed = (query or "").strip()
    if len(trimmed) < MIN_QUERY_LENGTH:
        raise InvalidQuery(
            f"Search queries need at least {MIN_QUERY_LENGTH} characters"
        )
    return trimmed
