"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from movie_curator.integrations.tmdb.client import (
        TmdbClientError,
        TmdbMovieClient,
        normalize_movie_details,
        resolve_api_key,
    )

__all__ = [
    "TmdbClientError",
    "TmdbMovieClient",
    "normalize_movie_details",
    "resolve_api_key",
]


def __getattr__(name: str):
    if name in __all__:
        from movie_curator.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
