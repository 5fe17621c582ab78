from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from movie_curator.dispatch.dispatcher import AuthorizationError
from movie_curator.integrations.tmdb.client import TmdbMovieClient
from movie_curator.models.movies import MovieRecord
from movie_curator.ordering.reconcile import remove_duplicates

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class EnrichSummary:
    attempted: int
    movies: list[MovieRecord] = field(default_factory=list)
    failed_titles: list[str] = field(default_factory=list)
    duplicates_removed: int = 0

    @property
    def found(self) -> int:
        return len(self.movies)


async def enrich_titles(
    titles: Iterable[str],
    client: TmdbMovieClient,
    *,
    language: str = "en-US",
    on_progress: ProgressCallback | None = None,
) -> EnrichSummary:
    """
    Resolve uploaded titles to TMDb movie records, one title at a time.

    Titles with no match (or a swallowed lookup failure) are reported in
    `failed_titles`. Several titles can resolve to the same movie; only the
    first is kept. An `AuthorizationError` stops the whole batch, since every
    later lookup would be rejected the same way.
    """

    cleaned = [str(t).strip() for t in titles if str(t or "").strip()]
    found: list[MovieRecord] = []
    failed: list[str] = []

    for position, title in enumerate(cleaned, start=1):
        if on_progress is not None:
            on_progress(position, len(cleaned))
        try:
            movie = await client.search_movie(title, language)
        except AuthorizationError:
            raise
        except Exception as exc:
            logger.error(f"Error fetching {title}: {exc}")
            movie = None

        if movie is None:
            failed.append(title)
        else:
            found.append(movie)

    deduped = remove_duplicates(found)
    if failed:
        logger.warning(f"Found {len(deduped.items)} movies. {len(failed)} could not be found.")
    else:
        logger.info(f"Successfully loaded {len(deduped.items)} movies.")

    return EnrichSummary(
        attempted=len(cleaned),
        movies=deduped.items,
        failed_titles=failed,
        duplicates_removed=deduped.removed,
    )
