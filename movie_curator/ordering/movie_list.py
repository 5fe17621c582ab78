from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from movie_curator.models.movies import MovieRecord
from movie_curator.ordering.reconcile import movie_key, reconcile


class DuplicateMovieError(ValueError):
    def __init__(self, message: str, *, movie_id: Hashable | None = None) -> None:
        super().__init__(message)
        self.movie_id = movie_id


@dataclass(frozen=True)
class ReorderResult:
    canonical: list[MovieRecord] = field(default_factory=list)
    view: list[MovieRecord] = field(default_factory=list)


def _genres_of(movie: Any) -> list[str]:
    if isinstance(movie, Mapping):
        genres = movie.get("genres")
    else:
        genres = getattr(movie, "genres", None)
    return [g for g in (genres or []) if isinstance(g, str)]


def movie_exists(movies: Iterable[Any], movie_id: Hashable) -> bool:
    return any(movie_key(movie) == movie_id for movie in movies)


def validate_movie(movie: Any) -> bool:
    if movie is None:
        return False
    if isinstance(movie, Mapping):
        return bool(movie.get("id")) and bool(movie.get("title"))
    return bool(getattr(movie, "id", None)) and bool(getattr(movie, "title", None))


def add_movie(movies: Sequence[MovieRecord], movie: MovieRecord) -> list[MovieRecord]:
    if not validate_movie(movie):
        raise ValueError(f"Movie is missing an id or title: {movie!r}")
    if movie_exists(movies, movie.id):
        raise DuplicateMovieError(f'"{movie.title}" is already in the list.', movie_id=movie.id)
    return [*movies, movie]


def remove_movie(movies: Sequence[MovieRecord], movie_id: Hashable) -> list[MovieRecord]:
    return [movie for movie in movies if movie_key(movie) != movie_id]


def replace_movie(movies: Sequence[MovieRecord], movie_id: Hashable, updated: MovieRecord) -> list[MovieRecord]:
    """
    Swap in an edited record, keeping its position.

    The edited record keeps the original id so the list stays keyed the same way.
    """

    if updated.id != movie_id:
        updated = replace(updated, id=movie_id)
    return [updated if movie_key(movie) == movie_id else movie for movie in movies]


def filter_by_genres(movies: Sequence[MovieRecord], genres: Iterable[str] | None) -> list[MovieRecord]:
    selected = {g for g in (genres or []) if g}
    if not selected:
        return list(movies)
    return [movie for movie in movies if any(g in selected for g in _genres_of(movie))]


def reorder(
    canonical: Sequence[MovieRecord],
    moved_id: Hashable,
    target_id: Hashable,
    *,
    genres: Iterable[str] | None = None,
) -> ReorderResult:
    selected = [g for g in (genres or []) if g]
    new_canonical = reconcile(canonical, moved_id, target_id, filter_active=bool(selected))
    return ReorderResult(canonical=new_canonical, view=filter_by_genres(new_canonical, selected))
