"""
Outbound payloads for the movie list backend.

The batch save request carries the list in display order, each movie annotated
with its 1-based `order`. Field names are serialized in camelCase:

{
    "movies": [{"id": 603, "title": "The Matrix", ..., "order": 1}],
    "language": "en-US",
    "totalMovies": 1,
    "timestamp": "2025-12-18T00:00:00Z"
}
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from movie_curator.models.movies import MovieRecord


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SavedMovie(_CamelModel):
    id: int
    title: str
    overview: str = ""
    cast: list[str] = []
    genres: list[str] = []
    poster_url: str | None = None
    release_date: str | None = None
    rating: float | None = None
    trailer_url: str | None = None
    director: str | None = None
    runtime_minutes: int | None = None
    order: int


class SaveBatchRequest(_CamelModel):
    movies: list[SavedMovie]
    language: str
    total_movies: int
    timestamp: str

    @model_validator(mode="after")
    def _check_order(self) -> SaveBatchRequest:
        for position, movie in enumerate(self.movies):
            if movie.order != position + 1:
                raise ValueError(f"Movie {movie.id} has order {movie.order}, expected {position + 1}.")
        if self.total_movies != len(self.movies):
            raise ValueError(f"totalMovies is {self.total_movies} but {len(self.movies)} movies were sent.")
        return self

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ReorderRequest(_CamelModel):
    movie_ids: list[int]
    timestamp: str

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def build_save_batch(
    movies: Sequence[MovieRecord],
    *,
    language: str,
    timestamp: str | None = None,
) -> SaveBatchRequest:
    saved = [
        SavedMovie(
            id=movie.id,
            title=movie.title,
            overview=movie.overview,
            cast=list(movie.cast),
            genres=list(movie.genres),
            poster_url=movie.poster_url,
            release_date=movie.release_date,
            rating=movie.rating,
            trailer_url=movie.trailer_url,
            director=movie.director,
            runtime_minutes=movie.runtime_minutes,
            order=index + 1,
        )
        for index, movie in enumerate(movies)
    ]
    return SaveBatchRequest(
        movies=saved,
        language=language,
        total_movies=len(saved),
        timestamp=timestamp or _now_utc_iso(),
    )


def build_reorder_request(movies: Sequence[MovieRecord], *, timestamp: str | None = None) -> ReorderRequest:
    return ReorderRequest(movie_ids=[movie.id for movie in movies], timestamp=timestamp or _now_utc_iso())
