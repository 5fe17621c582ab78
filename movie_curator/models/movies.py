from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MovieRecord:
    """
    Enriched movie record (one entry of the curated list).

    `id` is the TMDb movie id and is the only field the ordering code looks at.
    """

    id: int
    title: str
    overview: str = ""
    cast: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    poster_url: str | None = None
    release_date: str | None = None  # YYYY-MM-DD when available
    rating: float | None = None  # 0-10
    trailer_url: str | None = None
    director: str | None = None
    runtime_minutes: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "cast": list(self.cast),
            "genres": list(self.genres),
            "posterUrl": self.poster_url,
            "releaseDate": self.release_date,
            "rating": self.rating,
            "trailerUrl": self.trailer_url,
            "director": self.director,
            "runtimeMinutes": self.runtime_minutes,
        }


@dataclass(frozen=True)
class Genre:
    id: int
    name: str


@dataclass(frozen=True)
class MovieSuggestion:
    id: int
    title: str
    year: int | None = None
    poster_url: str | None = None
