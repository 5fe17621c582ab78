from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Mapping

import requests

from movie_curator.dispatch.dispatcher import RequestDispatcher
from movie_curator.models.movies import Genre, MovieRecord, MovieSuggestion

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="

MAX_CAST_NAMES = 5
MAX_SUGGESTIONS = 5


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return resolved


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution for callers that want to continue when the key is missing.
    """

    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    return resolved or None


def resolve_base_url(base_url: str | None = None) -> str:
    resolved = (base_url or os.getenv("TMDB_BASE_URL") or "").strip()
    return (resolved or TMDB_API_BASE_URL).rstrip("/")


def _request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = 10.0,
) -> Any:
    """
    Single GET attempt. Throttling and auth failures surface as `TmdbClientError`
    with the HTTP status so the dispatcher can decide whether to retry.
    """

    headers = {
        "accept": "application/json",
        "user-agent": "Mozilla/5.0",
    }
    try:
        resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
    except requests.RequestException as exc:
        raise TmdbClientError(f"TMDb request failed: {exc}") from exc

    if resp.status_code != 200:
        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    try:
        return resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc


def _poster_url(poster_path: Any) -> str | None:
    if isinstance(poster_path, str) and poster_path.strip():
        return f"{TMDB_IMAGE_BASE_URL}{poster_path.strip()}"
    return None


def _year_of(release_date: Any) -> int | None:
    if not isinstance(release_date, str):
        return None
    head = release_date.strip()[:4]
    return int(head) if len(head) == 4 and head.isdigit() else None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def normalize_movie_details(payload: Mapping[str, Any]) -> MovieRecord:
    """
    Build a `MovieRecord` from a `/movie/{id}?append_to_response=credits,videos` payload.
    """

    movie_id = payload.get("id")
    title = payload.get("title")
    if not isinstance(movie_id, int) or not isinstance(title, str) or not title.strip():
        raise TmdbClientError("TMDb movie payload is missing id or title.")

    credits = payload.get("credits") if isinstance(payload.get("credits"), Mapping) else {}
    videos = payload.get("videos") if isinstance(payload.get("videos"), Mapping) else {}

    director = next(
        (
            person.get("name")
            for person in (credits.get("crew") or [])
            if isinstance(person, Mapping) and person.get("job") == "Director"
        ),
        None,
    )
    cast = [
        person["name"]
        for person in (credits.get("cast") or [])
        if isinstance(person, Mapping) and isinstance(person.get("name"), str)
    ][:MAX_CAST_NAMES]
    trailer_key = next(
        (
            video.get("key")
            for video in (videos.get("results") or [])
            if isinstance(video, Mapping) and video.get("type") == "Trailer" and video.get("site") == "YouTube"
        ),
        None,
    )
    genres = [
        genre["name"]
        for genre in (payload.get("genres") or [])
        if isinstance(genre, Mapping) and isinstance(genre.get("name"), str)
    ]
    runtime = payload.get("runtime")
    release_date = payload.get("release_date")

    return MovieRecord(
        id=movie_id,
        title=title.strip(),
        overview=payload.get("overview") or "No overview available",
        cast=cast,
        genres=genres,
        poster_url=_poster_url(payload.get("poster_path")),
        release_date=release_date if isinstance(release_date, str) and release_date else None,
        rating=_as_number(payload.get("vote_average")),
        trailer_url=f"{YOUTUBE_WATCH_URL}{trailer_key}" if trailer_key else None,
        director=director if isinstance(director, str) and director else None,
        runtime_minutes=runtime if isinstance(runtime, int) and runtime > 0 else None,
    )


def _suggestion_from_result(result: Mapping[str, Any]) -> MovieSuggestion | None:
    movie_id = result.get("id")
    title = result.get("title")
    if not isinstance(movie_id, int) or not isinstance(title, str):
        return None
    return MovieSuggestion(
        id=movie_id,
        title=title,
        year=_year_of(result.get("release_date")),
        poster_url=_poster_url(result.get("poster_path")),
    )


class TmdbMovieClient:
    """
    TMDb movie catalog client.

    Every HTTP call is a single attempt submitted to the injected dispatcher,
    which owns throttling and retries. A dispatcher outcome of `None` means
    "no data"; `AuthorizationError` is left to propagate.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._dispatcher = dispatcher
        self._api_key = _require_api_key(api_key)
        self._base_url = resolve_base_url(base_url)
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    async def _get(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        merged: dict[str, Any] = {"api_key": self._api_key, **(params or {})}

        async def operation() -> Any:
            return await asyncio.to_thread(
                _request_json,
                self._session,
                url,
                params=merged,
                timeout_seconds=self._timeout_seconds,
            )

        return await self._dispatcher.submit(operation)

    async def search_movie(self, title: str, language: str = "en-US") -> MovieRecord | None:
        """
        Look up a title and return the details of the best (first) match.
        """

        query = str(title or "").strip()
        if not query:
            return None

        payload = await self._get("/search/movie", params={"query": query, "language": language, "page": 1})
        results = payload.get("results") if isinstance(payload, Mapping) else None
        if not isinstance(results, list) or not results:
            logger.info(f"No TMDb match for {query!r}")
            return None

        first = results[0]
        movie_id = first.get("id") if isinstance(first, Mapping) else None
        if not isinstance(movie_id, int):
            return None
        return await self.fetch_movie_details(movie_id, language)

    async def fetch_movie_details(self, movie_id: int, language: str = "en-US") -> MovieRecord | None:
        payload = await self._get(
            f"/movie/{int(movie_id)}",
            params={"language": language, "append_to_response": "credits,videos"},
        )
        if not isinstance(payload, Mapping):
            return None
        try:
            return normalize_movie_details(payload)
        except TmdbClientError as exc:
            logger.warning(f"Discarding TMDb movie {movie_id}: {exc}")
            return None

    async def search_movie_suggestions(self, query: str, language: str = "en-US") -> list[MovieSuggestion]:
        query = str(query or "").strip()
        if not query:
            return []
        payload = await self._get("/search/movie", params={"query": query, "language": language, "page": 1})
        results = payload.get("results") if isinstance(payload, Mapping) else None
        suggestions: list[MovieSuggestion] = []
        for result in results if isinstance(results, list) else []:
            if not isinstance(result, Mapping):
                continue
            suggestion = _suggestion_from_result(result)
            if suggestion is not None:
                suggestions.append(suggestion)
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
        return suggestions

    async def fetch_genres(self, language: str = "en-US") -> list[Genre]:
        payload = await self._get("/genre/movie/list", params={"language": language})
        genres = payload.get("genres") if isinstance(payload, Mapping) else None
        return [
            Genre(id=genre["id"], name=genre["name"])
            for genre in (genres if isinstance(genres, list) else [])
            if isinstance(genre, Mapping) and isinstance(genre.get("id"), int) and isinstance(genre.get("name"), str)
        ]

    async def fetch_languages(self) -> list[dict[str, Any]]:
        payload = await self._get("/configuration/languages")
        if not isinstance(payload, list):
            return []
        return [dict(item) for item in payload if isinstance(item, Mapping)]
