from __future__ import annotations

import pytest
from pydantic import ValidationError

from movie_curator.ingestion.save_batch import (
    SaveBatchRequest,
    SavedMovie,
    build_reorder_request,
    build_save_batch,
)
from movie_curator.models.movies import MovieRecord


def _movies() -> list[MovieRecord]:
    return [
        MovieRecord(
            id=603,
            title="The Matrix",
            overview="Neo wakes up.",
            cast=["Keanu Reeves"],
            genres=["Action"],
            poster_url="https://image.tmdb.org/t/p/w500/matrix.jpg",
            release_date="1999-03-30",
            rating=8.2,
            trailer_url="https://www.youtube.com/watch?v=vKQi3bBA1y8",
            director="Lana Wachowski",
            runtime_minutes=136,
        ),
        MovieRecord(id=949, title="Heat", genres=["Crime"]),
    ]


def test_build_save_batch_orders_by_position() -> None:
    batch = build_save_batch(_movies(), language="en-US", timestamp="2025-12-18T00:00:00Z")
    payload = batch.to_dict()

    assert payload["language"] == "en-US"
    assert payload["totalMovies"] == 2
    assert payload["timestamp"] == "2025-12-18T00:00:00Z"
    assert [m["order"] for m in payload["movies"]] == [1, 2]
    first = payload["movies"][0]
    assert first["posterUrl"] == "https://image.tmdb.org/t/p/w500/matrix.jpg"
    assert first["runtimeMinutes"] == 136
    assert first["cast"] == ["Keanu Reeves"]
    assert payload["movies"][1]["trailerUrl"] is None


def test_build_save_batch_default_timestamp_is_utc() -> None:
    batch = build_save_batch(_movies(), language="en-US")
    assert batch.timestamp.endswith("Z")


def test_save_batch_rejects_misnumbered_order() -> None:
    with pytest.raises(ValidationError):
        SaveBatchRequest(
            movies=[SavedMovie(id=1, title="A", order=2)],
            language="en-US",
            total_movies=1,
            timestamp="2025-12-18T00:00:00Z",
        )


def test_saved_movie_payload_matches_record_payload() -> None:
    record = _movies()[0]
    saved = build_save_batch([record], language="en-US").to_dict()["movies"][0]
    assert {k: v for k, v in saved.items() if k != "order"} == record.to_payload()


def test_build_reorder_request() -> None:
    request = build_reorder_request(_movies(), timestamp="2025-12-18T00:00:00Z")
    assert request.to_dict() == {"movieIds": [603, 949], "timestamp": "2025-12-18T00:00:00Z"}
