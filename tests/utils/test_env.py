from __future__ import annotations

import pytest

from movie_curator.utils.env import env_float, env_int


def test_env_helpers_fall_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MOVIE_CURATOR_TEST_VALUE", raising=False)
    assert env_int("MOVIE_CURATOR_TEST_VALUE", 7) == 7
    assert env_float("MOVIE_CURATOR_TEST_VALUE", 2.5) == 2.5

    monkeypatch.setenv("MOVIE_CURATOR_TEST_VALUE", "   ")
    assert env_int("MOVIE_CURATOR_TEST_VALUE", 7) == 7


def test_env_helpers_parse_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIE_CURATOR_TEST_VALUE", " 12 ")
    assert env_int("MOVIE_CURATOR_TEST_VALUE", 0) == 12
    assert env_float("MOVIE_CURATOR_TEST_VALUE", 0.0) == 12.0


def test_env_helpers_reject_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIE_CURATOR_TEST_VALUE", "-3")
    with pytest.raises(ValueError, match="non-negative integer"):
        env_int("MOVIE_CURATOR_TEST_VALUE", 0)
    monkeypatch.setenv("MOVIE_CURATOR_TEST_VALUE", "fast")
    with pytest.raises(ValueError, match="must be a number"):
        env_float("MOVIE_CURATOR_TEST_VALUE", 0.0)
