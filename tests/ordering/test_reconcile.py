from __future__ import annotations

import logging
import random

import pytest

from movie_curator.models.movies import MovieRecord
from movie_curator.ordering.reconcile import reconcile, remove_duplicates, safe_array_move


def _movies(*keys: str) -> list[dict]:
    return [{"id": key, "title": f"Movie {key}"} for key in keys]


def _ids(items) -> list:
    return [item["id"] if isinstance(item, dict) else item.id for item in items]


def test_unfiltered_move_matches_plain_splice() -> None:
    canonical = _movies("A", "B", "C", "D", "E", "F")

    result = reconcile(canonical, "C", "F", filter_active=False)

    expected = list(canonical)
    moved = expected.pop(2)
    expected.insert(5, moved)
    assert result == expected
    assert _ids(result) == ["A", "B", "D", "E", "F", "C"]


def test_unfiltered_move_upwards() -> None:
    canonical = _movies("A", "B", "C", "D")
    assert _ids(reconcile(canonical, "D", "B", filter_active=False)) == ["A", "D", "B", "C"]


def test_filtered_move_inserts_before_target_in_canonical_order() -> None:
    # B and D are hidden by the filter; the view is [A, C, E] and C is dropped on E.
    canonical = _movies("A", "B", "C", "D", "E")

    result = reconcile(canonical, "C", "E", filter_active=True)

    assert _ids(result) == ["A", "B", "D", "C", "E"]


def test_filtered_move_to_front_keeps_hidden_items_in_place() -> None:
    canonical = _movies("A", "B", "C", "D", "E")

    result = reconcile(canonical, "E", "A", filter_active=True)

    assert _ids(result) == ["E", "A", "B", "C", "D"]


def test_filtered_move_with_missing_target_appends() -> None:
    canonical = _movies("A", "B", "C")

    result = reconcile(canonical, "A", "Z", filter_active=True)

    assert _ids(result) == ["B", "C", "A"]


def test_missing_moved_key_returns_copy() -> None:
    canonical = _movies("A", "B", "C")

    for filter_active in (True, False):
        result = reconcile(canonical, "Z", "B", filter_active=filter_active)
        assert result == canonical
        assert result is not canonical


def test_drop_on_self_is_a_no_op() -> None:
    canonical = _movies("A", "B", "C")
    assert _ids(reconcile(canonical, "B", "B", filter_active=True)) == ["A", "B", "C"]
    assert _ids(reconcile(canonical, "B", "B", filter_active=False)) == ["A", "B", "C"]


def test_unfiltered_missing_target_is_a_no_op() -> None:
    canonical = _movies("A", "B", "C")
    assert _ids(reconcile(canonical, "A", "Z", filter_active=False)) == ["A", "B", "C"]


def test_reconcile_does_not_mutate_input() -> None:
    canonical = _movies("A", "B", "C", "D")
    snapshot = [dict(item) for item in canonical]

    reconcile(canonical, "A", "D", filter_active=True)
    reconcile(canonical, "A", "D", filter_active=False)

    assert canonical == snapshot


def test_reconcile_works_on_movie_records() -> None:
    canonical = [MovieRecord(id=i, title=f"Movie {i}") for i in (10, 20, 30)]
    result = reconcile(canonical, 30, 10, filter_active=True)
    assert _ids(result) == [30, 10, 20]


@pytest.mark.parametrize("filter_active", [True, False])
def test_reconcile_preserves_key_set(filter_active: bool) -> None:
    rng = random.Random(1234)
    keys = [f"m{i}" for i in range(12)]
    for _ in range(200):
        canonical = _movies(*rng.sample(keys, k=len(keys)))
        moved = rng.choice(keys)
        target = rng.choice(keys + ["missing"])

        result = reconcile(canonical, moved, target, filter_active=filter_active)

        assert len(result) == len(canonical)
        assert sorted(_ids(result)) == sorted(keys)


def test_filtered_move_keeps_relative_order_of_untouched_items() -> None:
    rng = random.Random(99)
    keys = list("ABCDEFGHIJ")
    for _ in range(100):
        canonical = _movies(*keys)
        moved, target = rng.sample(keys, k=2)

        result = reconcile(canonical, moved, target, filter_active=True)

        untouched_before = [k for k in keys if k != moved]
        untouched_after = [k for k in _ids(result) if k != moved]
        assert untouched_after == untouched_before
        assert _ids(result).index(moved) + 1 == _ids(result).index(target)


def test_remove_duplicates_keeps_first_and_counts(caplog: pytest.LogCaptureFixture) -> None:
    items = _movies("A", "B", "A", "C")

    with caplog.at_level(logging.WARNING):
        result = remove_duplicates(items)

    assert _ids(result.items) == ["A", "B", "C"]
    assert result.removed == 1
    assert "Duplicate movie detected and removed: Movie A (ID: A)" in caplog.text


def test_remove_duplicates_without_duplicates() -> None:
    result = remove_duplicates(_movies("A", "B"))
    assert result.removed == 0
    assert _ids(result.items) == ["A", "B"]


def test_remove_duplicates_rejects_rows_without_id() -> None:
    with pytest.raises(KeyError):
        remove_duplicates([{"title": "Untitled A"}, {"title": "Untitled B"}])


def test_safe_array_move_moves_and_dedupes() -> None:
    items = _movies("A", "B", "C", "A")

    result = safe_array_move(items, 0, 2)

    # [B, C, A, A] -> duplicate A dropped
    assert _ids(result.items) == ["B", "C", "A"]
    assert result.removed == 1


@pytest.mark.parametrize("from_index,to_index", [(1, 1), (-1, 0), (0, 3), (5, 0)])
def test_safe_array_move_ignores_invalid_indexes(from_index: int, to_index: int) -> None:
    items = _movies("A", "B", "C")

    result = safe_array_move(items, from_index, to_index)

    assert result.items == items
    assert result.removed == 0
