"""
Canonical ordering for a movie list that is reordered through a filtered view.

The canonical list is the only source of display order. A drag in a
genre-filtered view is expressed as (moved key, target key) and merged back
so that every item outside the drag keeps its relative position.

Nothing here mutates its inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def movie_key(item: Any) -> Hashable:
    if isinstance(item, Mapping):
        return item["id"]
    return item.id


@dataclass(frozen=True)
class DedupeResult:
    items: list[Any] = field(default_factory=list)
    removed: int = 0


def _index_of(items: Sequence[T], wanted: Hashable, key: Callable[[T], Hashable]) -> int:
    for index, item in enumerate(items):
        if key(item) == wanted:
            return index
    return -1


def _move(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return moved


def remove_duplicates(items: Sequence[T], *, key: Callable[[T], Hashable] = movie_key) -> DedupeResult:
    """
    Drop later occurrences of a key, keeping the first.

    A non-zero `removed` means some upstream step broke the unique-key rule.
    """

    seen: set[Hashable] = set()
    unique: list[T] = []
    removed = 0
    for item in items:
        item_key = key(item)
        if item_key in seen:
            removed += 1
            title = item.get("title") if isinstance(item, Mapping) else getattr(item, "title", None)
            logger.warning(f"Duplicate movie detected and removed: {title} (ID: {item_key})")
            continue
        seen.add(item_key)
        unique.append(item)
    return DedupeResult(items=unique, removed=removed)


def safe_array_move(
    items: Sequence[T],
    from_index: int,
    to_index: int,
    *,
    key: Callable[[T], Hashable] = movie_key,
) -> DedupeResult:
    if from_index == to_index:
        return DedupeResult(items=list(items))
    if not 0 <= from_index < len(items) or not 0 <= to_index < len(items):
        return DedupeResult(items=list(items))
    return remove_duplicates(_move(items, from_index, to_index), key=key)


def reconcile(
    canonical: Sequence[T],
    moved_key: Hashable,
    target_key: Hashable,
    *,
    filter_active: bool,
    key: Callable[[T], Hashable] = movie_key,
) -> list[T]:
    """
    Return a new canonical list with `moved_key` dropped onto `target_key`.

    Without a filter the view positions are canonical positions, so this is a
    plain move to the target's index. With a filter the moved item is taken out
    first and inserted immediately before the target in what remains; if the
    target cannot be found the moved item goes to the end instead of being lost.
    """

    from_index = _index_of(canonical, moved_key, key)
    if from_index == -1 or moved_key == target_key:
        return list(canonical)

    if not filter_active:
        to_index = _index_of(canonical, target_key, key)
        if to_index == -1 or to_index == from_index:
            return list(canonical)
        return _move(canonical, from_index, to_index)

    moved = canonical[from_index]
    remaining = [item for index, item in enumerate(canonical) if index != from_index]
    target_index = _index_of(remaining, target_key, key)
    if target_index == -1:
        logger.warning(f"Reorder target {target_key!r} not in canonical list; appending {moved_key!r} at the end.")
        remaining.append(moved)
        return remaining

    remaining.insert(target_index, moved)
    return remaining
