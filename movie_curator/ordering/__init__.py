"""
Ordering helpers for the curated movie list.
"""

from movie_curator.ordering.movie_list import (
    DuplicateMovieError,
    ReorderResult,
    add_movie,
    filter_by_genres,
    movie_exists,
    remove_movie,
    reorder,
    replace_movie,
    validate_movie,
)
from movie_curator.ordering.reconcile import (
    DedupeResult,
    movie_key,
    reconcile,
    remove_duplicates,
    safe_array_move,
)

__all__ = [
    "DedupeResult",
    "DuplicateMovieError",
    "ReorderResult",
    "add_movie",
    "filter_by_genres",
    "movie_exists",
    "movie_key",
    "reconcile",
    "remove_duplicates",
    "remove_movie",
    "reorder",
    "replace_movie",
    "safe_array_move",
    "validate_movie",
]
