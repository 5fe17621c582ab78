"""
Domain models shared across scripts and services.
"""

from movie_curator.models.movies import Genre, MovieRecord, MovieSuggestion

__all__ = [
    "Genre",
    "MovieRecord",
    "MovieSuggestion",
]
