"""
Ingestion helpers for building the curated movie list.
"""

from movie_curator.ingestion.enrich_titles import EnrichSummary, enrich_titles
from movie_curator.ingestion.save_batch import (
    ReorderRequest,
    SaveBatchRequest,
    SavedMovie,
    build_reorder_request,
    build_save_batch,
)

__all__ = [
    "EnrichSummary",
    "ReorderRequest",
    "SaveBatchRequest",
    "SavedMovie",
    "build_reorder_request",
    "build_save_batch",
    "enrich_titles",
]
