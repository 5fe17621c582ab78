#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from movie_curator.dispatch.dispatcher import AuthorizationError, DispatcherConfig, RequestDispatcher
from movie_curator.ingestion.enrich_titles import EnrichSummary, enrich_titles
from movie_curator.ingestion.save_batch import build_save_batch
from movie_curator.integrations.tmdb.client import TmdbMovieClient, resolve_api_key
from movie_curator.ordering.movie_list import filter_by_genres
from movie_curator.utils.env import load_env

logger = logging.getLogger("enrich_movie_list")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="enrich_movie_list",
        description="Resolve movie titles against TMDb and print the save-all batch payload.",
    )
    parser.add_argument("--title", action="append", default=[], help="Movie title to look up. Repeatable.")
    parser.add_argument("--language", default="en-US", help="TMDb language tag (default: en-US).")
    parser.add_argument(
        "--genre",
        action="append",
        default=[],
        help="Only include movies in this genre. Repeatable; a movie matching any genre is kept.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def _require_tmdb_auth() -> str:
    api_key = resolve_api_key()
    if not api_key:
        raise RuntimeError("TMDB_API_KEY must be set to look up movies.")
    return api_key


async def _run(args: argparse.Namespace, api_key: str) -> EnrichSummary:
    dispatcher = RequestDispatcher(DispatcherConfig.from_env())
    client = TmdbMovieClient(dispatcher, api_key=api_key)

    def _progress(current: int, total: int) -> None:
        logger.debug(f"Fetching {current}/{total}")

    summary = await enrich_titles(args.title, client, language=args.language, on_progress=_progress)
    await dispatcher.join()
    return summary


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env()
    api_key = _require_tmdb_auth()

    try:
        summary = asyncio.run(_run(args, api_key))
    except AuthorizationError as exc:
        print(f"enrich_movie_list: TMDb rejected the API key ({exc})", file=sys.stderr)
        return 2

    if args.verbose:
        print(
            "enrich_movie_list: "
            f"attempted={summary.attempted} found={summary.found} failed={len(summary.failed_titles)} "
            f"duplicates_removed={summary.duplicates_removed}",
            file=sys.stderr,
        )
    for title in summary.failed_titles:
        print(f"enrich_movie_list: not found: {title}", file=sys.stderr)

    if not summary.movies:
        print("enrich_movie_list: no movies found in TMDb; check the API key or titles.", file=sys.stderr)
        return 1

    view = filter_by_genres(summary.movies, args.genre)
    batch = build_save_batch(view, language=args.language)
    print(json.dumps(batch.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
