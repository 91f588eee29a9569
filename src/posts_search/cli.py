from __future__ import annotations

import argparse
import logging
import sys

from posts_search.config import Settings, get_settings
from posts_search.services.feed_client import HttpFeedClient
from posts_search.services.ingest import JAPANESE_SAMPLES, ingest_posts
from posts_search.services.provisioner import build_index_mapping, ensure_index
from posts_search.services.query import parse_query, search_posts
from posts_search.services.search_engine import ElasticsearchClient

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="posts-search",
        description="Application for personal study of elastic search",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--crawl", action="store_true", help="Crawl mode")
    mode.add_argument("--search", action="store_true", help="Search mode")
    parser.add_argument(
        "--q",
        default=None,
        help="Query for search mode in 'key:value' format",
    )
    parser.add_argument(
        "--base-url",
        default=settings.search_base_url,
        help="Search engine base URL",
    )
    parser.add_argument(
        "--index",
        default=settings.search_index,
        help="Index holding the crawled posts",
    )
    parser.add_argument(
        "--feed-url",
        default=settings.feed_url,
        help="JSON feed crawled in --crawl mode",
    )
    return parser


def _resolve_log_level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_resolve_log_level(level),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _run(args: argparse.Namespace, settings: Settings) -> None:
    query = parse_query(args.q) if args.search else None

    with ElasticsearchClient(
        base_url=args.base_url,
        timeout_seconds=settings.search_timeout_seconds,
    ) as engine:
        ensure_index(
            engine,
            index=args.index,
            mapping=build_index_mapping(settings.search_japanese_analyzer),
        )

        if query is not None:
            posts = search_posts(engine, index=args.index, field=query.field, value=query.value)
            print(f"matched {len(posts)} posts", flush=True)
            for post in posts:
                print(post.id, flush=True)
            return

        with HttpFeedClient(
            url=args.feed_url,
            timeout_seconds=settings.feed_timeout_seconds,
        ) as feed:
            summary = ingest_posts(engine, feed, index=args.index, samples=JAPANESE_SAMPLES)

    if summary.skipped:
        print("[posts-search] crawl skipped: documents already exist", flush=True)
    else:
        print(f"[posts-search] crawl completed documents={summary.indexed_count}", flush=True)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.search and args.q is None:
        parser.error("--q is required in --search mode")

    settings = get_settings()
    _configure_logging(settings.log_level)

    try:
        _run(args, settings)
    except Exception as exc:
        print(f"[posts-search] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
