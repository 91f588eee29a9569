from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from posts_search.services.search_engine import SearchEngineClient, SearchEngineError
from posts_search.services.types import Post, QuerySpec


def parse_query(raw: str) -> QuerySpec:
    parts = raw.split(":")
    if len(parts) != 2:
        raise ValueError("Invalid query format. Expected key:value")
    return QuerySpec(field=parts[0], value=parts[1])


def build_match_query(field: str, value: str) -> dict[str, Any]:
    return {"query": {"match": {field: value}}}


def _decode_hits(payload: dict[str, Any]) -> list[Post]:
    outer = payload.get("hits")
    hits = outer.get("hits") if isinstance(outer, dict) else None
    if not isinstance(hits, list):
        raise SearchEngineError("Invalid search response payload: missing hits")

    posts: list[Post] = []
    for hit in hits:
        source = hit.get("_source") if isinstance(hit, dict) else None
        if not isinstance(source, dict):
            raise SearchEngineError("Invalid search response payload: missing _source")
        try:
            posts.append(Post.model_validate(source))
        except ValidationError as exc:
            raise SearchEngineError(f"Invalid search hit: {exc}") from exc

    return posts


def search_posts(
    engine: SearchEngineClient,
    *,
    index: str,
    field: str,
    value: str,
) -> list[Post]:
    payload = engine.search(index, build_match_query(field, value))
    return _decode_hits(payload)
