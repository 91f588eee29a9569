from posts_search.services.ingest import JAPANESE_SAMPLES, ingest_posts
from posts_search.services.provisioner import INDEX_MAPPING, ensure_index
from posts_search.services.query import parse_query, search_posts
from posts_search.services.types import IngestionSummary, Post, QuerySpec

__all__ = [
    "INDEX_MAPPING",
    "IngestionSummary",
    "JAPANESE_SAMPLES",
    "Post",
    "QuerySpec",
    "ensure_index",
    "ingest_posts",
    "parse_query",
    "search_posts",
]
