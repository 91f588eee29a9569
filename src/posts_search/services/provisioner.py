from __future__ import annotations

import logging
from typing import Any

from posts_search.services.search_engine import SearchEngineClient

logger = logging.getLogger(__name__)


def build_index_mapping(analyzer: str = "kuromoji") -> dict[str, Any]:
    return {
        "mappings": {
            "properties": {
                "id": {"type": "integer"},
                "title": {"type": "text"},
                "body": {"type": "text"},
                "japanese_body": {"type": "text", "analyzer": analyzer},
            }
        }
    }


INDEX_MAPPING = build_index_mapping()


def ensure_index(
    engine: SearchEngineClient,
    *,
    index: str,
    mapping: dict[str, Any] | None = None,
) -> bool:
    """Create ``index`` with ``mapping`` unless it already exists.

    Returns ``True`` when the index was created by this call.
    """
    if engine.index_exists(index):
        logger.info("Index already exists: %s", index)
        return False

    engine.create_index(index, INDEX_MAPPING if mapping is None else mapping)
    logger.info("Created index %s", index)
    return True
