from __future__ import annotations

from collections.abc import Sequence
import logging

from posts_search.services.feed_client import FeedClient
from posts_search.services.search_engine import SearchEngineClient
from posts_search.services.types import IngestionSummary

logger = logging.getLogger(__name__)

MARKER_DOCUMENT_ID = "1"

JAPANESE_SAMPLES: tuple[str, ...] = (
    "吾輩は猫である。名前はまだ無い。",
    "どこで生れたかとんと見当がつかぬ。",
    "雨ニモマケズ風ニモマケズ雪ニモ夏ノ暑サニモマケヌ丈夫ナカラダヲモチ",
    "人間は皆、死ぬべき運命にある。 ",
    "おれは人間である、猿ではない。 ",
    "彼の掌に載せられてしまった私は、もう逃げるべくもなくなってしまった。",
    "旅をするということは、ただ単に移動することだけではない。",
    "月がきれいですね。",
    "山路を登りながら、こう考えた。",
    "人間は皆、自分自身の幸せを求める生き物だ。",
)


def select_sample(samples: Sequence[str], position: int) -> str:
    if not samples:
        raise ValueError("samples must not be empty")
    return samples[position % len(samples)]


def ingest_posts(
    engine: SearchEngineClient,
    feed: FeedClient,
    *,
    index: str,
    samples: Sequence[str] = JAPANESE_SAMPLES,
    marker_id: str = MARKER_DOCUMENT_ID,
) -> IngestionSummary:
    """Copy every feed post into ``index``, one refreshed write per post.

    The presence of ``marker_id`` is taken to mean the feed was already
    ingested, in which case nothing is fetched or written.
    """
    if not samples:
        raise ValueError("samples must not be empty")

    if engine.document_exists(index, marker_id):
        logger.info("Documents already exist in %s", index)
        return IngestionSummary(indexed_count=0, skipped=True)

    posts = feed.fetch_posts()
    logger.info("Fetched %d posts from feed", len(posts))

    for position, post in enumerate(posts):
        document = post.model_copy(update={"japanese_body": select_sample(samples, position)})
        engine.index_document(index, str(document.id), document.model_dump(), refresh=True)
        logger.debug("Indexed post %s", document.id)

    logger.info("Indexed %d posts into %s", len(posts), index)
    return IngestionSummary(indexed_count=len(posts), skipped=False)
