from dataclasses import dataclass
from functools import lru_cache
import os


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class Settings:
    search_base_url: str
    search_index: str
    search_japanese_analyzer: str
    search_timeout_seconds: float
    feed_url: str
    feed_timeout_seconds: float
    log_level: str


@lru_cache
def get_settings() -> Settings:
    return Settings(
        search_base_url=os.getenv("SEARCH_BASE_URL", "http://localhost:9200"),
        search_index=os.getenv("SEARCH_INDEX", "posts"),
        search_japanese_analyzer=os.getenv("SEARCH_JAPANESE_ANALYZER", "kuromoji"),
        search_timeout_seconds=_to_float(
            os.getenv("SEARCH_TIMEOUT_SECONDS"), default=30.0, minimum=1.0
        ),
        feed_url=os.getenv("FEED_URL", "https://jsonplaceholder.typicode.com/posts"),
        feed_timeout_seconds=_to_float(
            os.getenv("FEED_TIMEOUT_SECONDS"), default=30.0, minimum=1.0
        ),
        log_level=os.getenv("POSTS_SEARCH_LOG_LEVEL", "INFO").upper(),
    )
