from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class Post(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    body: str
    japanese_body: str = ""


@dataclass(frozen=True)
class IngestionSummary:
    indexed_count: int
    skipped: bool


@dataclass(frozen=True)
class QuerySpec:
    field: str
    value: str
