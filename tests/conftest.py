from collections.abc import Iterator
import json
from typing import Any
from urllib.parse import parse_qs, urlsplit

from elastic_transport import ApiResponseMeta, BaseNode, HttpHeaders
from elastic_transport import ConnectionError as TransportConnectionError
from elastic_transport._node import NodeApiResponse
import pytest

from posts_search.config import get_settings
from posts_search.services.search_engine import ElasticsearchClient, SearchEngineError
from posts_search.services.types import Post

ES_BASE_URL = "http://es.test:9200"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeSearchEngine:
    """In-memory stand-in for the search engine client protocol."""

    def __init__(self) -> None:
        self.indices: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.create_calls: list[str] = []
        self.write_calls: list[tuple[str, str, dict[str, Any], bool]] = []
        self.search_calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_on_write: str | None = None

    def index_exists(self, index: str) -> bool:
        return index in self.indices

    def create_index(self, index: str, body: dict[str, Any]) -> None:
        self.create_calls.append(index)
        self.indices[index] = body
        self.documents.setdefault(index, {})

    def document_exists(self, index: str, doc_id: str) -> bool:
        return doc_id in self.documents.get(index, {})

    def index_document(
        self,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        *,
        refresh: bool = True,
    ) -> None:
        self.write_calls.append((index, doc_id, document, refresh))
        if doc_id == self.fail_on_write:
            raise SearchEngineError(f"Error: index document {doc_id} failed: [500] boom")
        self.documents.setdefault(index, {})[doc_id] = document

    def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        self.search_calls.append((index, body))
        ((field, value),) = body["query"]["match"].items()
        hits = [
            {"_id": doc_id, "_source": source}
            for doc_id, source in self.documents.get(index, {}).items()
            if _matches(source.get(field), value)
        ]
        return {"hits": {"total": {"value": len(hits)}, "hits": hits}}


class FakeFeed:
    def __init__(self, records: list[dict[str, Any]]) -> None:
        self._records = records
        self.fetch_count = 0

    def fetch_posts(self) -> list[Post]:
        self.fetch_count += 1
        return [Post.model_validate(record) for record in self._records]


class FakeElasticsearch:
    """Backend behind a mocked transport node emulating the endpoints the client uses."""

    def __init__(self) -> None:
        self.indices: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.requests: list[tuple[str, str]] = []
        self.refresh_params: list[str | None] = []
        self.failures: dict[tuple[str, str], tuple[int, dict[str, Any]]] = {}
        self.unreachable = False
        self.closed_nodes = 0

    def node_class(self) -> type[BaseNode]:
        return type("_BoundFakeNode", (_FakeNode,), {"backend": self})

    def writes(self) -> list[str]:
        return [path for method, path in self.requests if method == "PUT" and "/_doc/" in path]

    def handle(
        self, method: str, target: str, body: bytes | None
    ) -> tuple[int, dict[str, Any] | None]:
        split = urlsplit(target)
        key = (method, split.path)
        self.requests.append(key)
        if self.unreachable:
            raise TransportConnectionError("connection refused")
        if key in self.failures:
            return self.failures[key]
        params = parse_qs(split.query)
        payload = json.loads(body) if body else None
        return self._route(method, split.path, params, payload)

    def _route(
        self,
        method: str,
        path: str,
        params: dict[str, list[str]],
        payload: dict[str, Any] | None,
    ) -> tuple[int, dict[str, Any] | None]:
        parts = path.strip("/").split("/")
        index = parts[0]

        if len(parts) == 1 and method == "HEAD":
            return (200 if index in self.indices else 404), None

        if len(parts) == 1 and method == "PUT":
            if index in self.indices:
                return 400, {"error": {"type": "resource_already_exists_exception"}, "status": 400}
            self.indices[index] = payload or {}
            self.documents[index] = {}
            return 200, {"acknowledged": True, "index": index}

        if len(parts) == 3 and parts[1] == "_doc" and method == "HEAD":
            return (200 if parts[2] in self.documents.get(index, {}) else 404), None

        if len(parts) == 3 and parts[1] == "_doc" and method == "PUT":
            self.refresh_params.append(params.get("refresh", [None])[0])
            self.documents.setdefault(index, {})[parts[2]] = payload or {}
            return 201, {"_index": index, "_id": parts[2], "result": "created"}

        if len(parts) == 2 and parts[1] == "_search" and method in {"GET", "POST"}:
            if index not in self.indices:
                return 404, {"error": {"type": "index_not_found_exception"}, "status": 404}
            ((field, value),) = (payload or {})["query"]["match"].items()
            hits = [
                {"_index": index, "_id": doc_id, "_score": 1.0, "_source": source}
                for doc_id, source in self.documents[index].items()
                if _matches(source.get(field), value)
            ]
            return 200, {"hits": {"total": {"value": len(hits), "relation": "eq"}, "hits": hits}}

        return 405, {"error": f"unsupported {method} {path}"}


class _FakeNode(BaseNode):
    backend: FakeElasticsearch

    def perform_request(
        self,
        method: str,
        target: str,
        body: bytes | None = None,
        headers: object = None,
        request_timeout: object = None,
    ) -> NodeApiResponse:
        status, payload = self.backend.handle(method, target, body)
        meta = ApiResponseMeta(
            status=status,
            http_version="1.1",
            headers=HttpHeaders(
                {"content-type": "application/json", "x-elastic-product": "Elasticsearch"}
            ),
            duration=0.0,
            node=self.config,
        )
        data = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return NodeApiResponse(meta, data)

    def close(self) -> None:
        self.backend.closed_nodes += 1


def _matches(field_value: object, query_value: str) -> bool:
    if field_value is None:
        return False
    terms = set(str(field_value).lower().split())
    return any(term in terms for term in query_value.lower().split())


@pytest.fixture
def fake_engine() -> FakeSearchEngine:
    return FakeSearchEngine()


@pytest.fixture
def make_feed():
    return FakeFeed


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def es_client(fake_es: FakeElasticsearch) -> Iterator[ElasticsearchClient]:
    with ElasticsearchClient(base_url=ES_BASE_URL, node_class=fake_es.node_class()) as client:
        yield client
