from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import json
import logging
from typing import Any, Protocol

from elastic_transport import BaseNode
from elasticsearch import ApiError, Elasticsearch, TransportError

logger = logging.getLogger(__name__)


class SearchEngineError(RuntimeError):
    pass


class SearchEngineClient(Protocol):
    def index_exists(self, index: str) -> bool: ...

    def create_index(self, index: str, body: dict[str, Any]) -> None: ...

    def document_exists(self, index: str, doc_id: str) -> bool: ...

    def index_document(
        self,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        *,
        refresh: bool = True,
    ) -> None: ...

    def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]: ...


def _body_text(body: object) -> str:
    if isinstance(body, (dict, list)):
        return json.dumps(body, ensure_ascii=False)
    return str(body)


@contextmanager
def _engine_errors(action: str) -> Iterator[None]:
    try:
        yield
    except ApiError as exc:
        raise SearchEngineError(
            f"Error: {action} failed: [{exc.meta.status}] {_body_text(exc.body)}"
        ) from exc
    except TransportError as exc:
        raise SearchEngineError(f"Error: {action} failed: {exc}") from exc


class ElasticsearchClient:
    """Adapter from the official Elasticsearch client to ``SearchEngineClient``.

    Retries are disabled: every call is attempted once and its failure is
    reported as ``SearchEngineError``.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        node_class: type[BaseNode] | str = "urllib3",
    ) -> None:
        self._es = Elasticsearch(
            base_url.rstrip("/"),
            request_timeout=timeout_seconds,
            max_retries=0,
            retry_on_timeout=False,
            node_class=node_class,
        )

    def __enter__(self) -> ElasticsearchClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._es.close()

    def index_exists(self, index: str) -> bool:
        with _engine_errors(f"check index {index}"):
            try:
                return bool(self._es.indices.exists(index=index))
            except ApiError as exc:
                logger.warning("Index existence check returned status %s", exc.meta.status)
                return exc.meta.status != 404

    def create_index(self, index: str, body: dict[str, Any]) -> None:
        with _engine_errors(f"create index {index}"):
            self._es.indices.create(index=index, **body)

    def document_exists(self, index: str, doc_id: str) -> bool:
        with _engine_errors(f"check document {doc_id}"):
            try:
                return bool(self._es.exists(index=index, id=doc_id))
            except ApiError as exc:
                logger.warning("Document existence check returned status %s", exc.meta.status)
                return exc.meta.status != 404

    def index_document(
        self,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        *,
        refresh: bool = True,
    ) -> None:
        with _engine_errors(f"index document {doc_id}"):
            self._es.index(index=index, id=doc_id, document=document, refresh=refresh)
        logger.debug("Indexed document %s into %s", doc_id, index)

    def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        with _engine_errors(f"search {index}"):
            response = self._es.search(index=index, **body)

        payload = response.body
        if not isinstance(payload, dict):
            raise SearchEngineError("Invalid search response payload: expected a JSON object")
        return payload
