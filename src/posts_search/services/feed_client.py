from __future__ import annotations

import json
from typing import Protocol

import httpx
from pydantic import ValidationError

from posts_search.services.types import Post


class FeedClientError(RuntimeError):
    pass


class FeedClient(Protocol):
    def fetch_posts(self) -> list[Post]: ...


class HttpFeedClient:
    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout_seconds)

    def __enter__(self) -> HttpFeedClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self._http_client.close()

    def fetch_posts(self) -> list[Post]:
        request = self._http_client.build_request("GET", self._url, timeout=self._timeout_seconds)
        try:
            response = self._http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise FeedClientError(str(exc)) from exc

        try:
            content = response.read()
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FeedClientError(str(exc)) from exc
        finally:
            response.close()

        try:
            payload = json.loads(content)
        except ValueError as exc:
            raise FeedClientError(f"Invalid feed payload: {exc}") from exc
        if not isinstance(payload, list):
            raise FeedClientError("Invalid feed payload: expected a JSON array of posts")

        try:
            return [Post.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise FeedClientError(f"Invalid feed payload: {exc}") from exc
