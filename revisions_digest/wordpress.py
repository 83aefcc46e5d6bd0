"""WordPress REST API client providing content, users and categories."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Self

import httpx

from revisions_digest.models import ContentItem, Revision
from revisions_digest.store import StoreError, as_utc

logger = logging.getLogger(__name__)

PER_PAGE = 100


class WordPressClient:
    """Read pages, revisions, users and categories from a WordPress site."""

    def __init__(
        self,
        base_url: str,
        post_type: str = "pages",
        status: str = "publish",
        username: str | None = None,
        app_password: str | None = None,
        timeout: float = 30.0,
        retry_count: int = 3,
        backoff_base: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.post_type = post_type
        self.status = status
        self.retry_count = max(1, retry_count)
        self.backoff_base = backoff_base
        auth = (username, app_password) if username and app_password else None
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            auth=auth,
            transport=transport,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_url(self, route: str) -> str:
        return f"{self.base_url}/wp-json/wp/v2/{route.lstrip('/')}"

    def _get(self, route: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """GET a route with exponential backoff retry on server and transport errors."""
        url = self.get_url(route)
        last_error = ""

        for attempt in range(self.retry_count):
            try:
                response = self._client.get(url, params=params)
            except httpx.TimeoutException as e:
                last_error = f"Connection timed out: {e}"
            except httpx.RequestError as e:
                last_error = str(e)
            else:
                if response.status_code < 500:
                    return response
                last_error = f"HTTP {response.status_code}"

            if attempt < self.retry_count - 1:
                logger.debug(f"Retrying {url} after error: {last_error}")
                time.sleep(self.backoff_base * (2**attempt))

        raise StoreError(f"GET {url} failed: {last_error}")

    def _get_json(self, route: str, params: dict[str, Any] | None = None) -> Any:
        response = self._get(route, params)
        if response.status_code != 200:
            raise StoreError(f"GET {response.url} failed: HTTP {response.status_code}")
        return response.json()

    def _get_all(self, route: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Follow X-WP-TotalPages pagination."""
        records: list[dict[str, Any]] = []
        page = 1
        while True:
            response = self._get(route, {**params, "per_page": PER_PAGE, "page": page})
            if response.status_code != 200:
                raise StoreError(f"GET {response.url} failed: HTTP {response.status_code}")
            records.extend(response.json())
            total_pages = int(response.headers.get("X-WP-TotalPages", "1"))
            if page >= total_pages:
                return records
            page += 1

    def list_modified_items(self, since: datetime) -> list[ContentItem]:
        since = as_utc(since)
        # modified_after is exclusive and naive values are read in the site timezone
        after = (since - timedelta(seconds=1)).replace(microsecond=0)
        records = self._get_all(
            self.post_type,
            {
                "status": self.status,
                "modified_after": after.isoformat(),
                "context": "edit",
            },
        )
        items = [
            ContentItem(
                id=int(record["id"]),
                type=record.get("type", self.post_type),
                status=record.get("status", self.status),
                modified=as_utc(record["modified_gmt"]),
                title=_raw(record.get("title")),
                url=record.get("link", ""),
            )
            for record in records
        ]
        return [item for item in items if item.modified >= since]

    def list_revisions(self, item_id: int) -> list[Revision]:
        records = self._get_all(f"{self.post_type}/{item_id}/revisions", {"context": "edit"})
        revisions = [
            Revision(
                id=int(record["id"]),
                item_id=item_id,
                modified=as_utc(record["modified_gmt"]),
                author=str(record["author"]),
                content=_raw(record.get("content")),
            )
            for record in records
        ]
        revisions.sort(key=lambda r: r.modified, reverse=True)
        return revisions

    def resolve_author(self, author_id: str) -> str | None:
        response = self._get(f"users/{author_id}", {"context": "edit"})
        if response.status_code in (401, 403, 404):
            return None
        if response.status_code != 200:
            raise StoreError(f"GET {response.url} failed: HTTP {response.status_code}")
        return response.json().get("name") or None

    def primary_term(self, item_id: int) -> str | None:
        terms = self._get_json("categories", {"post": item_id})
        if not terms:
            return None
        return terms[0].get("name") or None


def _raw(field: Any) -> str:
    # Prefer the stored markup over the filtered rendering
    if isinstance(field, dict):
        raw = field.get("raw")
        return raw if raw is not None else field.get("rendered", "")
    return field or ""
