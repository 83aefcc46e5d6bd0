"""Content, user and taxonomy sources consumed by the digest engine."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Protocol

import yaml

from revisions_digest.models import ContentItem, Revision

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when an external lookup fails."""


class ContentStore(Protocol):
    def list_modified_items(self, since: datetime) -> list[ContentItem]: ...

    def list_revisions(self, item_id: int) -> list[Revision]: ...


class UserDirectory(Protocol):
    def resolve_author(self, author_id: str) -> str | None: ...


class TaxonomyStore(Protocol):
    def primary_term(self, item_id: int) -> str | None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def as_utc(value: datetime | date | str) -> datetime:
    """Coerce a timestamp to an aware UTC datetime. Naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class FileStore:
    """Content store backed by a YAML export of pages and their revisions.

    Implements the content, user and taxonomy lookups from one file.
    """

    def __init__(
        self,
        path: Path,
        post_type: str = "page",
        status: str = "publish",
    ) -> None:
        self.path = path
        self.post_type = post_type
        self.status = status
        self._items: list[ContentItem] = []
        self._revisions: dict[int, list[Revision]] = {}
        self._users: dict[str, str] = {}
        self._terms: dict[int, list[str]] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            raise FileNotFoundError(f"Content export not found: {self.path}")

        with open(self.path) as f:
            data = yaml.safe_load(f) or {}

        self._users = {str(k): str(v) for k, v in (data.get("users") or {}).items()}
        self._terms = {int(k): list(v or []) for k, v in (data.get("categories") or {}).items()}

        for item_data in data.get("items") or []:
            try:
                item, revisions = self._parse_item(item_data)
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(f"Invalid item in {self.path}: {e}") from e
            self._items.append(item)
            self._revisions[item.id] = revisions

        logger.debug(f"Loaded {len(self._items)} items from {self.path}")

    def _parse_item(self, data: dict[str, Any]) -> tuple[ContentItem, list[Revision]]:
        item_id = int(data["id"])
        revisions = [
            Revision(
                id=int(rev["id"]),
                item_id=item_id,
                modified=as_utc(rev["modified"]),
                author=str(rev["author"]),
                content=rev.get("content") or "",
            )
            for rev in data.get("revisions") or []
        ]
        revisions.sort(key=lambda r: r.modified, reverse=True)

        if "modified" in data:
            modified = as_utc(data["modified"])
        elif revisions:
            modified = revisions[0].modified
        else:
            raise ValueError(f"item {item_id} has neither a modified date nor revisions")

        item = ContentItem(
            id=item_id,
            type=data.get("type", "page"),
            status=data.get("status", "publish"),
            modified=modified,
            title=data.get("title", ""),
            url=data.get("url", ""),
        )
        return item, revisions

    def list_modified_items(self, since: datetime) -> list[ContentItem]:
        return [
            item
            for item in self._items
            if item.type == self.post_type and item.status == self.status and item.modified >= since
        ]

    def list_revisions(self, item_id: int) -> list[Revision]:
        if item_id not in self._revisions:
            raise StoreError(f"No revisions stored for item {item_id}")
        return list(self._revisions[item_id])

    def resolve_author(self, author_id: str) -> str | None:
        return self._users.get(str(author_id))

    def primary_term(self, item_id: int) -> str | None:
        terms = self._terms.get(item_id)
        return terms[0] if terms else None
