"""Shared fixtures for digest tests."""

from datetime import UTC, datetime, timedelta

import pytest

from revisions_digest.models import ContentItem, Revision
from revisions_digest.store import StoreError, as_utc

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime) -> None:
        self.instant = as_utc(instant)

    def now(self) -> datetime:
        return self.instant


class InMemoryStore:
    """Content, user and taxonomy store held in dictionaries."""

    def __init__(self) -> None:
        self.items: list[ContentItem] = []
        self.revisions: dict[int, list[Revision]] = {}
        self.users: dict[str, str] = {}
        self.terms: dict[int, str] = {}
        self.broken_items: set[int] = set()
        self._next_revision_id = 1000

    def add_item(
        self, item_id: int, revisions: list[tuple[float, str, str]], title: str = ""
    ) -> ContentItem:
        """Add an item with (days_ago, author, content) revisions given newest first."""
        stored = []
        for age, author, content in revisions:
            self._next_revision_id += 1
            stored.append(Revision(self._next_revision_id, item_id, days_ago(age), author, content))
        item = ContentItem(
            id=item_id,
            type="page",
            status="publish",
            modified=stored[0].modified if stored else NOW,
            title=title or f"Page {item_id}",
            url=f"https://example.com/?page_id={item_id}",
        )
        self.items.append(item)
        self.revisions[item_id] = stored
        return item

    def list_modified_items(self, since: datetime) -> list[ContentItem]:
        return [item for item in self.items if item.modified >= since]

    def list_revisions(self, item_id: int) -> list[Revision]:
        if item_id in self.broken_items:
            raise StoreError(f"revisions unavailable for {item_id}")
        return list(self.revisions.get(item_id, []))

    def resolve_author(self, author_id: str) -> str | None:
        return self.users.get(author_id)

    def primary_term(self, item_id: int) -> str | None:
        return self.terms.get(item_id)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.users = {"1": "Ann", "2": "Bo", "3": "Cy"}
    return store
