"""Tests for store module."""

from datetime import UTC, date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from revisions_digest.store import FileStore, StoreError, SystemClock, as_utc

EXPORT = """
users:
  1: Ann
  2: Bo
categories:
  10: [News, Updates]
  11: []
items:
  - id: 10
    title: About
    url: https://example.com/about
    revisions:
      - id: 101
        modified: "2026-10-10T08:00:00Z"
        author: 2
        content: "Old"
      - id: 102
        modified: 2026-10-18T08:00:00Z
        author: 1
        content: "New"
  - id: 11
    status: draft
    revisions:
      - id: 111
        modified: "2026-10-18T09:00:00"
        author: 1
        content: "Draft"
  - id: 12
    type: post
    modified: "2026-10-18T09:00:00+02:00"
    revisions: []
  - id: 13
    revisions:
      - id: 131
        modified: "2026-09-01T00:00:00Z"
        author: 1
        content: "Stale"
"""


@pytest.fixture
def export_path(tmp_path: Path) -> Path:
    path = tmp_path / "export.yaml"
    path.write_text(EXPORT)
    return path


class TestAsUtc:
    def test_naive_datetime_is_utc(self) -> None:
        assert as_utc(datetime(2026, 1, 1, 12)) == datetime(2026, 1, 1, 12, tzinfo=UTC)

    def test_converts_offset(self) -> None:
        value = datetime(2026, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(value) == datetime(2026, 1, 1, 10, tzinfo=UTC)

    def test_parses_iso_string_with_z(self) -> None:
        assert as_utc("2026-01-01T12:00:00Z") == datetime(2026, 1, 1, 12, tzinfo=UTC)

    def test_date(self) -> None:
        assert as_utc(date(2026, 1, 1)) == datetime(2026, 1, 1, tzinfo=UTC)


class TestClocks:
    def test_system_clock_is_aware(self) -> None:
        assert SystemClock().now().tzinfo is not None


class TestFileStore:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            FileStore(tmp_path / "missing.yaml")

    def test_lists_published_pages_modified_since(self, export_path: Path) -> None:
        store = FileStore(export_path)

        items = store.list_modified_items(datetime(2026, 10, 11, tzinfo=UTC))

        assert [item.id for item in items] == [10]
        assert items[0].title == "About"
        assert items[0].url == "https://example.com/about"
        assert items[0].modified == datetime(2026, 10, 18, 8, tzinfo=UTC)

    def test_modified_at_cutoff_is_included(self, export_path: Path) -> None:
        store = FileStore(export_path)

        items = store.list_modified_items(datetime(2026, 10, 18, 8, tzinfo=UTC))

        assert [item.id for item in items] == [10]

    def test_post_type_and_status_filters(self, export_path: Path) -> None:
        drafts = FileStore(export_path, status="draft")
        posts = FileStore(export_path, post_type="post")
        since = datetime(2026, 10, 1, tzinfo=UTC)

        assert [item.id for item in drafts.list_modified_items(since)] == [11]
        assert [item.id for item in posts.list_modified_items(since)] == [12]

    def test_revisions_newest_first(self, export_path: Path) -> None:
        store = FileStore(export_path)

        revisions = store.list_revisions(10)

        assert [r.id for r in revisions] == [102, 101]
        assert revisions[0].author == "1"
        assert revisions[1].content == "Old"

    def test_unknown_item_revisions(self, export_path: Path) -> None:
        with pytest.raises(StoreError):
            FileStore(export_path).list_revisions(999)

    def test_users_and_terms(self, export_path: Path) -> None:
        store = FileStore(export_path)

        assert store.resolve_author("1") == "Ann"
        assert store.resolve_author("3") is None
        assert store.primary_term(10) == "News"
        assert store.primary_term(11) is None
        assert store.primary_term(13) is None

    def test_invalid_item(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("items:\n  - id: 1\n    revisions: []\n")

        with pytest.raises(StoreError):
            FileStore(path)
