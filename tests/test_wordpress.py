"""Tests for wordpress module."""

from datetime import UTC, datetime

import httpx
import pytest
import respx

from revisions_digest.store import StoreError
from revisions_digest.wordpress import WordPressClient

API = "https://example.com/wp-json/wp/v2"


def page_record(item_id: int, modified: str, title: str = "About") -> dict:
    return {
        "id": item_id,
        "type": "page",
        "status": "publish",
        "modified_gmt": modified,
        "title": {"raw": title, "rendered": title},
        "link": f"https://example.com/{title.lower()}/",
    }


def revision_record(revision_id: int, modified: str, author: int, raw: str) -> dict:
    return {
        "id": revision_id,
        "author": author,
        "modified_gmt": modified,
        "content": {"raw": raw, "rendered": f"<p>{raw}</p>"},
    }


@pytest.fixture
def client() -> WordPressClient:
    return WordPressClient("https://example.com/", backoff_base=0.0)


class TestWordPressClient:
    def test_get_url(self, client: WordPressClient) -> None:
        assert client.get_url("pages/5/revisions") == f"{API}/pages/5/revisions"

    @respx.mock
    def test_list_modified_items_follows_pagination(self, client: WordPressClient) -> None:
        first = respx.get(f"{API}/pages", params={"page": "1"}).mock(
            return_value=httpx.Response(
                200,
                json=[page_record(5, "2026-10-18T08:00:00")],
                headers={"X-WP-TotalPages": "2"},
            )
        )
        respx.get(f"{API}/pages", params={"page": "2"}).mock(
            return_value=httpx.Response(
                200,
                json=[page_record(6, "2026-10-17T08:00:00", title="Contact")],
                headers={"X-WP-TotalPages": "2"},
            )
        )

        items = client.list_modified_items(datetime(2026, 10, 12, tzinfo=UTC))

        assert [item.id for item in items] == [5, 6]
        assert items[0].title == "About"
        assert items[0].url == "https://example.com/about/"
        assert items[0].modified == datetime(2026, 10, 18, 8, tzinfo=UTC)
        sent = first.calls.last.request.url.params
        assert sent["modified_after"] == "2026-10-11T23:59:59+00:00"
        assert sent["status"] == "publish"

    @respx.mock
    def test_list_modified_items_includes_cutoff_instant(self, client: WordPressClient) -> None:
        route = respx.get(f"{API}/pages").mock(
            return_value=httpx.Response(
                200,
                json=[
                    page_record(5, "2026-10-12T10:00:00"),
                    page_record(6, "2026-10-12T09:59:59", title="Contact"),
                ],
            )
        )

        items = client.list_modified_items(datetime(2026, 10, 12, 10, tzinfo=UTC))

        assert [item.id for item in items] == [5]
        sent = route.calls.last.request.url.params
        assert sent["modified_after"] == "2026-10-12T09:59:59+00:00"

    @respx.mock
    def test_list_revisions_newest_first(self, client: WordPressClient) -> None:
        respx.get(f"{API}/pages/5/revisions").mock(
            return_value=httpx.Response(
                200,
                json=[
                    revision_record(11, "2026-10-10T08:00:00", 2, "Old"),
                    revision_record(12, "2026-10-18T08:00:00", 1, "New"),
                ],
            )
        )

        revisions = client.list_revisions(5)

        assert [r.id for r in revisions] == [12, 11]
        assert revisions[0].author == "1"
        assert revisions[0].content == "New"
        assert revisions[0].item_id == 5

    @respx.mock
    def test_resolve_author(self, client: WordPressClient) -> None:
        respx.get(f"{API}/users/1").mock(return_value=httpx.Response(200, json={"name": "Ann"}))
        respx.get(f"{API}/users/2").mock(return_value=httpx.Response(404))

        assert client.resolve_author("1") == "Ann"
        assert client.resolve_author("2") is None

    @respx.mock
    def test_primary_term(self, client: WordPressClient) -> None:
        respx.get(f"{API}/categories", params={"post": "5"}).mock(
            return_value=httpx.Response(200, json=[{"name": "News"}, {"name": "Other"}])
        )
        respx.get(f"{API}/categories", params={"post": "6"}).mock(
            return_value=httpx.Response(200, json=[])
        )

        assert client.primary_term(5) == "News"
        assert client.primary_term(6) is None

    @respx.mock
    def test_retries_server_errors(self, client: WordPressClient) -> None:
        route = respx.get(f"{API}/pages/5/revisions")
        route.side_effect = [
            httpx.Response(502),
            httpx.Response(200, json=[revision_record(11, "2026-10-10T08:00:00", 1, "x")]),
        ]

        revisions = client.list_revisions(5)

        assert len(revisions) == 1
        assert route.call_count == 2

    @respx.mock
    def test_gives_up_after_retries(self, client: WordPressClient) -> None:
        route = respx.get(f"{API}/pages/5/revisions").mock(return_value=httpx.Response(500))

        with pytest.raises(StoreError, match="HTTP 500"):
            client.list_revisions(5)
        assert route.call_count == 3

    @respx.mock
    def test_client_errors_are_not_retried(self, client: WordPressClient) -> None:
        route = respx.get(f"{API}/pages/5/revisions").mock(return_value=httpx.Response(401))

        with pytest.raises(StoreError, match="HTTP 401"):
            client.list_revisions(5)
        assert route.call_count == 1

    @respx.mock
    def test_timeout(self, client: WordPressClient) -> None:
        respx.get(f"{API}/users/1").mock(side_effect=httpx.TimeoutException("too slow"))

        with pytest.raises(StoreError, match="timed out"):
            client.resolve_author("1")

    @respx.mock
    def test_sends_application_password(self) -> None:
        route = respx.get(f"{API}/users/1").mock(
            return_value=httpx.Response(200, json={"name": "Ann"})
        )
        client = WordPressClient("https://example.com", username="editor", app_password="secret")

        client.resolve_author("1")

        assert route.calls.last.request.headers["Authorization"].startswith("Basic ")

    def test_context_manager(self) -> None:
        with WordPressClient("https://example.com") as client:
            assert not client._client.is_closed
        assert client._client.is_closed
