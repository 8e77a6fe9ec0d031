"""Tests for paginated collection fetches."""
import httpx
import pytest

from conftest import failure, ok
from soundcave_admin.core.errors import FetchError
from soundcave_admin.core.list_fetcher import RemoteListFetcher
from soundcave_admin.models.query import Query


class TestFetch:
    """Test RemoteListFetcher.fetch."""

    async def test_sends_query_params(self, client, backend) -> None:
        fetcher = RemoteListFetcher(client, "musics")
        await fetcher.fetch(Query(search_term="love", filters={"genre": "Pop"}, page=2))

        params = backend.sent()[0].url.params
        assert backend.paths() == ["/api/musics"]
        assert params["page"] == "2"
        assert params["limit"] == "10"
        assert params["sort_by"] == "created_at"
        assert params["order"] == "desc"
        assert params["search"] == "love"
        assert params["genre"] == "Pop"

    async def test_genres_search_param(self, client, backend) -> None:
        fetcher = RemoteListFetcher(client, "genres", search_param="q")
        await fetcher.fetch(Query(search_term="jazz"))

        params = backend.sent()[0].url.params
        assert params["q"] == "jazz"
        assert "search" not in params

    async def test_pagination_from_backend(self, client, backend) -> None:
        for i in range(97):
            backend.add("albums", title=f"Album {i}")
        fetcher = RemoteListFetcher(client, "albums")

        result = await fetcher.fetch(Query(page=10))

        assert len(result.items) == 7
        assert result.total_count == 97
        assert result.total_pages == 10
        assert (result.first_index, result.last_index) == (91, 97)

    async def test_last_page_disables_next(self, make_client) -> None:
        rows = [{"id": i} for i in range(11, 19)]
        client = make_client(
            lambda request: ok(rows, pagination={"page": 2, "limit": 10, "total": 18, "pages": 2})
        )
        result = await RemoteListFetcher(client, "albums").fetch(Query(page=2))

        assert len(result.items) == 8
        assert result.page == 2
        assert result.total_pages == 2
        assert not result.has_next
        assert result.has_previous

    async def test_missing_pagination_is_derived(self, make_client) -> None:
        client = make_client(lambda request: ok([{"id": 1}, {"id": 2}]))
        result = await RemoteListFetcher(client, "genres").fetch(Query())

        assert result.total_count == 2
        assert result.total_pages == 1
        assert result.page == 1

    async def test_extra_rows_are_dropped(self, make_client) -> None:
        rows = [{"id": i} for i in range(15)]
        client = make_client(lambda request: ok(rows, pagination={"page": 1, "limit": 10, "total": 15}))
        result = await RemoteListFetcher(client, "genres").fetch(Query())

        assert len(result.items) == 10
        assert result.total_pages == 2

    async def test_parse_item_skips_malformed_rows(self, make_client) -> None:
        client = make_client(lambda request: ok([{"id": 1, "name": "Rock"}, {"name": "no id"}]))
        fetcher = RemoteListFetcher(client, "genres", parse_item=lambda item: (item["id"], item["name"]))

        result = await fetcher.fetch(Query())

        assert result.items == [(1, "Rock")]

    async def test_failure_raises_fetch_error(self, make_client) -> None:
        client = make_client(lambda request: failure(500, "Database unavailable"))
        fetcher = RemoteListFetcher(client, "music-videos")

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(Query())

        assert exc_info.value.message == "Database unavailable"
        assert exc_info.value.title == "Failed to Fetch Music Videos"


class TestFetchOptions:
    """Test option lists for selects."""

    async def test_options_use_name_or_title(self, make_client) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return ok([{"id": 1, "name": "Adele"}, {"id": 2, "title": "Untitled"}, {"id": 3}])

        client = make_client(handler)
        options = await RemoteListFetcher(client, "artists").fetch_options()

        assert options == [
            {"id": 1, "name": "Adele"},
            {"id": 2, "name": "Untitled"},
            {"id": 3, "name": ""},
        ]
        assert requests[0].url.params["limit"] == "100"
