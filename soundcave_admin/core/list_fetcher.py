"""Paginated list queries against a collection endpoint."""
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from soundcave_admin.config import LOOKUP_LIMIT
from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.errors import ApiError, FetchError
from soundcave_admin.models.query import PagedResult, Query, total_pages_for

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteListFetcher(Generic[T]):
    """GET /api/<collection> with page/limit/sort/search/filter params -> PagedResult.

    parse_item turns one raw row into T; rows that fail to parse are skipped.
    """

    def __init__(
        self,
        client: SoundCaveClient,
        collection: str,
        *,
        search_param: str = "search",
        parse_item: Optional[Callable[[dict], T]] = None,
        label: Optional[str] = None,
    ) -> None:
        self._client = client
        self.collection = collection
        self.search_param = search_param
        self._parse_item = parse_item
        self._label = label or collection.replace("-", " ")

    @property
    def path(self) -> str:
        return f"/api/{self.collection}"

    def _parse(self, raw: Any) -> List[T]:
        if not isinstance(raw, list):
            return []
        if self._parse_item is None:
            return [item for item in raw if isinstance(item, dict)]
        out = []
        for item in raw:
            try:
                out.append(self._parse_item(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed %s row: %s", self.collection, e)
        return out

    async def fetch(self, query: Query) -> PagedResult[T]:
        """Fetch one page. Raises FetchError; never retries."""
        try:
            envelope = await self._client.get(
                self.path,
                params=query.to_params(self.search_param),
                default_error=f"Failed to fetch {self._label}. Please try again.",
            )
        except ApiError as e:
            raise FetchError(e.message, title=f"Failed to Fetch {self._label.title()}") from e

        items = self._parse(envelope.data)
        pagination = envelope.pagination
        page = pagination.page if pagination and pagination.page else query.page
        page_size = pagination.limit if pagination and pagination.limit else query.page_size
        total = pagination.total if pagination and pagination.total is not None else len(items)
        if pagination and pagination.pages:
            total_pages = pagination.pages
        else:
            total_pages = total_pages_for(total, page_size)

        if len(items) > page_size:
            logger.warning(
                "%s returned %d rows for page size %d; extra rows dropped",
                self.path, len(items), page_size,
            )
            items = items[:page_size]
        return PagedResult(
            items=items,
            page=page,
            page_size=page_size,
            total_count=total,
            total_pages=max(1, total_pages),
        )

    async def fetch_options(self, limit: int = LOOKUP_LIMIT) -> List[dict]:
        """First page of {id, name} pairs for selects and filters (artists, genres)."""
        envelope = await self._client.get(
            self.path,
            params={"page": 1, "limit": limit},
            default_error=f"Failed to fetch {self._label}.",
        )
        data = envelope.data if isinstance(envelope.data, list) else []
        return [
            {"id": item.get("id"), "name": item.get("name") or item.get("title") or ""}
            for item in data
            if isinstance(item, dict)
        ]
