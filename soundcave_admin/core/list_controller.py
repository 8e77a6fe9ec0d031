"""Search/filter/sort/page state of one list screen and when to refetch."""
import asyncio
import logging
from dataclasses import replace
from typing import Any, Generic, Optional, Set, TypeVar, Union

from soundcave_admin.config import PAGE_SIZE, SEARCH_DEBOUNCE_SEC
from soundcave_admin.core.errors import FetchError, ValidationError
from soundcave_admin.core.list_fetcher import RemoteListFetcher
from soundcave_admin.core.notifications import Notifier
from soundcave_admin.models.query import INACTIVE_FILTER_VALUES, PagedResult, Query, SortDirection

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ListController(Generic[T]):
    """Owns the Query of a screen and applies fetch results.

    - search: debounced; page back to 1 once the user stops typing
    - filter/sort: page back to 1, fetch right away
    - page: fetch right away, nothing else changes
    Only the response of the most recently issued fetch is applied; older
    responses that arrive late are dropped. Failed fetches leave the rows
    as they were and push an error notice.
    """

    def __init__(
        self,
        fetcher: RemoteListFetcher[T],
        notifier: Notifier,
        *,
        page_size: int = PAGE_SIZE,
        debounce_sec: float = SEARCH_DEBOUNCE_SEC,
        sort_key: str = "created_at",
        sort_direction: SortDirection = SortDirection.DESC,
    ) -> None:
        self._fetcher = fetcher
        self._notifier = notifier
        self.debounce_sec = debounce_sec
        self.query = Query(sort_key=sort_key, sort_direction=sort_direction, page_size=page_size)
        self.result: Optional[PagedResult[T]] = None
        self.last_error: Optional[FetchError] = None
        self._issued = 0  # sequence number of the latest fetch
        self._in_flight = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def rows(self) -> list:
        return list(self.result.items) if self.result else []

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def search_pending(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    def set_search_term(self, term: str) -> None:
        """Record a keystroke; fetch once no further change came in for debounce_sec."""
        self.query = replace(self.query, search_term=term)
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        task = asyncio.get_running_loop().create_task(self._debounced_search())
        self._debounce_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self.debounce_sec)
        # past this point a new keystroke starts a new timer instead of cancelling us
        self._debounce_task = None
        self.query = replace(self.query, page=1)
        await self._fetch()

    async def set_filter(self, key: str, value: Any) -> Optional[PagedResult[T]]:
        filters = dict(self.query.filters)
        if value in INACTIVE_FILTER_VALUES:
            filters.pop(key, None)
        else:
            filters[key] = value
        self.query = replace(self.query, filters=filters, page=1)
        return await self._fetch()

    async def set_sort(
        self, key: str, direction: Union[SortDirection, str] = SortDirection.DESC
    ) -> Optional[PagedResult[T]]:
        if not key:
            raise ValidationError("Sort field is required", field="sort_by")
        try:
            direction = SortDirection(direction)
        except ValueError:
            raise ValidationError(f"Unknown sort direction: {direction}", field="order")
        self.query = replace(self.query, sort_key=key, sort_direction=direction, page=1)
        return await self._fetch()

    async def set_page(self, page: int) -> Optional[PagedResult[T]]:
        if page < 1:
            raise ValidationError(f"Page must be 1 or greater, got {page}", field="page")
        self.query = replace(self.query, page=page)
        return await self._fetch()

    async def refresh(self) -> Optional[PagedResult[T]]:
        """Re-run the current query (screen mount, after a mutation)."""
        return await self._fetch()

    async def _fetch(self) -> Optional[PagedResult[T]]:
        self._issued += 1
        seq = self._issued
        query = self.query
        self._in_flight += 1
        try:
            result = await self._fetcher.fetch(query)
        except FetchError as e:
            if seq == self._issued:
                self.last_error = e
                self._notifier.error_from(e)
            else:
                logger.debug("Ignoring failure of superseded fetch #%d: %s", seq, e)
            return None
        finally:
            self._in_flight -= 1

        if seq != self._issued:
            logger.debug(
                "Dropping stale %s response #%d (latest #%d)",
                self._fetcher.collection, seq, self._issued,
            )
            return None
        self.result = result
        self.last_error = None
        if result.page != self.query.page:
            self.query = replace(self.query, page=result.page)
        return result

    async def settle(self) -> None:
        """Wait for the pending search timer and any fetch it started."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._debounce_task = None

    def to_dict(self) -> dict:
        q = self.query
        return {
            "query": {
                "search": q.search_term,
                "filters": q.active_filters(),
                "sort_by": q.sort_key,
                "order": q.sort_direction.value,
                "page": q.page,
                "page_size": q.page_size,
            },
            "result": self.result.to_dict() if self.result else None,
            "loading": self.loading,
            "search_pending": self.search_pending,
            "error": self.last_error.message if self.last_error else None,
        }
