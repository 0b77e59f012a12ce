"""
Paginated catalog results for the current filter selection.

The controller compiles the selection into a QueryDescriptor, fetches pages of
``page_size`` rows from a RemoteQueryService and accumulates them. Every request
is tagged with the query fingerprint and a reset generation; responses whose
tag no longer matches the live query are discarded on arrival, so a slow page 2
of an old selection can never be appended to the results of a new one.

States:
    IDLE -> LOADING -> LOADED <-> LOADING_MORE
    LOADED -> REFRESHING -> LOADED
    any loading state -> ERROR (carries a retry action)
"""

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.catalog.models import Page, Product
from src.filters.selection import FilterSelection
from src.filters.state import FilterState
from src.pagination.cache import PageCache
from src.query.compiler import compile_query
from src.query.descriptor import QueryDescriptor
from src.remote.base import RemoteQueryError, RemoteQueryService

logger = get_logger("pagination")


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"
    REFRESHING = "refreshing"
    ERROR = "error"


@dataclass(frozen=True)
class LoadFailure:
    """A failed load and the operation that failed."""

    error: RemoteQueryError
    operation: str


@dataclass(frozen=True)
class PaginatedResult:
    """Pages accumulated for one query fingerprint."""

    fingerprint: str
    pages: Tuple[Page, ...] = ()
    status: LoadStatus = LoadStatus.IDLE
    failure: Optional[LoadFailure] = None

    @property
    def items(self) -> List[Product]:
        return [item for page in self.pages for item in page.items]

    @property
    def total_count(self) -> int:
        return self.pages[-1].total_count if self.pages else 0

    @property
    def has_next(self) -> bool:
        return self.pages[-1].has_next if self.pages else False

    @property
    def loaded_pages(self) -> int:
        return len(self.pages)

    @property
    def is_loading(self) -> bool:
        return self.status in (
            LoadStatus.LOADING,
            LoadStatus.LOADING_MORE,
            LoadStatus.REFRESHING,
        )

    @property
    def is_fetching_next_page(self) -> bool:
        return self.status == LoadStatus.LOADING_MORE

    @property
    def error(self) -> Optional[RemoteQueryError]:
        return self.failure.error if self.failure else None


ResultListener = Callable[[PaginatedResult], None]
PageKey = Tuple[str, int, int]


class PaginationController:
    """
    Drives paged loading of catalog results.

    Usage:
        controller = PaginationController(service)
        controller.attach(filter_state)
        await controller.load()
        task = controller.fetch_next_page()
    """

    def __init__(
        self,
        service: RemoteQueryService,
        selection: Optional[FilterSelection] = None,
        search_text: Optional[str] = None,
        page_size: Optional[int] = None,
        cache: Optional[PageCache] = None,
    ):
        """
        Initialize the controller.

        Args:
            service: Backend that runs one page of a query.
            selection: Initial filter selection.
            search_text: Initial free-text search.
            page_size: Rows per page. Defaults to config.
            cache: Page cache; a fresh one with the configured TTL when omitted.
        """
        self.service = service
        self.page_size = page_size or config.app.page_size
        self.cache = cache if cache is not None else PageCache()
        self._selection = selection or FilterSelection()
        self._search_text = search_text
        self._query = compile_query(self._selection, search_text)
        self._generation = 0
        self._result = PaginatedResult(fingerprint=self._query.fingerprint())
        self._in_flight: Dict[PageKey, asyncio.Task] = {}
        self._load_task: Optional[asyncio.Task] = None
        self._next_task: Optional[asyncio.Task] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._retry_action: Optional[Callable[[], Optional[asyncio.Task]]] = None
        self._listeners: List[ResultListener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def query(self) -> QueryDescriptor:
        return self._query

    @property
    def fingerprint(self) -> str:
        return self._result.fingerprint

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def search_text(self) -> Optional[str]:
        return self._search_text

    @property
    def result(self) -> PaginatedResult:
        return self._result

    @property
    def items(self) -> List[Product]:
        return self._result.items

    @property
    def status(self) -> LoadStatus:
        return self._result.status

    @property
    def has_next(self) -> bool:
        return self._result.has_next

    def pending_tasks(self) -> List[asyncio.Task]:
        tasks = [self._load_task, self._next_task, self._refresh_task]
        tasks.extend(self._in_flight.values())
        return [t for t in tasks if t is not None and not t.done()]

    async def drain(self) -> None:
        """Wait until no load is in flight."""
        while True:
            pending = self.pending_tasks()
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """
        Register a listener called with every new PaginatedResult.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_result(self, result: PaginatedResult) -> None:
        self._result = result
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as e:
                logger.error(f"Result listener {listener!r} failed: {e}", exc_info=True)

    def _is_current(self, fingerprint: str, generation: int) -> bool:
        return fingerprint == self.fingerprint and generation == self._generation

    def _fail(
        self,
        error: RemoteQueryError,
        operation: str,
        retry_action: Callable[[], Optional[asyncio.Task]],
    ) -> None:
        logger.error(f"Catalog {operation} failed: {error.message}")
        self._retry_action = retry_action
        self._set_result(
            replace(
                self._result,
                status=LoadStatus.ERROR,
                failure=LoadFailure(error=error, operation=operation),
            )
        )

    # -------------------------------------------------------------------------
    # Query inputs
    # -------------------------------------------------------------------------

    def attach(self, state: FilterState) -> Callable[[], None]:
        """Follow a FilterState. Returns the unsubscribe callable."""
        self._selection = state.snapshot()
        self._recompile()
        return state.subscribe(self.update_selection)

    def update_selection(self, selection: FilterSelection) -> Optional[asyncio.Task]:
        self._selection = selection
        return self._recompile()

    def set_search_text(self, text: Optional[str]) -> Optional[asyncio.Task]:
        """Change the free-text search; reloads from page 1 when the query changes."""
        self._search_text = text
        return self._recompile()

    def _recompile(self) -> Optional[asyncio.Task]:
        query = compile_query(self._selection, self._search_text)
        changed = query.fingerprint() != self.fingerprint
        self._query = query
        if not changed:
            return None
        logger.info(f"Query changed, reloading from page 1 ({query.fingerprint()[:8]})")
        return self.reset_and_refetch()

    # -------------------------------------------------------------------------
    # Page fetching
    # -------------------------------------------------------------------------

    def _page_task(
        self,
        query: QueryDescriptor,
        generation: int,
        page: int,
        use_cache: bool,
    ) -> asyncio.Task:
        key = (query.fingerprint(), generation, page)
        task = self._in_flight.get(key)
        if task is not None and not task.done():
            return task

        task = asyncio.ensure_future(self._load_page(query, page, use_cache))
        self._in_flight[key] = task

        def _forget(done: asyncio.Task) -> None:
            if self._in_flight.get(key) is done:
                del self._in_flight[key]

        task.add_done_callback(_forget)
        return task

    async def _load_page(self, query: QueryDescriptor, page: int, use_cache: bool) -> Page:
        paged = query.paginate(page, self.page_size)
        key = paged.cache_key()
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Page {page} served from cache")
                return cached

        result = await self.service.fetch(paged)
        self.cache.set(key, result)
        return result

    async def fetch_page(self, page: int) -> Page:
        """
        Fetch one page of the current query without changing the result.

        Concurrent calls for the same page of the same query share one request.

        Raises:
            RemoteQueryError: If the backend fails.
        """
        return await self._page_task(self._query, self._generation, page, use_cache=True)

    # -------------------------------------------------------------------------
    # First page
    # -------------------------------------------------------------------------

    def _start_first_page(self, use_cache: bool, operation: str) -> Optional[asyncio.Task]:
        self._generation += 1
        self._next_task = None
        self._refresh_task = None
        self._retry_action = None
        fingerprint = self._query.fingerprint()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Loaded by the next load() call
            self._load_task = None
            self._set_result(PaginatedResult(fingerprint=fingerprint))
            return None

        self._set_result(PaginatedResult(fingerprint=fingerprint, status=LoadStatus.LOADING))
        page_task = self._page_task(self._query, self._generation, 1, use_cache)
        self._load_task = asyncio.ensure_future(
            self._finish_first_page(page_task, fingerprint, self._generation, use_cache, operation)
        )
        return self._load_task

    async def _finish_first_page(
        self,
        page_task: asyncio.Task,
        fingerprint: str,
        generation: int,
        use_cache: bool,
        operation: str,
    ) -> Optional[Page]:
        try:
            page = await page_task
        except RemoteQueryError as e:
            if self._is_current(fingerprint, generation):
                self._fail(e, operation, lambda: self._start_first_page(use_cache, operation))
            return None

        if not self._is_current(fingerprint, generation):
            logger.debug(f"Discarding stale page 1 for {fingerprint[:8]}")
            return None

        self._set_result(
            PaginatedResult(fingerprint=fingerprint, pages=(page,), status=LoadStatus.LOADED)
        )
        return page

    async def load(self) -> Optional[Page]:
        """Load page 1 unless it is already loaded or loading."""
        if self._result.pages:
            return self._result.pages[0]
        if self._load_task is not None and not self._load_task.done():
            return await self._load_task
        task = self._start_first_page(use_cache=True, operation="load")
        return await task if task is not None else None

    def reset_and_refetch(self) -> Optional[asyncio.Task]:
        """Discard accumulated pages and load page 1 of the current query."""
        return self._start_first_page(use_cache=True, operation="load")

    def refetch_with_reset(self) -> Optional[asyncio.Task]:
        """Reload page 1 from the backend, dropping cached and accumulated pages."""
        self.cache.invalidate(self._query.fingerprint())
        return self._start_first_page(use_cache=False, operation="reset")

    # -------------------------------------------------------------------------
    # Next page
    # -------------------------------------------------------------------------

    def fetch_next_page(self) -> Optional[asyncio.Task]:
        """
        Start loading the page after the last loaded one.

        Returns:
            The running task (shared while it is in flight), or None when there
            is nothing to load.
        """
        if self._next_task is not None and not self._next_task.done():
            return self._next_task
        if not self._result.has_next:
            return None
        if self._result.status in (LoadStatus.LOADING, LoadStatus.REFRESHING):
            return None

        page_number = self._result.loaded_pages + 1
        fingerprint, generation = self.fingerprint, self._generation
        self._set_result(replace(self._result, status=LoadStatus.LOADING_MORE, failure=None))
        page_task = self._page_task(self._query, generation, page_number, use_cache=True)
        self._next_task = asyncio.ensure_future(
            self._finish_next_page(page_task, page_number, fingerprint, generation)
        )
        return self._next_task

    async def _finish_next_page(
        self,
        page_task: asyncio.Task,
        page_number: int,
        fingerprint: str,
        generation: int,
    ) -> Optional[Page]:
        try:
            page = await page_task
        except RemoteQueryError as e:
            if self._is_current(fingerprint, generation):
                self._fail(e, "next_page", self.fetch_next_page)
            return None

        if not self._is_current(fingerprint, generation):
            logger.debug(f"Discarding stale page {page_number} for {fingerprint[:8]}")
            return None
        if self._result.loaded_pages != page_number - 1:
            logger.debug(f"Discarding out-of-sequence page {page_number}")
            return None

        self._set_result(
            replace(
                self._result,
                pages=self._result.pages + (page,),
                status=LoadStatus.LOADED,
                failure=None,
            )
        )
        return page

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def refetch(self) -> Optional[asyncio.Task]:
        """
        Re-fetch every loaded page, keeping the visible items until all arrive.
        """
        if self._refresh_task is not None and not self._refresh_task.done():
            return self._refresh_task
        if not self._result.pages:
            return self._start_first_page(use_cache=False, operation="load")
        if self._next_task is not None and not self._next_task.done():
            # Refresh starts from LOADED once the pending page has landed
            self._refresh_task = asyncio.ensure_future(
                self._refresh_after(self._next_task, self.fingerprint, self._generation)
            )
            return self._refresh_task

        count = self._result.loaded_pages
        fingerprint, generation = self.fingerprint, self._generation
        self._set_result(replace(self._result, status=LoadStatus.REFRESHING, failure=None))
        page_tasks = [
            self._page_task(self._query, generation, n, use_cache=False)
            for n in range(1, count + 1)
        ]
        self._refresh_task = asyncio.ensure_future(
            self._finish_refresh(page_tasks, fingerprint, generation)
        )
        return self._refresh_task

    async def _refresh_after(
        self,
        next_task: asyncio.Task,
        fingerprint: str,
        generation: int,
    ) -> Optional[Tuple[Page, ...]]:
        await next_task
        if not self._is_current(fingerprint, generation):
            return None
        if self._result.status != LoadStatus.LOADED:
            # Next page failed; retry() re-issues it
            return None
        self._refresh_task = None
        task = self.refetch()
        return await task if task is not None else None

    async def _finish_refresh(
        self,
        page_tasks: List[asyncio.Task],
        fingerprint: str,
        generation: int,
    ) -> Optional[Tuple[Page, ...]]:
        try:
            pages = tuple(await asyncio.gather(*page_tasks))
        except RemoteQueryError as e:
            if self._is_current(fingerprint, generation):
                self._fail(e, "refresh", self.refetch)
            return None

        if not self._is_current(fingerprint, generation):
            logger.debug(f"Discarding stale refresh for {fingerprint[:8]}")
            return None

        self._set_result(
            PaginatedResult(fingerprint=fingerprint, pages=pages, status=LoadStatus.LOADED)
        )
        return pages

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def retry(self) -> Optional[asyncio.Task]:
        """Re-issue the operation that put the controller into ERROR."""
        if self._result.status != LoadStatus.ERROR or self._retry_action is None:
            return None
        action, self._retry_action = self._retry_action, None
        logger.info(f"Retrying {self._result.failure.operation if self._result.failure else 'load'}")
        return action()
