"""
Browse session: the filter state, its persistence and the paginated results
wired together for one screen of the catalog.
"""

import asyncio
import inspect
from typing import Callable, List, Optional, Sequence
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.catalog.models import Page, Product
from src.filters.persistence import FilterPersistence, KeyValueStore, MemoryKeyValueStore
from src.filters.state import FilterState
from src.pagination.cache import PageCache
from src.pagination.controller import LoadStatus, PaginatedResult, PaginationController
from src.remote.base import RemoteQueryService

logger = get_logger("browse")


class BrowseSession:
    """
    Owns one FilterState, one FilterPersistence and one PaginationController.

    Usage:
        session = BrowseSession(DuckDBQueryService(conn))
        await session.start()
        session.filters.add_room("bedroom")   # reloads page 1
        await session.controller.drain()
        session.fetch_next_page()
        await session.close()
    """

    def __init__(
        self,
        service: RemoteQueryService,
        store: Optional[KeyValueStore] = None,
        search_text: Optional[str] = None,
        page_size: Optional[int] = None,
        cache: Optional[PageCache] = None,
    ):
        self.service = service
        self.filters = FilterState()
        self.persistence = FilterPersistence(store if store is not None else MemoryKeyValueStore())
        self.controller = PaginationController(
            service,
            search_text=search_text,
            page_size=page_size,
            cache=cache,
        )
        self._unsubscribers: List[Callable[[], None]] = []
        self._started = False

    async def start(self) -> Optional[Page]:
        """Rehydrate the stored selection and load the first page."""
        if not self._started:
            self.persistence.rehydrate(self.filters)
            self._unsubscribers.append(self.persistence.attach(self.filters))
            self._unsubscribers.append(self.controller.attach(self.filters))
            self._started = True
            logger.info(f"Browse session started with {len(self.filters.get_filter_summary())} filters")
        return await self.controller.load()

    async def close(self) -> None:
        """Detach listeners, let in-flight loads settle and close the service."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        await self.controller.drain()
        self.persistence.save(self.filters.snapshot())

        aclose = getattr(self.service, "aclose", None)
        if aclose is not None:
            result = aclose()
            if inspect.isawaitable(result):
                await result
        self._started = False

    async def __aenter__(self) -> "BrowseSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    @property
    def result(self) -> PaginatedResult:
        return self.controller.result

    @property
    def items(self) -> List[Product]:
        return self.controller.items

    @property
    def status(self) -> LoadStatus:
        return self.controller.status

    def subscribe(self, listener: Callable[[PaginatedResult], None]) -> Callable[[], None]:
        return self.controller.subscribe(listener)

    def set_search_text(self, text: Optional[str]) -> Optional[asyncio.Task]:
        return self.controller.set_search_text(text)

    def fetch_next_page(self) -> Optional[asyncio.Task]:
        return self.controller.fetch_next_page()

    def refetch(self) -> Optional[asyncio.Task]:
        return self.controller.refetch()

    def refetch_with_reset(self) -> Optional[asyncio.Task]:
        return self.controller.refetch_with_reset()

    def retry(self) -> Optional[asyncio.Task]:
        return self.controller.retry()

    def filter_products(self, items: Sequence[Product]) -> List[Product]:
        """Apply the current selection to products already in memory."""
        return self.filters.filter_products(items)

    def get_filter_summary(self) -> List[str]:
        return self.filters.get_filter_summary()
