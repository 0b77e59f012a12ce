"""Tests for paginated loading."""

import asyncio


def make_page(query, total, version=0):
    from src.catalog.models import Page, Product
    from src.remote.base import page_number

    tag = query.fingerprint()[:6]
    end = min(query.offset + query.limit, total)
    items = [Product(id=f"{tag}-v{version}-{n}") for n in range(query.offset, end)]
    return Page(items=items, total_count=total, page=page_number(query), page_size=query.limit)


class InstantService:
    """Answers immediately; selected pages fail once."""

    def __init__(self, total=25, fail_pages=()):
        self.total = total
        self.version = 0
        self.calls = []
        self.fail_pages = set(fail_pages)

    async def fetch(self, query):
        from src.remote import RemoteQueryError
        from src.remote.base import page_number

        self.calls.append(query)
        page = page_number(query)
        if page in self.fail_pages:
            self.fail_pages.discard(page)
            raise RemoteQueryError("backend unavailable", status=503)
        return make_page(query, self.total, self.version)


class ManualService:
    """Holds every request until the test answers it."""

    def __init__(self, total=25):
        self.total = total
        self.requests = []

    async def fetch(self, query):
        future = asyncio.get_running_loop().create_future()
        self.requests.append((query, future))
        return await future

    def respond(self, index=0):
        query, future = self.requests.pop(index)
        future.set_result(make_page(query, self.total))
        return query


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


def _controller(service, **kwargs):
    from src.pagination import PageCache, PaginationController

    kwargs.setdefault("cache", PageCache(ttl=300))
    return PaginationController(service, page_size=10, **kwargs)


class TestLoading:
    """Tests for first and following pages."""

    def test_load_first_page(self):
        """Test load first page."""
        from src.pagination import LoadStatus

        service = InstantService(total=25)
        controller = _controller(service)
        assert controller.status == LoadStatus.IDLE

        page = asyncio.run(controller.load())
        assert page.page == 1
        assert controller.status == LoadStatus.LOADED
        assert len(controller.items) == 10
        assert controller.has_next is True
        assert (service.calls[0].limit, service.calls[0].offset) == (10, 0)

    def test_pages_accumulate_in_order(self):
        """Test pages accumulate in order."""
        service = InstantService(total=25)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            await controller.fetch_next_page()
            await controller.fetch_next_page()

        asyncio.run(scenario())
        assert controller.result.loaded_pages == 3
        assert controller.result.total_count == 25
        assert [item.id.rsplit("-", 1)[1] for item in controller.items] == [str(n) for n in range(25)]
        assert controller.has_next is False

    def test_fetch_next_page_noop_at_end(self):
        """Test fetch_next_page is a no-op on the last page."""
        service = InstantService(total=10)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            return controller.fetch_next_page()

        assert asyncio.run(scenario()) is None
        assert len(service.calls) == 1

    def test_fetch_next_page_before_load(self):
        """Test fetch_next_page before the first load."""
        controller = _controller(InstantService())
        assert controller.fetch_next_page() is None

    def test_fetch_next_page_shares_in_flight_task(self):
        """Test fetch_next_page shares the in-flight task."""
        service = ManualService(total=25)
        controller = _controller(service)

        async def scenario():
            load = asyncio.ensure_future(controller.load())
            await settle()
            service.respond()
            await load

            first = controller.fetch_next_page()
            second = controller.fetch_next_page()
            await settle()
            assert first is second
            assert len(service.requests) == 1
            service.respond()
            await first

        asyncio.run(scenario())
        assert controller.result.loaded_pages == 2

    def test_fetch_page_coalesces(self):
        """Test fetch page coalesces."""
        service = ManualService(total=25)
        controller = _controller(service)

        async def scenario():
            a = asyncio.ensure_future(controller.fetch_page(2))
            b = asyncio.ensure_future(controller.fetch_page(2))
            await settle()
            assert len(service.requests) == 1
            service.respond()
            return await asyncio.gather(a, b)

        first, second = asyncio.run(scenario())
        assert first is second
        assert first.page == 2

    def test_statuses_reported_to_listeners(self):
        """Test statuses reported to listeners."""
        from src.pagination import LoadStatus

        controller = _controller(InstantService(total=25))
        statuses = []
        unsubscribe = controller.subscribe(lambda result: statuses.append(result.status))

        async def scenario():
            await controller.load()
            await controller.fetch_next_page()
            unsubscribe()
            await controller.fetch_next_page()

        asyncio.run(scenario())
        assert statuses == [
            LoadStatus.LOADING,
            LoadStatus.LOADED,
            LoadStatus.LOADING_MORE,
            LoadStatus.LOADED,
        ]


class TestQueryChanges:
    """Tests for resets when the selection or search changes."""

    def test_stale_page_two_is_discarded(self):
        """Test stale page two is discarded."""
        from src.filters import FilterState
        from src.pagination import LoadStatus

        service = ManualService(total=25)
        state = FilterState()
        state.add_room("bedroom")
        controller = _controller(service)
        controller.attach(state)

        async def scenario():
            load = asyncio.ensure_future(controller.load())
            await settle()
            service.respond()
            await load
            old_fingerprint = controller.fingerprint

            next_page = controller.fetch_next_page()
            await settle()
            assert controller.result.is_fetching_next_page

            state.add_brand("ikea")
            assert controller.status == LoadStatus.LOADING
            assert controller.items == []
            await settle()

            # [page 2 of the old query, page 1 of the new one]
            assert len(service.requests) == 2
            service.respond(1)
            await settle()
            service.respond(0)
            assert await next_page is None
            await controller.drain()
            return old_fingerprint

        old_fingerprint = asyncio.run(scenario())
        assert controller.fingerprint != old_fingerprint
        assert controller.status == LoadStatus.LOADED
        assert controller.result.loaded_pages == 1
        prefix = controller.fingerprint[:6]
        assert len(controller.items) == 10
        assert all(item.id.startswith(prefix) for item in controller.items)
        assert [g.facet for g in controller.query.pattern_groups] == ["rooms", "brands"]

    def test_unchanged_fingerprint_keeps_results(self):
        """Test unchanged fingerprint keeps results."""
        from src.filters import FilterState

        service = InstantService(total=25)
        state = FilterState()
        controller = _controller(service)
        controller.attach(state)

        async def scenario():
            await controller.load()
            state.set_navigation_marker("room")
            return controller.update_selection(state.snapshot())

        assert asyncio.run(scenario()) is None
        assert len(service.calls) == 1
        assert len(controller.items) == 10

    def test_set_search_text_reloads(self):
        """Test set search text reloads."""
        service = InstantService(total=25)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            task = controller.set_search_text("oak")
            assert task is not None
            await task

        asyncio.run(scenario())
        assert controller.search_text == "oak"
        assert service.calls[-1].search.text == "oak"
        assert controller.result.loaded_pages == 1

    def test_cached_pages_reused_on_return(self):
        """Test cached pages reused on return."""
        from src.filters import FilterState

        service = InstantService(total=25)
        state = FilterState()
        controller = _controller(service)
        controller.attach(state)

        async def scenario():
            await controller.load()
            state.add_room("office")
            await controller.drain()
            state.remove_room("office")
            await controller.drain()

        asyncio.run(scenario())
        assert len(service.calls) == 2
        assert len(controller.items) == 10

    def test_change_without_event_loop_defers_load(self):
        """Test change without event loop defers load."""
        from src.filters import FilterSelection
        from src.pagination import LoadStatus

        service = InstantService(total=25)
        controller = _controller(service)
        selection = FilterSelection.from_dict({"rooms": ["bedroom"]})

        assert controller.update_selection(selection) is None
        assert controller.status == LoadStatus.IDLE
        assert service.calls == []

        asyncio.run(controller.load())
        assert controller.status == LoadStatus.LOADED
        assert service.calls[0].pattern_groups


class TestRefresh:
    """Tests for soft and hard refreshes."""

    def test_refetch_replaces_all_loaded_pages(self):
        """Test refetch replaces all loaded pages."""
        from src.pagination import LoadStatus

        service = InstantService(total=25)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            await controller.fetch_next_page()
            service.version = 1
            task = controller.refetch()
            assert controller.status == LoadStatus.REFRESHING
            assert len(controller.items) == 20
            await task

        asyncio.run(scenario())
        assert len(service.calls) == 4
        assert controller.result.loaded_pages == 2
        assert all("-v1-" in item.id for item in controller.items)

    def test_refetch_during_next_page_waits_for_it(self):
        """Test a refresh requested mid next-page keeps that page and refreshes it too."""
        from src.pagination import LoadStatus
        from src.remote.base import page_number

        service = ManualService(total=45)
        controller = _controller(service)
        statuses = []
        controller.subscribe(lambda result: statuses.append((result.status, result.loaded_pages)))

        async def scenario():
            load = asyncio.ensure_future(controller.load())
            await settle()
            service.respond()
            await load

            controller.fetch_next_page()
            await settle()
            refresh = controller.refetch()
            assert controller.refetch() is refresh
            await settle()
            assert controller.status == LoadStatus.LOADING_MORE

            service.respond()
            await settle()
            assert controller.status == LoadStatus.REFRESHING
            assert controller.result.loaded_pages == 2
            assert sorted(page_number(query) for query, _ in service.requests) == [1, 2]

            while service.requests:
                service.respond()
            await refresh

        asyncio.run(scenario())
        assert controller.status == LoadStatus.LOADED
        assert controller.result.loaded_pages == 2
        assert (LoadStatus.LOADED, 2) in statuses
        refreshing = statuses.index((LoadStatus.REFRESHING, 2))
        assert statuses[refreshing - 1] == (LoadStatus.LOADED, 2)
        assert statuses[-1] == (LoadStatus.LOADED, 2)

    def test_refetch_with_reset(self):
        """Test refetch with reset."""
        from src.pagination import LoadStatus

        service = InstantService(total=25)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            await controller.fetch_next_page()
            generation = controller.generation
            task = controller.refetch_with_reset()
            assert controller.status == LoadStatus.LOADING
            assert controller.items == []
            await task
            return generation

        generation = asyncio.run(scenario())
        assert controller.generation == generation + 1
        assert controller.result.loaded_pages == 1
        assert len(service.calls) == 3


class TestErrors:
    """Tests for failures and retry."""

    def test_next_page_failure_keeps_items(self):
        """Test next page failure keeps items."""
        from src.pagination import LoadStatus

        service = InstantService(total=25, fail_pages={2})
        controller = _controller(service)

        async def scenario():
            await controller.load()
            await controller.fetch_next_page()
            assert controller.status == LoadStatus.ERROR
            assert controller.result.failure.operation == "next_page"
            assert controller.result.failure.error.status == 503
            assert len(controller.items) == 10
            await controller.retry()

        asyncio.run(scenario())
        assert controller.status == LoadStatus.LOADED
        assert controller.result.failure is None
        assert len(controller.items) == 20

    def test_first_page_failure_and_retry(self):
        """Test first page failure and retry."""
        from src.pagination import LoadStatus

        service = InstantService(total=25, fail_pages={1})
        controller = _controller(service)

        async def scenario():
            assert await controller.load() is None
            assert controller.status == LoadStatus.ERROR
            await controller.retry()

        asyncio.run(scenario())
        assert controller.status == LoadStatus.LOADED
        assert len(service.calls) == 2

    def test_refresh_failure_keeps_pages(self):
        """Test refresh failure keeps pages."""
        from src.pagination import LoadStatus

        service = InstantService(total=25)
        controller = _controller(service)

        async def scenario():
            await controller.load()
            service.fail_pages = {1}
            await controller.refetch()
            assert controller.status == LoadStatus.ERROR
            assert controller.result.failure.operation == "refresh"
            assert len(controller.items) == 10
            await controller.retry()

        asyncio.run(scenario())
        assert controller.status == LoadStatus.LOADED

    def test_retry_without_error(self):
        """Test retry without error."""
        controller = _controller(InstantService())
        assert controller.retry() is None


class TestPageCache:
    """Tests for the TTL page cache."""

    def test_expiry(self):
        """Test expiry."""
        from src.catalog.models import Page
        from src.pagination import PageCache

        now = [1000.0]
        cache = PageCache(ttl=300, clock=lambda: now[0])
        cache.set("abc:0:10", Page())
        assert cache.get("abc:0:10") is not None
        now[0] += 301
        assert cache.get("abc:0:10") is None
        assert len(cache) == 0

    def test_max_size_evicts_oldest(self):
        """Test max size evicts oldest."""
        from src.catalog.models import Page
        from src.pagination import PageCache

        cache = PageCache(maxsize=2, ttl=300)
        cache.set("a:0:10", Page())
        cache.set("b:0:10", Page())
        cache.get("a:0:10")
        cache.set("c:0:10", Page())
        assert cache.get("b:0:10") is None
        assert cache.get("a:0:10") is not None

    def test_invalidate_by_fingerprint(self):
        """Test invalidate by fingerprint."""
        from src.catalog.models import Page
        from src.pagination import PageCache

        cache = PageCache(ttl=300)
        cache.set("abc:0:10", Page())
        cache.set("abc:10:10", Page())
        cache.set("xyz:0:10", Page())
        assert cache.invalidate("abc") == 2
        assert len(cache) == 1
