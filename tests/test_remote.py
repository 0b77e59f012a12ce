"""Tests for the catalog query services."""

import asyncio
import json

import httpx
import pytest


def _select(**kwargs):
    from src.filters import FilterSelection

    return FilterSelection.from_dict(kwargs)


SELECTIONS = [
    {},
    {"rooms": ["bedroom"], "furniture_types": ["nightstands"]},
    {"furniture_types": ["beds"]},
    {"furniture_types": ["chairs"], "rooms": ["living-room", "dining-room"]},
    {"brands": ["crate-barrel", "serena", "ikea"]},
    {"category_flags": ["new", "clearance"]},
    {"category_flags": ["clearance"], "max_price": 450},
    {"min_price": 400, "max_price": 700},
]


class TestDuckDBQueryService:
    """Tests for the local catalog service."""

    def test_first_page(self, test_db):
        """Test first page."""
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        service = DuckDBQueryService(test_db)
        page = asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))
        assert page.total_count == 12
        assert len(page.items) == 10
        assert page.items[0].id == "p12"
        assert page.has_next is True
        assert service.request_count == 1

    def test_last_page(self, test_db):
        """Test last page."""
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        page = asyncio.run(
            DuckDBQueryService(test_db).fetch(compile_query(_select()).paginate(2, 10))
        )
        assert [p.id for p in page.items] == ["p02", "p01"]
        assert page.page == 2
        assert page.has_next is False

    @pytest.mark.parametrize("data", SELECTIONS)
    def test_matches_local_predicate(self, test_db, sample_products, data):
        """Test matches local predicate."""
        from src.filters import FilterState
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        selection = _select(**data)
        remote = DuckDBQueryService(test_db).query_frame(compile_query(selection))
        local = FilterState(selection).filter_products(sample_products)
        assert sorted(remote["id"]) == sorted(p.id for p in local)

    def test_price_sort_nulls_last(self, test_db):
        """Test price sort nulls last."""
        from src.query import compile_query
        from src.remote import DuckDBQueryService, frame_to_products

        frame = DuckDBQueryService(test_db).query_frame(compile_query(_select(price_sort="low-to-high")))
        products = frame_to_products(frame)
        assert products[0].id == "p05"
        assert products[-1].id == "p11"
        assert products[-1].current_price is None

    def test_search(self, test_db):
        """Test search."""
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        frame = DuckDBQueryService(test_db).query_frame(compile_query(_select(), "TEAK"))
        assert list(frame["id"]) == ["p09"]

    def test_search_wildcards_match_literally(self, empty_db):
        """Test % and _ in search text are not LIKE wildcards."""
        from src.database import load_products
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        load_products(empty_db, [
            {"id": "a", "name": "Lamp 50% off"},
            {"id": "b", "name": "Sofa 500"},
            {"id": "c", "name": "side_table walnut"},
            {"id": "d", "name": "Sidextable oak"},
        ])
        service = DuckDBQueryService(empty_db)

        assert list(service.query_frame(compile_query(_select(), "50%"))["id"]) == ["a"]
        assert list(service.query_frame(compile_query(_select(), "side_table"))["id"]) == ["c"]

    def test_fetch_runs_off_event_loop(self, test_db):
        """Test queries run in worker threads so concurrent pages overlap."""
        import threading
        from src.query import compile_query
        from src.remote import DuckDBQueryService

        service = DuckDBQueryService(test_db)
        threads = []
        run = service._run

        def recording_run(query):
            threads.append(threading.get_ident())
            return run(query)

        service._run = recording_run
        query = compile_query(_select())

        async def scenario():
            return await asyncio.gather(
                service.fetch(query.paginate(1, 10)),
                service.fetch(query.paginate(2, 10)),
            )

        first, second = asyncio.run(scenario())
        assert [len(first.items), len(second.items)] == [10, 2]
        assert threading.get_ident() not in threads
        assert service.request_count == 2

    def test_frame_conversion(self, test_db):
        """Test frame conversion."""
        from src.remote import DuckDBQueryService, frame_to_products
        from src.query import compile_query

        frame = DuckDBQueryService(test_db).query_frame(compile_query(_select(rooms=["office"])))
        (desk,) = frame_to_products(frame)
        assert desk.regular_price is None
        assert desk.created_at.year == 2024
        assert desk.brand == "Pottery Barn"

    def test_missing_table_raises_remote_error(self):
        """Test missing table raises remote error."""
        import duckdb
        from src.query import compile_query
        from src.remote import DuckDBQueryService, RemoteQueryError

        service = DuckDBQueryService(duckdb.connect(":memory:"))
        with pytest.raises(RemoteQueryError) as excinfo:
            asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))
        assert excinfo.value.retryable is False


def _rows(count, start=0):
    return [{"id": f"r{i}", "name": f"Item {i}", "current_price": 10 * i} for i in range(start, start + count)]


class TestPostgrestQueryService:
    """Tests for the hosted backend client."""

    def _service(self, handler, **kwargs):
        from src.remote import PostgrestQueryService

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PostgrestQueryService(
            base_url="https://example.test/rest/v1",
            api_key="anon-key",
            table="furniture",
            client=client,
            backoff=0,
            **kwargs,
        )

    def test_fetch_page(self):
        """Test fetch page."""
        from src.query import compile_query

        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json=_rows(10, start=10),
                headers={"Content-Range": "10-19/25"},
            )

        service = self._service(handler)
        query = compile_query(_select(rooms=["bedroom"])).paginate(2, 10)
        page = asyncio.run(service.fetch(query))

        assert page.total_count == 25
        assert page.page == 2
        assert page.has_next is True
        assert page.items[0].id == "r10"

        request = seen[0]
        assert request.url.path == "/rest/v1/furniture"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        assert request.headers["Prefer"] == "count=exact"
        assert request.url.params["or"] == "(room_type.ilike.*bedroom*)"
        assert request.url.params["offset"] == "10"

    def test_retries_server_errors(self):
        """Test retries server errors."""
        from src.query import compile_query

        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503, json={"message": "unavailable"})
            return httpx.Response(200, json=_rows(2), headers={"Content-Range": "0-1/2"})

        service = self._service(handler, max_attempts=3)
        page = asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))
        assert len(attempts) == 3
        assert page.total_count == 2

    def test_gives_up_after_max_attempts(self):
        """Test gives up after max attempts."""
        from src.query import compile_query
        from src.remote import RemoteQueryError

        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("offline", request=request)

        service = self._service(handler, max_attempts=3)
        with pytest.raises(RemoteQueryError, match="Network error"):
            asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))
        assert len(attempts) == 3

    def test_client_errors_not_retried(self):
        """Test client errors not retried."""
        from src.query import compile_query
        from src.remote import RemoteQueryError

        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(404, json={"message": "relation does not exist"})

        service = self._service(handler)
        with pytest.raises(RemoteQueryError) as excinfo:
            asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))
        assert len(attempts) == 1
        assert excinfo.value.status == 404
        assert excinfo.value.retryable is False
        assert "relation does not exist" in excinfo.value.message

    def test_rejects_non_list_body(self):
        """Test rejects non list body."""
        from src.query import compile_query
        from src.remote import RemoteQueryError

        def handler(request):
            return httpx.Response(200, content=json.dumps({"id": 1}).encode())

        service = self._service(handler)
        with pytest.raises(RemoteQueryError):
            asyncio.run(service.fetch(compile_query(_select()).paginate(1, 10)))

    def test_requires_base_url(self, monkeypatch):
        """Test requires base url."""
        from config import config
        from src.remote import PostgrestQueryService

        monkeypatch.setattr(config.backend, "url", None)
        with pytest.raises(ValueError):
            PostgrestQueryService(base_url=None)
