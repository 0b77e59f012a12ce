"""Tests for the catalog seeding script."""

import asyncio
import json

import httpx


class TestLoadCatalog:
    """Tests for scripts/load_catalog.py."""

    def test_load_from_json(self, tmp_path, sample_rows):
        """Test seeding the catalog from a JSON file."""
        from scripts.load_catalog import main
        from src.database import get_connection, get_schema_version, get_table_counts

        source = tmp_path / "furniture.json"
        source.write_text(json.dumps(sample_rows + [{"name": "No id"}]))
        db_path = tmp_path / "catalog.duckdb"

        assert main(["--input", str(source), "--db", str(db_path), "--log-level", "WARNING"]) == 0

        with get_connection(db_path) as conn:
            assert get_table_counts(conn)["furniture"] == 12
            assert get_schema_version(conn) == "1.0"

    def test_missing_file(self, tmp_path):
        """Test missing file."""
        from scripts.load_catalog import main

        code = main(["--input", str(tmp_path / "missing.json"), "--db", str(tmp_path / "c.duckdb")])
        assert code == 1

    def test_rejects_non_list(self, tmp_path):
        """Test a JSON object instead of a list is rejected."""
        from scripts.load_catalog import main

        source = tmp_path / "furniture.json"
        source.write_text(json.dumps({"id": "p01"}))
        assert main(["--input", str(source), "--db", str(tmp_path / "c.duckdb")]) == 1

    def test_download_rows_pages_through(self):
        """Test downloading walks every backend page."""
        from scripts.load_catalog import download_rows
        from src.remote import PostgrestQueryService

        def handler(request):
            offset = int(request.url.params.get("offset", "0"))
            rows = [{"id": f"r{n}", "name": f"Item {n}"} for n in range(offset, min(offset + 2, 5))]
            return httpx.Response(200, json=rows, headers={"Content-Range": f"{offset}-{offset + 1}/5"})

        service = PostgrestQueryService(
            base_url="https://example.test/rest/v1",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            backoff=0,
        )
        rows = asyncio.run(download_rows(service, page_size=2))
        assert [row["id"] for row in rows] == ["r0", "r1", "r2", "r3", "r4"]
