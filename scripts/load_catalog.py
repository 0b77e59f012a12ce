#!/usr/bin/env python
"""
Seed the local DuckDB catalog.

Rows come either from a JSON file (a list of backend-shaped furniture rows)
or from the hosted backend, paged through with the same client the app uses.

Usage:
    python scripts/load_catalog.py --input furniture.json
    python scripts/load_catalog.py --from-backend [--page-size 100]

Options:
    --input PATH        JSON file with a list of furniture rows
    --from-backend      Download every row from SUPABASE_URL
    --page-size N       Rows per backend request
    --db PATH           Custom database path
    --log-level LEVEL   Logging level
    --log-file          Also write a dated log file under logs/
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import DEFAULT_LOG_FILE, setup_logging, get_logger
from src.catalog.models import Product
from src.database import get_connection, get_schema_version, get_table_counts, load_products
from src.filters.selection import FilterSelection
from src.query import compile_query
from src.remote import PostgrestQueryService, RemoteQueryError

logger = get_logger("load_catalog")


def read_rows(path: Path) -> List[Dict[str, Any]]:
    """Read furniture rows from a JSON file."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{path} must contain a JSON list of rows")
    return rows


async def download_rows(service: PostgrestQueryService, page_size: int) -> List[Dict[str, Any]]:
    """Fetch every catalog row, one page at a time."""
    query = compile_query(FilterSelection())
    rows: List[Dict[str, Any]] = []
    page_number = 1
    while True:
        page = await service.fetch(query.paginate(page_number, page_size))
        rows.extend(product.to_dict() for product in page.items)
        logger.info(f"Downloaded page {page_number}/{page.total_pages} ({len(rows):,} rows)")
        if not page.has_next or not page.items:
            return rows
        page_number += 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the local furniture catalog")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="JSON file with furniture rows")
    source.add_argument("--from-backend", action="store_true", help="Download rows from the hosted backend")
    parser.add_argument("--page-size", type=int, default=100, help="Rows per backend request")
    parser.add_argument("--db", type=Path, default=config.database.path, help="Custom database path")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=config.app.log_level.upper(),
        help="Logging level",
    )
    parser.add_argument("--log-file", action="store_true", help=f"Also log to {DEFAULT_LOG_FILE.parent}")

    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level, log_file=DEFAULT_LOG_FILE if args.log_file else None)

    try:
        if args.input:
            rows = read_rows(args.input)
        else:
            async def fetch_all() -> List[Dict[str, Any]]:
                async with PostgrestQueryService() as service:
                    return await download_rows(service, args.page_size)

            rows = asyncio.run(fetch_all())
    except (OSError, ValueError, RemoteQueryError) as e:
        logger.error(f"Could not read catalog rows: {e}")
        return 1

    valid = [row for row in rows if isinstance(row, dict) and row.get("id") is not None]
    if len(valid) < len(rows):
        logger.warning(f"Skipping {len(rows) - len(valid)} rows without an id")

    with get_connection(args.db, initialize=True) as conn:
        written = load_products(conn, [Product.from_record(row).to_dict() for row in valid])
        counts = get_table_counts(conn)
        version = get_schema_version(conn)

    logger.info(f"Wrote {written:,} rows to {args.db}")
    logger.info(f"Catalog now holds {counts.get('furniture', 0):,} products (schema {version})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
