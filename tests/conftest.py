"""Pytest configuration and fixtures for the Furnish catalog tests."""

import sys
from pathlib import Path

import duckdb
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


SAMPLE_ROWS = [
    {"id": "p01", "name": "Harmony Sofa", "description": "Deep-seat three seater",
     "brand": "West Elm", "furniture_type": "sofa", "room_type": "living room",
     "current_price": 1200.0, "regular_price": 1500.0, "discount_percent": None,
     "new_product": True, "on_clearance": False, "created_at": "2024-01-01T10:00:00Z"},
    {"id": "p02", "name": "Luna Daybed", "description": "Daybed with trundle",
     "brand": "Article", "furniture_type": "daybed", "room_type": "bedroom",
     "current_price": 800.0, "regular_price": 800.0, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-02T10:00:00Z"},
    {"id": "p03", "name": "Oak Platform Bed", "description": "Solid oak frame",
     "brand": "IKEA", "furniture_type": "bed", "room_type": "bedroom",
     "current_price": 450.0, "regular_price": 600.0, "discount_percent": None,
     "new_product": False, "on_clearance": True, "created_at": "2024-01-03T10:00:00Z"},
    {"id": "p04", "name": "Sleeper Sofa", "description": "Pull-out sofa bed",
     "brand": "CB2", "furniture_type": "sofa bed", "room_type": "living room",
     "current_price": 999.0, "regular_price": 1299.0, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-04T10:00:00Z"},
    {"id": "p05", "name": "Pine Nightstand", "description": "Two drawers",
     "brand": "IKEA", "furniture_type": "nightstand", "room_type": "bedroom",
     "current_price": 120.0, "regular_price": 240.0, "discount_percent": None,
     "new_product": True, "on_clearance": True, "created_at": "2024-01-05T10:00:00Z"},
    {"id": "p06", "name": "Walnut Dining Table", "description": "Seats eight",
     "brand": "Crate & Barrel", "furniture_type": "dining table", "room_type": "dining room",
     "current_price": 1500.0, "regular_price": 1500.0, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-06T10:00:00Z"},
    {"id": "p07", "name": "Cane Dining Chair", "description": "Natural rattan back",
     "brand": "Serena & Lily", "furniture_type": "dining chair", "room_type": "dining room",
     "current_price": 300.0, "regular_price": 400.0, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-07T10:00:00Z"},
    {"id": "p08", "name": "Executive Desk", "description": "Leather top writing desk",
     "brand": "Pottery Barn", "furniture_type": "desk", "room_type": "office",
     "current_price": 700.0, "regular_price": None, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-08T10:00:00Z"},
    {"id": "p09", "name": "Teak Outdoor Chair", "description": "Weatherproof teak",
     "brand": "Castlery", "furniture_type": "outdoor chair", "room_type": "outdoor",
     "current_price": 250.0, "regular_price": 500.0, "discount_percent": None,
     "new_product": False, "on_clearance": True, "created_at": "2024-01-09T10:00:00Z"},
    {"id": "p10", "name": "Velvet Accent Chair", "description": "Channel-tufted velvet",
     "brand": "Anthropologie", "furniture_type": "accent chair", "room_type": "living room / bedroom",
     "current_price": 650.0, "regular_price": 650.0, "discount_percent": None,
     "new_product": True, "on_clearance": False, "created_at": "2024-01-10T10:00:00Z"},
    {"id": "p11", "name": "Linen Headboard", "description": "Upholstered headboard",
     "brand": "Burrow", "furniture_type": "headboard", "room_type": "bedroom",
     "current_price": None, "regular_price": None, "discount_percent": None,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-11T10:00:00Z"},
    {"id": "p12", "name": "Glass Coffee Table", "description": "Tempered glass top",
     "brand": "Room & Board", "furniture_type": "coffee table", "room_type": "living room",
     "current_price": 400.0, "regular_price": 500.0, "discount_percent": 20.0,
     "new_product": False, "on_clearance": False, "created_at": "2024-01-12T10:00:00Z"},
]


@pytest.fixture
def sample_rows():
    """Backend-shaped furniture rows."""
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture
def sample_products(sample_rows):
    """Sample rows as Product records."""
    from src.catalog.models import Product

    return [Product.from_record(row) for row in sample_rows]


@pytest.fixture
def test_db(sample_rows):
    """Create in-memory DuckDB with the catalog schema and sample rows."""
    from src.database import initialize_database, load_products

    conn = duckdb.connect(":memory:")
    initialize_database(conn)
    load_products(conn, sample_rows)

    yield conn

    conn.close()


@pytest.fixture
def empty_db():
    """Create in-memory DuckDB with the catalog schema and no rows."""
    from src.database import initialize_database

    conn = duckdb.connect(":memory:")
    initialize_database(conn)

    yield conn

    conn.close()
