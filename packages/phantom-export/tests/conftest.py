"""Pytest configuration and fixtures for phantom-export tests."""

import io
import zipfile
from datetime import datetime, timedelta, timezone

import pytest

from phantom_export.ids import FixedClock, SeededIdSource, SequentialIdSource


# =============================================================================
# ID AND CLOCK FIXTURES
# =============================================================================

@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock frozen at 2024-03-15 09:30 UTC."""
    return FixedClock(datetime(2024, 3, 15, 9, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def sequential_ids() -> SequentialIdSource:
    """Readable counter ids."""
    return SequentialIdSource()


@pytest.fixture
def seeded_ids() -> SeededIdSource:
    """UUID-shaped ids from a fixed seed."""
    return SeededIdSource(42)


# =============================================================================
# DASHBOARD FIXTURES
# =============================================================================

@pytest.fixture
def retail_items() -> list[dict]:
    """A small Retail dashboard in the designer's JSON shape."""
    return [
        {
            "id": "c1", "type": "card", "title": "Revenue",
            "layout": {"x": 0, "y": 0, "w": 6, "h": 4},
            "props": {"metric": "revenue", "operation": "sum"},
        },
        {
            "id": "b1", "type": "bar", "title": "Revenue by Region",
            "layout": {"x": 6, "y": 0, "w": 9, "h": 8},
            "props": {"dimension": "Region", "metric": "revenue", "operation": "sum"},
        },
        {
            "id": "l1", "type": "line", "title": "Profit Trend",
            "layout": {"x": 15, "y": 0, "w": 9, "h": 8},
            "props": {"dimension": "Month", "metric": "profit"},
        },
        {
            "id": "w1", "type": "waterfall", "title": "Revenue Bridge",
            "layout": {"x": 0, "y": 8, "w": 12, "h": 8},
            "props": {"dimension": "Region", "metric": "revenue"},
        },
        {
            "id": "t1", "type": "table", "title": "Stores",
            "layout": {"x": 12, "y": 8, "w": 12, "h": 8},
            "props": {"columns": ["Store", "revenue"]},
        },
    ]


@pytest.fixture
def portfolio_items() -> list[dict]:
    return [
        {
            "id": "hdr", "type": "portfolioHeader", "title": "ESG Monitor",
            "layout": {"x": 0, "y": 0, "w": 24, "h": 2},
            "props": {},
        },
        {
            "id": "bar", "type": "controversyBar", "title": "Scores by Group",
            "layout": {"x": 0, "y": 2, "w": 12, "h": 8},
            "props": {"dimension": "Group", "metric": "score", "operation": "avg"},
        },
    ]


# =============================================================================
# DATASET FIXTURES
# =============================================================================

@pytest.fixture
def retail_data() -> dict:
    """Store snapshot with camelCase keys, as the designer persists it."""
    return {
        "stores": [
            {"id": "S1", "name": "Sydney CBD", "region": "East", "country": "AU"},
            {"id": "S2", "name": "Perth \"Central\"", "region": "West", "country": "AU"},
        ],
        "products": [
            {"id": "P1", "name": "Widget", "category": "Tools", "price": 9.5},
        ],
        "sales": [
            {
                "id": "T1", "storeId": "S1", "productId": "P1", "date": "2024-01-05T00:00:00Z",
                "quantity": 3, "quantityPL": 4, "quantityPY": 2,
                "revenue": 28.5, "revenuePL": 30.0, "revenuePY": 20.0,
                "profit": 10.0, "profitPL": 11.0, "profitPY": 8.0,
                "discount": 0.0, "discountPL": 0.0, "discountPY": 0.5,
            },
            {
                "id": "T2", "storeId": "S2", "productId": "P1", "date": "2024-01-05T00:00:00Z",
                "quantity": 1, "quantityPL": 1, "quantityPY": 1,
                "revenue": 9.5, "revenuePL": 9.5, "revenuePY": 0.0,
                "profit": 3.0, "profitPL": 3.0, "profitPY": 0.0,
                "discount": 0.0, "discountPL": 0.0, "discountPY": 0.0,
            },
            {
                "id": "T3", "storeId": "S1", "productId": "P1", "date": "2024-02-10T00:00:00Z",
                "quantity": 2, "quantityPL": 2, "quantityPY": 2,
                "revenue": 19.0, "revenuePL": 20.0, "revenuePY": 18.0,
                "profit": 6.0, "profitPL": 6.0, "profitPY": 5.0,
                "discount": 1.0, "discountPL": 0.0, "discountPY": 0.0,
            },
        ],
    }


def make_shipments(count: int) -> list[dict]:
    """Deterministic shipment rows."""
    carriers = ["FastFreight", "OceanLine", "AirOne"]
    cities = ["Sydney", "Melbourne", "Brisbane", "Perth"]
    start = datetime(2024, 1, 1)
    rows = []
    for i in range(count):
        rows.append({
            "id": f"SH{i:04d}",
            "origin": cities[i % 4],
            "destination": cities[(i + 1) % 4],
            "carrier": carriers[i % 3],
            "cost": 100.0 + i,
            "costPL": 95.0 + i,
            "costPY": 90.0 + i,
            "weight": 10.5,
            "weightPL": 10.0,
            "weightPY": 9.5,
            "status": ["Delivered", "In Transit", "Delayed"][i % 3],
            "date": (start + timedelta(days=i % 60)).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "onTime": i % 2,
        })
    return rows


@pytest.fixture
def logistics_data() -> dict:
    """500 shipments."""
    return {"shipments": make_shipments(500)}


# =============================================================================
# ARCHIVE HELPERS
# =============================================================================

def open_archive(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


@pytest.fixture
def read_archive():
    """Return ``{path: text}`` for every file entry of archive bytes."""
    def _read(data: bytes) -> dict[str, str]:
        with open_archive(data) as zf:
            return {
                name: zf.read(name).decode("utf-8")
                for name in zf.namelist()
                if not name.endswith("/")
            }
    return _read


@pytest.fixture
def archive_names():
    """Return the entry names of archive bytes, in archive order."""
    def _names(data: bytes) -> list[str]:
        with open_archive(data) as zf:
            return zf.namelist()
    return _names


# =============================================================================
# MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests that assemble full archives")
