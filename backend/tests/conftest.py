"""
Shared fixtures: isolated storage backends, a seeded benchmark universe and a
TestClient bound to a fresh app per test.
"""

import random

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.database import create_db_engine
from app.main import create_app
from app.services.benchmarks.broadcaster import BenchmarkBroadcaster
from app.services.benchmarks.universe import BenchmarkUniverse
from app.services.storage import MemoryStorage, SqlStorage


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def empty_storage() -> MemoryStorage:
    return MemoryStorage(seed=False)


@pytest.fixture
def sql_storage() -> SqlStorage:
    engine = create_db_engine("sqlite://")
    storage = SqlStorage(engine)
    yield storage
    engine.dispose()


@pytest.fixture
def universe() -> BenchmarkUniverse:
    return BenchmarkUniverse(rng=random.Random(42))


@pytest.fixture
def broadcaster(universe) -> BenchmarkBroadcaster:
    # Long interval: tests drive broadcasts with broadcast_once()
    return BenchmarkBroadcaster(universe=universe, interval=3600)


@pytest.fixture
def client(memory_storage, broadcaster):
    app = create_app(storage=memory_storage, broadcaster=broadcaster)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def strict_companies(monkeypatch):
    """Disable placeholder companies for wizard writes."""
    monkeypatch.setattr(settings, "AUTO_CREATE_PLACEHOLDER_COMPANIES", False)


@pytest.fixture
def wizard_payloads():
    """Complete wizard input for one company (generates 807,500 / 950,000 / 1,092,500)."""
    def build(company_id: int):
        return {
            "financials": {
                "companyId": company_id,
                "revenueCurrent": "500000",
                "revenuePrevious": "600000",
                "revenueTwoYearsAgo": "550000",
                "ebitda": "200000",
                "netMargin": "8",
            },
            "employees": {
                "companyId": company_id,
                "count": 12,
                "digitalSystems": ["crm"],
            },
            "technology": {
                "companyId": company_id,
                "transformationLevel": 2,
                "technologiesUsed": ["cloud"],
                "techInvestmentPercentage": "3",
            },
            "owner-intent": {
                "companyId": company_id,
                "intent": "sell",
                "exitTimeline": "1-2 years",
                "idealOutcome": "Full exit",
                "valuationExpectations": "1000000",
            },
        }
    return build
