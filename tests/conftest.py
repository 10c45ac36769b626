"""
Shared pytest fixtures for all tests.

Provides an in-memory SQLite database, an ASGI-backed HTTP client for the
FastAPI app and small factories for products and extracted bill rows.
"""

import os
from decimal import Decimal
from typing import AsyncGenerator, Callable, List, Optional

# Ensure test configuration before the application modules are imported
os.environ["DB_URL"] = "sqlite+aiosqlite://"
os.environ["STORE_ID"] = "store-test"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pharmacy_pos.db.base import get_db, init_models
from pharmacy_pos.db.models.products import Product
from pharmacy_pos.domain.bill_import.extraction import ExtractionService, get_extraction_service
from pharmacy_pos.domain.bill_import.schemas import ImportedLine
from pharmacy_pos.main import app

STORE_ID = "store-test"


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def async_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(async_engine) -> async_sessionmaker:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_product(session_factory) -> Callable:
    """Insert a product batch and return it."""

    async def _make(
        name: str = "paracetamol 500mg",
        sku: str = "PAR-001",
        quantity: int = 50,
        batch_number: Optional[str] = "B1",
        **overrides,
    ) -> Product:
        values = dict(
            store_id=STORE_ID,
            name=name,
            sku=sku,
            quantity=quantity,
            batch_number=batch_number,
            selling_price=Decimal("20.00"),
            mrp=Decimal("25.00"),
            cost_price=Decimal("12.00"),
            tax_percent=Decimal("12"),
            category="MEDICINE",
            unit="strip",
            reorder_level=15,
            min_stock_level=5,
        )
        values.update(overrides)
        async with session_factory() as session:
            product = Product(**values)
            session.add(product)
            await session.commit()
            await session.refresh(product)
            return product

    return _make


# ============================================================================
# EXTRACTION / HTTP FIXTURES
# ============================================================================


@pytest.fixture
def extracted_rows() -> List[dict]:
    """What the extraction service returns for a three-line supplier bill."""
    return [
        {"medicine_name": "TAB. Dolo-650", "batch_number": "D1", "expiry_date": "05/27", "quantity": 10, "mrp": 30, "rate": 22},
        {"medicine_name": "Azithral 500 Tab", "batch_number": "A7", "expiry_date": "2027-01-31", "quantity": 5, "mrp": 120, "rate": 90},
        {"medicine_name": "Benadryl Syp", "batch_number": "BN3", "expiry_date": "11/2026", "quantity": 8, "mrp": 115.5, "rate": 80},
    ]


@pytest.fixture
def imported_lines() -> List[ImportedLine]:
    return [
        ImportedLine(medicine_name="dolo 650", batch_number="D1", expiry_date="05/27", quantity=10, mrp=30, rate=22),
        ImportedLine(medicine_name="azithral 500", batch_number="A7", expiry_date="2027-01-31", quantity=5, mrp=120, rate=90),
        ImportedLine(medicine_name="benadryl", batch_number="BN3", expiry_date="11/2026", quantity=8, mrp="115.5", rate=80),
    ]


@pytest.fixture
def extraction_requests() -> list:
    return []


@pytest.fixture
def extraction_service(extracted_rows, extraction_requests) -> ExtractionService:
    def handler(request: httpx.Request) -> httpx.Response:
        extraction_requests.append(request)
        return httpx.Response(200, json={"data": extracted_rows})

    return ExtractionService(url="http://extractor.test/extract", transport=httpx.MockTransport(handler))


@pytest_asyncio.fixture
async def api_client(session_factory, extraction_service) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client wired to the FastAPI app with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_extraction_service] = lambda: extraction_service

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
