"""End-to-end bill import: staging session -> HTTP client -> API -> database."""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from pharmacy_pos.clients.pos_api import PosApiClient
from pharmacy_pos.core.errors import RemoteRejection
from pharmacy_pos.db.models.products import Product
from pharmacy_pos.domain.bill_import.staging import ImportStagingSession, StagedFile, StagingState
from pharmacy_pos.main import app

BILL = StagedFile("supplier-bill.png", b"\x89PNG fake", "image/png")


@pytest_asyncio.fixture
async def pos_api(api_client):
    # api_client installs the database and extraction overrides on the app
    async with PosApiClient(base_url="http://test/api/v1", transport=httpx.ASGITransport(app=app)) as client:
        yield client


@pytest.fixture
def refreshed():
    return []


@pytest.fixture
def session(pos_api, refreshed):
    async def refresh(summary):
        refreshed.append(await pos_api.list_products())

    return ImportStagingSession(extractor=pos_api, committer=pos_api, on_committed=refresh)


async def stock(session_factory):
    async with session_factory() as db:
        result = await db.execute(select(Product).order_by(Product.name))
        return {(p.name, p.batch_number): p.quantity for p in result.scalars().all()}


class TestImportFlow:
    async def test_reviewed_rows_are_what_gets_stocked(self, session, session_factory, refreshed):
        session.select_file(BILL)
        await session.submit()
        assert session.state is StagingState.REVIEWING

        session.delete_row(1)
        session.set_quantity(1, 12)
        session.set_medicine_name(0, "dolo 650mg")

        summary = await session.confirm()

        assert (summary.created, summary.updated) == (2, 0)
        assert await stock(session_factory) == {("benadryl", "BN3"): 12, ("dolo 650mg", "D1"): 10}
        assert session.state is StagingState.IDLE
        assert refreshed[0].pagination.total == 2

    async def test_rejected_commit_keeps_the_review(self, session, session_factory):
        session.select_file(BILL)
        await session.submit()
        session.set_quantity(2, "2.5")

        with pytest.raises(RemoteRejection) as excinfo:
            await session.confirm()

        assert excinfo.value.status_code == 400
        assert "Row 3" in session.failure.message
        assert session.state is StagingState.REVIEWING
        assert len(session.items) == 3
        assert await stock(session_factory) == {}

        session.set_quantity(2, 3)
        await session.confirm()
        assert await stock(session_factory) == {
            ("azithral 500", "A7"): 5,
            ("benadryl", "BN3"): 3,
            ("dolo 650", "D1"): 10,
        }
