"""Tests for the campaign REST routes.

The app runs in-process over httpx's ASGITransport. The database session and
block clock dependencies are overridden with an in-memory SQLite database and
a FixedClock, so the lifespan hooks are never needed.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crowdfund_escrow.api.deps import get_clock, get_db_session
from crowdfund_escrow.infrastructure.clock import FixedClock
from crowdfund_escrow.infrastructure.database.engine import (
    build_engine,
    create_tables,
    make_session_factory,
)
from crowdfund_escrow.main import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncSession

OWNER = "0x" + "0a" * 32
ALICE = "0x" + "a1" * 32
BOB = "0x" + "b0" * 32


@pytest_asyncio.fixture
async def clock() -> FixedClock:
    return FixedClock(0)


@pytest_asyncio.fixture
async def client(clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    factory = make_session_factory(engine)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await engine.dispose()


async def _create(client: AsyncClient, target: int = 1000, deadline: int = 100) -> str:
    resp = await client.post(
        "/api/v1/campaigns",
        json={"owner": OWNER, "target": target, "deadline": deadline},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


class TestCreateCampaign:
    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/campaigns",
            json={"owner": OWNER, "target": 1000, "deadline": 100},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["owner_address"] == OWNER
        assert body["target"] == 1000
        assert body["deadline"] == 100
        assert body["current_funds"] == 0
        assert body["status"] == "FUNDING_PERIOD"
        assert body["asset"] == "EGLD"
        assert "X-Request-ID" in resp.headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"owner": OWNER, "target": 0, "deadline": 100},
            {"owner": OWNER, "target": 10, "deadline": -1},
            {"owner": OWNER, "target": 10, "deadline": 2**64},
            {"owner": "0x1234", "target": 10, "deadline": 100},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, payload: dict) -> None:
        resp = await client.post("/api/v1/campaigns", json=payload)
        assert resp.status_code == 422


class TestFundAndClaim:
    @pytest.mark.asyncio
    async def test_failed_campaign_flow(self, client: AsyncClient, clock: FixedClock) -> None:
        campaign_id = await _create(client)

        clock.set(50)
        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/fund",
            json={"caller": ALICE, "payment": 400},
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["deposit"] == 400
        assert resp.json()["current_funds"] == 400

        clock.set(101)
        resp = await client.get(f"/api/v1/campaigns/{campaign_id}/status")
        assert resp.json()["status"] == "FAILED"
        assert resp.json()["allowed_actions"] == ["claim"]

        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/claim", json={"caller": ALICE}
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["amount"] == 400
        assert body["deposit"] == 0
        assert body["transfers"] == [
            {
                "recipient": ALICE,
                "asset": "EGLD",
                "amount": 400,
                "memo": "claim",
                "block_height": 101,
            }
        ]

        resp = await client.get(f"/api/v1/campaigns/{campaign_id}/deposits/{ALICE}")
        assert resp.json()["amount"] == 0

    @pytest.mark.asyncio
    async def test_fund_after_deadline(self, client: AsyncClient, clock: FixedClock) -> None:
        campaign_id = await _create(client)
        clock.set(101)

        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/fund",
            json={"caller": ALICE, "payment": 400},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "DEADLINE_PASSED"

    @pytest.mark.asyncio
    async def test_claim_too_early(self, client: AsyncClient) -> None:
        campaign_id = await _create(client)
        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/claim", json={"caller": OWNER}
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "CLAIM_TOO_EARLY"

    @pytest.mark.asyncio
    async def test_successful_campaign(self, client: AsyncClient, clock: FixedClock) -> None:
        campaign_id = await _create(client)
        await client.post(
            f"/api/v1/campaigns/{campaign_id}/fund",
            json={"caller": ALICE, "payment": 1200},
        )
        clock.set(101)

        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/claim", json={"caller": BOB}
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "NOT_OWNER"

        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/claim", json={"caller": OWNER}
        )
        assert resp.status_code == 200
        assert resp.json()["amount"] == 1200
        assert resp.json()["status"] == "SUCCESSFUL"

        resp = await client.get(f"/api/v1/campaigns/{campaign_id}")
        assert resp.json()["current_funds"] == 0

        # The donor's refund has nothing left to draw on.
        resp = await client.post(
            f"/api/v1/campaigns/{campaign_id}/claim", json={"caller": ALICE}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "TRANSFER_FAILED"

        resp = await client.get(f"/api/v1/campaigns/{campaign_id}/deposits/{ALICE}")
        assert resp.json()["amount"] == 1200


class TestReads:
    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient) -> None:
        resp = await client.get(f"/api/v1/campaigns/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "CAMPAIGN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_deposit_address_validated(self, client: AsyncClient) -> None:
        campaign_id = await _create(client)
        resp = await client.get(f"/api/v1/campaigns/{campaign_id}/deposits/0xnothex")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_deposit_lowercased(self, client: AsyncClient) -> None:
        campaign_id = await _create(client)
        resp = await client.get(
            f"/api/v1/campaigns/{campaign_id}/deposits/{ALICE.upper().replace('0X', '0x')}"
        )
        assert resp.status_code == 200
        assert resp.json() == {"campaign_id": campaign_id, "donor": ALICE, "amount": 0}

    @pytest.mark.asyncio
    async def test_events(self, client: AsyncClient) -> None:
        campaign_id = await _create(client)
        await client.post(
            f"/api/v1/campaigns/{campaign_id}/fund",
            json={"caller": ALICE, "payment": 5},
        )

        resp = await client.get(f"/api/v1/campaigns/{campaign_id}/events")
        assert resp.status_code == 200
        events = resp.json()
        assert [e["event_type"] for e in events] == ["CAMPAIGN_INITIALIZED", "DEPOSIT_RECEIVED"]
        assert [e["sequence"] for e in events] == [1, 2]
        assert events[1]["actor"] == ALICE
        assert events[1]["amount"] == 5
        assert events[1]["metadata"] == {"deposit": "5"}
