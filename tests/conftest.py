"""Shared test fixtures for the Crowdfund Escrow test suite.

Provides:
    - Fixed participant addresses (owner, donors)
    - A factory for deployed contracts on a fresh SimulatedLedger
    - An in-memory SQLite database session (aiosqlite)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from crowdfund_escrow.domain.types import Address
from crowdfund_escrow.infrastructure.clock import FixedClock
from crowdfund_escrow.infrastructure.database.engine import (
    build_engine,
    create_tables,
    make_session_factory,
)
from crowdfund_escrow.infrastructure.ledger import SimulatedLedger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from crowdfund_escrow.domain.contract import CrowdfundingContract

# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def owner() -> Address:
    return Address(b"\x0a" * 32)


@pytest.fixture
def alice() -> Address:
    return Address(b"\xa1" * 32)


@pytest.fixture
def bob() -> Address:
    return Address(b"\xb0" * 32)


@pytest.fixture
def deploy(
    owner: Address,
) -> Callable[..., tuple[SimulatedLedger, CrowdfundingContract]]:
    """Return a factory that deploys a campaign on a fresh ledger at block 0."""

    def _deploy(
        target: int = 1000, deadline: int = 100
    ) -> tuple[SimulatedLedger, CrowdfundingContract]:
        ledger = SimulatedLedger(owner=owner)
        contract = ledger.deploy(target, deadline)
        return ledger, contract

    return _deploy


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(0)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session on a fresh in-memory SQLite database."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    factory = make_session_factory(engine)
    async with factory() as session:
        yield session
    await engine.dispose()
