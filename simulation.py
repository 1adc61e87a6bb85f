#!/usr/bin/env python3
"""Crowdfund Escrow — End-to-End Simulation.

Drives the CampaignService with an owner and two donors through three
scenarios, advancing a hand-held block clock between calls:

    Scenario 1: Failed Campaign
        - target 1000, deadline 100
        - Alice funds 400 at block 50, Bob funds 400 at block 80
        - At block 101 the campaign is FAILED (800 < 1000)
        - Alice and Bob each reclaim 400; the owner reclaims nothing

    Scenario 2: Successful Campaign
        - target 1000, deadline 100
        - Alice funds 1200 at block 50
        - At block 101 the campaign is SUCCESSFUL; the owner takes 1200
        - Bob, not the owner, is refused

    Scenario 3: Deadline Boundary
        - Funding at block == deadline is accepted
        - Claiming at block == deadline is too early
        - Funding at deadline + 1 is rejected

Usage:
    # Option A: With PostgreSQL (DATABASE_URL from .env):
    python simulation.py

    # Option B: Without a database server (SQLite in-memory):
    python simulation.py --sqlite

    # Run a specific scenario:
    python simulation.py --sqlite --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from typing import Any

from crowdfund_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from crowdfund_escrow.domain.exceptions import CrowdfundError  # noqa: E402
from crowdfund_escrow.domain.types import Address  # noqa: E402
from crowdfund_escrow.infrastructure.clock import FixedClock  # noqa: E402
from crowdfund_escrow.services.campaign_service import CampaignService  # noqa: E402

# Module-level state
_sqlite_engine = None
_sqlite_session_factory = None


# ---------------------------------------------------------------------------
# Database lifecycle helpers
# ---------------------------------------------------------------------------
async def init_database(use_sqlite: bool = False) -> None:
    """Initialize database engine and create tables."""
    global _sqlite_engine, _sqlite_session_factory

    if use_sqlite:
        from crowdfund_escrow.infrastructure.database.engine import (
            build_engine,
            create_tables,
            make_session_factory,
        )

        _sqlite_engine = build_engine("sqlite+aiosqlite:///:memory:")
        _sqlite_session_factory = make_session_factory(_sqlite_engine)
        await create_tables(_sqlite_engine)
        logger.info("database.sqlite_initialized")
    else:
        from crowdfund_escrow.infrastructure.database.engine import init_db

        await init_db()


async def get_session() -> Any:
    """Get a fresh database session."""
    if _sqlite_session_factory is not None:
        return _sqlite_session_factory()

    from crowdfund_escrow.infrastructure.database.engine import _get_session_factory

    return _get_session_factory()()


async def shutdown_database() -> None:
    """Close database connections."""
    global _sqlite_engine, _sqlite_session_factory

    if _sqlite_engine is not None:
        await _sqlite_engine.dispose()
        _sqlite_engine = None
        _sqlite_session_factory = None
    else:
        from crowdfund_escrow.infrastructure.database.engine import close_db

        await close_db()


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------
@dataclass
class Participant:
    """A named ledger identity that calls into the service."""

    name: str
    address: Address

    async def fund(self, svc: CampaignService, session: Any, campaign_id: Any, amount: int) -> None:
        try:
            outcome = await svc.fund(campaign_id, self.address, amount)
            await session.commit()
            print(f"  💸 {self.name} funded {amount} -> deposit {outcome.deposit}, "
                  f"funds {outcome.current_funds}")
        except CrowdfundError as exc:
            await session.rollback()
            print(f"  ⛔ {self.name} fund({amount}) rejected: {exc.code}")

    async def claim(self, svc: CampaignService, session: Any, campaign_id: Any) -> None:
        try:
            outcome = await svc.claim(campaign_id, self.address)
            await session.commit()
            print(f"  🏦 {self.name} claimed under {outcome.status.value}: received {outcome.amount}")
        except CrowdfundError as exc:
            await session.rollback()
            print(f"  ⛔ {self.name} claim rejected: {exc.code}")


OWNER = Participant("Owner", Address(b"\x0a" * 32))
ALICE = Participant("Alice", Address(b"\xa1" * 32))
BOB = Participant("Bob", Address(b"\xb0" * 32))


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------
def header(title: str) -> None:
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def section(title: str) -> None:
    print(f"\n--- {title} ---")


async def print_status(svc: CampaignService, campaign_id: Any) -> None:
    status = await svc.get_status(campaign_id)
    overview = await svc.get_overview(campaign_id)
    print(f"  📊 block {status['block_height']}: {status['status']} "
          f"(funds {overview['current_funds']}/{overview['target']}, "
          f"allowed: {', '.join(status['allowed_actions'])})")


async def print_audit_trail(svc: CampaignService, campaign_id: Any) -> None:
    section("Audit Trail")
    for evt in await svc.get_events(campaign_id):
        print(f"  #{evt.sequence:<3} block {evt.block_height:<5} {evt.event_type:<22} "
              f"amount={evt.amount:<6} actor={evt.actor[:10]}…")


async def deploy(svc: CampaignService, session: Any, target: int, deadline: int) -> Any:
    campaign = await svc.create_campaign(OWNER.address, target=target, deadline=deadline)
    await session.commit()
    print(f"  🚀 Deployed campaign {campaign.id} (target {target}, deadline {deadline})")
    return campaign.id


# ===========================================================================
# Scenarios
# ===========================================================================
async def scenario_1_failed_campaign() -> None:
    header("SCENARIO 1: Failed Campaign (donors reclaim)")
    clock = FixedClock(0)
    session = await get_session()
    async with session:
        svc = CampaignService(session, clock)
        campaign_id = await deploy(svc, session, target=1000, deadline=100)

        section("Funding period")
        clock.set(50)
        await ALICE.fund(svc, session, campaign_id, 400)
        clock.set(80)
        await BOB.fund(svc, session, campaign_id, 400)
        await print_status(svc, campaign_id)

        section("After the deadline")
        clock.set(101)
        await print_status(svc, campaign_id)
        await ALICE.claim(svc, session, campaign_id)
        await BOB.claim(svc, session, campaign_id)
        await OWNER.claim(svc, session, campaign_id)
        await ALICE.claim(svc, session, campaign_id)
        await print_status(svc, campaign_id)

        await print_audit_trail(svc, campaign_id)


async def scenario_2_successful_campaign() -> None:
    header("SCENARIO 2: Successful Campaign (owner withdraws)")
    clock = FixedClock(0)
    session = await get_session()
    async with session:
        svc = CampaignService(session, clock)
        campaign_id = await deploy(svc, session, target=1000, deadline=100)

        section("Funding period")
        clock.set(50)
        await ALICE.fund(svc, session, campaign_id, 1200)
        await OWNER.claim(svc, session, campaign_id)

        section("After the deadline")
        clock.set(101)
        await print_status(svc, campaign_id)
        await BOB.claim(svc, session, campaign_id)
        await OWNER.claim(svc, session, campaign_id)
        await print_status(svc, campaign_id)

        await print_audit_trail(svc, campaign_id)


async def scenario_3_deadline_boundary() -> None:
    header("SCENARIO 3: Deadline Boundary")
    clock = FixedClock(0)
    session = await get_session()
    async with session:
        svc = CampaignService(session, clock)
        campaign_id = await deploy(svc, session, target=500, deadline=100)

        section("Block == deadline")
        clock.set(100)
        await ALICE.fund(svc, session, campaign_id, 100)
        await ALICE.claim(svc, session, campaign_id)
        await print_status(svc, campaign_id)

        section("Block == deadline + 1")
        clock.advance()
        await BOB.fund(svc, session, campaign_id, 1000)
        await print_status(svc, campaign_id)

        await print_audit_trail(svc, campaign_id)


SCENARIOS = {
    1: scenario_1_failed_campaign,
    2: scenario_2_successful_campaign,
    3: scenario_3_deadline_boundary,
}


# ===========================================================================
# Main
# ===========================================================================
async def run(scenario: int = 0, use_sqlite: bool = False) -> None:
    """Run one scenario, or all of them when ``scenario`` is 0."""
    if scenario and scenario not in SCENARIOS:
        print(f"Unknown scenario {scenario}. Available: {', '.join(map(str, SCENARIOS))}")
        return

    await init_database(use_sqlite=use_sqlite)
    try:
        print("\n" + "🚀" * 35)
        print("  CROWDFUND ESCROW — SIMULATION")
        print(f"  Database: {'SQLite (in-memory)' if use_sqlite else 'configured DATABASE_URL'}")
        print("🚀" * 35)

        for num, fn in SCENARIOS.items():
            if scenario in (0, num):
                await fn()

        print("\n" + "=" * 70)
        print("  ✅ SIMULATION COMPLETE")
        print("=" * 70 + "\n")
    finally:
        await shutdown_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Crowdfund Escrow Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Use SQLite in-memory instead of the configured database.",
    )
    args = parser.parse_args()

    asyncio.run(run(scenario=args.scenario, use_sqlite=args.sqlite))
