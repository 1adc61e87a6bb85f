"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
the block clock, the campaign service, and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - resolved at runtime by FastAPI

from crowdfund_escrow.config import Settings, get_settings
from crowdfund_escrow.infrastructure.clock import BlockClock, Clock
from crowdfund_escrow.infrastructure.database.engine import get_async_session
from crowdfund_escrow.services.campaign_service import CampaignService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


def get_clock(settings: Settings = Depends(get_app_settings)) -> Clock:
    """Provide the block clock the contract reads as current time."""
    return BlockClock(settings.genesis_timestamp, settings.block_time_seconds)


async def get_campaign_service(
    session: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> CampaignService:
    """Provide a CampaignService bound to the current session and clock."""
    return CampaignService(session, clock, settings)
