"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from crowdfund_escrow.infrastructure.database.orm_models import (
    Campaign,
    CampaignEvent,
    StorageSlot,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from crowdfund_escrow.domain.enums import EventType


class CampaignRepository:
    """Data access for deployed campaigns."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, campaign: Campaign) -> Campaign:
        """Insert a new campaign."""
        self._session.add(campaign)
        await self._session.flush()
        return campaign

    async def get_by_id(
        self, campaign_id: uuid.UUID, for_update: bool = False
    ) -> Campaign | None:
        """Fetch a campaign by its UUID.

        With ``for_update`` the campaign row is locked until the caller's
        transaction ends, so contract calls against one campaign run one at
        a time and each sees the state the previous one committed.
        """
        stmt = select(Campaign).where(Campaign.id == campaign_id)
        if for_update:
            # SQLite ignores FOR UPDATE; writing the row takes its lock there.
            await self._session.execute(
                update(Campaign)
                .where(Campaign.id == campaign_id)
                .values(updated_at=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_balance(self, campaign: Campaign, balance: int) -> Campaign:
        """Record the contract account's balance after a call."""
        campaign.balance = balance
        campaign.updated_at = datetime.now(UTC)
        await self._session.flush()
        return campaign


class SlotRepository:
    """Data access for contract storage slots."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load(self, campaign_id: uuid.UUID) -> dict[bytes, bytes]:
        """Return every slot of a campaign as a key -> value mapping."""
        result = await self._session.execute(
            select(StorageSlot.key, StorageSlot.value).where(
                StorageSlot.campaign_id == campaign_id
            )
        )
        return {bytes(key): bytes(value) for key, value in result.all()}

    async def apply(
        self,
        campaign_id: uuid.UUID,
        changes: dict[bytes, bytes | None],
    ) -> int:
        """Write a storage write-set. ``None`` values delete the slot.

        Returns the number of slots touched.
        """
        for key, value in changes.items():
            slot = await self._session.get(StorageSlot, (campaign_id, key))
            if value is None:
                if slot is not None:
                    await self._session.delete(slot)
            elif slot is None:
                self._session.add(StorageSlot(campaign_id=campaign_id, key=key, value=value))
            else:
                slot.value = value
        await self._session.flush()
        return len(changes)


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        campaign_id: uuid.UUID,
        event_type: EventType,
        actor: str,
        block_height: int,
        amount: int = 0,
        metadata: dict | None = None,
    ) -> CampaignEvent:
        """Append a new audit event. This is the ONLY write operation allowed."""
        count = await self._session.scalar(
            select(func.count()).select_from(CampaignEvent).where(
                CampaignEvent.campaign_id == campaign_id
            )
        )
        evt = CampaignEvent(
            campaign_id=campaign_id,
            sequence=(count or 0) + 1,
            event_type=event_type.value,
            actor=actor,
            amount=amount,
            block_height=block_height,
            metadata_json=metadata,
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def get_by_campaign(self, campaign_id: uuid.UUID) -> list[CampaignEvent]:
        """Fetch all events for a campaign in the order they happened."""
        result = await self._session.execute(
            select(CampaignEvent)
            .where(CampaignEvent.campaign_id == campaign_id)
            .order_by(CampaignEvent.sequence.asc())
        )
        return list(result.scalars().all())
