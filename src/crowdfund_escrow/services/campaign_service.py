"""Campaign Service — hosts contract calls against persisted state.

This is the application layer that coordinates between:
    - The crowdfunding contract (all business rules)
    - The simulated ledger (host capabilities + call atomicity)
    - Repositories (slots, balance, audit trail)

Every mutating operation follows the same shape:
    1. Lock the campaign row, then load its storage slots. Calls against one
       campaign are serialized until the caller commits or rolls back.
    2. Build a SimulatedLedger over them at the current block height.
    3. Run exactly one contract call inside ``ledger.call``.
    4. On success, write back the storage write-set, the new balance and one
       audit event. On failure nothing is written and the error propagates.

Both REST routes and the simulation script call into this service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from crowdfund_escrow.config import Settings, get_settings
from crowdfund_escrow.domain.enums import CampaignStatus, EventType
from crowdfund_escrow.domain.exceptions import CampaignNotFoundError, CrowdfundError
from crowdfund_escrow.domain.state_machine import allowed_actions
from crowdfund_escrow.domain.types import Address
from crowdfund_escrow.infrastructure.database.orm_models import Campaign
from crowdfund_escrow.infrastructure.database.repositories import (
    CampaignRepository,
    EventRepository,
    SlotRepository,
)
from crowdfund_escrow.infrastructure.ledger import MemoryStorage, SimulatedLedger, TransferRecord
from crowdfund_escrow.logging_config import bind_call_context, clear_call_context, get_logger

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from crowdfund_escrow.domain.contract import CrowdfundingContract
    from crowdfund_escrow.infrastructure.clock import Clock

logger = get_logger(__name__)


@dataclass(frozen=True)
class CallOutcome:
    """What a successful fund or claim call did."""

    campaign_id: str
    caller: str
    status: CampaignStatus
    amount: int
    current_funds: int
    block_height: int
    deposit: int = 0
    transfers: list[TransferRecord] = field(default_factory=list)


class CampaignService:
    """Manages deployed campaigns and the calls made against them."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._clock = clock
        self._settings = settings or get_settings()
        self._campaign_repo = CampaignRepository(session)
        self._slot_repo = SlotRepository(session)
        self._event_repo = EventRepository(session)

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    async def create_campaign(self, owner: Address, target: int, deadline: int) -> Campaign:
        """Deploy a new contract owned by ``owner`` and initialize it."""
        ledger = SimulatedLedger(
            owner=owner,
            asset=self._settings.native_asset,
            block_height=self._clock.block_height(),
        )
        ledger.deploy(target, deadline, memo=self._settings.claim_memo_bytes)

        campaign = await self._campaign_repo.create(
            Campaign(
                owner_address=owner.hex(),
                contract_address=ledger.contract_address.hex(),
                asset=ledger.asset,
                balance=0,
            )
        )
        await self._persist(
            campaign,
            ledger,
            event_type=EventType.CAMPAIGN_INITIALIZED,
            actor=owner,
            metadata={"target": str(target), "deadline": deadline},
        )

        logger.info(
            "campaign.created",
            campaign_id=str(campaign.id),
            owner=owner.hex(),
            target=str(target),
            deadline=deadline,
        )
        return campaign

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    async def fund(self, campaign_id: uuid.UUID, caller: Address, payment: int) -> CallOutcome:
        """Attach ``payment`` from ``caller`` and record it as their deposit."""
        campaign = await self._get_campaign_or_raise(campaign_id, for_update=True)
        ledger, contract = await self._open(campaign)
        # The payment arrives from outside this ledger, so credit it first.
        ledger.mint(caller, payment)

        bind_call_context(str(campaign.id), caller)
        try:
            with ledger.call(caller, payment=payment):
                deposit = contract.fund()
        except CrowdfundError as exc:
            logger.warning("campaign.fund_rejected", code=exc.code, payment=str(payment))
            raise
        finally:
            clear_call_context()

        await self._persist(
            campaign,
            ledger,
            event_type=EventType.DEPOSIT_RECEIVED,
            actor=caller,
            amount=payment,
            metadata={"deposit": str(deposit)},
        )

        logger.info(
            "campaign.funded",
            campaign_id=str(campaign.id),
            donor=caller.hex(),
            payment=str(payment),
            deposit=str(deposit),
        )
        return CallOutcome(
            campaign_id=str(campaign.id),
            caller=caller.hex(),
            status=contract.status(),
            amount=payment,
            deposit=deposit,
            current_funds=contract.get_current_funds(),
            block_height=ledger.block_height,
        )

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    async def claim(self, campaign_id: uuid.UUID, caller: Address) -> CallOutcome:
        """Claim as ``caller``: the owner's payout or a donor's refund."""
        campaign = await self._get_campaign_or_raise(campaign_id, for_update=True)
        ledger, contract = await self._open(campaign)
        status = contract.status()

        bind_call_context(str(campaign.id), caller)
        try:
            with ledger.call(caller):
                amount = contract.claim()
        except CrowdfundError as exc:
            logger.warning("campaign.claim_rejected", code=exc.code, status=status.value)
            raise
        finally:
            clear_call_context()

        if status is CampaignStatus.SUCCESSFUL:
            event_type = EventType.FUNDS_CLAIMED
        elif amount > 0:
            event_type = EventType.DEPOSIT_REFUNDED
        else:
            event_type = EventType.EMPTY_CLAIM

        await self._persist(
            campaign,
            ledger,
            event_type=event_type,
            actor=caller,
            amount=amount,
            metadata={"status": status.value},
        )

        logger.info(
            "campaign.claimed",
            campaign_id=str(campaign.id),
            caller=caller.hex(),
            status=status.value,
            amount=str(amount),
        )
        return CallOutcome(
            campaign_id=str(campaign.id),
            caller=caller.hex(),
            status=status,
            amount=amount,
            deposit=contract.get_deposit(caller),
            current_funds=contract.get_current_funds(),
            block_height=ledger.block_height,
            transfers=list(ledger.transfers),
        )

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_campaign(self, campaign_id: uuid.UUID) -> Campaign:
        """Get a campaign or raise."""
        return await self._get_campaign_or_raise(campaign_id)

    async def get_overview(self, campaign_id: uuid.UUID) -> dict:
        """Every contract view for a campaign, evaluated now."""
        campaign = await self._get_campaign_or_raise(campaign_id)
        ledger, contract = await self._open(campaign)
        return {
            "id": campaign.id,
            "owner_address": campaign.owner_address,
            "contract_address": campaign.contract_address,
            "asset": campaign.asset,
            "target": contract.get_target(),
            "deadline": contract.get_deadline(),
            "current_funds": contract.get_current_funds(),
            "status": contract.status().value,
            "block_height": ledger.block_height,
            "created_at": campaign.created_at,
        }

    async def get_status(self, campaign_id: uuid.UUID) -> dict:
        """Get campaign status with the entry points that can succeed now."""
        campaign = await self._get_campaign_or_raise(campaign_id)
        ledger, contract = await self._open(campaign)
        status = contract.status()
        return {
            "campaign_id": str(campaign.id),
            "status": status.value,
            "block_height": ledger.block_height,
            "deadline": contract.get_deadline(),
            "allowed_actions": allowed_actions(status),
        }

    async def get_deposit(self, campaign_id: uuid.UUID, donor: Address) -> int:
        campaign = await self._get_campaign_or_raise(campaign_id)
        _, contract = await self._open(campaign)
        return contract.get_deposit(donor)

    async def get_events(self, campaign_id: uuid.UUID) -> list:
        """Get audit trail."""
        await self._get_campaign_or_raise(campaign_id)
        return await self._event_repo.get_by_campaign(campaign_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_campaign_or_raise(
        self, campaign_id: uuid.UUID, for_update: bool = False
    ) -> Campaign:
        campaign = await self._campaign_repo.get_by_id(campaign_id, for_update=for_update)
        if campaign is None:
            raise CampaignNotFoundError(str(campaign_id))
        return campaign

    async def _open(self, campaign: Campaign) -> tuple[SimulatedLedger, CrowdfundingContract]:
        """Rebuild the host for one campaign at the current block height."""
        slots = await self._slot_repo.load(campaign.id)
        ledger = SimulatedLedger(
            owner=Address.from_hex(campaign.owner_address),
            contract_address=Address.from_hex(campaign.contract_address),
            asset=campaign.asset,
            block_height=self._clock.block_height(),
            storage=MemoryStorage(slots),
            contract_balance=campaign.balance,
        )
        return ledger, ledger.bind(self._settings.claim_memo_bytes)

    async def _persist(
        self,
        campaign: Campaign,
        ledger: SimulatedLedger,
        event_type: EventType,
        actor: Address,
        amount: int = 0,
        metadata: dict | None = None,
    ) -> None:
        """Write back what one successful call changed."""
        await self._slot_repo.apply(campaign.id, ledger.storage.changes())
        await self._campaign_repo.update_balance(
            campaign, ledger.contract_balance(campaign.asset)
        )
        await self._event_repo.record(
            campaign_id=campaign.id,
            event_type=event_type,
            actor=actor.hex(),
            amount=amount,
            block_height=ledger.block_height,
            metadata=metadata,
        )
