"""Campaign REST API routes.

These endpoints provide the HTTP interface for deploying campaigns, funding
them, claiming, and reading every contract view.

Routes:
    POST   /api/v1/campaigns                         — Deploy a new campaign
    GET    /api/v1/campaigns/{id}                    — Target, deadline, funds, status
    GET    /api/v1/campaigns/{id}/status             — Status + allowed actions
    GET    /api/v1/campaigns/{id}/deposits/{donor}   — One donor's deposit
    GET    /api/v1/campaigns/{id}/events             — Audit trail
    POST   /api/v1/campaigns/{id}/fund               — Fund with an attached payment
    POST   /api/v1/campaigns/{id}/claim              — Owner payout or donor refund
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by FastAPI

from fastapi import APIRouter, Depends, Path

from crowdfund_escrow.api.deps import get_campaign_service
from crowdfund_escrow.domain.types import Address
from crowdfund_escrow.logging_config import get_logger
from crowdfund_escrow.schemas.campaign import (
    ADDRESS_PATTERN,
    CallOutcomeResponse,
    CampaignEventResponse,
    CampaignResponse,
    CampaignStatusResponse,
    ClaimRequest,
    CreateCampaignRequest,
    DepositResponse,
    FundCampaignRequest,
    TransferResponse,
)
from crowdfund_escrow.services.campaign_service import (  # noqa: TC001 - resolved at runtime by FastAPI
    CallOutcome,
    CampaignService,
)

router = APIRouter(prefix="/api/v1/campaigns", tags=["Campaigns"])
logger = get_logger(__name__)


def _outcome_response(outcome: CallOutcome) -> CallOutcomeResponse:
    return CallOutcomeResponse(
        campaign_id=uuid.UUID(outcome.campaign_id),
        caller=outcome.caller,
        status=outcome.status.value,
        amount=outcome.amount,
        deposit=outcome.deposit,
        current_funds=outcome.current_funds,
        block_height=outcome.block_height,
        transfers=[
            TransferResponse(
                recipient=t.recipient.hex(),
                asset=t.asset,
                amount=t.amount,
                memo=t.memo.decode(errors="replace"),
                block_height=t.block_height,
            )
            for t in outcome.transfers
        ],
    )


# ---------------------------------------------------------------------------
# Deploy
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=CampaignResponse,
    status_code=201,
    summary="Deploy a new campaign",
)
async def create_campaign(
    request: CreateCampaignRequest,
    svc: CampaignService = Depends(get_campaign_service),
) -> CampaignResponse:
    """Deploy a contract owned by ``owner`` and initialize target and deadline."""
    campaign = await svc.create_campaign(
        owner=Address.from_hex(request.owner),
        target=request.target,
        deadline=request.deadline,
    )
    overview = await svc.get_overview(campaign.id)
    return CampaignResponse(**overview)


# ---------------------------------------------------------------------------
# Fund
# ---------------------------------------------------------------------------


@router.post(
    "/{campaign_id}/fund",
    response_model=CallOutcomeResponse,
    summary="Fund a campaign",
)
async def fund_campaign(
    campaign_id: uuid.UUID,
    request: FundCampaignRequest,
    svc: CampaignService = Depends(get_campaign_service),
) -> CallOutcomeResponse:
    """Attach a payment to the campaign. Rejected once the deadline has passed."""
    outcome = await svc.fund(
        campaign_id=campaign_id,
        caller=Address.from_hex(request.caller),
        payment=request.payment,
    )
    return _outcome_response(outcome)


# ---------------------------------------------------------------------------
# Claim
# ---------------------------------------------------------------------------


@router.post(
    "/{campaign_id}/claim",
    response_model=CallOutcomeResponse,
    summary="Claim funds",
)
async def claim_campaign(
    campaign_id: uuid.UUID,
    request: ClaimRequest,
    svc: CampaignService = Depends(get_campaign_service),
) -> CallOutcomeResponse:
    """Owner takes the balance of a successful campaign; donors take back a failed one."""
    outcome = await svc.claim(
        campaign_id=campaign_id,
        caller=Address.from_hex(request.caller),
    )
    return _outcome_response(outcome)


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/{campaign_id}",
    response_model=CampaignResponse,
    summary="Get campaign details",
)
async def get_campaign(
    campaign_id: uuid.UUID,
    svc: CampaignService = Depends(get_campaign_service),
) -> CampaignResponse:
    """Return target, deadline, current funds and status."""
    overview = await svc.get_overview(campaign_id)
    return CampaignResponse(**overview)


@router.get(
    "/{campaign_id}/status",
    response_model=CampaignStatusResponse,
    summary="Get lightweight status check",
)
async def get_status(
    campaign_id: uuid.UUID,
    svc: CampaignService = Depends(get_campaign_service),
) -> CampaignStatusResponse:
    """Return the current status and allowed next actions."""
    status_data = await svc.get_status(campaign_id)
    return CampaignStatusResponse(**status_data)


@router.get(
    "/{campaign_id}/deposits/{donor}",
    response_model=DepositResponse,
    summary="Get a donor's deposit",
)
async def get_deposit(
    campaign_id: uuid.UUID,
    donor: str = Path(..., pattern=ADDRESS_PATTERN),
    svc: CampaignService = Depends(get_campaign_service),
) -> DepositResponse:
    """Return the amount recorded for ``donor`` (0 if they never funded)."""
    amount = await svc.get_deposit(campaign_id, Address.from_hex(donor))
    return DepositResponse(campaign_id=campaign_id, donor=donor.lower(), amount=amount)


@router.get(
    "/{campaign_id}/events",
    response_model=list[CampaignEventResponse],
    summary="Get audit trail",
)
async def get_events(
    campaign_id: uuid.UUID,
    svc: CampaignService = Depends(get_campaign_service),
) -> list[CampaignEventResponse]:
    """Return the full audit trail for a campaign."""
    events = await svc.get_events(campaign_id)
    return [CampaignEventResponse.model_validate(e) for e in events]
