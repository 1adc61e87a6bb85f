"""Pydantic API schemas."""

from crowdfund_escrow.schemas.campaign import (
    CallOutcomeResponse,
    CampaignEventResponse,
    CampaignResponse,
    CampaignStatusResponse,
    ClaimRequest,
    CreateCampaignRequest,
    DepositResponse,
    FundCampaignRequest,
    HealthResponse,
    TransferResponse,
)

__all__ = [
    "CallOutcomeResponse",
    "CampaignEventResponse",
    "CampaignResponse",
    "CampaignStatusResponse",
    "ClaimRequest",
    "CreateCampaignRequest",
    "DepositResponse",
    "FundCampaignRequest",
    "HealthResponse",
    "TransferResponse",
]
