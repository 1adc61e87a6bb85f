"""Pydantic schemas for the Campaign API.

These schemas define the request/response shapes for the REST API. They are
separate from the ORM models to maintain clean boundaries between the API
and database layers.

Addresses travel as ``0x``-prefixed 64-digit hex strings. Amounts are plain
JSON integers of arbitrary size.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by pydantic
from datetime import datetime  # noqa: TC003 - resolved at runtime by pydantic
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from crowdfund_escrow.domain.contract import NATIVE_ASSET

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{64}$"

AddressStr = Annotated[
    str,
    Field(
        pattern=ADDRESS_PATTERN,
        description="32-byte address, 0x-prefixed hex (66 chars)",
        examples=["0x" + "ab" * 32],
    ),
]

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateCampaignRequest(BaseModel):
    """Request body for deploying a new campaign."""

    owner: AddressStr = Field(
        ...,
        description="Deployer identity; receives the funds if the campaign succeeds",
    )
    target: int = Field(
        ...,
        gt=0,
        description="Fundraising goal in the smallest unit of the native asset",
        examples=[1000],
    )
    deadline: int = Field(
        ...,
        ge=0,
        le=0xFFFFFFFFFFFFFFFF,
        description="Last block height at which funding is accepted",
        examples=[100],
    )


class FundCampaignRequest(BaseModel):
    """Request body for a donor funding a campaign."""

    caller: AddressStr = Field(..., description="Donor identity")
    payment: int = Field(
        ...,
        ge=0,
        description="Value attached to the call",
        examples=[400],
    )


class ClaimRequest(BaseModel):
    """Request body for claiming funds (owner payout or donor refund)."""

    caller: AddressStr = Field(..., description="Identity of the claimant")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class CampaignResponse(BaseModel):
    """Response schema for a campaign with all its views evaluated now."""

    id: uuid.UUID
    owner_address: str
    contract_address: str
    asset: str = NATIVE_ASSET
    target: int
    deadline: int
    current_funds: int
    status: str
    block_height: int
    created_at: datetime


class CampaignStatusResponse(BaseModel):
    """Lightweight status check response."""

    campaign_id: uuid.UUID
    status: str
    block_height: int
    deadline: int
    allowed_actions: list[str] = Field(
        description="Entry points that can succeed in the current status"
    )


class DepositResponse(BaseModel):
    """Recorded deposit of one donor."""

    campaign_id: uuid.UUID
    donor: str
    amount: int


class TransferResponse(BaseModel):
    """One value movement out of the contract."""

    model_config = ConfigDict(from_attributes=True)

    recipient: str
    asset: str
    amount: int
    memo: str
    block_height: int


class CallOutcomeResponse(BaseModel):
    """Result of a successful fund or claim call."""

    campaign_id: uuid.UUID
    caller: str
    status: str
    amount: int
    deposit: int
    current_funds: int
    block_height: int
    transfers: list[TransferResponse] = Field(default_factory=list)


class CampaignEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    campaign_id: uuid.UUID
    sequence: int
    event_type: str
    actor: str
    amount: int
    block_height: int
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")
    created_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
