"""Domain layer — pure business logic with zero framework dependencies."""

from crowdfund_escrow.domain.contract import CrowdfundingContract
from crowdfund_escrow.domain.enums import (
    CampaignStatus,
    EventType,
)
from crowdfund_escrow.domain.exceptions import (
    CampaignNotFoundError,
    ClaimTooEarlyError,
    CrowdfundError,
    DeadlinePassedError,
    NotOwnerError,
)
from crowdfund_escrow.domain.host_protocol import Host, Storage
from crowdfund_escrow.domain.state_machine import (
    CampaignStateMachine,
    derive_status,
    validate_transition,
)
from crowdfund_escrow.domain.types import Address

__all__ = [
    "Address",
    "CampaignStatus",
    "EventType",
    "CrowdfundError",
    "CampaignNotFoundError",
    "ClaimTooEarlyError",
    "DeadlinePassedError",
    "NotOwnerError",
    "CrowdfundingContract",
    "CampaignStateMachine",
    "derive_status",
    "validate_transition",
    "Host",
    "Storage",
]
