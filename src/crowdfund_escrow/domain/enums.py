"""Domain enumerations for the Crowdfund Escrow ledger.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class CampaignStatus(enum.StrEnum):
    """Derived status of a crowdfunding campaign.

    Never persisted. Recomputed from time, balance, target and deadline on
    every read. See domain/state_machine.py for the transition table.
    """

    FUNDING_PERIOD = "FUNDING_PERIOD"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"


class EventType(enum.StrEnum):
    """Types of audit events recorded in the campaign_events table.

    Every successful contract call produces exactly one event.
    Rejected calls are reverted and leave no trace.
    """

    CAMPAIGN_INITIALIZED = "CAMPAIGN_INITIALIZED"
    DEPOSIT_RECEIVED = "DEPOSIT_RECEIVED"

    # Settlement events
    FUNDS_CLAIMED = "FUNDS_CLAIMED"
    DEPOSIT_REFUNDED = "DEPOSIT_REFUNDED"
    EMPTY_CLAIM = "EMPTY_CLAIM"
