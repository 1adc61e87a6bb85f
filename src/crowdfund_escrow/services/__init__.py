"""Application services — use case orchestration."""

from crowdfund_escrow.services.campaign_service import CallOutcome, CampaignService

__all__ = ["CallOutcome", "CampaignService"]
