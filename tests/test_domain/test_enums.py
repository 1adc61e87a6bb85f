"""Tests for domain enumerations."""

from __future__ import annotations

from crowdfund_escrow.domain.enums import CampaignStatus, EventType


class TestCampaignStatus:
    def test_all_statuses_exist(self) -> None:
        expected = {"FUNDING_PERIOD", "SUCCESSFUL", "FAILED"}
        actual = {s.value for s in CampaignStatus}
        assert actual == expected

    def test_status_is_str_enum(self) -> None:
        assert isinstance(CampaignStatus.FUNDING_PERIOD, str)
        assert CampaignStatus.FAILED == "FAILED"


class TestEventType:
    def test_all_event_types_exist(self) -> None:
        # 1 deployment + 1 funding + 3 claim outcomes
        assert len(EventType) == 5

    def test_event_type_is_str_enum(self) -> None:
        assert isinstance(EventType.DEPOSIT_RECEIVED, str)
        assert EventType.EMPTY_CLAIM == "EMPTY_CLAIM"
