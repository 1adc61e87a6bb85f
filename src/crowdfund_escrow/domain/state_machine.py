"""Campaign Status State Machine.

Uses python-statemachine to describe the implicit lifecycle of a campaign.
Status is never stored: every read replays the transitions on a fresh machine
from the current inputs, so a stale status cannot leak between calls.

Transition table:
    FUNDING_PERIOD -> SUCCESSFUL    (target_reached)
    FUNDING_PERIOD -> FAILED        (target_missed)

SUCCESSFUL and FAILED are final. As time only moves forward, a campaign that
has left FUNDING_PERIOD can never return to it.
"""

from __future__ import annotations

from statemachine import State, StateMachine

from crowdfund_escrow.domain.enums import CampaignStatus


class CampaignStateMachine(StateMachine):
    """State machine that guards campaign status transitions.

    Usage:
        sm = CampaignStateMachine()
        sm.target_missed()  # transitions to FAILED
        sm.status           # "FAILED"
    """

    # --- States ---
    FUNDING_PERIOD = State("FUNDING_PERIOD", initial=True)
    SUCCESSFUL = State("SUCCESSFUL", final=True)
    FAILED = State("FAILED", final=True)

    # --- Events / Transitions ---
    target_reached = FUNDING_PERIOD.to(SUCCESSFUL)
    target_missed = FUNDING_PERIOD.to(FAILED)

    def __init__(self, current_status: str = "FUNDING_PERIOD") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: A CampaignStatus value (e.g., "FAILED").
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches CampaignStatus)."""
        return str(self.current_state_value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


def derive_status(
    current_time: int,
    deadline: int,
    current_funds: int,
    target: int,
) -> CampaignStatus:
    """Compute the campaign status. First match wins.

    1. current_time <= deadline  -> FUNDING_PERIOD (inclusive at the deadline)
    2. current_funds >= target   -> SUCCESSFUL
    3. otherwise                 -> FAILED
    """
    sm = CampaignStateMachine()
    if current_time > deadline:
        if current_funds >= target:
            sm.target_reached()
        else:
            sm.target_missed()
    return CampaignStatus(sm.status)


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a status transition and return the new status.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = CampaignStateMachine(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.status


_ALLOWED_ACTIONS: dict[CampaignStatus, tuple[str, ...]] = {
    CampaignStatus.FUNDING_PERIOD: ("fund",),
    CampaignStatus.SUCCESSFUL: ("claim",),
    CampaignStatus.FAILED: ("claim",),
}


def allowed_actions(status: CampaignStatus) -> list[str]:
    """Public entry points that can succeed in the given status."""
    return list(_ALLOWED_ACTIONS[status])
