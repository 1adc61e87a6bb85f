"""Domain exceptions for the Crowdfund Escrow ledger.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
"""


class CrowdfundError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "CROWDFUND_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Contract Guard Errors ---


class DeadlinePassedError(CrowdfundError):
    """Raised when fund() is invoked after the campaign deadline."""

    def __init__(self, current_time: int, deadline: int) -> None:
        super().__init__(
            message=f"Cannot fund after deadline: block {current_time} > deadline {deadline}",
            code="DEADLINE_PASSED",
        )
        self.current_time = current_time
        self.deadline = deadline


class ClaimTooEarlyError(CrowdfundError):
    """Raised when claim() is invoked while still in the funding period."""

    def __init__(self, current_time: int, deadline: int) -> None:
        super().__init__(
            message=f"Cannot claim before deadline: block {current_time} <= deadline {deadline}",
            code="CLAIM_TOO_EARLY",
        )
        self.current_time = current_time
        self.deadline = deadline


class NotOwnerError(CrowdfundError):
    """Raised when someone other than the owner claims a successful campaign."""

    def __init__(self, caller: str) -> None:
        super().__init__(
            message=f"Only owner can claim successful funding (caller {caller})",
            code="NOT_OWNER",
        )
        self.caller = caller


# --- Campaign Errors ---


class CampaignNotFoundError(CrowdfundError):
    """Raised when a campaign ID does not exist."""

    def __init__(self, campaign_id: str) -> None:
        super().__init__(
            message=f"Campaign not found: {campaign_id}",
            code="CAMPAIGN_NOT_FOUND",
        )
        self.campaign_id = campaign_id


class StorageCorruptionError(CrowdfundError):
    """Raised when a storage slot holds bytes that do not decode."""

    def __init__(self, key: bytes, reason: str) -> None:
        super().__init__(
            message=f"Corrupt storage slot {key!r}: {reason}",
            code="STORAGE_CORRUPTION",
        )
        self.key = key


# --- Host / Payment Errors ---


class HostError(CrowdfundError):
    """Raised when a host capability (value movement) fails."""

    def __init__(self, message: str, code: str = "HOST_ERROR") -> None:
        super().__init__(message=message, code=code)


class InsufficientFundsError(HostError):
    """Raised when an account cannot cover the payment attached to a call."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            message=f"Insufficient funds: required {required}, available {available}",
            code="INSUFFICIENT_FUNDS",
        )
        self.required = required
        self.available = available


class TransferFailedError(HostError):
    """Raised when the host refuses to move value out of the contract."""

    def __init__(self, to: str, amount: int, reason: str) -> None:
        super().__init__(
            message=f"Transfer of {amount} to {to} failed: {reason}",
            code="TRANSFER_FAILED",
        )
        self.to = to
        self.amount = amount
