"""Crowdfunding escrow contract.

The single stateful component. It owns three storage slots:

    target        fundraising goal, set once at initialization
    deadline      block height after which funding closes
    deposit[a]    running total contributed by donor ``a``

Everything else (time, caller, owner, balance, value movement) comes from the
host. The contract never caches: each entry point reads what it needs from
storage and the host at call time.

Entry points raise on rejection. The host is expected to revert the whole call
when an exception escapes, so a guard failure never leaves partial state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from crowdfund_escrow.domain.codec import (
    DEADLINE_KEY,
    TARGET_KEY,
    decode_biguint,
    decode_u64,
    deposit_key,
    encode_biguint,
    encode_u64,
)
from crowdfund_escrow.domain.enums import CampaignStatus
from crowdfund_escrow.domain.exceptions import (
    ClaimTooEarlyError,
    DeadlinePassedError,
    NotOwnerError,
)
from crowdfund_escrow.domain.state_machine import derive_status

if TYPE_CHECKING:
    from crowdfund_escrow.domain.host_protocol import Host, Storage
    from crowdfund_escrow.domain.types import Address

NATIVE_ASSET = "EGLD"
CLAIM_MEMO = b"claim"


class CrowdfundingContract:
    """Escrow state machine over host-supplied storage."""

    def __init__(
        self,
        storage: Storage,
        host: Host,
        asset: str = NATIVE_ASSET,
        memo: bytes = CLAIM_MEMO,
    ) -> None:
        self._storage = storage
        self._host = host
        self._asset = asset
        self._memo = memo

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    def initialize(self, target: int, deadline: int) -> None:
        """Store the goal and deadline verbatim.

        No business validation: a zero target or a past deadline is accepted.
        Calling this more than once is the host's concern.
        """
        self._storage.set(TARGET_KEY, encode_biguint(target))
        self._storage.set(DEADLINE_KEY, encode_u64(deadline))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_target(self) -> int:
        return decode_biguint(TARGET_KEY, self._storage.get(TARGET_KEY))

    def get_deadline(self) -> int:
        return decode_u64(DEADLINE_KEY, self._storage.get(DEADLINE_KEY))

    def get_deposit(self, donor: Address) -> int:
        key = deposit_key(donor)
        return decode_biguint(key, self._storage.get(key))

    def get_current_funds(self) -> int:
        """Aggregate balance held by the contract, as tracked by the host."""
        return self._host.contract_balance(self._asset)

    def status(self) -> CampaignStatus:
        return derive_status(
            current_time=self._host.current_time(),
            deadline=self.get_deadline(),
            current_funds=self.get_current_funds(),
            target=self.get_target(),
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def fund(self) -> int:
        """Record the attached payment against the caller.

        Accepted while current time <= deadline. A zero payment succeeds
        without changing anything observable.

        Returns:
            The caller's deposit after this call.

        Raises:
            DeadlinePassedError: If current time > deadline.
        """
        current_time = self._host.current_time()
        deadline = self.get_deadline()
        if current_time > deadline:
            raise DeadlinePassedError(current_time, deadline)

        caller = self._host.caller_identity()
        payment = self._host.attached_payment()
        deposit = self.get_deposit(caller) + payment
        if deposit:
            self._storage.set(deposit_key(caller), encode_biguint(deposit))
        return deposit

    def claim(self) -> int:
        """Release funds according to the campaign outcome.

        SUCCESSFUL: the owner takes the whole current balance. Deposits are
        left as they are.
        FAILED: any caller takes back their own deposit, which is cleared
        before the transfer. Nothing to take back is still a success.

        Returns:
            The amount transferred to the caller (0 when nothing moved).

        Raises:
            ClaimTooEarlyError: While still in the funding period.
            NotOwnerError: If a non-owner claims a successful campaign.
        """
        status = self.status()

        if status is CampaignStatus.FUNDING_PERIOD:
            raise ClaimTooEarlyError(self._host.current_time(), self.get_deadline())

        caller = self._host.caller_identity()

        if status is CampaignStatus.SUCCESSFUL:
            if caller != self._host.owner_identity():
                raise NotOwnerError(str(caller))
            balance = self.get_current_funds()
            self._host.transfer(caller, self._asset, balance, self._memo)
            return balance

        deposit = self.get_deposit(caller)
        if deposit > 0:
            self._storage.clear(deposit_key(caller))
            self._host.transfer(caller, self._asset, deposit, self._memo)
        return deposit
