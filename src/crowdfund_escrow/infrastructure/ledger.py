"""In-process simulated ledger.

Provides the host capabilities a CrowdfundingContract needs, for one contract
instance at a time:

    - MemoryStorage: dict-backed key/value slots with snapshot/restore and a
      write-set (``changes()``) for persisting back to a real store.
    - SimulatedLedger: block height, account balances per asset, outgoing
      transfer log, and the ``call()`` context that gives each contract call
      all-or-nothing semantics.

Usage:
    ledger = SimulatedLedger(owner=owner)
    contract = ledger.deploy(target=1000, deadline=100)
    ledger.mint(donor, 400)
    with ledger.call(donor, payment=400):
        contract.fund()
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from crowdfund_escrow.domain.contract import CLAIM_MEMO, NATIVE_ASSET, CrowdfundingContract
from crowdfund_escrow.domain.exceptions import InsufficientFundsError, TransferFailedError
from crowdfund_escrow.domain.types import Address
from crowdfund_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger(__name__)


class MemoryStorage:
    """Dict-backed implementation of the Storage protocol."""

    def __init__(self, slots: dict[bytes, bytes] | None = None) -> None:
        self._slots: dict[bytes, bytes] = dict(slots or {})
        self._baseline: dict[bytes, bytes] = dict(self._slots)

    def get(self, key: bytes) -> bytes | None:
        return self._slots.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._slots[key] = bytes(value)

    def clear(self, key: bytes) -> None:
        self._slots.pop(key, None)

    def snapshot(self) -> dict[bytes, bytes]:
        return dict(self._slots)

    def restore(self, snapshot: dict[bytes, bytes]) -> None:
        self._slots = dict(snapshot)

    def changes(self) -> dict[bytes, bytes | None]:
        """Slots written or cleared since construction. ``None`` means cleared."""
        changed: dict[bytes, bytes | None] = {
            key: value
            for key, value in self._slots.items()
            if self._baseline.get(key) != value
        }
        for key in self._baseline.keys() - self._slots.keys():
            changed[key] = None
        return changed

    def __len__(self) -> int:
        return len(self._slots)


@dataclass(frozen=True)
class TransferRecord:
    """One value movement out of the contract."""

    sender: Address
    recipient: Address
    asset: str
    amount: int
    memo: bytes
    block_height: int


class SimulatedLedger:
    """Host for a single contract instance."""

    def __init__(
        self,
        owner: Address,
        contract_address: Address | None = None,
        asset: str = NATIVE_ASSET,
        block_height: int = 0,
        storage: MemoryStorage | None = None,
        contract_balance: int = 0,
    ) -> None:
        self.owner = owner
        self.contract_address = contract_address or Address.generate_contract()
        self.asset = asset
        self.storage = storage if storage is not None else MemoryStorage()
        self.transfers: list[TransferRecord] = []
        self._block_height = block_height
        self._balances: dict[tuple[Address, str], int] = {}
        if contract_balance:
            self._balances[(self.contract_address, asset)] = contract_balance
        self._blocked: set[Address] = set()
        self._caller: Address | None = None
        self._payment = 0

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    @property
    def block_height(self) -> int:
        return self._block_height

    def set_block_height(self, height: int) -> None:
        if height < self._block_height:
            raise ValueError(
                f"Block height cannot go backwards ({height} < {self._block_height})"
            )
        self._block_height = height

    def advance(self, blocks: int = 1) -> int:
        self.set_block_height(self._block_height + blocks)
        return self._block_height

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def balance_of(self, address: Address, asset: str | None = None) -> int:
        return self._balances.get((address, asset or self.asset), 0)

    def mint(self, address: Address, amount: int, asset: str | None = None) -> None:
        """Credit an external account, e.g. a donor's wallet."""
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        key = (address, asset or self.asset)
        self._balances[key] = self._balances.get(key, 0) + amount

    def block_recipient(self, address: Address) -> None:
        """Make every future transfer to ``address`` fail."""
        self._blocked.add(address)

    def _move(self, sender: Address, recipient: Address, asset: str, amount: int) -> None:
        available = self.balance_of(sender, asset)
        if available < amount:
            raise InsufficientFundsError(required=amount, available=available)
        self._balances[(sender, asset)] = available - amount
        self._balances[(recipient, asset)] = self.balance_of(recipient, asset) + amount

    # ------------------------------------------------------------------
    # Call context
    # ------------------------------------------------------------------

    @contextmanager
    def call(self, caller: Address, payment: int = 0) -> Iterator[None]:
        """Run one contract call as ``caller`` with ``payment`` attached.

        The payment moves from caller to contract before the body runs. If the
        body raises, balances, storage and the transfer log are restored to
        their state before the call and the exception propagates.
        """
        if self._caller is not None:
            raise RuntimeError("Nested contract calls are not supported")
        if payment < 0:
            raise ValueError("Payment must be non-negative")

        balances = dict(self._balances)
        slots = self.storage.snapshot()
        transfer_count = len(self.transfers)

        self._caller = caller
        self._payment = payment
        try:
            if payment:
                self._move(caller, self.contract_address, self.asset, payment)
            yield
        except Exception as exc:
            self._balances = balances
            self.storage.restore(slots)
            del self.transfers[transfer_count:]
            logger.info(
                "ledger.call_reverted",
                caller=str(caller),
                payment=str(payment),
                error=type(exc).__name__,
            )
            raise
        finally:
            self._caller = None
            self._payment = 0

    def bind(self, memo: bytes = CLAIM_MEMO) -> CrowdfundingContract:
        """Return a contract view over this ledger's storage."""
        return CrowdfundingContract(self.storage, self, asset=self.asset, memo=memo)

    def deploy(self, target: int, deadline: int, memo: bytes = CLAIM_MEMO) -> CrowdfundingContract:
        """Initialize a fresh contract as the owner and return it."""
        contract = self.bind(memo)
        with self.call(self.owner):
            contract.initialize(target, deadline)
        logger.info(
            "ledger.contract_deployed",
            contract=str(self.contract_address),
            owner=str(self.owner),
            target=str(target),
            deadline=deadline,
        )
        return contract

    # ------------------------------------------------------------------
    # Host protocol
    # ------------------------------------------------------------------

    def current_time(self) -> int:
        return self._block_height

    def caller_identity(self) -> Address:
        if self._caller is None:
            raise RuntimeError("No contract call in progress")
        return self._caller

    def owner_identity(self) -> Address:
        return self.owner

    def contract_balance(self, asset: str) -> int:
        return self.balance_of(self.contract_address, asset)

    def attached_payment(self) -> int:
        return self._payment

    def transfer(self, to: Address, asset: str, amount: int, memo: bytes) -> None:
        if amount < 0:
            raise ValueError("Transfer amount must be non-negative")
        if to in self._blocked:
            raise TransferFailedError(str(to), amount, "recipient rejected transfer")
        try:
            self._move(self.contract_address, to, asset, amount)
        except InsufficientFundsError as err:
            raise TransferFailedError(str(to), amount, "insufficient contract balance") from err

        record = TransferRecord(
            sender=self.contract_address,
            recipient=to,
            asset=asset,
            amount=amount,
            memo=bytes(memo),
            block_height=self._block_height,
        )
        self.transfers.append(record)
        logger.info(
            "ledger.transfer",
            to=str(to),
            asset=asset,
            amount=str(amount),
            memo=record.memo.decode(errors="replace"),
            block_height=self._block_height,
        )
