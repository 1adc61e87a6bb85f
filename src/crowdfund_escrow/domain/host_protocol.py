"""Host capability protocols.

Defines the interfaces the contract needs from the ledger it runs on. These
are Protocols (structural subtyping), so adapters don't need to inherit from
a base class; they just need to match the shape.

The domain layer has ZERO imports from SQLAlchemy, FastAPI, or any network
client. Everything outside the contract is reached through these two seams.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from crowdfund_escrow.domain.types import Address


@runtime_checkable
class Storage(Protocol):
    """Key/value slots owned by one contract instance.

    Absent keys read as ``None``. ``clear`` removes the slot entirely.
    """

    def get(self, key: bytes) -> bytes | None: ...

    def set(self, key: bytes, value: bytes) -> None: ...

    def clear(self, key: bytes) -> None: ...


@runtime_checkable
class Host(Protocol):
    """Ledger capabilities available during a single contract call.

    Every method is synchronous and completes before the contract returns.
    The host serializes calls and reverts the whole call if it raises.
    """

    def current_time(self) -> int:
        """Monotonically non-decreasing time counter (block height)."""
        ...

    def caller_identity(self) -> Address:
        """Authenticated identity of whoever invoked the current call."""
        ...

    def owner_identity(self) -> Address:
        """Identity recorded at deployment."""
        ...

    def contract_balance(self, asset: str) -> int:
        """Value currently held by this contract instance for ``asset``."""
        ...

    def transfer(self, to: Address, asset: str, amount: int, memo: bytes) -> None:
        """Move value out of the contract.

        Raises:
            TransferFailedError: If the host refuses the transfer.
        """
        ...

    def attached_payment(self) -> int:
        """Value attached to the current call by its invoker."""
        ...
