"""Value types shared across the domain.

Addresses are opaque 32-byte identities. The text form is ``0x`` followed by
64 lowercase hex digits, which is what the API and the logs carry.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ADDRESS_LENGTH = 32

# Smart-contract addresses reserve their first 8 bytes as zero.
_CONTRACT_PREFIX = bytes(8)


@dataclass(frozen=True, slots=True)
class Address:
    """A fixed-size account identity."""

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes) or len(self.raw) != ADDRESS_LENGTH:
            raise ValueError(f"Address must be exactly {ADDRESS_LENGTH} bytes")

    @classmethod
    def from_hex(cls, value: str) -> Address:
        """Parse a ``0x``-prefixed (or bare) hex address."""
        text = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            raw = bytes.fromhex(text)
        except ValueError as err:
            raise ValueError(f"Invalid hex address: {value!r}") from err
        return cls(raw)

    @classmethod
    def generate_contract(cls) -> Address:
        """Return a fresh random smart-contract address."""
        return cls(_CONTRACT_PREFIX + os.urandom(ADDRESS_LENGTH - len(_CONTRACT_PREFIX)))

    @property
    def is_contract(self) -> bool:
        return self.raw.startswith(_CONTRACT_PREFIX)

    def hex(self) -> str:
        return "0x" + self.raw.hex()

    def __str__(self) -> str:
        return self.hex()
