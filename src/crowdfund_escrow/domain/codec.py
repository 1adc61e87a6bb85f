"""Per-field storage codec.

Slot values are serialized independently, with no composite encoding:

    unsigned int  -> minimal big-endian bytes, zero is the empty string
    u64           -> same shape, bounded to 64 bits
    address       -> the raw 32 bytes (used only inside keys)

Decoding is strict: a leading zero byte is non-canonical and rejected, so every
value has exactly one representation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from crowdfund_escrow.domain.exceptions import StorageCorruptionError

if TYPE_CHECKING:
    from crowdfund_escrow.domain.types import Address

U64_MAX = 0xFFFFFFFFFFFFFFFF

TARGET_KEY = b"target"
DEADLINE_KEY = b"deadline"
DEPOSIT_PREFIX = b"deposit"


def deposit_key(donor: Address) -> bytes:
    """Storage key for one donor's entry in the deposit family."""
    return DEPOSIT_PREFIX + donor.raw


def encode_biguint(value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Expected a non-negative integer, got {value!r}")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def decode_biguint(key: bytes, data: bytes | None) -> int:
    if not data:
        return 0
    if data[0] == 0:
        raise StorageCorruptionError(key, "non-canonical leading zero byte")
    return int.from_bytes(data, "big")


def encode_u64(value: int) -> bytes:
    if isinstance(value, int) and value > U64_MAX:
        raise ValueError(f"Value {value} does not fit in 64 bits")
    return encode_biguint(value)


def decode_u64(key: bytes, data: bytes | None) -> int:
    if data is not None and len(data) > 8:
        raise StorageCorruptionError(key, f"u64 slot holds {len(data)} bytes")
    return decode_biguint(key, data)
