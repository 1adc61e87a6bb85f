"""Tests for the storage codec."""

from __future__ import annotations

import pytest

from crowdfund_escrow.domain.codec import (
    DEPOSIT_PREFIX,
    U64_MAX,
    decode_biguint,
    decode_u64,
    deposit_key,
    encode_biguint,
    encode_u64,
)
from crowdfund_escrow.domain.exceptions import StorageCorruptionError
from crowdfund_escrow.domain.types import Address


class TestBigUint:
    def test_zero_is_empty(self) -> None:
        assert encode_biguint(0) == b""

    def test_minimal_big_endian(self) -> None:
        assert encode_biguint(1) == b"\x01"
        assert encode_biguint(255) == b"\xff"
        assert encode_biguint(256) == b"\x01\x00"
        assert encode_biguint(1000) == b"\x03\xe8"

    def test_beyond_64_bits(self) -> None:
        value = 2**100 + 7
        assert decode_biguint(b"k", encode_biguint(value)) == value

    def test_missing_slot_reads_zero(self) -> None:
        assert decode_biguint(b"k", None) == 0
        assert decode_biguint(b"k", b"") == 0

    @pytest.mark.parametrize("value", [-1, 1.5, True, "10"])
    def test_rejects_non_uint(self, value: object) -> None:
        with pytest.raises(ValueError):
            encode_biguint(value)  # type: ignore[arg-type]

    def test_leading_zero_is_corruption(self) -> None:
        with pytest.raises(StorageCorruptionError) as exc_info:
            decode_biguint(b"target", b"\x00\x01")
        assert exc_info.value.code == "STORAGE_CORRUPTION"
        assert exc_info.value.key == b"target"


class TestU64:
    def test_max_value(self) -> None:
        assert encode_u64(U64_MAX) == b"\xff" * 8
        assert decode_u64(b"deadline", b"\xff" * 8) == U64_MAX

    def test_overflow_rejected(self) -> None:
        with pytest.raises(ValueError, match="64 bits"):
            encode_u64(U64_MAX + 1)

    def test_oversize_slot_is_corruption(self) -> None:
        with pytest.raises(StorageCorruptionError):
            decode_u64(b"deadline", b"\x01" + bytes(8))


class TestDepositKey:
    def test_prefix_and_address(self) -> None:
        donor = Address(b"\x11" * 32)
        key = deposit_key(donor)
        assert key.startswith(DEPOSIT_PREFIX)
        assert key[len(DEPOSIT_PREFIX):] == donor.raw

    def test_distinct_per_donor(self) -> None:
        assert deposit_key(Address(b"\x01" * 32)) != deposit_key(Address(b"\x02" * 32))
