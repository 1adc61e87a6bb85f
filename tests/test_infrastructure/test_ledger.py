"""Tests for the simulated ledger, in-memory storage and clocks."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from crowdfund_escrow.domain.exceptions import InsufficientFundsError, TransferFailedError
from crowdfund_escrow.domain.host_protocol import Host, Storage
from crowdfund_escrow.domain.types import Address
from crowdfund_escrow.infrastructure.clock import BlockClock, FixedClock
from crowdfund_escrow.infrastructure.ledger import MemoryStorage, SimulatedLedger


class TestMemoryStorage:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryStorage(), Storage)

    def test_get_set_clear(self) -> None:
        storage = MemoryStorage()
        assert storage.get(b"k") is None
        storage.set(b"k", b"\x01")
        assert storage.get(b"k") == b"\x01"
        storage.clear(b"k")
        assert storage.get(b"k") is None
        storage.clear(b"missing")

    def test_changes_against_baseline(self) -> None:
        storage = MemoryStorage({b"a": b"\x01", b"b": b"\x02", b"c": b"\x03"})
        storage.set(b"a", b"\x09")
        storage.set(b"b", b"\x02")  # unchanged value
        storage.clear(b"c")
        storage.set(b"d", b"\x04")
        assert storage.changes() == {b"a": b"\x09", b"c": None, b"d": b"\x04"}

    def test_snapshot_restore(self) -> None:
        storage = MemoryStorage({b"a": b"\x01"})
        snap = storage.snapshot()
        storage.set(b"a", b"\x02")
        storage.set(b"b", b"\x03")
        storage.restore(snap)
        assert storage.get(b"a") == b"\x01"
        assert len(storage) == 1

    def test_initial_slots_are_copied(self) -> None:
        slots = {b"a": b"\x01"}
        storage = MemoryStorage(slots)
        storage.set(b"a", b"\x02")
        assert slots[b"a"] == b"\x01"


class TestSimulatedLedger:
    @pytest.fixture
    def ledger(self, owner: Address) -> SimulatedLedger:
        return SimulatedLedger(owner=owner)

    def test_satisfies_host_protocol(self, ledger: SimulatedLedger) -> None:
        assert isinstance(ledger, Host)
        assert ledger.contract_address.is_contract

    def test_clock_moves_forward_only(self, ledger: SimulatedLedger) -> None:
        assert ledger.advance(5) == 5
        ledger.set_block_height(5)
        with pytest.raises(ValueError, match="backwards"):
            ledger.set_block_height(4)
        assert ledger.current_time() == 5

    def test_caller_only_inside_call(self, ledger: SimulatedLedger, alice: Address) -> None:
        with pytest.raises(RuntimeError):
            ledger.caller_identity()
        with ledger.call(alice):
            assert ledger.caller_identity() == alice
            assert ledger.attached_payment() == 0
        assert ledger.attached_payment() == 0

    def test_payment_moves_into_contract(self, ledger: SimulatedLedger, alice: Address) -> None:
        ledger.mint(alice, 500)
        with ledger.call(alice, payment=300):
            assert ledger.attached_payment() == 300
            assert ledger.contract_balance(ledger.asset) == 300
        assert ledger.balance_of(alice) == 200

    def test_payment_without_funds(self, ledger: SimulatedLedger, alice: Address) -> None:
        ledger.mint(alice, 10)
        with pytest.raises(InsufficientFundsError) as exc_info, ledger.call(alice, payment=11):
            pass
        assert exc_info.value.required == 11
        assert exc_info.value.available == 10
        assert ledger.balance_of(alice) == 10
        assert ledger.contract_balance(ledger.asset) == 0

    def test_negative_values_rejected(self, ledger: SimulatedLedger, alice: Address) -> None:
        with pytest.raises(ValueError):
            ledger.mint(alice, -1)
        with pytest.raises(ValueError), ledger.call(alice, payment=-1):
            pass

    def test_nested_calls_rejected(self, ledger: SimulatedLedger, alice: Address) -> None:
        with ledger.call(alice), pytest.raises(RuntimeError, match="Nested"), ledger.call(alice):
            pass

    def test_failed_call_reverts_everything(
        self, ledger: SimulatedLedger, alice: Address, bob: Address
    ) -> None:
        ledger.mint(alice, 100)
        ledger.storage.set(b"slot", b"\x01")

        with pytest.raises(KeyError), ledger.call(alice, payment=100):
            ledger.storage.set(b"slot", b"\x02")
            ledger.storage.set(b"other", b"\x03")
            ledger.transfer(bob, ledger.asset, 40, b"memo")
            raise KeyError("boom")

        assert ledger.balance_of(alice) == 100
        assert ledger.balance_of(bob) == 0
        assert ledger.contract_balance(ledger.asset) == 0
        assert ledger.storage.get(b"slot") == b"\x01"
        assert ledger.storage.get(b"other") is None
        assert ledger.transfers == []

    def test_transfer_records(self, ledger: SimulatedLedger, alice: Address, bob: Address) -> None:
        ledger.mint(ledger.contract_address, 50)
        ledger.advance(7)
        with ledger.call(alice):
            ledger.transfer(bob, ledger.asset, 50, b"claim")

        [record] = ledger.transfers
        assert record.sender == ledger.contract_address
        assert record.recipient == bob
        assert record.amount == 50
        assert record.memo == b"claim"
        assert record.block_height == 7
        assert ledger.balance_of(bob) == 50

    def test_transfer_beyond_balance(self, ledger: SimulatedLedger, alice: Address) -> None:
        with pytest.raises(TransferFailedError, match="insufficient contract balance"):
            ledger.transfer(alice, ledger.asset, 1, b"claim")

    def test_blocked_recipient(self, ledger: SimulatedLedger, alice: Address) -> None:
        ledger.mint(ledger.contract_address, 10)
        ledger.block_recipient(alice)
        with pytest.raises(TransferFailedError) as exc_info:
            ledger.transfer(alice, ledger.asset, 10, b"claim")
        assert exc_info.value.code == "TRANSFER_FAILED"
        assert ledger.contract_balance(ledger.asset) == 10

    def test_balances_are_per_asset(self, ledger: SimulatedLedger, alice: Address) -> None:
        ledger.mint(alice, 5, asset="OTHER")
        assert ledger.balance_of(alice) == 0
        assert ledger.balance_of(alice, "OTHER") == 5

    def test_rebuilt_from_persisted_state(self, owner: Address, alice: Address) -> None:
        first = SimulatedLedger(owner=owner)
        contract = first.deploy(target=10, deadline=5)
        first.mint(alice, 4)
        with first.call(alice, payment=4):
            contract.fund()

        second = SimulatedLedger(
            owner=owner,
            contract_address=first.contract_address,
            block_height=6,
            storage=MemoryStorage(first.storage.snapshot()),
            contract_balance=first.contract_balance(first.asset),
        )
        reopened = second.bind()
        assert reopened.get_deposit(alice) == 4
        assert reopened.get_current_funds() == 4
        assert reopened.status() == "FAILED"


class TestClocks:
    def test_fixed_clock(self) -> None:
        clock = FixedClock(3)
        assert clock.block_height() == 3
        assert clock.advance(2) == 5
        clock.set(9)
        assert clock.block_height() == 9
        with pytest.raises(ValueError):
            clock.set(8)

    def test_block_clock_counts_whole_blocks(self) -> None:
        genesis = datetime.now(UTC) - timedelta(seconds=65)
        assert BlockClock(genesis, block_time_seconds=6).block_height() in (10, 11)

    def test_block_clock_before_genesis(self) -> None:
        genesis = datetime.now(UTC) + timedelta(days=1)
        assert BlockClock(genesis, block_time_seconds=6).block_height() == 0

    def test_block_clock_rejects_zero_block_time(self) -> None:
        with pytest.raises(ValueError):
            BlockClock(datetime.now(UTC), block_time_seconds=0)
