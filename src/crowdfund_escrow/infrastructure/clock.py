"""Block-height clocks.

The contract's notion of time is a block height. In the service, the height
comes from one of these:

    BlockClock  — derived from wall-clock time since a configured genesis.
    FixedClock  — set by hand; used by tests and the simulation script.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def block_height(self) -> int: ...


class BlockClock:
    """Height = whole blocks elapsed since genesis, never negative."""

    def __init__(self, genesis: datetime, block_time_seconds: int) -> None:
        if block_time_seconds <= 0:
            raise ValueError("block_time_seconds must be positive")
        self._genesis = genesis
        self._block_time = block_time_seconds

    def block_height(self) -> int:
        elapsed = (datetime.now(UTC) - self._genesis).total_seconds()
        return max(0, int(elapsed // self._block_time))


class FixedClock:
    def __init__(self, height: int = 0) -> None:
        self._height = height

    def block_height(self) -> int:
        return self._height

    def set(self, height: int) -> None:
        if height < self._height:
            raise ValueError("Block height cannot go backwards")
        self._height = height

    def advance(self, blocks: int = 1) -> int:
        self.set(self._height + blocks)
        return self._height
