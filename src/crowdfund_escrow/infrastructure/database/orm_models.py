"""SQLAlchemy 2.0 ORM models for the Crowdfund Escrow service.

Three tables:
    1. campaigns        — One deployed contract instance: owner, address, balance.
    2. storage_slots    — The contract's named and keyed slots, as raw bytes.
    3. campaign_events  — Append-only audit log of every successful call.

Design decisions:
    - UUIDs as primary keys (no sequential leakage).
    - Balances and amounts are arbitrary-precision integers, stored as decimal
      text so no backend silently truncates them.
    - Slot values are stored exactly as the contract encoded them; the
      database never interprets contract state.
    - campaign_events is append-only: no UPDATE or DELETE at the application level.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class BigUint(TypeDecorator):
    """Unsigned arbitrary-precision integer stored as decimal text."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError("BigUint columns cannot hold negative values")
        return str(value)

    def process_result_value(self, value, dialect):  # noqa: ANN001
        return None if value is None else int(value)


def _set_updated_at(mapper, connection, target):  # noqa: ANN001
    """SQLAlchemy event listener that updates `updated_at` before flush."""
    if hasattr(target, "updated_at"):
        target.updated_at = datetime.now(UTC)


# ---------------------------------------------------------------------------
# 1. campaigns
# ---------------------------------------------------------------------------
class Campaign(Base):
    """A deployed crowdfunding contract instance."""

    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identities ---
    owner_address: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        comment="Deployer identity; the only party that can claim a successful campaign",
    )
    contract_address: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        unique=True,
        comment="Address of the contract account holding the funds",
    )

    # --- Host-tracked value ---
    asset: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="EGLD",
        comment="Asset identifier counted as current funds",
    )
    balance: Mapped[int] = mapped_column(
        BigUint,
        nullable=False,
        default=0,
        comment="Aggregate value held by the contract account",
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("idx_campaign_owner", "owner_address"),
        Index("idx_campaign_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Campaign id={self.id} contract={self.contract_address} "
            f"balance={self.balance} {self.asset}>"
        )


# ---------------------------------------------------------------------------
# 2. storage_slots
# ---------------------------------------------------------------------------
class StorageSlot(Base):
    """One key/value slot of a contract's storage."""

    __tablename__ = "storage_slots"

    campaign_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        primary_key=True,
    )
    key: Mapped[bytes] = mapped_column(
        LargeBinary(64),
        primary_key=True,
        comment="Slot name, e.g. b'target' or b'deposit' + address",
    )
    value: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
        comment="Value as encoded by the contract",
    )

    def __repr__(self) -> str:
        return f"<StorageSlot campaign={self.campaign_id} key={self.key!r}>"


# ---------------------------------------------------------------------------
# 3. campaign_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class CampaignEvent(Base):
    """Immutable audit record of a successful contract call.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "campaign_events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    campaign_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Position of this event in its campaign's log, starting at 1",
    )

    event_type: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="EventType enum value (e.g., DEPOSIT_RECEIVED, FUNDS_CLAIMED)",
    )
    actor: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        comment="Caller identity of the call that produced this event",
    )
    amount: Mapped[int] = mapped_column(
        BigUint,
        nullable=False,
        default=0,
        comment="Value paid in or transferred out by the call",
    )
    block_height: Mapped[int] = mapped_column(
        BigUint,
        nullable=False,
        comment="Host time at which the call executed",
    )
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        default=None,
        comment="Arbitrary context: status, resulting deposit, memo",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        UniqueConstraint("campaign_id", "sequence", name="uq_event_campaign_sequence"),
        Index("idx_event_type", "event_type"),
        Index("idx_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CampaignEvent id={self.id} type={self.event_type} "
            f"amount={self.amount} block={self.block_height}>"
        )


event.listen(Campaign, "before_update", _set_updated_at)
