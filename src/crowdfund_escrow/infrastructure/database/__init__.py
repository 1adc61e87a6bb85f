"""Database infrastructure — engine, ORM models, and repositories."""

from crowdfund_escrow.infrastructure.database.engine import (
    build_engine,
    close_db,
    create_tables,
    get_async_session,
    init_db,
    make_session_factory,
)
from crowdfund_escrow.infrastructure.database.orm_models import (
    Base,
    Campaign,
    CampaignEvent,
    StorageSlot,
)
from crowdfund_escrow.infrastructure.database.repositories import (
    CampaignRepository,
    EventRepository,
    SlotRepository,
)

__all__ = [
    "Base",
    "Campaign",
    "CampaignEvent",
    "StorageSlot",
    "CampaignRepository",
    "EventRepository",
    "SlotRepository",
    "build_engine",
    "create_tables",
    "make_session_factory",
    "get_async_session",
    "init_db",
    "close_db",
]
