"""Database layer for Dealflow Dashboard."""

from .models import (
    ActivityLogDB,
    Base,
    ListingDB,
    PurchasingPlanDB,
    SourcingItemDB,
    UserDB,
)
from .repository import Repository
from .session import get_engine, get_session, init_database, session_scope

__all__ = [
    "Base",
    "UserDB",
    "SourcingItemDB",
    "PurchasingPlanDB",
    "ListingDB",
    "ActivityLogDB",
    "Repository",
    "get_engine",
    "get_session",
    "init_database",
    "session_scope",
]
