"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from dealflow.core.activity import ActivityLogger
from dealflow.core.aggregation import AggregationEngine
from dealflow.core.config import Settings
from dealflow.core.lifecycle import LifecycleService
from dealflow.core.listings import ListingService
from dealflow.core.models import ActorContext, SourcingItem, User, UserRole
from dealflow.core.purchasing import PurchasingService


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    """Create default settings for testing."""
    s = Settings()
    s.sheets.mock_mode = True
    return s


@pytest.fixture
def clock() -> FixedClock:
    """A Wednesday, so the current ISO week has days on both sides."""
    return FixedClock(datetime(2026, 10, 14, 12, 0, 0))


@pytest.fixture
def db(tmp_path: Path):
    """Fresh SQLite database per test."""
    import dealflow.db.session as session_module

    db_path = tmp_path / "test.db"
    with patch("dealflow.db.session.get_db_path", return_value=db_path):
        session_module.close_database()
        session_module._database_url = None
        session_module.init_database(use_migrations=False)
        yield db_path
        session_module.close_database()


@pytest.fixture
def repo(db):
    from dealflow.db.repository import Repository

    return Repository()


def _save_user(repo, user_id: str, role: UserRole, first: str, last: str) -> ActorContext:
    user = repo.upsert_user(
        User(id=user_id, name=user_id, role=role, first_name=first, last_name=last)
    )
    return ActorContext.for_user(user)


@pytest.fixture
def admin(repo) -> ActorContext:
    return _save_user(repo, "admin-1", UserRole.ADMIN, "Anna", "Admin")


@pytest.fixture
def va(repo) -> ActorContext:
    return _save_user(repo, "va-1", UserRole.VA, "Victor", "Assistant")


@pytest.fixture
def other_va(repo) -> ActorContext:
    return _save_user(repo, "va-2", UserRole.VA, "Vera", "Helper")


@pytest.fixture
def activity(repo, clock) -> ActivityLogger:
    return ActivityLogger(repo, now=clock)


@pytest.fixture
def lifecycle(repo, activity, clock) -> LifecycleService:
    return LifecycleService(repo, activity, now=clock)


@pytest.fixture
def aggregation(repo, settings, clock) -> AggregationEngine:
    return AggregationEngine(repo, settings, now=clock)


@pytest.fixture
def purchasing(repo, settings, activity, clock) -> PurchasingService:
    return PurchasingService(repo, settings, activity, now=clock)


@pytest.fixture
def listings(repo, settings, activity, clock) -> ListingService:
    return ListingService(repo, settings, activity, now=clock)


@pytest.fixture
def deal_payload() -> dict:
    return {
        "asin": "B08N5WRWNW",
        "product_name": "Stainless Steel Water Bottle",
        "brand": "Hydro Co.",
        "category": "HOME",
        "buy_price": "12.50",
        "sell_price": "25.00",
        "notes": "Strong BSR",
    }


@pytest.fixture
def make_item(lifecycle, va):
    """Submit an item, optionally moving it to a status."""

    def _make(
        asin: str = "B000000001",
        buy: str = "10.00",
        sell: str = "20.00",
        status: str | None = None,
        actor: ActorContext | None = None,
        reviewer: ActorContext | None = None,
        brand: str = "Acme",
    ) -> SourcingItem:
        item = lifecycle.create_item(
            actor or va,
            {
                "asin": asin,
                "product_name": f"Product {asin}",
                "brand": brand,
                "buy_price": buy,
                "sell_price": sell,
            },
        )
        if status is not None:
            if reviewer is None:
                raise ValueError("a reviewer is needed to set a status")
            item = lifecycle.transition(reviewer, item.id, status)
        return item

    return _make


@pytest.fixture
def winner(make_item, admin) -> SourcingItem:
    return make_item(asin="B0WINNER01", buy="10.00", sell="30.00", status="winner", reviewer=admin)
