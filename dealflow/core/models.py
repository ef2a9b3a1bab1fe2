"""Core data models for Dealflow Dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    ADMIN = "admin"
    VA = "va"

    @classmethod
    def from_string(cls, value: str) -> "UserRole":
        """Convert string to UserRole enum."""
        value_lower = value.strip().lower()
        for role in cls:
            if role.value == value_lower:
                return role
        raise ValueError(f"Unknown role: {value}")


class SourcingStatus(str, Enum):
    """Lifecycle states of a sourcing item."""

    SUBMITTED = "submitted"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    WINNER = "winner"
    REJECTED = "rejected"

    @classmethod
    def from_string(cls, value: str) -> "SourcingStatus":
        """Convert string to SourcingStatus enum."""
        value_lower = value.strip().lower()
        for status in cls:
            if status.value == value_lower:
                return status
        raise ValueError(f"Unknown status: {value}")

    @classmethod
    def values(cls) -> list[str]:
        """Get list of status values."""
        return [s.value for s in cls]

    @property
    def is_terminal(self) -> bool:
        """Winner and rejected are the usual end of the review path."""
        return self in (SourcingStatus.WINNER, SourcingStatus.REJECTED)


ACTIVE_STATUSES = (SourcingStatus.SUBMITTED, SourcingStatus.REVIEWING, SourcingStatus.APPROVED)


class PurchaseStatus(str, Enum):
    """Purchasing plan states."""

    PLANNED = "planned"
    ORDERED = "ordered"
    RECEIVED = "received"
    SHIPPED = "shipped"


class ListingStatus(str, Enum):
    """Per-marketplace listing sync states."""

    DRAFT = "draft"
    PENDING = "pending"
    LIVE = "live"
    ERROR = "error"


class SourcingMethod(str, Enum):
    """How a sourcing item entered the system."""

    MANUAL = "manual"
    GOOGLE_SHEETS = "google-sheets"


class ActivityAction(str, Enum):
    """Kinds of activity log entries."""

    DEAL_SUBMITTED = "deal_submitted"
    DEAL_STATUS_UPDATED = "deal_status_updated"
    PURCHASING_PLAN_CREATED = "purchasing_plan_created"
    PURCHASING_PLAN_UPDATED = "purchasing_plan_updated"
    LISTING_CREATED = "listing_created"
    LISTING_SYNC_UPDATED = "listing_sync_updated"
    LISTINGS_EXPORTED = "listings_exported"
    SHEET_IMPORT = "sheet_import"


class EntityType(str, Enum):
    """Entity types referenced by activity entries."""

    SOURCING = "sourcing"
    PURCHASING = "purchasing"
    LISTING = "listing"


@dataclass
class User:
    """A dashboard user."""

    id: str = ""
    name: str = ""
    role: UserRole = UserRole.VA
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def display_name(self) -> str:
        """Best human-readable name for the user."""
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.name or self.email or self.id


@dataclass(frozen=True)
class ActorContext:
    """The authenticated user performing an operation."""

    user_id: str
    role: UserRole
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def for_user(cls, user: User) -> "ActorContext":
        return cls(user_id=user.id, role=user.role, name=user.display_name)


@dataclass
class SourcingItem:
    """A sourcing lead (deal) under evaluation."""

    id: int | None = None
    asin: str = ""
    product_name: str = ""
    brand: str = ""
    category: str = ""
    cost_price: Decimal = Decimal("0")
    sale_price: Decimal = Decimal("0")
    profit: Decimal | None = None
    profit_margin: Decimal | None = None
    roi: Decimal | None = None
    notes: str = ""
    source_url: str = ""
    estimated_sales: int | None = None
    sourcing_method: SourcingMethod = SourcingMethod.MANUAL
    status: SourcingStatus = SourcingStatus.SUBMITTED
    submitted_by: str = ""
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    # Joined display names, filled by list queries
    submitter_name: str = ""
    reviewer_name: str = ""


@dataclass
class PurchasingPlan:
    """A purchasing plan for a winner item."""

    id: int | None = None
    sourcing_id: int = 0
    planned_quantity: int = 0
    cost_per_unit: Decimal = Decimal("0")
    planned_budget: Decimal = Decimal("0")
    expected_revenue: Decimal | None = None
    expected_profit: Decimal | None = None
    actual_spent: Decimal = Decimal("0")
    actual_revenue: Decimal = Decimal("0")
    actual_profit: Decimal = Decimal("0")
    status: PurchaseStatus = PurchaseStatus.PLANNED
    order_date: datetime | None = None
    received_date: datetime | None = None
    margin_warning: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    sourcing: SourcingItem | None = None


@dataclass
class Listing:
    """A generated marketplace listing."""

    id: int | None = None
    sourcing_id: int = 0
    purchasing_id: int | None = None
    sku_code: str = ""
    brand: str = ""
    buy_price: Decimal = Decimal("0")
    asin: str = ""
    generated_date: str = ""  # YYMMDD
    amazon_sync_status: ListingStatus = ListingStatus.DRAFT
    prep_sync_status: ListingStatus = ListingStatus.DRAFT
    last_sync_at: datetime | None = None
    csv_exported: bool = False
    csv_exported_at: datetime | None = None
    sync_errors: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ActivityEntry:
    """An immutable audit log entry."""

    user_id: str
    action: ActivityAction
    entity_type: EntityType
    entity_id: str
    description: str
    id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class PipelineCounts:
    """Number of sourcing items per status."""

    counts: dict[SourcingStatus, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def get(self, status: SourcingStatus) -> int:
        return self.counts.get(status, 0)

    def to_dict(self) -> dict[str, int]:
        data = {status.value: self.get(status) for status in SourcingStatus}
        data["total"] = self.total
        return data


@dataclass
class KpiData:
    """Headline dashboard figures."""

    active_sourcing: int = 0
    winner_products: int = 0
    monthly_profit: Decimal = Decimal("0")
    monthly_profit_display: str = ""
    total_budget: Decimal = Decimal("0")
    committed_spend: Decimal = Decimal("0")
    available_budget: Decimal = Decimal("0")
    available_budget_display: str = ""


@dataclass
class WeeklyStats:
    """VA performance for one ISO calendar week."""

    week: str = ""  # e.g. "2026-W42"
    week_start: date | None = None
    deals: int = 0
    winners: int = 0
    success_rate: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")

    # Percent change against the previous entry in the returned list
    deals_change_pct: Decimal = Decimal("0")
    avg_profit_change_pct: Decimal = Decimal("0")
    total_profit_change_pct: Decimal = Decimal("0")


@dataclass
class TotalStats:
    """VA performance aggregated over a whole window."""

    total_deals: int = 0
    total_winners: int = 0
    success_rate: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")


@dataclass
class VAPerformance:
    """Weekly and total performance for one user."""

    user_id: str = ""
    weeks: int = 0
    weekly_stats: list[WeeklyStats] = field(default_factory=list)
    total_stats: TotalStats = field(default_factory=TotalStats)


@dataclass
class PurchasingQueue:
    """Winner items still waiting for a purchasing plan."""

    items: list[SourcingItem] = field(default_factory=list)
    total_cost: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass
class UserStats:
    """Headline sourcing numbers for one user."""

    user: User
    total_sourcing: int = 0
    winner_sourcing: int = 0
    success_rate: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")


@dataclass
class ImportResult:
    """Result of a sheet import operation."""

    success: bool = False
    total_rows: int = 0
    items_imported: int = 0
    items_skipped: int = 0
    skipped_duplicates: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    imported_ids: list[int] = field(default_factory=list)
