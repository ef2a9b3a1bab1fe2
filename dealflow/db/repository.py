"""Repository pattern for database operations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, joinedload

from dealflow.core.errors import NotFoundError
from dealflow.core.models import (
    ActivityAction,
    ActivityEntry,
    EntityType,
    Listing,
    ListingStatus,
    PurchaseStatus,
    PurchasingPlan,
    SourcingItem,
    SourcingMethod,
    SourcingStatus,
    User,
    UserRole,
)

from .models import ActivityLogDB, ListingDB, PurchasingPlanDB, SourcingItemDB, UserDB
from .session import session_scope


class Repository:
    """Data access repository for all database operations."""

    # ==================== Users ====================

    def upsert_user(self, user: User) -> User:
        """Insert a user or update the existing record with the same id."""
        with session_scope() as session:
            db_user = session.get(UserDB, user.id)
            if db_user is None:
                db_user = UserDB(id=user.id)
                session.add(db_user)
            db_user.name = user.name
            db_user.email = user.email or None
            db_user.first_name = user.first_name
            db_user.last_name = user.last_name
            db_user.role = user.role.value
            db_user.updated_at = datetime.now()
            session.flush()
            return self._db_to_user(db_user)

    def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        with session_scope() as session:
            db_user = session.get(UserDB, user_id)
            if db_user:
                return self._db_to_user(db_user)
            return None

    def list_users(self, role: UserRole | None = None) -> list[User]:
        """Get all users, optionally filtered by role."""
        with session_scope() as session:
            query = select(UserDB)
            if role is not None:
                query = query.where(UserDB.role == role.value)
            query = query.order_by(UserDB.name, UserDB.id)
            result = session.execute(query).scalars().all()
            return [self._db_to_user(db) for db in result]

    def _db_to_user(self, db: UserDB) -> User:
        """Convert database model to domain model."""
        return User(
            id=db.id,
            name=db.name,
            role=UserRole.from_string(db.role),
            email=db.email or "",
            first_name=db.first_name,
            last_name=db.last_name,
            created_at=db.created_at,
            updated_at=db.updated_at,
        )

    # ==================== Sourcing Items ====================

    def create_sourcing_item(
        self, item: SourcingItem, activity: ActivityEntry | None = None
    ) -> SourcingItem:
        """Save a new sourcing item, with its creation activity in the same transaction.

        An activity whose ``entity_id`` is empty is pointed at the new item.
        """
        with session_scope() as session:
            db_item = SourcingItemDB(
                asin=item.asin,
                product_name=item.product_name,
                brand=item.brand,
                category=item.category,
                cost_price=item.cost_price,
                sale_price=item.sale_price,
                profit=item.profit,
                profit_margin=item.profit_margin,
                roi=item.roi,
                notes=item.notes,
                source_url=item.source_url,
                estimated_sales=item.estimated_sales,
                sourcing_method=item.sourcing_method.value,
                status=item.status.value,
                submitted_by=item.submitted_by,
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
            session.add(db_item)
            session.flush()

            if activity is not None:
                if not activity.entity_id:
                    activity = replace(activity, entity_id=str(db_item.id))
                self._add_activity(session, activity)

            return self._db_to_sourcing_item(db_item)

    def get_sourcing_item(self, item_id: int) -> SourcingItem | None:
        """Get a sourcing item by ID."""
        with session_scope() as session:
            db_item = session.get(SourcingItemDB, item_id)
            if db_item:
                return self._db_to_sourcing_item(db_item)
            return None

    def get_sourcing_by_asin(self, asin: str) -> SourcingItem | None:
        """Get the oldest sourcing item for an ASIN."""
        with session_scope() as session:
            query = (
                select(SourcingItemDB)
                .where(SourcingItemDB.asin == asin)
                .order_by(SourcingItemDB.id)
                .limit(1)
            )
            db_item = session.execute(query).scalar_one_or_none()
            if db_item:
                return self._db_to_sourcing_item(db_item)
            return None

    def list_sourcing_items(
        self,
        status: SourcingStatus | None = None,
        submitted_by: str | None = None,
        since: datetime | None = None,
        limit: int | None = 50,
    ) -> list[SourcingItem]:
        """Get sourcing items, most recent first."""
        with session_scope() as session:
            query = select(SourcingItemDB).options(
                joinedload(SourcingItemDB.submitter), joinedload(SourcingItemDB.reviewer)
            )
            if status is not None:
                query = query.where(SourcingItemDB.status == status.value)
            if submitted_by is not None:
                query = query.where(SourcingItemDB.submitted_by == submitted_by)
            if since is not None:
                query = query.where(SourcingItemDB.created_at >= since)
            query = query.order_by(desc(SourcingItemDB.created_at), desc(SourcingItemDB.id))
            if limit is not None:
                query = query.limit(limit)

            result = session.execute(query).unique().scalars().all()
            return [self._db_to_sourcing_item(db) for db in result]

    def update_sourcing_status(
        self,
        item_id: int,
        status: SourcingStatus,
        reviewed_by: str,
        reviewed_at: datetime,
        review_notes: str | None,
        activity: ActivityEntry,
    ) -> SourcingItem | None:
        """Apply a status transition and record its activity as one write.

        Returns None when the item does not exist.
        """
        with session_scope() as session:
            db_item = session.get(SourcingItemDB, item_id)
            if db_item is None:
                return None

            db_item.status = status.value
            db_item.reviewed_by = reviewed_by
            db_item.reviewed_at = reviewed_at
            db_item.review_notes = review_notes
            db_item.updated_at = reviewed_at
            self._add_activity(session, activity)
            session.flush()
            return self._db_to_sourcing_item(db_item)

    def count_sourcing_by_status(self) -> dict[str, int]:
        """Get count of sourcing items per stored status value."""
        with session_scope() as session:
            query = select(
                SourcingItemDB.status,
                func.count(SourcingItemDB.id).label("count"),
            ).group_by(SourcingItemDB.status)
            result = session.execute(query).all()
            return {row.status: row.count for row in result}

    def find_duplicate_asins(self) -> list[tuple[str, int, list[int]]]:
        """ASINs submitted more than once, as (asin, count, item ids)."""
        with session_scope() as session:
            query = (
                select(SourcingItemDB.asin, func.count(SourcingItemDB.id).label("count"))
                .group_by(SourcingItemDB.asin)
                .having(func.count(SourcingItemDB.id) > 1)
                .order_by(desc("count"), SourcingItemDB.asin)
            )
            duplicates = []
            for row in session.execute(query).all():
                ids = session.execute(
                    select(SourcingItemDB.id)
                    .where(SourcingItemDB.asin == row.asin)
                    .order_by(SourcingItemDB.id)
                ).scalars().all()
                duplicates.append((row.asin, row.count, list(ids)))
            return duplicates

    def _db_to_sourcing_item(self, db: SourcingItemDB) -> SourcingItem:
        """Convert database model to domain model."""
        return SourcingItem(
            id=db.id,
            asin=db.asin,
            product_name=db.product_name,
            brand=db.brand or "",
            category=db.category or "",
            cost_price=db.cost_price,
            sale_price=db.sale_price,
            profit=db.profit,
            profit_margin=db.profit_margin,
            roi=db.roi,
            notes=db.notes or "",
            source_url=db.source_url or "",
            estimated_sales=db.estimated_sales,
            sourcing_method=SourcingMethod(db.sourcing_method),
            status=SourcingStatus.from_string(db.status),
            submitted_by=db.submitted_by,
            reviewed_by=db.reviewed_by,
            reviewed_at=db.reviewed_at,
            review_notes=db.review_notes,
            created_at=db.created_at,
            updated_at=db.updated_at,
            submitter_name=self._display_name(db.submitter),
            reviewer_name=self._display_name(db.reviewer),
        )

    def _display_name(self, db_user: UserDB | None) -> str:
        if db_user is None:
            return ""
        return self._db_to_user(db_user).display_name

    # ==================== Purchasing Plans ====================

    def create_purchasing_plan(
        self,
        sourcing_id: int,
        build_plan: Callable[[SourcingItem], PurchasingPlan],
        activity: ActivityEntry,
    ) -> PurchasingPlan:
        """Read the parent item and insert its plan in one transaction.

        ``build_plan`` receives the parent as read inside the transaction and
        may raise to abort the insert.
        """
        with session_scope() as session:
            db_item = session.get(SourcingItemDB, sourcing_id, with_for_update=True)
            if db_item is None:
                raise NotFoundError("Sourcing item", sourcing_id)

            plan = build_plan(self._db_to_sourcing_item(db_item))
            db_plan = PurchasingPlanDB(
                sourcing_id=sourcing_id,
                planned_quantity=plan.planned_quantity,
                cost_per_unit=plan.cost_per_unit,
                planned_budget=plan.planned_budget,
                expected_revenue=plan.expected_revenue,
                expected_profit=plan.expected_profit,
                actual_spent=plan.actual_spent,
                actual_revenue=plan.actual_revenue,
                actual_profit=plan.actual_profit,
                status=plan.status.value,
                order_date=plan.order_date,
                received_date=plan.received_date,
                margin_warning=plan.margin_warning,
            )
            session.add(db_plan)
            session.flush()

            if not activity.entity_id:
                activity = replace(activity, entity_id=str(db_plan.id))
            self._add_activity(session, activity)

            return self._db_to_purchasing_plan(db_plan)

    def get_purchasing_plan(self, plan_id: int) -> PurchasingPlan | None:
        """Get a purchasing plan by ID."""
        with session_scope() as session:
            db_plan = session.get(PurchasingPlanDB, plan_id)
            if db_plan:
                return self._db_to_purchasing_plan(db_plan)
            return None

    def list_purchasing_plans(
        self, status: PurchaseStatus | None = None, limit: int | None = 50
    ) -> list[PurchasingPlan]:
        """Get purchasing plans with their sourcing items, most recent first."""
        with session_scope() as session:
            query = select(PurchasingPlanDB).options(joinedload(PurchasingPlanDB.sourcing))
            if status is not None:
                query = query.where(PurchasingPlanDB.status == status.value)
            query = query.order_by(desc(PurchasingPlanDB.created_at), desc(PurchasingPlanDB.id))
            if limit is not None:
                query = query.limit(limit)

            result = session.execute(query).unique().scalars().all()
            return [self._db_to_purchasing_plan(db, with_sourcing=True) for db in result]

    def get_planned_sourcing_ids(self) -> set[int]:
        """Get IDs of sourcing items that have at least one purchasing plan."""
        with session_scope() as session:
            result = session.execute(select(PurchasingPlanDB.sourcing_id).distinct()).scalars().all()
            return set(result)

    def update_purchasing_plan(
        self, plan_id: int, values: dict[str, Any], activity: ActivityEntry
    ) -> PurchasingPlan | None:
        """Update plan fields and record the activity. Returns None if missing."""
        with session_scope() as session:
            db_plan = session.get(PurchasingPlanDB, plan_id)
            if db_plan is None:
                return None

            for key, value in values.items():
                if isinstance(value, PurchaseStatus):
                    value = value.value
                setattr(db_plan, key, value)
            db_plan.updated_at = datetime.now()
            self._add_activity(session, activity)
            session.flush()
            return self._db_to_purchasing_plan(db_plan)

    def _db_to_purchasing_plan(
        self, db: PurchasingPlanDB, with_sourcing: bool = False
    ) -> PurchasingPlan:
        """Convert database model to domain model."""
        return PurchasingPlan(
            id=db.id,
            sourcing_id=db.sourcing_id,
            planned_quantity=db.planned_quantity,
            cost_per_unit=db.cost_per_unit,
            planned_budget=db.planned_budget,
            expected_revenue=db.expected_revenue,
            expected_profit=db.expected_profit,
            actual_spent=db.actual_spent,
            actual_revenue=db.actual_revenue,
            actual_profit=db.actual_profit,
            status=PurchaseStatus(db.status),
            order_date=db.order_date,
            received_date=db.received_date,
            margin_warning=db.margin_warning,
            created_at=db.created_at,
            updated_at=db.updated_at,
            sourcing=self._db_to_sourcing_item(db.sourcing) if with_sourcing and db.sourcing else None,
        )

    # ==================== Listings ====================

    def create_listing(self, listing: Listing, activity: ActivityEntry) -> Listing:
        """Save a listing and its creation activity."""
        with session_scope() as session:
            db_listing = ListingDB(
                sourcing_id=listing.sourcing_id,
                purchasing_id=listing.purchasing_id,
                sku_code=listing.sku_code,
                brand=listing.brand,
                buy_price=listing.buy_price,
                asin=listing.asin,
                generated_date=listing.generated_date,
                amazon_sync_status=listing.amazon_sync_status.value,
                prep_sync_status=listing.prep_sync_status.value,
            )
            session.add(db_listing)
            session.flush()

            if not activity.entity_id:
                activity = replace(activity, entity_id=str(db_listing.id))
            self._add_activity(session, activity)

            return self._db_to_listing(db_listing)

    def sku_exists(self, sku_code: str) -> bool:
        """Check whether a SKU code is already taken."""
        with session_scope() as session:
            query = select(func.count(ListingDB.id)).where(ListingDB.sku_code == sku_code)
            return session.execute(query).scalar_one() > 0

    def get_listing(self, listing_id: int) -> Listing | None:
        """Get a listing by ID."""
        with session_scope() as session:
            db_listing = session.get(ListingDB, listing_id)
            if db_listing:
                return self._db_to_listing(db_listing)
            return None

    def list_listings(
        self, amazon_status: ListingStatus | None = None, limit: int | None = 50
    ) -> list[Listing]:
        """Get listings, most recent first."""
        with session_scope() as session:
            query = select(ListingDB)
            if amazon_status is not None:
                query = query.where(ListingDB.amazon_sync_status == amazon_status.value)
            query = query.order_by(desc(ListingDB.created_at), desc(ListingDB.id))
            if limit is not None:
                query = query.limit(limit)

            result = session.execute(query).scalars().all()
            return [self._db_to_listing(db) for db in result]

    def update_listing(
        self, listing_id: int, values: dict[str, Any], activity: ActivityEntry
    ) -> Listing | None:
        """Update listing fields and record the activity. Returns None if missing."""
        with session_scope() as session:
            db_listing = session.get(ListingDB, listing_id)
            if db_listing is None:
                return None

            for key, value in values.items():
                if isinstance(value, ListingStatus):
                    value = value.value
                setattr(db_listing, key, value)
            db_listing.updated_at = datetime.now()
            self._add_activity(session, activity)
            session.flush()
            return self._db_to_listing(db_listing)

    def mark_listings_exported(
        self, listing_ids: list[int], exported_at: datetime, activity: ActivityEntry
    ) -> int:
        """Flag listings as exported to CSV."""
        with session_scope() as session:
            count = 0
            for listing_id in listing_ids:
                db_listing = session.get(ListingDB, listing_id)
                if db_listing is None:
                    continue
                db_listing.csv_exported = True
                db_listing.csv_exported_at = exported_at
                count += 1
            self._add_activity(session, activity)
            return count

    def _db_to_listing(self, db: ListingDB) -> Listing:
        """Convert database model to domain model."""
        return Listing(
            id=db.id,
            sourcing_id=db.sourcing_id,
            purchasing_id=db.purchasing_id,
            sku_code=db.sku_code,
            brand=db.brand,
            buy_price=db.buy_price,
            asin=db.asin,
            generated_date=db.generated_date,
            amazon_sync_status=ListingStatus(db.amazon_sync_status),
            prep_sync_status=ListingStatus(db.prep_sync_status),
            last_sync_at=db.last_sync_at,
            csv_exported=db.csv_exported,
            csv_exported_at=db.csv_exported_at,
            sync_errors=db.sync_errors or "",
            created_at=db.created_at,
            updated_at=db.updated_at,
        )

    # ==================== Activity Log ====================

    def add_activity(self, entry: ActivityEntry) -> ActivityEntry:
        """Append an activity entry on its own."""
        with session_scope() as session:
            return self._add_activity(session, entry)

    def _add_activity(self, session: Session, entry: ActivityEntry) -> ActivityEntry:
        db_entry = ActivityLogDB(
            user_id=entry.user_id,
            action=entry.action.value,
            entity_type=entry.entity_type.value,
            entity_id=entry.entity_id,
            description=entry.description,
            created_at=entry.created_at,
        )
        session.add(db_entry)
        session.flush()
        return replace(entry, id=db_entry.id)

    def get_recent_activities(self, limit: int = 20) -> list[ActivityEntry]:
        """Get the most recent activity entries, newest first."""
        with session_scope() as session:
            query = (
                select(ActivityLogDB)
                .order_by(desc(ActivityLogDB.created_at), desc(ActivityLogDB.id))
                .limit(limit)
            )
            result = session.execute(query).scalars().all()
            return [self._db_to_activity(db) for db in result]

    def get_activities_for_entity(
        self, entity_type: EntityType, entity_id: str | int
    ) -> list[ActivityEntry]:
        """Get all activity entries for one entity, oldest first."""
        with session_scope() as session:
            query = (
                select(ActivityLogDB)
                .where(
                    ActivityLogDB.entity_type == entity_type.value,
                    ActivityLogDB.entity_id == str(entity_id),
                )
                .order_by(ActivityLogDB.created_at, ActivityLogDB.id)
            )
            result = session.execute(query).scalars().all()
            return [self._db_to_activity(db) for db in result]

    def _db_to_activity(self, db: ActivityLogDB) -> ActivityEntry:
        """Convert database model to domain model."""
        return ActivityEntry(
            id=db.id,
            user_id=db.user_id,
            action=ActivityAction(db.action),
            entity_type=EntityType(db.entity_type),
            entity_id=db.entity_id,
            description=db.description,
            created_at=db.created_at,
        )

    # ==================== Statistics ====================

    def sum_planned_budget(self) -> Decimal:
        """Total planned budget across all purchasing plans."""
        with session_scope() as session:
            total = session.execute(select(func.sum(PurchasingPlanDB.planned_budget))).scalar_one()
            return Decimal(str(total)) if total is not None else Decimal("0")
