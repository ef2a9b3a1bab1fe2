"""Sourcing item lifecycle: submission, review transitions and queries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .activity import ActivityLogger
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import (
    ActivityAction,
    ActorContext,
    EntityType,
    SourcingItem,
    SourcingMethod,
    SourcingStatus,
)
from .permissions import Action, require
from .pricing import PricingCalculator
from .schemas import DealSubmission, StatusTransition, parse_payload

logger = logging.getLogger(__name__)


class LifecycleService:
    """Creates sourcing items and moves them between statuses.

    Transitions are admin-only and unconstrained in direction: any status
    may follow any other, and re-applying the current status is still a
    recorded review.
    """

    def __init__(
        self,
        repository,
        activity: ActivityLogger | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.activity = activity or ActivityLogger(repository, now=now)
        self.pricing = PricingCalculator()
        self._now = now

    def create_item(
        self,
        actor: ActorContext,
        data: DealSubmission | dict[str, Any],
        sourcing_method: SourcingMethod = SourcingMethod.MANUAL,
    ) -> SourcingItem:
        """Submit a new sourcing item on behalf of the actor.

        The item starts as ``submitted``; profit, margin and ROI are always
        derived from the prices, whatever the payload says.
        """
        require(actor, Action.SUBMIT_DEAL)
        submission = data if isinstance(data, DealSubmission) else parse_payload(DealSubmission, data)

        pricing = self.pricing.calculate(submission.buy_price, submission.sell_price)
        now = self._now()

        item = SourcingItem(
            asin=submission.asin,
            product_name=submission.product_name,
            brand=submission.brand,
            category=submission.category,
            cost_price=pricing.buy_price,
            sale_price=pricing.sell_price,
            profit=pricing.profit,
            profit_margin=pricing.margin,
            roi=pricing.roi,
            notes=submission.notes,
            source_url=submission.source_url,
            estimated_sales=submission.estimated_sales,
            sourcing_method=sourcing_method,
            status=SourcingStatus.SUBMITTED,
            submitted_by=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        entry = self.activity.build(
            actor,
            ActivityAction.DEAL_SUBMITTED,
            EntityType.SOURCING,
            None,
            f'Deal "{submission.product_name}" submitted',
        )
        saved = self.repository.create_sourcing_item(item, entry)

        logger.info(
            f"Sourcing item {saved.id} ({saved.asin}) submitted by {actor.user_id}, "
            f"margin={pricing.margin_display or 'n/a'}"
        )
        return saved

    def transition(
        self,
        actor: ActorContext,
        item_id: int,
        new_status: SourcingStatus | str,
        review_notes: str | None = None,
    ) -> SourcingItem:
        """Set an item's status, recording the reviewer and review time."""
        require(actor, Action.TRANSITION_DEAL)
        request = parse_payload(
            StatusTransition, {"status": new_status, "review_notes": review_notes}
        )

        reviewed_at = self._now()
        entry = self.activity.build(
            actor,
            ActivityAction.DEAL_STATUS_UPDATED,
            EntityType.SOURCING,
            item_id,
            f'Deal status changed to "{request.status.value}"',
        )
        updated = self.repository.update_sourcing_status(
            item_id,
            request.status,
            reviewed_by=actor.user_id,
            reviewed_at=reviewed_at,
            review_notes=request.review_notes,
            activity=entry,
        )
        if updated is None:
            raise NotFoundError("Sourcing item", item_id)

        logger.info(f"Sourcing item {item_id} -> {request.status.value} by {actor.user_id}")
        return updated

    def get_item(self, actor: ActorContext, item_id: int) -> SourcingItem:
        """Get one item; non-admins may only read their own."""
        item = self.repository.get_sourcing_item(item_id)
        if item is None:
            raise NotFoundError("Sourcing item", item_id)
        if not actor.is_admin and item.submitted_by != actor.user_id:
            raise AuthorizationError("Unauthorized: item belongs to another user")
        return item

    def list_items(
        self,
        actor: ActorContext,
        status: SourcingStatus | str | None = None,
        submitted_by: str | None = None,
        limit: int | None = 50,
    ) -> list[SourcingItem]:
        """List items newest first. Non-admins only ever see their own."""
        if isinstance(status, str):
            try:
                status = SourcingStatus.from_string(status)
            except ValueError as e:
                raise ValidationError(str(e), fields=["status"]) from e

        if limit is not None and limit < 1:
            raise ValidationError("limit must be a positive integer", fields=["limit"])

        if not actor.is_admin:
            submitted_by = actor.user_id

        return self.repository.list_sourcing_items(
            status=status, submitted_by=submitted_by, limit=limit
        )
