"""Purchasing plans for winner sourcing items."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from .activity import ActivityLogger
from .config import Settings
from .errors import ConflictError, NotFoundError, ValidationError
from .models import (
    ActivityAction,
    ActorContext,
    EntityType,
    PurchaseStatus,
    PurchasingPlan,
    SourcingItem,
    SourcingStatus,
)
from .permissions import Action, require
from .pricing import coerce_decimal, round_cents
from .schemas import PlanCreate, PlanUpdate, parse_payload

logger = logging.getLogger(__name__)


def expected_figures(
    quantity: int, sale_price: Decimal, planned_budget: Decimal, threshold: Decimal
) -> tuple[Decimal, Decimal, bool]:
    """Expected revenue, expected profit and the margin warning flag.

    The warning is raised when expected profit is below ``threshold`` of
    expected revenue, or when there is no revenue to speak of.
    """
    revenue = round_cents(Decimal(quantity) * coerce_decimal(sale_price))
    profit = round_cents(revenue - coerce_decimal(planned_budget))
    if revenue <= 0:
        return revenue, profit, True
    return revenue, profit, (profit / revenue) < threshold


class PurchasingService:
    """Creates, updates and lists purchasing plans."""

    def __init__(
        self,
        repository,
        settings: Settings,
        activity: ActivityLogger | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.activity = activity or ActivityLogger(repository, now=now)

    def create_plan(self, actor: ActorContext, data: PlanCreate | dict[str, Any]) -> PurchasingPlan:
        """Create a plan for a winner item.

        The parent's status is checked inside the same transaction as the
        insert, so a plan never lands on an item that stopped being a winner.
        """
        require(actor, Action.MANAGE_PURCHASING)
        request = data if isinstance(data, PlanCreate) else parse_payload(PlanCreate, data)
        threshold = coerce_decimal(self.settings.purchasing.margin_warning_threshold)

        def build_plan(item: SourcingItem) -> PurchasingPlan:
            if item.status != SourcingStatus.WINNER:
                raise ConflictError(
                    f"Sourcing item {item.id} is {item.status.value}, "
                    f"only winner items can be planned",
                    {"status": item.status.value},
                )
            revenue, profit, warning = expected_figures(
                request.planned_quantity, item.sale_price, request.planned_budget, threshold
            )
            return PurchasingPlan(
                sourcing_id=item.id,
                planned_quantity=request.planned_quantity,
                cost_per_unit=request.cost_per_unit,
                planned_budget=request.planned_budget,
                expected_revenue=revenue,
                expected_profit=profit,
                status=PurchaseStatus.PLANNED,
                margin_warning=warning,
            )

        entry = self.activity.build(
            actor,
            ActivityAction.PURCHASING_PLAN_CREATED,
            EntityType.PURCHASING,
            None,
            f"Purchasing plan for {request.planned_quantity} units created",
        )
        plan = self.repository.create_purchasing_plan(request.sourcing_id, build_plan, entry)

        if plan.margin_warning:
            logger.warning(
                f"Purchasing plan {plan.id} for item {plan.sourcing_id} is below the margin "
                f"threshold (expected profit {plan.expected_profit} on {plan.expected_revenue})"
            )
        else:
            logger.info(f"Purchasing plan {plan.id} created for item {plan.sourcing_id}")
        return plan

    def update_plan(
        self, actor: ActorContext, plan_id: int, data: PlanUpdate | dict[str, Any]
    ) -> PurchasingPlan:
        """Update status, actual figures or dates of a plan."""
        require(actor, Action.MANAGE_PURCHASING)
        request = data if isinstance(data, PlanUpdate) else parse_payload(PlanUpdate, data)
        values = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
        if not values:
            raise ValidationError("No fields to update")

        entry = self.activity.build(
            actor,
            ActivityAction.PURCHASING_PLAN_UPDATED,
            EntityType.PURCHASING,
            plan_id,
            f"Purchasing plan updated: {', '.join(sorted(values))}",
        )
        plan = self.repository.update_purchasing_plan(plan_id, values, entry)
        if plan is None:
            raise NotFoundError("Purchasing plan", plan_id)

        logger.info(f"Purchasing plan {plan_id} updated ({', '.join(sorted(values))})")
        return plan

    def list_plans(
        self,
        actor: ActorContext,
        status: PurchaseStatus | str | None = None,
        limit: int | None = None,
    ) -> list[PurchasingPlan]:
        """Plans newest first, each with its sourcing item."""
        require(actor, Action.VIEW_DASHBOARD)
        if isinstance(status, str):
            try:
                status = PurchaseStatus(status.strip().lower())
            except ValueError as e:
                raise ValidationError(f"Unknown purchase status: {status}", fields=["status"]) from e
        if limit is None:
            limit = self.settings.purchasing.default_list_limit
        return self.repository.list_purchasing_plans(status=status, limit=limit)
