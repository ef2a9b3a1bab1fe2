"""Read-only dashboard rollups derived from stored sourcing data.

Everything here is recomputed on every call. Missing or malformed numbers
count as zero; no item is ever dropped from a rollup because of bad data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from .config import Settings
from .errors import NotFoundError, ValidationError
from .models import (
    ACTIVE_STATUSES,
    ActorContext,
    KpiData,
    PipelineCounts,
    PurchasingQueue,
    SourcingItem,
    SourcingStatus,
    TotalStats,
    UserStats,
    VAPerformance,
    WeeklyStats,
)
from .permissions import Action, require
from .pricing import HUNDRED, coerce_decimal, round_cents, round_one_place

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def success_rate(winners: int, deals: int) -> Decimal:
    """Winners as a percentage of deals, 0 when there are no deals."""
    if deals <= 0:
        return ZERO
    return round_one_place(Decimal(winners) / Decimal(deals) * HUNDRED)


def percent_change(current: Decimal | int, previous: Decimal | int) -> Decimal:
    """Percent change from previous to current, 0 when previous is 0.

    Divides by the signed previous value, so a change measured against a
    negative prior carries the opposite sign.
    """
    previous = coerce_decimal(previous)
    if previous == 0:
        return ZERO
    return round_one_place((coerce_decimal(current) - previous) / previous * HUNDRED)


def average(values: list[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return round_cents(sum(values, ZERO) / len(values))


def iso_week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.isoweekday() - 1)


def iso_week_label(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def build_purchasing_queue(
    items: Iterable[SourcingItem], planned_sourcing_ids: set[int]
) -> PurchasingQueue:
    """Winner items that have no purchasing plan yet, with cost and profit totals."""
    queue = [
        item
        for item in items
        if item.status == SourcingStatus.WINNER and item.id not in planned_sourcing_ids
    ]
    return PurchasingQueue(
        items=queue,
        total_cost=sum((coerce_decimal(i.cost_price) for i in queue), ZERO),
        total_profit=sum((coerce_decimal(i.profit) for i in queue), ZERO),
    )


def _week_figures(items: list[SourcingItem]) -> tuple[int, int, Decimal, Decimal]:
    """Deals, winners, average winner profit and total profit for a group of items."""
    winners = [i for i in items if i.status == SourcingStatus.WINNER]
    total_profit = sum((coerce_decimal(i.profit) for i in items), ZERO)
    avg_profit = average([coerce_decimal(i.profit) for i in winners])
    return len(items), len(winners), avg_profit, total_profit


def build_weekly_stats(
    items: Iterable[SourcingItem], today: date, weeks: int
) -> list[WeeklyStats]:
    """Partition items into the last ``weeks`` ISO weeks, most recent first.

    Exactly ``weeks`` entries are returned, empty weeks included. Each
    entry's change percentages compare it with the entry before it in the
    returned list; the first entry's changes are 0.
    """
    current_start = iso_week_start(today)
    starts = [current_start - timedelta(weeks=offset) for offset in range(weeks)]

    buckets: dict[date, list[SourcingItem]] = {start: [] for start in starts}
    for item in items:
        start = iso_week_start(item.created_at.date())
        if start in buckets:
            buckets[start].append(item)

    stats: list[WeeklyStats] = []
    for start in starts:
        deals, winners, avg_profit, total_profit = _week_figures(buckets[start])
        stats.append(
            WeeklyStats(
                week=iso_week_label(start),
                week_start=start,
                deals=deals,
                winners=winners,
                success_rate=success_rate(winners, deals),
                avg_profit=avg_profit,
                total_profit=total_profit,
            )
        )

    for index in range(1, len(stats)):
        prior, entry = stats[index - 1], stats[index]
        entry.deals_change_pct = percent_change(entry.deals, prior.deals)
        entry.avg_profit_change_pct = percent_change(entry.avg_profit, prior.avg_profit)
        entry.total_profit_change_pct = percent_change(entry.total_profit, prior.total_profit)

    return stats


def build_total_stats(items: Iterable[SourcingItem]) -> TotalStats:
    deals, winners, avg_profit, total_profit = _week_figures(list(items))
    return TotalStats(
        total_deals=deals,
        total_winners=winners,
        success_rate=success_rate(winners, deals),
        avg_profit=avg_profit,
        total_profit=total_profit,
    )


class AggregationEngine:
    """Computes KPIs, pipeline counts, VA performance and the purchasing queue."""

    def __init__(
        self,
        repository,
        settings: Settings,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self._now = now

    def pipeline_counts(self, actor: ActorContext) -> PipelineCounts:
        """Number of items in each status, plus the total."""
        require(actor, Action.VIEW_DASHBOARD)
        stored = self.repository.count_sourcing_by_status()
        counts = {status: 0 for status in SourcingStatus}
        for value, count in stored.items():
            counts[SourcingStatus.from_string(value)] += count
        return PipelineCounts(counts=counts)

    def kpis(self, actor: ActorContext) -> KpiData:
        """Headline figures for the dashboard cards."""
        require(actor, Action.VIEW_DASHBOARD)
        pipeline = self.pipeline_counts(actor)

        since = self._now() - timedelta(days=self.settings.budget.profit_window_days)
        recent = self.repository.list_sourcing_items(since=since, limit=None)
        monthly_profit = sum((coerce_decimal(i.profit) for i in recent), ZERO)

        total_budget = coerce_decimal(self.settings.budget.total_budget)
        committed = coerce_decimal(self.repository.sum_planned_budget())
        available = total_budget - committed

        return KpiData(
            active_sourcing=sum(pipeline.get(status) for status in ACTIVE_STATUSES),
            winner_products=pipeline.get(SourcingStatus.WINNER),
            monthly_profit=monthly_profit,
            monthly_profit_display=self.settings.format_currency(monthly_profit),
            total_budget=total_budget,
            committed_spend=committed,
            available_budget=available,
            available_budget_display=self.settings.format_currency(available),
        )

    def va_performance(
        self, actor: ActorContext, user_id: str, weeks: int | None = None
    ) -> VAPerformance:
        """Weekly and window totals for one user's submissions."""
        require(actor, Action.VIEW_PERFORMANCE, owner_id=user_id)
        if weeks is None:
            weeks = self.settings.web.performance_weeks
        if weeks < 1:
            raise ValidationError("weeks must be a positive integer", fields=["weeks"])
        limit = self.settings.web.max_performance_weeks
        if weeks > limit:
            raise ValidationError(f"weeks must be at most {limit}", fields=["weeks"])

        today = self._now().date()
        window_start = iso_week_start(today) - timedelta(weeks=weeks - 1)
        items = self.repository.list_sourcing_items(
            submitted_by=user_id,
            since=datetime.combine(window_start, time.min),
            limit=None,
        )
        logger.debug(f"VA performance for {user_id}: {len(items)} items over {weeks} weeks")

        return VAPerformance(
            user_id=user_id,
            weeks=weeks,
            weekly_stats=build_weekly_stats(items, today, weeks),
            total_stats=build_total_stats(items),
        )

    def purchasing_queue(self, actor: ActorContext) -> PurchasingQueue:
        """Winners still waiting for a purchasing plan."""
        require(actor, Action.VIEW_DASHBOARD)
        winners = self.repository.list_sourcing_items(status=SourcingStatus.WINNER, limit=None)
        planned = self.repository.get_planned_sourcing_ids()
        return build_purchasing_queue(winners, planned)

    def user_stats(self, actor: ActorContext, user_id: str) -> UserStats:
        """All-time totals for one user."""
        require(actor, Action.VIEW_PERFORMANCE, owner_id=user_id)
        user = self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        items = self.repository.list_sourcing_items(submitted_by=user_id, limit=None)
        totals = build_total_stats(items)
        return UserStats(
            user=user,
            total_sourcing=totals.total_deals,
            winner_sourcing=totals.total_winners,
            success_rate=totals.success_rate,
            avg_profit=totals.avg_profit,
        )
