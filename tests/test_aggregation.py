"""Tests for dashboard rollups."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from dealflow.core.aggregation import (
    build_purchasing_queue,
    build_weekly_stats,
    iso_week_label,
    iso_week_start,
    percent_change,
    success_rate,
)
from dealflow.core.errors import AuthorizationError, NotFoundError, ValidationError
from dealflow.core.models import SourcingItem, SourcingStatus


class TestHelpers:
    """Tests for the pure helper functions."""

    def test_success_rate(self):
        assert success_rate(1, 3) == Decimal("33.3")
        assert success_rate(2, 2) == Decimal("100.0")

    def test_success_rate_without_deals(self):
        assert success_rate(0, 0) == Decimal("0")

    def test_percent_change(self):
        assert percent_change(15, 10) == Decimal("50.0")
        assert percent_change(5, 10) == Decimal("-50.0")
        assert percent_change(Decimal("5"), Decimal("-10")) == Decimal("-150.0")
        assert percent_change(Decimal("-5"), Decimal("-10")) == Decimal("-50.0")

    def test_percent_change_from_zero(self):
        assert percent_change(7, 0) == Decimal("0")

    def test_iso_week(self):
        assert iso_week_start(date(2026, 10, 14)) == date(2026, 10, 12)
        assert iso_week_start(date(2026, 10, 12)) == date(2026, 10, 12)
        assert iso_week_start(date(2026, 10, 18)) == date(2026, 10, 12)
        assert iso_week_label(date(2026, 10, 14)) == "2026-W42"
        # ISO week-numbering year differs from the calendar year here
        assert iso_week_label(date(2027, 1, 1)) == "2026-W53"


class TestBuildWeeklyStats:
    """Tests for build_weekly_stats."""

    def _item(self, created_at: datetime, profit: str, status=SourcingStatus.SUBMITTED):
        return SourcingItem(created_at=created_at, profit=Decimal(profit), status=status)

    def test_always_returns_requested_weeks(self):
        stats = build_weekly_stats([], date(2026, 10, 14), 4)
        assert len(stats) == 4
        assert [s.week_start for s in stats] == [
            date(2026, 10, 12),
            date(2026, 10, 5),
            date(2026, 9, 28),
            date(2026, 9, 21),
        ]
        assert all(s.deals == 0 and s.success_rate == 0 for s in stats)

    def test_items_outside_window_are_ignored(self):
        old = self._item(datetime(2026, 1, 5, 9), "5")
        stats = build_weekly_stats([old], date(2026, 10, 14), 2)
        assert sum(s.deals for s in stats) == 0

    def test_changes_compare_with_previous_entry(self):
        items = [
            self._item(datetime(2026, 10, 13, 9), "10"),
            self._item(datetime(2026, 10, 6, 9), "10"),
            self._item(datetime(2026, 10, 7, 9), "20", SourcingStatus.WINNER),
        ]
        current, previous = build_weekly_stats(items, date(2026, 10, 14), 2)

        assert current.deals == 1
        assert current.deals_change_pct == Decimal("0")
        assert previous.deals == 2
        assert previous.winners == 1
        assert previous.avg_profit == Decimal("20.00")
        assert previous.total_profit == Decimal("30")
        assert previous.deals_change_pct == Decimal("100.0")
        assert previous.total_profit_change_pct == Decimal("200.0")
        # Current week has no winners, so there is nothing to compare against
        assert previous.avg_profit_change_pct == Decimal("0")

    def test_missing_profit_counts_as_zero(self):
        item = SourcingItem(created_at=datetime(2026, 10, 13), profit=None)
        (week,) = build_weekly_stats([item], date(2026, 10, 14), 1)
        assert week.deals == 1
        assert week.total_profit == Decimal("0")


class TestPurchasingQueueBuilder:
    """Tests for build_purchasing_queue."""

    def test_only_unplanned_winners(self):
        items = [
            SourcingItem(id=1, status=SourcingStatus.WINNER, cost_price=Decimal("10"), profit=Decimal("5")),
            SourcingItem(id=2, status=SourcingStatus.WINNER, cost_price=Decimal("7"), profit=None),
            SourcingItem(id=3, status=SourcingStatus.APPROVED, cost_price=Decimal("99")),
            SourcingItem(id=4, status=SourcingStatus.WINNER, cost_price=Decimal("50")),
        ]
        queue = build_purchasing_queue(items, {4})
        assert [i.id for i in queue.items] == [1, 2]
        assert queue.count == 2
        assert queue.total_cost == Decimal("17")
        assert queue.total_profit == Decimal("5")


class TestAggregationEngine:
    """Tests for AggregationEngine against the database."""

    def test_pipeline_counts_sum_to_total(self, aggregation, admin, make_item):
        make_item(asin="B000000001")
        make_item(asin="B000000002", status="reviewing", reviewer=admin)
        make_item(asin="B000000003", status="winner", reviewer=admin)
        make_item(asin="B000000004", status="rejected", reviewer=admin)

        counts = aggregation.pipeline_counts(admin)
        assert counts.total == 4
        assert sum(counts.get(s) for s in SourcingStatus) == counts.total
        assert counts.get(SourcingStatus.APPROVED) == 0

    def test_empty_pipeline(self, aggregation, va):
        counts = aggregation.pipeline_counts(va)
        assert counts.total == 0
        assert counts.to_dict()["winner"] == 0

    def test_kpis(self, aggregation, purchasing, admin, make_item, winner, clock):
        make_item(asin="B000000001")
        make_item(asin="B000000002", status="approved", reviewer=admin)
        make_item(asin="B000000003", status="rejected", reviewer=admin)
        purchasing.create_plan(
            admin,
            {"sourcing_id": winner.id, "planned_quantity": 50, "cost_per_unit": "10", "planned_budget": "500"},
        )

        kpis = aggregation.kpis(admin)
        assert kpis.active_sourcing == 2
        assert kpis.winner_products == 1
        # 10 + 10 + 10 from the 10/20 items and 20 from the winner
        assert kpis.monthly_profit == Decimal("50")
        assert kpis.total_budget == Decimal("156750.00")
        assert kpis.committed_spend == Decimal("500")
        assert kpis.available_budget == Decimal("156250.00")
        assert kpis.available_budget_display == "€156,250.00"

    def test_kpi_profit_uses_trailing_window(self, aggregation, admin, make_item, clock):
        start = clock.now
        clock.now = start - timedelta(days=45)
        make_item(asin="B000000001")
        clock.now = start
        make_item(asin="B000000002", buy="5", sell="8")

        assert aggregation.kpis(admin).monthly_profit == Decimal("3")

    def test_va_performance(self, aggregation, admin, va, make_item, clock):
        start = clock.now
        clock.now = start - timedelta(days=21)
        make_item(asin="B000000009")
        clock.now = start - timedelta(days=7)
        make_item(asin="B000000001")
        make_item(asin="B000000002", buy="10", sell="30", status="winner", reviewer=admin)
        clock.now = start
        make_item(asin="B000000003")

        performance = aggregation.va_performance(va, "va-1", weeks=3)

        assert performance.weeks == 3
        assert [w.week for w in performance.weekly_stats] == ["2026-W42", "2026-W41", "2026-W40"]
        assert [w.deals for w in performance.weekly_stats] == [1, 2, 0]
        assert performance.weekly_stats[1].success_rate == Decimal("50.0")
        assert performance.weekly_stats[2].deals_change_pct == Decimal("-100.0")

        totals = performance.total_stats
        assert totals.total_deals == 3
        assert totals.total_winners == 1
        assert totals.success_rate == Decimal("33.3")
        assert totals.avg_profit == Decimal("20.00")
        assert totals.total_profit == Decimal("40")

    def test_va_performance_default_weeks(self, aggregation, va, settings):
        performance = aggregation.va_performance(va, "va-1")
        assert len(performance.weekly_stats) == settings.web.performance_weeks

    def test_va_performance_other_user_denied(self, aggregation, va, other_va):
        with pytest.raises(AuthorizationError):
            aggregation.va_performance(va, "va-2")

    def test_admin_sees_any_performance(self, aggregation, admin, va):
        assert aggregation.va_performance(admin, "va-1", weeks=1).user_id == "va-1"

    def test_va_performance_rejects_bad_weeks(self, aggregation, va):
        with pytest.raises(ValidationError):
            aggregation.va_performance(va, "va-1", weeks=0)

    def test_va_performance_rejects_too_many_weeks(self, aggregation, va, settings):
        limit = settings.web.max_performance_weeks
        assert len(aggregation.va_performance(va, "va-1", weeks=limit).weekly_stats) == limit
        with pytest.raises(ValidationError) as exc_info:
            aggregation.va_performance(va, "va-1", weeks=200000)
        assert exc_info.value.details["fields"] == ["weeks"]

    def test_purchasing_queue(self, aggregation, purchasing, admin, make_item, winner):
        second = make_item(asin="B0WINNER02", buy="5", sell="9", status="winner", reviewer=admin)
        make_item(asin="B000000001", status="approved", reviewer=admin)

        queue = aggregation.purchasing_queue(admin)
        assert {i.id for i in queue.items} == {winner.id, second.id}
        assert queue.total_cost == Decimal("15")
        assert queue.total_profit == Decimal("24")

        purchasing.create_plan(
            admin,
            {"sourcing_id": winner.id, "planned_quantity": 1, "cost_per_unit": "10", "planned_budget": "10"},
        )
        queue = aggregation.purchasing_queue(admin)
        assert [i.id for i in queue.items] == [second.id]

    def test_user_stats(self, aggregation, admin, va, make_item):
        make_item(asin="B000000001")
        make_item(asin="B000000002", buy="10", sell="30", status="winner", reviewer=admin)

        stats = aggregation.user_stats(va, "va-1")
        assert stats.user.display_name == "Victor Assistant"
        assert stats.total_sourcing == 2
        assert stats.winner_sourcing == 1
        assert stats.success_rate == Decimal("50.0")
        assert stats.avg_profit == Decimal("20.00")

    def test_user_stats_unknown_user(self, aggregation, admin):
        with pytest.raises(NotFoundError):
            aggregation.user_stats(admin, "ghost")
