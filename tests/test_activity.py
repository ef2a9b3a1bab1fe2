"""Tests for the activity log."""

from __future__ import annotations

from dealflow.core.models import ActivityAction, EntityType


class TestActivityLogger:
    """Tests for ActivityLogger."""

    def test_build_does_not_persist(self, activity, repo, admin, clock):
        entry = activity.build(
            admin, ActivityAction.LISTINGS_EXPORTED, EntityType.LISTING, None, "Exported"
        )
        assert entry.entity_id == ""
        assert entry.created_at == clock.now
        assert entry.id is None
        assert repo.get_recent_activities() == []

    def test_record_persists(self, activity, repo, admin):
        saved = activity.record(
            admin, ActivityAction.SHEET_IMPORT, EntityType.SOURCING, "bulk_import", "Import"
        )
        assert saved.id is not None

        recent = repo.get_recent_activities()
        assert len(recent) == 1
        assert recent[0].entity_id == "bulk_import"
        assert recent[0].action == ActivityAction.SHEET_IMPORT

    def test_recent_newest_first(self, activity, admin, clock):
        for i in range(3):
            activity.record(
                admin, ActivityAction.SHEET_IMPORT, EntityType.SOURCING, i, f"Import {i}"
            )
            clock.advance(minutes=1)

        recent = activity.recent(2)
        assert [e.entity_id for e in recent] == ["2", "1"]

    def test_recent_with_non_positive_limit(self, activity, admin):
        activity.record(admin, ActivityAction.SHEET_IMPORT, EntityType.SOURCING, 1, "Import")
        assert activity.recent(0) == []

    def test_creation_entries_point_at_new_rows(self, lifecycle, activity, va, deal_payload):
        item = lifecycle.create_item(va, deal_payload)
        (entry,) = activity.recent(5)
        assert entry.entity_type == EntityType.SOURCING
        assert entry.entity_id == str(item.id)
