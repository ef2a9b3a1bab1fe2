"""Audit trail for lifecycle and creation events."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from .models import ActivityAction, ActivityEntry, ActorContext, EntityType

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Builds and stores append-only activity entries.

    Entries that must commit together with another write are built here and
    handed to the repository method performing that write; ``record`` is for
    events that stand on their own.
    """

    def __init__(self, repository, now: Callable[[], datetime] = datetime.now) -> None:
        self.repository = repository
        self._now = now

    def build(
        self,
        actor: ActorContext,
        action: ActivityAction,
        entity_type: EntityType,
        entity_id: str | int | None,
        description: str,
    ) -> ActivityEntry:
        """Build an entry stamped with the current time.

        Pass ``entity_id=None`` when the entity does not exist yet; the
        repository fills it in once the row has an ID.
        """
        return ActivityEntry(
            user_id=actor.user_id,
            action=action,
            entity_type=entity_type,
            entity_id="" if entity_id is None else str(entity_id),
            description=description,
            created_at=self._now(),
        )

    def record(
        self,
        actor: ActorContext,
        action: ActivityAction,
        entity_type: EntityType,
        entity_id: str | int,
        description: str,
    ) -> ActivityEntry:
        """Build and persist a standalone entry."""
        entry = self.build(actor, action, entity_type, entity_id, description)
        saved = self.repository.add_activity(entry)
        logger.debug(f"Activity {action.value} on {entity_type.value} {entity_id}")
        return saved

    def recent(self, limit: int = 20) -> list[ActivityEntry]:
        """Most recent entries, newest first."""
        if limit < 1:
            return []
        return self.repository.get_recent_activities(limit)
