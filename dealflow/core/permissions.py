"""Role-based authorization checks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import AuthorizationError
from .models import ActorContext, UserRole


class Action(str, Enum):
    """Operations that are subject to a role check."""

    SUBMIT_DEAL = "submit_deal"
    TRANSITION_DEAL = "transition_deal"
    VIEW_ALL_DEALS = "view_all_deals"
    VIEW_PERFORMANCE = "view_performance"
    MANAGE_PURCHASING = "manage_purchasing"
    MANAGE_LISTINGS = "manage_listings"
    IMPORT_SHEET = "import_sheet"
    VIEW_DASHBOARD = "view_dashboard"


ADMIN_ONLY = {
    Action.TRANSITION_DEAL,
    Action.VIEW_ALL_DEALS,
    Action.MANAGE_PURCHASING,
    Action.MANAGE_LISTINGS,
}

# Non-admins may perform these only on records they own
OWNER_ALLOWED = {Action.VIEW_PERFORMANCE}


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


def authorize(actor: ActorContext, action: Action, owner_id: str | None = None) -> AuthDecision:
    """Decide whether the actor may perform the action.

    Args:
        actor: The authenticated user.
        action: The operation being attempted.
        owner_id: Owner of the target record, for owner-scoped actions.
    """
    if actor.role == UserRole.ADMIN:
        return AuthDecision(True, "admin")

    if action in ADMIN_ONLY:
        return AuthDecision(False, f"{action.value} requires the admin role")

    if action in OWNER_ALLOWED:
        if owner_id is not None and owner_id == actor.user_id:
            return AuthDecision(True, "owner")
        return AuthDecision(False, f"{action.value} is limited to your own records")

    return AuthDecision(True, "authenticated")


def require(actor: ActorContext, action: Action, owner_id: str | None = None) -> None:
    """Raise AuthorizationError unless the actor may perform the action."""
    decision = authorize(actor, action, owner_id)
    if not decision.allowed:
        raise AuthorizationError(f"Unauthorized: {decision.reason}")
