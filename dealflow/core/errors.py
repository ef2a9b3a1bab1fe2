"""Domain error types for Dealflow Dashboard."""

from __future__ import annotations

from typing import Any


class DealflowError(Exception):
    """Base class for errors surfaced to callers.

    Every error carries a machine-readable ``kind`` and a human-readable
    message, plus the HTTP status the web layer maps it to.
    """

    kind = "error"
    http_status = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        payload: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(DealflowError):
    """Raised when a required field is missing or invalid."""

    kind = "validation_error"
    http_status = 400

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message, {"fields": fields} if fields else None)
        self.fields = fields or []


class AuthenticationError(DealflowError):
    """Raised when no actor could be resolved for a request."""

    kind = "authentication_error"
    http_status = 401


class AuthorizationError(DealflowError):
    """Raised when the actor's role does not permit the action."""

    kind = "authorization_error"
    http_status = 403


class NotFoundError(DealflowError):
    """Raised when a referenced entity does not exist."""

    kind = "not_found"
    http_status = 404

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            f"{entity_type} {entity_id} not found",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(DealflowError):
    """Raised when a write conflicts with existing state (e.g. duplicate SKU)."""

    kind = "conflict"
    http_status = 409
