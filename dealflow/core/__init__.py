"""Core business logic for Dealflow Dashboard."""

from .config import Settings, get_settings
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DealflowError,
    NotFoundError,
    ValidationError,
)
from .models import (
    ActivityAction,
    ActivityEntry,
    ActorContext,
    EntityType,
    KpiData,
    Listing,
    ListingStatus,
    PipelineCounts,
    PurchaseStatus,
    PurchasingPlan,
    PurchasingQueue,
    SourcingItem,
    SourcingMethod,
    SourcingStatus,
    User,
    UserRole,
    VAPerformance,
)
from .permissions import Action, AuthDecision, authorize, require
from .pricing import PricingCalculator, PricingResult
from .activity import ActivityLogger
from .lifecycle import LifecycleService
from .aggregation import AggregationEngine
from .purchasing import PurchasingService
from .listings import ListingService, generate_sku
from .listing_payloads import build_listing_payload
from .sheet_importer import SheetImporter, SheetRowNormalizer

__all__ = [
    "Settings",
    "get_settings",
    "DealflowError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "ActivityAction",
    "ActivityEntry",
    "ActorContext",
    "EntityType",
    "KpiData",
    "Listing",
    "ListingStatus",
    "PipelineCounts",
    "PurchaseStatus",
    "PurchasingPlan",
    "PurchasingQueue",
    "SourcingItem",
    "SourcingMethod",
    "SourcingStatus",
    "User",
    "UserRole",
    "VAPerformance",
    "Action",
    "AuthDecision",
    "authorize",
    "require",
    "PricingCalculator",
    "PricingResult",
    "ActivityLogger",
    "LifecycleService",
    "AggregationEngine",
    "PurchasingService",
    "ListingService",
    "generate_sku",
    "build_listing_payload",
    "SheetImporter",
    "SheetRowNormalizer",
]
