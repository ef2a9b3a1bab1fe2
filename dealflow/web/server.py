"""Flask JSON API for the dashboard."""

from __future__ import annotations

import logging
import socket
import threading
from datetime import datetime
from decimal import Decimal
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from dealflow import __version__
from dealflow.api.sheets import GoogleSheetsClient
from dealflow.core.activity import ActivityLogger
from dealflow.core.aggregation import AggregationEngine
from dealflow.core.config import Settings, get_settings
from dealflow.core.errors import AuthenticationError, DealflowError, ValidationError
from dealflow.core.lifecycle import LifecycleService
from dealflow.core.listings import ListingService
from dealflow.core.models import (
    ActivityEntry,
    ActorContext,
    ImportResult,
    KpiData,
    Listing,
    PurchasingPlan,
    PurchasingQueue,
    SourcingItem,
    User,
    UserStats,
    VAPerformance,
)
from dealflow.core.permissions import Action, require
from dealflow.core.pricing import format_margin
from dealflow.core.purchasing import PurchasingService
from dealflow.core.sheet_importer import SheetImporter
from dealflow.db.repository import Repository

logger = logging.getLogger(__name__)

ACTOR_HEADER = "X-User-Id"


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_to_json(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.display_name,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value,
    }


def sourcing_to_json(item: SourcingItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "asin": item.asin,
        "product_name": item.product_name,
        "brand": item.brand,
        "category": item.category,
        "cost_price": _money(item.cost_price),
        "sale_price": _money(item.sale_price),
        "profit": _money(item.profit),
        "profit_margin": format_margin(item.profit_margin),
        "roi": format_margin(item.roi),
        "notes": item.notes,
        "source_url": item.source_url,
        "estimated_sales": item.estimated_sales,
        "sourcing_method": item.sourcing_method.value,
        "status": item.status.value,
        "submitted_by": item.submitted_by,
        "submitter_name": item.submitter_name,
        "reviewed_by": item.reviewed_by,
        "reviewer_name": item.reviewer_name,
        "reviewed_at": _iso(item.reviewed_at),
        "review_notes": item.review_notes,
        "created_at": _iso(item.created_at),
        "updated_at": _iso(item.updated_at),
    }


def plan_to_json(plan: PurchasingPlan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "sourcing_id": plan.sourcing_id,
        "planned_quantity": plan.planned_quantity,
        "cost_per_unit": _money(plan.cost_per_unit),
        "planned_budget": _money(plan.planned_budget),
        "expected_revenue": _money(plan.expected_revenue),
        "expected_profit": _money(plan.expected_profit),
        "actual_spent": _money(plan.actual_spent),
        "actual_revenue": _money(plan.actual_revenue),
        "actual_profit": _money(plan.actual_profit),
        "status": plan.status.value,
        "order_date": _iso(plan.order_date),
        "received_date": _iso(plan.received_date),
        "margin_warning": plan.margin_warning,
        "created_at": _iso(plan.created_at),
        "sourcing": sourcing_to_json(plan.sourcing) if plan.sourcing else None,
    }


def listing_to_json(listing: Listing) -> dict[str, Any]:
    return {
        "id": listing.id,
        "sourcing_id": listing.sourcing_id,
        "purchasing_id": listing.purchasing_id,
        "sku_code": listing.sku_code,
        "brand": listing.brand,
        "buy_price": _money(listing.buy_price),
        "asin": listing.asin,
        "generated_date": listing.generated_date,
        "amazon_sync_status": listing.amazon_sync_status.value,
        "prep_sync_status": listing.prep_sync_status.value,
        "last_sync_at": _iso(listing.last_sync_at),
        "csv_exported": listing.csv_exported,
        "csv_exported_at": _iso(listing.csv_exported_at),
        "sync_errors": listing.sync_errors,
        "created_at": _iso(listing.created_at),
    }


def activity_to_json(entry: ActivityEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "action": entry.action.value,
        "entity_type": entry.entity_type.value,
        "entity_id": entry.entity_id,
        "description": entry.description,
        "created_at": _iso(entry.created_at),
    }


def kpis_to_json(kpis: KpiData) -> dict[str, Any]:
    return {
        "active_sourcing": kpis.active_sourcing,
        "winner_products": kpis.winner_products,
        "monthly_profit": _money(kpis.monthly_profit),
        "monthly_profit_display": kpis.monthly_profit_display,
        "total_budget": _money(kpis.total_budget),
        "committed_spend": _money(kpis.committed_spend),
        "available_budget": _money(kpis.available_budget),
        "available_budget_display": kpis.available_budget_display,
    }


def performance_to_json(performance: VAPerformance) -> dict[str, Any]:
    totals = performance.total_stats
    return {
        "user_id": performance.user_id,
        "weeks": performance.weeks,
        "weekly_stats": [
            {
                "week": w.week,
                "week_start": w.week_start.isoformat() if w.week_start else None,
                "deals": w.deals,
                "winners": w.winners,
                "success_rate": float(w.success_rate),
                "avg_profit": float(w.avg_profit),
                "total_profit": float(w.total_profit),
                "deals_change_pct": float(w.deals_change_pct),
                "avg_profit_change_pct": float(w.avg_profit_change_pct),
                "total_profit_change_pct": float(w.total_profit_change_pct),
            }
            for w in performance.weekly_stats
        ],
        "total_stats": {
            "total_deals": totals.total_deals,
            "total_winners": totals.total_winners,
            "success_rate": float(totals.success_rate),
            "avg_profit": float(totals.avg_profit),
            "total_profit": float(totals.total_profit),
        },
    }


def queue_to_json(queue: PurchasingQueue) -> dict[str, Any]:
    return {
        "count": queue.count,
        "total_cost": float(queue.total_cost),
        "total_profit": float(queue.total_profit),
        "items": [sourcing_to_json(item) for item in queue.items],
    }


def user_stats_to_json(stats: UserStats) -> dict[str, Any]:
    data = user_to_json(stats.user)
    data.update({
        "total_sourcing": stats.total_sourcing,
        "winner_sourcing": stats.winner_sourcing,
        "success_rate": float(stats.success_rate),
        "avg_profit": float(stats.avg_profit),
    })
    return data


def import_result_to_json(result: ImportResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "total_rows": result.total_rows,
        "imported_rows": result.items_imported,
        "skipped_rows": result.items_skipped,
        "skipped_duplicates": result.skipped_duplicates,
        "imported_ids": result.imported_ids,
        "errors": result.errors[:10],
        "warnings": result.warnings[:10],
    }


def create_app(
    settings: Settings | None = None,
    repository: Repository | None = None,
    sheets_client: GoogleSheetsClient | None = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.json.sort_keys = False

    settings = settings or get_settings()
    repo = repository or Repository()

    activity = ActivityLogger(repo)
    lifecycle = LifecycleService(repo, activity)
    aggregation = AggregationEngine(repo, settings)
    purchasing = PurchasingService(repo, settings, activity)
    listings = ListingService(repo, settings, activity)
    importer = SheetImporter(lifecycle)

    def current_actor() -> ActorContext:
        """Resolve the acting user from the request header."""
        user_id = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not user_id:
            raise AuthenticationError(f"Missing {ACTOR_HEADER} header")
        user = repo.get_user(user_id)
        if user is None:
            raise AuthenticationError(f"Unknown user {user_id}")
        return ActorContext.for_user(user)

    def json_body() -> dict[str, Any]:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def int_arg(name: str, default: int | None = None) -> int | None:
        value = request.args.get(name)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ValidationError(f"{name} must be an integer", fields=[name]) from e

    @app.errorhandler(DealflowError)
    def handle_domain_error(e: DealflowError):
        if e.http_status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.name.lower().replace(" ", "_"), "message": e.description}), e.code
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({"error": "internal_error", "message": "Internal server error"}), 500

    @app.route("/api/health")
    def api_health():
        """Liveness check."""
        return jsonify({"status": "ok", "version": __version__, "time": datetime.now().isoformat()})

    @app.route("/api/auth/user")
    def api_auth_user():
        """Current user with headline stats."""
        actor = current_actor()
        return jsonify(user_stats_to_json(aggregation.user_stats(actor, actor.user_id)))

    # ==================== Sourcing ====================

    @app.route("/api/sourcing", methods=["POST"])
    def api_create_sourcing():
        actor = current_actor()
        item = lifecycle.create_item(actor, json_body())
        return jsonify(sourcing_to_json(item)), 201

    @app.route("/api/sourcing", methods=["GET"])
    def api_list_sourcing():
        actor = current_actor()
        items = lifecycle.list_items(
            actor,
            status=request.args.get("status") or None,
            limit=int_arg("limit", settings.purchasing.default_list_limit),
        )
        return jsonify([sourcing_to_json(item) for item in items])

    @app.route("/api/sourcing/<int:item_id>")
    def api_get_sourcing(item_id: int):
        actor = current_actor()
        return jsonify(sourcing_to_json(lifecycle.get_item(actor, item_id)))

    @app.route("/api/sourcing/<int:item_id>/status", methods=["PATCH"])
    def api_update_sourcing_status(item_id: int):
        actor = current_actor()
        # Role check comes before the body is even looked at
        require(actor, Action.TRANSITION_DEAL)
        body = json_body()
        item = lifecycle.transition(
            actor,
            item_id,
            body.get("status", ""),
            review_notes=body.get("review_notes"),
        )
        return jsonify(sourcing_to_json(item))

    # ==================== Dashboard ====================

    @app.route("/api/dashboard/kpis")
    def api_kpis():
        actor = current_actor()
        return jsonify(kpis_to_json(aggregation.kpis(actor)))

    @app.route("/api/dashboard/pipeline")
    def api_pipeline():
        actor = current_actor()
        return jsonify(aggregation.pipeline_counts(actor).to_dict())

    @app.route("/api/activities")
    def api_activities():
        actor = current_actor()
        require(actor, Action.VIEW_DASHBOARD)
        limit = int_arg("limit", settings.web.activity_feed_limit)
        return jsonify([activity_to_json(entry) for entry in activity.recent(limit)])

    @app.route("/api/va/performance/<user_id>")
    def api_va_performance(user_id: str):
        actor = current_actor()
        performance = aggregation.va_performance(actor, user_id, weeks=int_arg("weeks"))
        return jsonify(performance_to_json(performance))

    # ==================== Purchasing ====================

    @app.route("/api/purchasing/queue")
    def api_purchasing_queue():
        actor = current_actor()
        return jsonify(queue_to_json(aggregation.purchasing_queue(actor)))

    @app.route("/api/purchasing", methods=["POST"])
    def api_create_plan():
        actor = current_actor()
        plan = purchasing.create_plan(actor, json_body())
        return jsonify(plan_to_json(plan)), 201

    @app.route("/api/purchasing", methods=["GET"])
    def api_list_plans():
        actor = current_actor()
        plans = purchasing.list_plans(
            actor, status=request.args.get("status") or None, limit=int_arg("limit")
        )
        return jsonify([plan_to_json(plan) for plan in plans])

    @app.route("/api/purchasing/<int:plan_id>", methods=["PATCH"])
    def api_update_plan(plan_id: int):
        actor = current_actor()
        return jsonify(plan_to_json(purchasing.update_plan(actor, plan_id, json_body())))

    # ==================== Listings ====================

    @app.route("/api/listings", methods=["POST"])
    def api_create_listing():
        actor = current_actor()
        listing = listings.create_listing(actor, json_body())
        return jsonify(listing_to_json(listing)), 201

    @app.route("/api/listings", methods=["GET"])
    def api_list_listings():
        actor = current_actor()
        result = listings.list_listings(
            actor,
            amazon_status=request.args.get("status") or None,
            limit=int_arg("limit", settings.purchasing.default_list_limit),
        )
        return jsonify([listing_to_json(listing) for listing in result])

    @app.route("/api/listings/<int:listing_id>/sync", methods=["PATCH"])
    def api_update_listing_sync(listing_id: int):
        actor = current_actor()
        listing = listings.update_sync_status(actor, listing_id, json_body())
        return jsonify(listing_to_json(listing))

    @app.route("/api/listings/<int:listing_id>/payload")
    def api_listing_payload(listing_id: int):
        actor = current_actor()
        payload = listings.build_payload(
            actor, listing_id, category=request.args.get("category") or None
        )
        return jsonify(payload)

    # ==================== Google Sheets ====================

    def get_sheets_client() -> GoogleSheetsClient:
        return sheets_client or GoogleSheetsClient(settings)

    @app.route("/api/integrations/google-sheets/test")
    def api_sheets_test():
        actor = current_actor()
        require(actor, Action.IMPORT_SHEET)
        status = get_sheets_client().test_connection()
        return jsonify({
            "success": status.success,
            "title": status.title,
            "sheets": status.sheet_names,
            "headers": status.headers,
            "error": status.error_message or None,
        })

    @app.route("/api/integrations/google-sheets/import", methods=["POST"])
    def api_sheets_import():
        actor = current_actor()
        body = json_body()
        rows = body.get("rows")
        if rows is not None:
            if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
                raise ValidationError("rows must be a list of objects", fields=["rows"])
            result = importer.import_rows(actor, rows)
        else:
            result = importer.import_sheet(actor, get_sheets_client())
        return jsonify(import_result_to_json(result))

    return app


class WebServer:
    """Manages the Flask web server in a background thread."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 5050,
        settings: Settings | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.settings = settings
        self._app: Flask | None = None
        self._thread: threading.Thread | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def url(self) -> str:
        """Get the URL to access the dashboard API."""
        try:
            s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            s.connect(("8.8.8.8", 80))
            local_ip = s.getsockname()[0]
            s.close()
        except OSError:
            local_ip = "localhost"

        return f"http://{local_ip}:{self.port}"

    def start(self) -> str:
        """Start the web server. Returns the URL."""
        if self._running:
            return self.url

        self._app = create_app(self.settings)
        self._running = True

        def run_server():
            # Suppress Flask's default request logging
            logging.getLogger("werkzeug").setLevel(logging.ERROR)

            try:
                self._app.run(
                    host=self.host,
                    port=self.port,
                    debug=False,
                    use_reloader=False,
                    threaded=True,
                )
            except Exception:
                logger.exception("Web server error")
            finally:
                self._running = False

        self._thread = threading.Thread(target=run_server, daemon=True)
        self._thread.start()

        logger.info(f"Dashboard API started at {self.url}")
        return self.url

    def join(self) -> None:
        """Block until the server thread exits."""
        if self._thread is not None:
            self._thread.join()

    def stop(self) -> None:
        """Stop the web server."""
        self._running = False
        # The werkzeug dev server has no clean shutdown in threaded mode;
        # the daemon thread ends with the process
        logger.info("Dashboard API stopped")
