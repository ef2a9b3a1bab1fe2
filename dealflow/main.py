"""Main entry point for Dealflow Dashboard."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dealflow.core.config import Settings, get_config_dir, get_settings
from dealflow.core.errors import DealflowError
from dealflow.core.models import ActorContext, SourcingStatus, User, UserRole
from dealflow.db.repository import Repository
from dealflow.db.session import configure_database, init_database


def setup_exception_handler() -> None:
    """Set up global exception handler for unhandled exceptions."""
    logger = logging.getLogger(__name__)

    def handle_exception(exc_type, exc_value, exc_traceback):
        """Handle uncaught exceptions."""
        if issubclass(exc_type, KeyboardInterrupt):
            # Allow Ctrl+C to exit normally
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = handle_exception


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    log_dir = get_config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "dealflow.log"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )


def _actor(repo: Repository, user_id: str) -> ActorContext:
    user = repo.get_user(user_id)
    if user is None:
        raise DealflowError(f"Unknown user {user_id}, create it with add-user first")
    return ActorContext.for_user(user)


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    from dealflow.web.server import WebServer

    server = WebServer(
        host=args.host or settings.web.host,
        port=args.port or settings.web.port,
        settings=settings,
    )
    server.start()
    try:
        server.join()
    except KeyboardInterrupt:
        server.stop()
    return 0


def cmd_add_user(args: argparse.Namespace, settings: Settings) -> int:
    repo = Repository()
    user = repo.upsert_user(
        User(
            id=args.user_id,
            name=args.name or args.user_id,
            role=UserRole.from_string(args.role),
            email=args.email or "",
        )
    )
    print(f"Saved user {user.id} ({user.role.value})")
    return 0


def cmd_import_sheet(args: argparse.Namespace, settings: Settings) -> int:
    from dealflow.api.sheets import GoogleSheetsClient
    from dealflow.core.lifecycle import LifecycleService
    from dealflow.core.sheet_importer import SheetImporter

    repo = Repository()
    importer = SheetImporter(LifecycleService(repo))
    result = importer.import_sheet(_actor(repo, args.user), GoogleSheetsClient(settings))

    print(
        f"Imported {result.items_imported} of {result.total_rows} rows "
        f"({result.skipped_duplicates} duplicates skipped)"
    )
    for error in result.errors:
        print(f"  {error}")
    return 0 if not result.errors else 2


def cmd_export_listings(args: argparse.Namespace, settings: Settings) -> int:
    from dealflow.core.listings import ListingService

    repo = Repository()
    service = ListingService(repo, settings)
    count = service.export_csv(_actor(repo, args.user), Path(args.path))
    print(f"Exported {count} listings to {args.path}")
    return 0


def cmd_export_sourcing(args: argparse.Namespace, settings: Settings) -> int:
    from dealflow.core.lifecycle import LifecycleService
    from dealflow.utils.export import Exporter

    repo = Repository()
    items = LifecycleService(repo).list_items(
        _actor(repo, args.user), status=args.status, limit=None
    )
    if not items:
        print("No sourcing items to export")
        return 0

    path = Path(args.path)
    if path.suffix.lower() == ".xlsx":
        Exporter.export_sourcing_to_xlsx(items, path)
    else:
        Exporter.export_sourcing_to_csv(items, path)
    print(f"Exported {len(items)} sourcing items to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dealflow", description="Dealflow Dashboard")
    parser.add_argument("--database-url", help="Override the configured database URL")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the JSON API (default)")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.set_defaults(func=cmd_serve)

    add_user = sub.add_parser("add-user", help="Create or update a user")
    add_user.add_argument("user_id")
    add_user.add_argument("--name")
    add_user.add_argument("--email")
    add_user.add_argument("--role", choices=[r.value for r in UserRole], default="va")
    add_user.set_defaults(func=cmd_add_user)

    import_sheet = sub.add_parser("import-sheet", help="Import the Google Sheets sourcing tab")
    import_sheet.add_argument("--user", required=True, help="ID of the importing user")
    import_sheet.set_defaults(func=cmd_import_sheet)

    export = sub.add_parser("export-listings", help="Export listings to CSV or XLSX")
    export.add_argument("path")
    export.add_argument("--user", required=True, help="ID of an admin user")
    export.set_defaults(func=cmd_export_listings)

    export_sourcing = sub.add_parser(
        "export-sourcing", help="Export sourcing items (your own, or all for admins)"
    )
    export_sourcing.add_argument("path")
    export_sourcing.add_argument("--user", required=True)
    export_sourcing.add_argument("--status", choices=SourcingStatus.values())
    export_sourcing.set_defaults(func=cmd_export_sourcing)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    setup_exception_handler()
    logger = logging.getLogger(__name__)

    logger.info("Starting Dealflow Dashboard")
    logger.info(f"Config dir: {get_config_dir()}")
    logger.info(f"Sheets mock mode: {settings.sheets.mock_mode}")

    configure_database(args.database_url or settings.database_url)
    try:
        init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.exception("Failed to initialize database")
        print(f"Error: Failed to initialize database: {e}", file=sys.stderr)
        return 1

    func = getattr(args, "func", None)
    if func is None:
        args.host = None
        args.port = None
        func = cmd_serve

    try:
        return func(args, settings)
    except DealflowError as e:
        logger.error(e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
