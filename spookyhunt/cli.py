"""
Spooky Hunt CLI - Command-line interface for the engine.

Usage:
    spookyhunt catalog [--catalog FILE]               Show and validate the catalog
    spookyhunt scan <location_id> <code>              Classify a scanned code
    spookyhunt status --completed a,b [--catalog FILE]  Unlock status, progress, badges
    spookyhunt serve [--host H] [--port P]            Run the API server
"""

from datetime import datetime, timedelta, timezone
import argparse
import sys

from .config import HuntConfig, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Spooky Hunt - scavenger hunt engine",
        prog="spookyhunt",
    )
    parser.add_argument("--catalog", help="Path to a catalog JSON file")
    parser.add_argument("--log-level", default=None, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("catalog", help="Show and validate the location catalog")

    scan_parser = subparsers.add_parser("scan", help="Classify a scanned code")
    scan_parser.add_argument("location_id", help="Target location id")
    scan_parser.add_argument("code", help="Decoded QR payload")

    status_parser = subparsers.add_parser("status", help="Offline progress view")
    status_parser.add_argument(
        "--completed", default="", help="Comma-separated completed location ids, in completion order"
    )

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    config = HuntConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    if args.command == "catalog":
        return cmd_catalog(args, config)
    elif args.command == "scan":
        return cmd_scan(args, config)
    elif args.command == "status":
        return cmd_status(args, config)
    elif args.command == "serve":
        return cmd_serve(args, config)
    else:
        parser.print_help()
        sys.exit(1)


def _load(args, config: HuntConfig):
    from .engine_core import CatalogError
    from .events import create_halloween_catalog, load_catalog

    path = args.catalog or config.catalog_path
    if not path:
        return create_halloween_catalog()
    try:
        return load_catalog(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)
    except CatalogError as e:
        print("Catalog is invalid:")
        for err in e.errors:
            print(f"  - {err}")
        sys.exit(1)


def cmd_catalog(args, config):
    """Show and validate the catalog."""
    from .engine_core import validate_catalog

    catalog = _load(args, config)
    for loc in catalog:
        codes = ", ".join(sorted(loc.accepted_codes))
        print(f"{loc.order}. {loc.display_name} [{loc.floor.value}] ({loc.id})")
        print(f"   codes: {codes}")
        print(f"   quiz: {loc.quiz_question} ({len(loc.quiz_options)} options)")

    result = validate_catalog(catalog)
    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")
    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)
    print(f"\n{len(catalog)} location(s), catalog valid")


def cmd_scan(args, config):
    """Classify a scanned code against a location."""
    from .engine_core import validate_code
    from .engine_core.codes import SCAN_MESSAGES

    catalog = _load(args, config)
    if args.location_id not in catalog:
        print(f"Error: Unknown location: {args.location_id}")
        sys.exit(1)
    result = validate_code(args.code, args.location_id, catalog)
    print(f"{result.value}: {SCAN_MESSAGES[result]}")


def cmd_status(args, config):
    """Unlock status, progress and badges for a list of completed ids."""
    from .engine_core import ProgressRecord, aggregate, evaluate_achievements, resolve

    catalog = _load(args, config)
    completed = [c.strip() for c in args.completed.split(",") if c.strip()]
    unknown = [c for c in completed if c not in catalog]
    if unknown:
        print(f"Error: Unknown location(s): {', '.join(unknown)}")
        sys.exit(1)

    start = datetime.now(timezone.utc)
    records = [
        ProgressRecord("cli", location_id, start + timedelta(seconds=i))
        for i, location_id in enumerate(dict.fromkeys(completed))
    ]

    statuses = resolve(catalog.locations, completed)
    for loc in catalog:
        print(f"{loc.order}. {loc.display_name:<20} {statuses[loc.id].value}")

    summary = aggregate(completed, catalog)
    print(f"\nProgress: {summary.completed_count}/{summary.total_count} ({summary.percentage}%)")

    badges = [a for a in evaluate_achievements(records, len(catalog)) if a.unlocked]
    print(f"Badges: {', '.join(a.title for a in badges) if badges else 'none yet'}")


def cmd_serve(args, config):
    """Run the API server."""
    import uvicorn

    uvicorn.run("spookyhunt.api.app:app", host=args.host, port=args.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
