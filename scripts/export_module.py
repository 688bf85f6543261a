#!/usr/bin/env python3
"""Export one module's data to a CSV file."""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from insights.config import get
from insights.core import ModuleKey, ModuleLoader, ModuleNotConfigured
from insights.db import init_db
from insights.services import ActivityFeed, DataFetcher, FetchOptions, export_csv, export_filename, today_in

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def parse_filters(pairs):
    """Turn ["status=open", ...] into {"status": "open", ...}."""
    filters = {}
    for pair in pairs or []:
        column, sep, value = pair.partition("=")
        if not sep or not column:
            raise argparse.ArgumentTypeError(f"Filter must look like column=value: {pair}")
        filters[column] = value
    return filters


def export(key: str, output_dir: Path, limit: int, order_by: str, ascending: bool,
           subtable: str = None, filters=None) -> int:
    """Fetch the module and write the CSV. Returns a process exit code."""
    store = init_db(get("database.url"))
    registry = ModuleLoader(get("modules.config_file", "config/modules.yaml")).load_registry()
    timezone = get("dashboard.timezone", "UTC")
    fetcher = DataFetcher(store, registry, ActivityFeed(store, registry, timezone=timezone))

    try:
        result = fetcher.fetch(key, FetchOptions(
            limit=limit,
            order_by=order_by,
            ascending=ascending,
            filters=filters or {},
            subtable=subtable,
        ))
    except ModuleNotConfigured as e:
        print(f"\n❌ {e}")
        return 1

    if result.error:
        print(f"\n❌ Export failed: {result.error}")
        return 1

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(key, today_in(timezone))
    path.write_text(export_csv(result.rows))

    print(f"\n✅ Exported {len(result.rows)} of {result.total_count} records to {path}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Export ERP module data as CSV")
    parser.add_argument("module", choices=[k.value for k in ModuleKey], help="Module key")
    parser.add_argument("--output-dir", default="exports", help="Directory for the CSV file")
    parser.add_argument("--limit", type=int, default=100, help="Maximum rows to export")
    parser.add_argument("--order-by", default="id", help="Column to order by")
    parser.add_argument("--ascending", action="store_true", help="Oldest first")
    parser.add_argument("--subtable", help="Export a module subtable instead of the primary table")
    parser.add_argument("--filter", action="append", dest="filters", metavar="COLUMN=VALUE",
                        help="Equality filter, may be repeated")

    args = parser.parse_args()
    if args.limit <= 0:
        parser.error("--limit must be positive")

    try:
        filters = parse_filters(args.filters)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    sys.exit(export(
        args.module,
        Path(args.output_dir),
        args.limit,
        args.order_by,
        args.ascending,
        subtable=args.subtable,
        filters=filters,
    ))


if __name__ == "__main__":
    main()
