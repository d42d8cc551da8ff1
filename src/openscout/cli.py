"""CLI entry point for OpenScout.

Runs searches and index maintenance over records loaded from a YAML or
JSON data file::

    openscout search "lamp" --data products.yaml --where active=true --order-by price:desc --take 5
    openscout search "" --data products.yaml --per-page 10 --page 2
    openscout import --data products.yaml --engine meilisearch --index products
    openscout flush --engine meilisearch --index products
    openscout health --engine meilisearch
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ConfigDict

from openscout.datastore.memory import InMemoryDatastore
from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


class Record(SearchableModel):
    """Schemaless record loaded from a data file."""

    model_config = ConfigDict(extra="allow")

    id: Any = None


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point for OpenScout."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from openscout.config.settings import Settings
    from openscout.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            return 1
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.log_level:
        settings.observability.log_level = args.log_level
    if args.engine:
        settings.search.driver = args.engine

    setup_logging(settings.observability)

    from openscout.config.settings import set_settings
    from openscout.engines.manager import EngineManager

    set_settings(settings)
    manager = EngineManager(settings)
    try:
        _bind_record(args, manager)
        return args.handler(args)
    finally:
        manager.forget_engines()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openscout",
        description="OpenScout — Fluent full-text search over pluggable engines",
    )
    parser.add_argument("--version", action="version", version=f"OpenScout {_get_version()}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    common.add_argument(
        "--engine",
        "-e",
        type=str,
        default=None,
        help="Engine driver: collection, database, meilisearch, null (overrides config)",
    )
    common.add_argument("--index", type=str, default=None, help="Index name (defaults to 'records')")
    common.add_argument("--key", type=str, default="id", help="Record field holding the identifier")
    common.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )

    data = argparse.ArgumentParser(add_help=False)
    data.add_argument("--data", "-d", type=str, required=True, help="YAML or JSON file holding a list of records")
    data.add_argument("--fields", type=str, default=None, help="Comma-separated fields matched by the query string")

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", parents=[common, data], help="Search records and print JSON results")
    search.add_argument("query", nargs="?", default="", help="Full-text query string")
    search.add_argument("--where", action="append", default=[], metavar="FIELD=VALUE", help="Equality filter")
    search.add_argument("--where-in", action="append", default=[], metavar="FIELD=A,B", help="Inclusion filter")
    search.add_argument("--where-not-in", action="append", default=[], metavar="FIELD=A,B", help="Exclusion filter")
    search.add_argument("--order-by", action="append", default=[], metavar="COLUMN[:DIR]", help="Ordering")
    search.add_argument("--take", type=int, default=None, help="Maximum number of results")
    search.add_argument("--page", type=int, default=None, help="Page number (enables pagination)")
    search.add_argument("--per-page", type=int, default=None, help="Page size (enables pagination)")
    search.add_argument("--simple", action="store_true", help="Simple pagination (no total count)")
    search.add_argument("--raw", action="store_true", help="Print raw engine hits instead of records")
    search.set_defaults(handler=_run_search)

    imp = sub.add_parser("import", parents=[common, data], help="Index every record of the data file")
    imp.set_defaults(handler=_run_import)

    flush = sub.add_parser("flush", parents=[common], help="Remove every record from the index")
    flush.set_defaults(handler=_run_flush)

    health = sub.add_parser("health", parents=[common], help="Check the health of the selected engine")
    health.set_defaults(handler=_run_health)

    return parser


def _bind_record(args: argparse.Namespace, manager: Any) -> None:
    """Bind the ``Record`` model to a fresh datastore and the selected engine."""
    store = InMemoryDatastore()
    Record.datastore = store
    Record.search_engine = manager.engine()
    Record.search_index = args.index or "records"
    Record.scout_key_name = args.key
    Record.searchable_fields = None

    if getattr(args, "data", None):
        rows = _load_rows(Path(args.data))
        store.save(Record.model_validate(row) for row in rows)
        logger.debug("Loaded %d records from %s", len(rows), args.data)
        if args.fields:
            Record.searchable_fields = [f.strip() for f in args.fields.split(",") if f.strip()]
        else:
            Record.searchable_fields = sorted({k for row in rows for k, v in row.items() if isinstance(v, str)})


def _load_rows(path: Path) -> list[dict[str, Any]]:
    import yaml  # type: ignore[import-untyped]

    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    with open(path) as f:
        rows = yaml.safe_load(f) or []
    if not isinstance(rows, list):
        raise ValueError(f"Data file must contain a list of records: {path}")
    return rows


def _parse_value(raw: str) -> Any:
    """Parse a CLI value as YAML scalar (``true`` → True, ``12`` → 12)."""
    import yaml  # type: ignore[import-untyped]

    return yaml.safe_load(raw) if raw else raw


def _split_pair(pair: str) -> tuple[str, str]:
    field, sep, value = pair.partition("=")
    if not sep or not field:
        raise SystemExit(f"Error: expected FIELD=VALUE, got {pair!r}")
    return field, value


def _run_search(args: argparse.Namespace) -> int:
    builder = Record.search(args.query)

    for pair in args.where:
        field, value = _split_pair(pair)
        builder.where(field, _parse_value(value))
    for pair in args.where_in:
        field, value = _split_pair(pair)
        builder.where_in(field, [_parse_value(v) for v in value.split(",")])
    for pair in args.where_not_in:
        field, value = _split_pair(pair)
        builder.where_not_in(field, [_parse_value(v) for v in value.split(",")])
    for clause in args.order_by:
        column, _, direction = clause.partition(":")
        builder.order_by(column, direction or "asc")
    if args.take is not None:
        builder.take(args.take)

    output: Any
    if args.page is not None or args.per_page is not None:
        if args.simple:
            paginate = builder.simple_paginate_raw if args.raw else builder.simple_paginate
        else:
            paginate = builder.paginate_raw if args.raw else builder.paginate
        page = paginate(args.per_page, page=args.page)
        output = {
            "items": [_dump(item) for item in page.items],
            "per_page": page.per_page,
            "current_page": page.current_page,
            "has_more": page.has_more,
            "next_page_url": page.next_page_url(),
        }
        total = getattr(page, "total", None)
        if total is not None:
            output["total"] = total
    elif args.raw:
        output = builder.raw().model_dump(mode="json")
    else:
        output = [_dump(record) for record in builder.get()]

    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))
    return 0


def _run_import(args: argparse.Namespace) -> int:
    count = Record.make_all_searchable()
    print(f"Imported {count} records into {Record.searchable_as()}")
    return 0


def _run_flush(args: argparse.Namespace) -> int:
    Record.remove_all_from_search()
    print(f"Flushed {Record.searchable_as()}")
    return 0


def _run_health(args: argparse.Namespace) -> int:
    health = Record.searchable_using().health_check()
    print(health.model_dump_json(indent=2))
    return 0 if health.status == "healthy" else 1


def _dump(item: Any) -> Any:
    if isinstance(item, SearchableModel):
        return item.model_dump(mode="json")
    return item


def _get_version() -> str:
    """Get the package version."""
    try:
        from openscout import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    sys.exit(main())
