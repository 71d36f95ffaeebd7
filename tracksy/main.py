"""Tracksy command-line entry point.

Usage:
    python -m tracksy.main                       # print today's report
    python -m tracksy.main --date 2025-01-15     # print a given day's report
    python -m tracksy.main --productivity        # print today's productivity
    python -m tracksy.main --compact             # compact stored samples
    python -m tracksy.main --export report.docx  # export today's report
    python -m tracksy.main --serve               # run the JSON API
    python -m tracksy.main --import-rules r.json # add rules from a JSON file
    python -m tracksy.main --export-rules r.json # write stored rules to JSON
"""

import argparse
import logging
import os
from datetime import date
from typing import Any

from tracksy.core.classifier import Classifier
from tracksy.core.config import get_default_config_path, load_config, pipeline_settings
from tracksy.core.models import ClassificationRule
from tracksy.persistence.store import ActivityStore
from tracksy.reporting.formatter import TextFormatter
from tracksy.reporting.summary import ReportGenerator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tracksy",
        description="Tracksy: activity reports and productivity classification",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--report",
        action="store_true",
        help="Print the duration report for the day (default)",
    )
    group.add_argument(
        "--productivity",
        action="store_true",
        help="Print the productivity breakdown for the day",
    )
    group.add_argument(
        "--compact",
        action="store_true",
        help="Consolidate stored samples and exit",
    )
    group.add_argument(
        "--export",
        metavar="PATH",
        help="Export the day's report to a .docx file",
    )
    group.add_argument(
        "--serve",
        action="store_true",
        help="Run the JSON API in the foreground",
    )
    group.add_argument(
        "--import-rules",
        metavar="PATH",
        help="Add or replace classification rules from a JSON file",
    )
    group.add_argument(
        "--export-rules",
        metavar="PATH",
        help="Write the stored classification rules to a JSON file",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to report on (YYYY-MM-DD, default today)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.json (default: platform data directory)",
    )
    return parser


def open_store(config: dict[str, Any]) -> ActivityStore:
    """Open the configured store, seeding rules from the config when it has none."""
    db_path = os.path.expanduser(config.get("database_path", "~/.tracksy/tracksy.db"))
    parent = os.path.dirname(db_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    store = ActivityStore(db_path)
    store.init_db()
    if not store.get_rules():
        for entry in config.get("classification_rules", []):
            try:
                store.save_rule(ClassificationRule.from_dict(entry))
            except ValueError as exc:
                logger.warning("Skipping invalid rule in config: %s", exc)
    return store


def _print_report(config: dict, target: date) -> None:
    store = open_store(config)
    try:
        report = ReportGenerator(store, config).daily_report(target)
        print(TextFormatter.format_report(report, f"Activity Report: {target.isoformat()}"))
    finally:
        store.close()


def _print_productivity(config: dict, target: date) -> None:
    store = open_store(config)
    try:
        breakdown = ReportGenerator(store, config).daily_productivity(target)
        print(TextFormatter.format_productivity(breakdown, f"Productivity: {target.isoformat()}"))
    finally:
        store.close()


def _compact(config: dict) -> None:
    store = open_store(config)
    try:
        before, after = store.compact(pipeline_settings(config)["merge_gap_ms"])
        print(f"Compacted {before} samples into {after} records")
    finally:
        store.close()


def _export(config: dict, target: date, output_path: str) -> None:
    from tracksy.reporting.exporter import ReportExporter

    output_path = os.path.expanduser(output_path)
    if not os.path.isabs(output_path):
        report_dir = config.get("report", {}).get("output_directory", "")
        output_path = os.path.join(os.path.expanduser(report_dir), output_path)

    store = open_store(config)
    try:
        report = ReportGenerator(store, config).daily_report(target)
        path = ReportExporter().export_report(
            report, output_path, f"Activity Report: {target.isoformat()}"
        )
        print(f"Report written to {path}")
    finally:
        store.close()


def _import_rules(config: dict, path: str) -> None:
    rules = Classifier.load_rules(os.path.expanduser(path))
    store = open_store(config)
    try:
        for rule in rules:
            store.save_rule(rule)
        print(f"Imported {len(rules)} rules from {path}")
    finally:
        store.close()


def _export_rules(config: dict, path: str) -> None:
    store = open_store(config)
    try:
        rules = store.get_rules()
        Classifier.save_rules(rules, os.path.expanduser(path))
        print(f"Exported {len(rules)} rules to {path}")
    finally:
        store.close()


def _serve(config: dict) -> None:
    from tracksy.ui.web import create_flask_app

    store = open_store(config)
    try:
        port = int(config.get("web_port", 5555))
        create_flask_app(store, config).run(
            host="127.0.0.1", port=port, debug=False, use_reloader=False
        )
    finally:
        store.close()


def main(args: list[str] | None = None) -> None:
    """Entry point for Tracksy.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = build_parser()
    parsed = parser.parse_args(args)

    config_path = parsed.config or get_default_config_path()
    config = load_config(str(config_path))
    target = parsed.date or date.today()

    if parsed.productivity:
        _print_productivity(config, target)
    elif parsed.compact:
        _compact(config)
    elif parsed.export:
        _export(config, target, parsed.export)
    elif parsed.serve:
        _serve(config)
    elif parsed.import_rules:
        _import_rules(config, parsed.import_rules)
    elif parsed.export_rules:
        _export_rules(config, parsed.export_rules)
    else:
        _print_report(config, target)


if __name__ == "__main__":
    main()
