#!/usr/bin/env python3
"""Command-line access to the organization hierarchy.

``python orgview_cli.py summary`` loads both workbooks and logs per-level
counts plus the load report. ``python orgview_cli.py export`` writes the tree
as a flat CSV (one row per unit) or as nested JSON.

The config file is taken from ``--config``, then ``$ORGVIEW_CONFIG``, then
``./orgview.yaml``; without any of them the built-in defaults are used. Run
``streamlit run orgview_browser/orgview_app.py`` for the interactive browser.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

from orgview_browser.orgview_data import load_hierarchy
from orgview_common.config import AppConfig, ConfigError, load_app_config
from orgview_common.frames import hierarchy_counts, hierarchy_to_frame
from orgview_common.models import Area

LOGGER = logging.getLogger(__name__)


def areas_to_json(areas: Sequence[Area]) -> str:
    return json.dumps([asdict(area) for area in areas], ensure_ascii=False, indent=2)


def _load(config: AppConfig):
    areas, report = load_hierarchy(config, return_report=True)
    if not report.ok:
        LOGGER.error("Load failed: %s", report.error)
    return areas, report


def cmd_summary(args: argparse.Namespace) -> int:
    config = load_app_config(args.config)
    areas, report = _load(config)
    if not report.ok:
        return 1

    for label, count in hierarchy_counts(areas).items():
        LOGGER.info("%-10s %d", label, count)
    LOGGER.info("Report: %s", report.summary())
    if report.unindexed_rows:
        LOGGER.info("Rows without a usable key: %s", report.unindexed_rows)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    config = load_app_config(args.config)
    areas, report = _load(config)
    if not report.ok:
        return 1

    if args.format == "json":
        payload = areas_to_json(areas)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(payload, encoding="utf-8")
            LOGGER.info("Wrote JSON tree: %s", args.output)
        else:
            sys.stdout.write(payload + "\n")
        return 0

    frame = hierarchy_to_frame(areas)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        frame.write_csv(args.output)
        LOGGER.info("Wrote %d unit rows: %s", frame.height, args.output)
    else:
        sys.stdout.write(frame.write_csv())
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Organization hierarchy viewer (AISP -> city -> building -> unit)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config (default: $ORGVIEW_CONFIG or ./orgview.yaml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    summary = subparsers.add_parser("summary", help="Log per-level counts and the load report.")
    summary.set_defaults(func=cmd_summary)

    export = subparsers.add_parser("export", help="Write the hierarchy as CSV or JSON.")
    export.add_argument("--format", choices=("csv", "json"), default="csv")
    export.add_argument("--output", type=Path, help="Output file (default: stdout).")
    export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    try:
        return args.func(args)
    except ConfigError as exc:
        LOGGER.error("Config error: %s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
