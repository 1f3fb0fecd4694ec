"""Generate a Lune usage invoice draft from exported device and feed data.

Reads the device list and the raw button usage feed from JSON files,
assembles the draft and prints it as JSON.

Usage:
    python -m scripts.generate_usage_invoice --devices devices.json --feed feed.json
    python -m scripts.generate_usage_invoice --devices devices.json --feed feed.json \\
        --office 12 --month 3 --year 2025 --sequence 42 --csv items.csv
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date

from src.logging_config import LogFormat, LoggingConfig, PerformanceTimer, configure_logging
from src.lune_billing import (
    BillingConfig,
    BillingPeriod,
    Device,
    InvoiceAssembler,
    MatchMode,
    RandomNumbering,
    SequentialNumbering,
    draft_to_dict,
    line_items_frame,
    records_from_feed,
)

logger = logging.getLogger(__name__)


def _load_json(path: str):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assemble a Lune usage invoice draft"
    )
    parser.add_argument("--devices", required=True, help="JSON list of devices")
    parser.add_argument("--feed", required=True, help="JSON list of usage records")
    parser.add_argument("--office", default=None, help="Only bill devices of this office")
    parser.add_argument("--month", type=int, default=None, help="Billing month (1-12)")
    parser.add_argument("--year", type=int, default=None, help="Billing year")
    parser.add_argument(
        "--sequence", type=int, default=None,
        help="Invoice sequence number; a random sequence is used if omitted",
    )
    parser.add_argument(
        "--substring-match", action="store_true",
        help="Also match records whose identifiers contain the device serial",
    )
    parser.add_argument("--csv", default=None, help="Write line items to this CSV file")
    parser.add_argument("--console-log", action="store_true", help="Human-readable logs")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(
        LoggingConfig(format=LogFormat.CONSOLE if args.console_log else LogFormat.JSON)
    )

    if (args.month is None) != (args.year is None):
        logger.error("--month and --year must be given together")
        return 2
    try:
        period = BillingPeriod(args.month, args.year) if args.month is not None else None
        numbering = (
            SequentialNumbering(args.sequence) if args.sequence is not None
            else RandomNumbering()
        )
    except ValueError as exc:
        logger.error("Invalid arguments: %s", exc)
        return 2

    with PerformanceTimer("load_inputs"):
        devices = [Device.from_dict(d) for d in _load_json(args.devices)]
        records = records_from_feed(_load_json(args.feed))
    logger.info("Loaded %d devices and %d usage records", len(devices), len(records))

    config = BillingConfig.from_env()
    if args.substring_match:
        config = replace(config, match_mode=MatchMode.SUBSTRING)

    draft = InvoiceAssembler(config, numbering).assemble(
        devices,
        records,
        period=period,
        office_id=args.office,
        issue_date=date.today(),
    )

    if args.csv:
        line_items_frame(draft).to_csv(args.csv, index=False)
        logger.info("Wrote %d line items to %s", len(draft.line_items), args.csv)

    json.dump(draft_to_dict(draft), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
