"""Command line entry point.

    region-mapper --inventory summary.json --target-region "West Europe" --csv
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import OUTPUT_DIR, REGION_FETCH_WORKERS
from .errors import RegionMapperError
from .inventory import load_inventory
from .pipeline import run_assessment
from .projection import projection_filename, write_region_projection
from .report import write_csv_report

logger = logging.getLogger("region_mapper")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_NO_ENTRIES = 3


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="region-mapper",
        description="Map deployed Azure resources and SKUs to their availability in every region.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--inventory", required=True, help="Inventory summary JSON produced by the collect stage.")
    parser.add_argument("--target-region", default=None,
                        help="Display name of the candidate region, e.g. 'West Europe'.")
    parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Directory for JSON/CSV artifacts.")
    parser.add_argument("--subscription-id", default=None, help="Subscription used for catalog queries.")
    parser.add_argument("--workers", type=int, default=REGION_FETCH_WORKERS,
                        help="Parallel per-region catalog requests (1 = sequential).")
    parser.add_argument("--csv", action="store_true", help="Also write a CSV report for the target region.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    out = Path(args.output_dir)

    try:
        raw_inventory = load_inventory(args.inventory)
        result = run_assessment(
            raw_inventory,
            output_dir=out,
            subscription_id=args.subscription_id,
            workers=args.workers,
            target_region=args.target_region,
        )
    except RegionMapperError as e:
        # missing inventory or rejected credentials
        logger.error("%s", e)
        return EXIT_FATAL

    if result.warnings:
        logger.warning("%d records or regions were skipped; see log above", len(result.warnings))

    if not args.target_region:
        return EXIT_OK

    written = write_region_projection(result.resources, args.target_region, out)
    if written is None:
        print(f"No entries found for region {args.target_region}", file=sys.stderr)
        return EXIT_NO_ENTRIES
    if args.csv:
        csv_path = out / projection_filename(args.target_region).replace(".json", ".csv")
        write_csv_report(result.selected_region or [], csv_path)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
