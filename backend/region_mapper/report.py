"""Flat CSV view of a region projection for spreadsheet users."""
import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

from .models import RegionProjection

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "ResourceType",
    "ResourceCount",
    "ImplementedRegions",
    "TargetRegion",
    "RegionAvailable",
    "Sku",
    "SkuAvailable",
]


def _sku_label(sku: Any) -> str:
    if not isinstance(sku, dict):
        return str(sku)
    if sku.get("vmSize"):
        return str(sku["vmSize"])
    parts = [str(sku[k]) for k in ("name", "tier", "family", "capacity") if sku.get(k) is not None]
    return "/".join(parts) if parts else str(sku.get("sku", ""))


def report_rows(projections: List[RegionProjection]) -> Iterator[Dict[str, Any]]:
    for p in projections:
        base = {
            "ResourceType": p.resource_type,
            "ResourceCount": p.resource_count,
            "ImplementedRegions": ", ".join(p.implemented_regions),
        }
        for region in p.selected_region:
            row = {**base, "TargetRegion": region.region, "RegionAvailable": region.available}
            if not region.skus:
                yield {**row, "Sku": "", "SkuAvailable": ""}
                continue
            for sku in region.skus:
                avail = sku.get("available", "") if isinstance(sku, dict) else ""
                yield {**row, "Sku": _sku_label(sku), "SkuAvailable": avail}


def write_csv_report(projections: List[RegionProjection], path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for row in report_rows(projections):
            writer.writerow(row)
    logger.info("Wrote %s", p)
    return p
