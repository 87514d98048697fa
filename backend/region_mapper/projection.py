import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from .artifacts import write_json
from .config import PROJECTION_FILE_PREFIX, PROJECTION_SEPARATOR
from .models import DeployedResourceSummary, RegionProjection

logger = logging.getLogger(__name__)


def project_region(summaries: List[DeployedResourceSummary], region_display_name: str) -> List[RegionProjection]:
    """Single-region view of the availability matrix.

    Region names are compared exactly; records without an entry for the region are dropped.
    """
    out: List[RegionProjection] = []
    for summary in summaries:
        if not summary.all_regions:
            continue
        matches = [r.model_copy(deep=True) for r in summary.all_regions if r.region == region_display_name]
        if not matches:
            continue
        out.append(RegionProjection(
            resource_type=summary.resource_type,
            resource_count=summary.resource_count,
            implemented_regions=list(summary.implemented_regions),
            implemented_skus=summary.implemented_skus,
            selected_region=matches,
        ))
    return out


def projection_filename(region_display_name: str) -> str:
    slug = re.sub(r"\s+", PROJECTION_SEPARATOR, region_display_name.strip())
    return f"{PROJECTION_FILE_PREFIX}{slug}.json"


def write_region_projection(
    summaries: List[DeployedResourceSummary],
    region_display_name: str,
    output_dir: Union[str, Path],
) -> Optional[Path]:
    """Write the projection file; returns None (and writes nothing) when no entries match."""
    projected = project_region(summaries, region_display_name)
    if not projected:
        logger.warning("No entries found for region %s", region_display_name)
        return None
    return write_json(Path(output_dir) / projection_filename(region_display_name), projected)
