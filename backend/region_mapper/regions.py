"""Canonical region directory.

Every region-name translation in the pipeline goes through the map returned by
``build_region_directory``: internal code (``eastus``) to display name
(``East US``).
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import GLOBAL_REGION_MARKER
from .models import Region

logger = logging.getLogger(__name__)

# metadata key -> Region field; anything not listed here is dropped
REGION_METADATA_FIELDS = {
    "regionType": "region_type",
    "regionCategory": "region_category",
    "geography": "geography",
    "geographyGroup": "geography_group",
    "physicalLocation": "physical_location",
    "latitude": "latitude",
    "longitude": "longitude",
}


def _bare_region_code(ref: Any) -> Optional[str]:
    """``{"name": "westus", "id": "/subscriptions/<id>/locations/westus"}`` -> ``westus``."""
    if isinstance(ref, dict):
        rid = ref.get("id")
        if rid:
            return str(rid).rstrip("/").rsplit("/", 1)[-1]
        name = ref.get("name")
        return str(name) if name else None
    if isinstance(ref, str) and ref:
        return ref.rstrip("/").rsplit("/", 1)[-1]
    return None


def _region_from_raw(raw: Dict[str, Any]) -> Region:
    fields: Dict[str, Any] = {
        "code": raw.get("name") or "",
        "display_name": raw.get("displayName") or raw.get("name") or "",
        "regional_display_name": raw.get("regionalDisplayName"),
    }
    metadata = raw.get("metadata")
    if isinstance(metadata, dict):
        for key, field in REGION_METADATA_FIELDS.items():
            value = metadata.get(key)
            if value is not None:
                fields[field] = str(value)
        paired = metadata.get("pairedRegion")
        if paired:
            codes = [c for c in (_bare_region_code(p) for p in paired) if c]
            fields["paired_region"] = codes
    # raw "id" embeds the subscription id and is not carried over
    return Region(**fields)


def build_region_directory(raw_regions: Iterable[Dict[str, Any]]) -> Tuple[List[Region], Dict[str, str]]:
    """Build the sorted canonical region list and the code -> display name map."""
    raw_list = [r for r in (raw_regions or []) if r and r.get("name")]
    if not raw_list:
        logger.warning("Region directory is empty; availability matrix will be empty")
        return [], {}

    regions = sorted((_region_from_raw(r) for r in raw_list), key=lambda r: r.display_name)
    code_to_display = {r.code: r.display_name for r in regions}
    logger.info("Region directory built with %d regions", len(regions))
    return regions, code_to_display


def is_global_scope(name: Optional[str]) -> bool:
    return (name or "").strip().lower() == GLOBAL_REGION_MARKER


def global_scope_regions(regions: Iterable[Region]) -> List[Region]:
    return [r for r in regions if is_global_scope(r.display_name)]


def target_regions(regions: Iterable[Region]) -> List[Region]:
    """Regions a resource can actually be moved to (global pseudo-regions excluded)."""
    return [r for r in regions if not is_global_scope(r.display_name)]


def display_name_for(code: str, code_to_display: Dict[str, str]) -> Optional[str]:
    """Translate a region code, tolerating case and whitespace differences."""
    if code in code_to_display:
        return code_to_display[code]
    norm = "".join(code.split()).lower()
    for c, display in code_to_display.items():
        if c.lower() == norm:
            return display
    return None
