"""Load and normalize the deployed-resource summary produced by the collect stage.

Raw records look like::

    {"ResourceType": "microsoft.storage/storageaccounts", "ResourceCount": 3,
     "ResourceSkus": [{"name": "Standard_LRS", "tier": "Standard"}],
     "AzureRegions": ["eastus"]}
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .artifacts import read_json
from .config import SKU_NOT_APPLICABLE
from .errors import InventoryNotFoundError
from .models import DeployedResourceSummary
from .progress import with_progress
from .regions import display_name_for

logger = logging.getLogger(__name__)


def load_inventory(path: Union[str, Path]) -> List[Dict[str, Any]]:
    p = Path(path)
    if not p.is_file():
        raise InventoryNotFoundError(p)
    data = read_json(p)
    if isinstance(data, dict):
        # single-record summaries are written as a bare object
        data = [data]
    return list(data or [])


def _is_not_applicable(value: Any) -> bool:
    marker = SKU_NOT_APPLICABLE.lower()
    if isinstance(value, str):
        return value.strip().lower() == marker
    if isinstance(value, (list, tuple)) and len(value) == 1 and isinstance(value[0], str):
        return value[0].strip().lower() == marker
    return False


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def normalize_inventory(
    raw_records: List[Dict[str, Any]],
    code_to_display: Dict[str, str],
    warnings: Optional[List[str]] = None,
) -> List[DeployedResourceSummary]:
    warnings = warnings if warnings is not None else []
    summaries: List[DeployedResourceSummary] = []
    for index, total, raw in with_progress(raw_records or []):
        resource_type = raw.get("ResourceType")
        if not resource_type:
            msg = f"[{index}/{total}] inventory record without ResourceType skipped"
            logger.warning(msg)
            warnings.append(msg)
            continue

        regions: List[str] = []
        for code in _as_list(raw.get("AzureRegions")):
            display = display_name_for(str(code), code_to_display)
            if display is None:
                msg = f"[{index}/{total}] {resource_type}: region '{code}' not in region directory, kept as-is for review"
                logger.warning(msg)
                warnings.append(msg)
                display = str(code)
            regions.append(display)

        try:
            count = int(raw.get("ResourceCount") or 0)
        except (TypeError, ValueError):
            msg = f"[{index}/{total}] {resource_type}: ResourceCount {raw.get('ResourceCount')!r} is not a number, counted as 0"
            logger.warning(msg)
            warnings.append(msg)
            count = 0

        skus = raw.get("ResourceSkus")
        implemented_skus = None if skus is None or _is_not_applicable(skus) else _as_list(skus)

        summaries.append(DeployedResourceSummary(
            resource_type=resource_type,
            resource_count=count,
            implemented_regions=regions,
            implemented_skus=implemented_skus,
        ))
    logger.info("Normalized %d inventory records", len(summaries))
    return summaries
