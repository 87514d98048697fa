"""End-to-end run: region directory -> catalogs -> inventory -> expansion -> SKU reconciliation.

``assess`` is the pure reconciliation core; ``run_assessment`` wires it to live
Azure catalogs and writes the JSON artifacts.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from . import azure_client
from .artifacts import write_json
from .config import AVAILABILITY_MAPPING_FILE, REGION_FETCH_WORKERS, REGIONS_FILE
from .errors import CatalogFetchError
from .expansion import expand_to_all_regions
from .importers import (
    ProviderImporter,
    SqlDatabaseSkuImporter,
    SqlManagedInstanceSkuImporter,
    StorageSkuImporter,
    VmSkuImporter,
)
from .inventory import normalize_inventory
from .models import AssessmentResult, ProviderCatalogEntry, Region, SkuCatalogs
from .projection import project_region
from .reconcile import reconcile_skus
from .regions import build_region_directory

logger = logging.getLogger(__name__)


def load_region_directory(
    subscription_id: Optional[str] = None,
    output_dir: Optional[Path] = None,
) -> Tuple[List[Region], Dict[str, str]]:
    raw = azure_client.list_locations_raw(subscription_id=subscription_id)
    regions, code_to_display = build_region_directory(raw)
    if output_dir:
        write_json(Path(output_dir) / REGIONS_FILE, regions)
    return regions, code_to_display


def import_catalogs(
    regions: List[Region],
    code_to_display: Dict[str, str],
    output_dir: Optional[Path] = None,
    subscription_id: Optional[str] = None,
    workers: int = REGION_FETCH_WORKERS,
    warnings: Optional[List[str]] = None,
) -> Tuple[List[ProviderCatalogEntry], SkuCatalogs]:
    kwargs: Dict[str, Any] = {
        "output_dir": output_dir,
        "subscription_id": subscription_id,
        "workers": workers,
        "warnings": warnings,
    }
    providers = ProviderImporter(regions, code_to_display, **kwargs).run()
    catalogs = SkuCatalogs(
        vm=VmSkuImporter(regions, code_to_display, **kwargs).run(),
        storage=StorageSkuImporter(regions, code_to_display, **kwargs).run(),
        sql_database=SqlDatabaseSkuImporter(regions, code_to_display, **kwargs).run(),
        sql_managed_instance=SqlManagedInstanceSkuImporter(regions, code_to_display, **kwargs).run(),
    )
    return providers, catalogs


def assess(
    raw_inventory: List[Dict[str, Any]],
    regions: List[Region],
    code_to_display: Dict[str, str],
    providers: List[ProviderCatalogEntry],
    catalogs: SkuCatalogs,
    warnings: Optional[List[str]] = None,
) -> AssessmentResult:
    warnings = warnings if warnings is not None else []
    summaries = normalize_inventory(raw_inventory, code_to_display, warnings)
    expand_to_all_regions(summaries, providers, regions, warnings)
    reconcile_skus(summaries, catalogs)
    return AssessmentResult(resources=summaries, warnings=warnings)


def run_assessment(
    raw_inventory: List[Dict[str, Any]],
    output_dir: Optional[Union[str, Path]] = None,
    subscription_id: Optional[str] = None,
    workers: int = REGION_FETCH_WORKERS,
    target_region: Optional[str] = None,
) -> AssessmentResult:
    """Live run. Artifacts are written only when ``output_dir`` is given."""
    out = Path(output_dir) if output_dir else None
    warnings: List[str] = []
    try:
        regions, code_to_display = load_region_directory(subscription_id, out)
    except CatalogFetchError as e:
        logger.warning("Region listing failed: %s", e)
        warnings.append(f"Region listing failed: {e}")
        regions, code_to_display = [], {}
    if not regions:
        warnings.append("Region directory is empty")
    providers, catalogs = import_catalogs(regions, code_to_display, out, subscription_id, workers, warnings)

    result = assess(raw_inventory, regions, code_to_display, providers, catalogs, warnings)
    if out:
        # always written, even when some records could not be expanded
        write_json(out / AVAILABILITY_MAPPING_FILE, result.resources)
    if target_region:
        result.selected_region = project_region(result.resources, target_region)
    logger.info("Assessment finished: %d resources, %d warnings", len(result.resources), len(result.warnings))
    return result
