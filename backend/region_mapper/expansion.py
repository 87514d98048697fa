import logging
from typing import Dict, List, Optional

from .models import DeployedResourceSummary, ProviderCatalogEntry, Region, RegionAvailability
from .progress import with_progress
from .regions import is_global_scope, target_regions

logger = logging.getLogger(__name__)

ProviderIndex = Dict[str, Dict[str, List[str]]]


def index_provider_catalog(catalog: List[ProviderCatalogEntry]) -> ProviderIndex:
    """namespace (lower) -> resource type (lower) -> supported locations."""
    index: ProviderIndex = {}
    for entry in catalog:
        types = index.setdefault(entry.namespace.lower(), {})
        for rt in entry.resource_types:
            types[rt.resource_type.lower()] = list(rt.locations)
    return index


def region_availability(locations: List[str], regions: List[Region]) -> List[RegionAvailability]:
    supported = {loc.strip().lower() for loc in locations if loc}
    everywhere = any(is_global_scope(loc) for loc in locations)
    return [
        RegionAvailability(
            region=r.display_name,
            available=everywhere or r.display_name.lower() in supported,
        )
        for r in target_regions(regions)
    ]


def expand_to_all_regions(
    summaries: List[DeployedResourceSummary],
    provider_catalog: List[ProviderCatalogEntry],
    regions: List[Region],
    warnings: Optional[List[str]] = None,
) -> List[DeployedResourceSummary]:
    """Populate ``all_regions`` on every record whose type resolves in the provider catalog."""
    warnings = warnings if warnings is not None else []
    index = index_provider_catalog(provider_catalog)

    def skip(msg: str) -> None:
        logger.warning(msg)
        warnings.append(msg)

    for i, total, summary in with_progress(summaries):
        namespace, sep, type_suffix = summary.resource_type.partition("/")
        if not sep or not namespace or not type_suffix:
            skip(f"[{i}/{total}] malformed resource type '{summary.resource_type}', region expansion skipped")
            continue
        types = index.get(namespace.lower())
        if types is None:
            skip(f"[{i}/{total}] {summary.resource_type}: namespace '{namespace}' not found in provider catalog")
            continue
        locations = types.get(type_suffix.lower())
        if locations is None:
            skip(f"[{i}/{total}] {summary.resource_type}: type '{type_suffix}' not found under {namespace}")
            continue
        summary.all_regions = region_availability(locations, regions)
        logger.debug("[%d/%d] %s available in %d regions", i, total, summary.resource_type,
                     sum(1 for r in summary.all_regions if r.available))
    return summaries
