"""Per-SKU availability refinement.

Phase A seeds every available region with a copy of the deployed SKU list.
Phase B picks a matcher by resource family and replaces each seeded entry with
``{...identifying fields, "available": bool}``. The first matching catalog
record wins.
"""
import json
import logging
import re
from collections import defaultdict
from copy import deepcopy
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from .models import DeployedResourceSummary, SkuCatalogs, SqlSku, StorageSku
from .progress import with_progress

logger = logging.getLogger(__name__)


class ResourceFamily(str, Enum):
    STORAGE = "storage"
    VIRTUAL_MACHINE = "virtual_machine"
    SQL_DATABASE = "sql_database"
    SQL_MANAGED_INSTANCE = "sql_managed_instance"
    UNKNOWN = "unknown"

    @classmethod
    def from_resource_type(cls, resource_type: Optional[str]) -> "ResourceFamily":
        return _FAMILY_BY_TYPE.get((resource_type or "").strip().lower(), cls.UNKNOWN)


# disks are reported in storage SKU vocabulary (Premium_LRS, StandardSSD_LRS, ...)
_FAMILY_BY_TYPE = {
    "microsoft.compute/disks": ResourceFamily.STORAGE,
    "microsoft.storage/storageaccounts": ResourceFamily.STORAGE,
    "microsoft.compute/virtualmachines": ResourceFamily.VIRTUAL_MACHINE,
    "microsoft.sql/managedinstances": ResourceFamily.SQL_MANAGED_INSTANCE,
    "microsoft.sql/servers/databases": ResourceFamily.SQL_DATABASE,
}


# --------------------------- helpers ---------------------------
def _field(entry: Any, name: str) -> Any:
    if not isinstance(entry, Mapping):
        return None
    if name in entry:
        return entry[name]
    lname = name.lower()
    for k, v in entry.items():
        if str(k).lower() == lname:
            return v
    return None


def _same(a: Any, b: Any) -> bool:
    return str(a) == str(b) if a is not None and b is not None else a is None and b is None


def _same_ci(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return str(a).lower() == str(b).lower()


def _region_key(region: str) -> str:
    return "".join(region.split()).lower()


def _descriptor(entry: Any) -> Dict[str, Any]:
    return dict(entry) if isinstance(entry, Mapping) else {"sku": entry}


_VM_SIZE_RE = re.compile(r"""vmSize["']?\s*[=:]\s*["']?([^"'\s;,}]+)""", re.IGNORECASE)


def extract_vm_size(entry: Any) -> Optional[str]:
    """Pull the size name out of a VM SKU entry.

    Entries may be a mapping with a ``vmSize`` key, a mapping nesting it deeper
    (``hardwareProfile``), or a serialized string such as ``@{vmSize=Standard_D2s_v3}``.
    """
    direct = _field(entry, "vmSize")
    if isinstance(direct, str) and direct:
        return direct
    text = json.dumps(entry, default=str) if isinstance(entry, (Mapping, list)) else str(entry)
    m = _VM_SIZE_RE.search(text)
    return m.group(1) if m else None


# --------------------------- catalog index ---------------------------
class CatalogIndex:
    """Region-keyed views of the SKU catalogs, built once per reconciliation."""

    def __init__(self, catalogs: SkuCatalogs):
        self.vm_regions: Dict[str, Set[str]] = defaultdict(set)
        for sku in catalogs.vm:
            self.vm_regions[sku.name].update(sku.regions)

        self.storage: Dict[str, List[StorageSku]] = defaultdict(list)
        for sku in catalogs.storage:
            self.storage[sku.location.lower()].append(sku)

        self.sql_database: Dict[str, List[SqlSku]] = defaultdict(list)
        for entry in catalogs.sql_database:
            self.sql_database[entry.region].extend(entry.skus)

        # managed instances match on display name or on the compacted region code
        self.mi_by_name: Dict[str, List[SqlSku]] = defaultdict(list)
        self.mi_by_code: Dict[str, List[SqlSku]] = defaultdict(list)
        for entry in catalogs.sql_managed_instance:
            self.mi_by_name[entry.region.lower()].extend(entry.skus)
            self.mi_by_code[_region_key(entry.region_code)].extend(entry.skus)

    def managed_instance_skus(self, region: str) -> List[SqlSku]:
        return self.mi_by_name.get(region.lower(), []) + self.mi_by_code.get(_region_key(region), [])


# --------------------------- matchers ---------------------------
Matcher = Callable[[List[Any], str, CatalogIndex], List[Dict[str, Any]]]


def match_storage(seed: List[Any], region: str, index: CatalogIndex) -> List[Dict[str, Any]]:
    in_region = index.storage.get(region.lower(), [])
    out = []
    for entry in seed:
        name, tier = _field(entry, "name"), _field(entry, "tier")
        available = any(_same(s.name, name) and _same(s.tier, tier) for s in in_region)
        out.append({**_descriptor(entry), "available": available})
    return out


def match_virtual_machine(seed: List[Any], region: str, index: CatalogIndex) -> List[Dict[str, Any]]:
    out = []
    for entry in seed:
        size = extract_vm_size(entry)
        available = False
        if size:
            available = region in index.vm_regions.get(size, ())
        else:
            logger.warning("No vmSize found in VM SKU entry %r", entry)
        item = _descriptor(entry)
        item["vmSize"] = size
        item["available"] = available
        out.append(item)
    return out


def match_sql_managed_instance(seed: List[Any], region: str, index: CatalogIndex) -> List[Dict[str, Any]]:
    skus = index.managed_instance_skus(region)
    out = []
    for entry in seed:
        name, tier, family = _field(entry, "name"), _field(entry, "tier"), _field(entry, "family")
        # capacity does not gate managed instance availability
        available = any(
            _same_ci(s.name, name) and _same_ci(s.tier, tier) and _same_ci(s.family, family)
            for s in skus
        )
        out.append({**_descriptor(entry), "available": available})
    return out


def match_sql_database(seed: List[Any], region: str, index: CatalogIndex) -> List[Dict[str, Any]]:
    skus = index.sql_database.get(region, [])
    out = []
    for entry in seed:
        name, tier = _field(entry, "name"), _field(entry, "tier")
        capacity, family = _field(entry, "capacity"), _field(entry, "family")
        available = any(
            _same(s.name, name)
            and _same(s.tier, tier)
            and _same(s.capacity, capacity)
            # family only counts when both sides carry one
            and (s.family is None or family is None or _same(s.family, family))
            for s in skus
        )
        out.append({**_descriptor(entry), "available": available})
    return out


MATCHERS: Dict[ResourceFamily, Matcher] = {
    ResourceFamily.STORAGE: match_storage,
    ResourceFamily.VIRTUAL_MACHINE: match_virtual_machine,
    ResourceFamily.SQL_MANAGED_INSTANCE: match_sql_managed_instance,
    ResourceFamily.SQL_DATABASE: match_sql_database,
}


# --------------------------- stage ---------------------------
def seed_skus(summary: DeployedResourceSummary) -> None:
    if not summary.implemented_skus or not summary.all_regions:
        return
    for region in summary.all_regions:
        if region.available:
            region.skus = deepcopy(summary.implemented_skus)


def reconcile_skus(summaries: List[DeployedResourceSummary], catalogs: SkuCatalogs) -> List[DeployedResourceSummary]:
    index = CatalogIndex(catalogs)
    for i, total, summary in with_progress(summaries):
        if not summary.all_regions or not summary.implemented_skus:
            continue
        seed_skus(summary)
        family = ResourceFamily.from_resource_type(summary.resource_type)
        matcher = MATCHERS.get(family)
        if matcher is None:
            logger.debug("[%d/%d] %s: no SKU matcher, seed kept", i, total, summary.resource_type)
            continue
        for region in summary.all_regions:
            if region.skus is not None:
                region.skus = matcher(region.skus, region.region, index)
        logger.debug("[%d/%d] %s: SKUs reconciled as %s", i, total, summary.resource_type, family.value)
    return summaries
