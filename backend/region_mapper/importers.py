"""Catalog importers.

Each importer fetches one raw capability/SKU listing from Azure, normalizes it
into its family's catalog model and (optionally) persists it as a JSON
artifact. Per-region listings can be fetched from a thread pool; folding into
the accumulators always happens on the calling thread, in canonical region
order.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from . import azure_client
from .artifacts import write_json
from .config import (
    PROVIDERS_FILE,
    REGION_FETCH_WORKERS,
    SQL_DATABASE_SKUS_FILE,
    SQL_MANAGED_INSTANCE_SKUS_FILE,
    STORAGE_SKUS_FILE,
    VM_SKUS_FILE,
)
from .errors import CredentialError
from .models import (
    ProviderCatalogEntry,
    ProviderResourceType,
    Region,
    SqlDatabaseSkuEntry,
    SqlManagedInstanceSkuEntry,
    SqlSku,
    StorageSku,
    VmSku,
)
from .progress import with_progress
from .regions import display_name_for, target_regions

logger = logging.getLogger(__name__)


# --------------------------- Accumulators ---------------------------
class VmSkuAccumulator:
    """One ``VmSku`` per name; regions grow by idempotent union."""

    def __init__(self) -> None:
        self._by_name: Dict[str, VmSku] = {}

    def upsert(self, name: str, region: str, number_of_cores: Optional[int] = None,
               memory_in_mb: Optional[int] = None) -> None:
        sku = self._by_name.get(name)
        if sku is None:
            self._by_name[name] = VmSku(
                name=name,
                regions=[region],
                number_of_cores=number_of_cores,
                memory_in_mb=memory_in_mb,
            )
        elif region not in sku.regions:
            sku.regions.append(region)

    def values(self) -> List[VmSku]:
        return list(self._by_name.values())


class StorageSkuAccumulator:
    """One ``StorageSku`` per (name, location); the first occurrence wins."""

    def __init__(self) -> None:
        self._by_key: Dict[Tuple[str, str], StorageSku] = {}

    def upsert(self, sku: StorageSku) -> None:
        key = (sku.name.lower(), sku.location.lower())
        if key not in self._by_key:
            self._by_key[key] = sku

    def values(self) -> List[StorageSku]:
        return list(self._by_key.values())


# --------------------------- Base importers ---------------------------
class _Fetched(NamedTuple):
    index: int
    total: int
    region: Region
    raw: Any
    error: Optional[Exception]


class CatalogImporter:
    """Fetch -> normalize -> accumulate -> persist -> return."""

    label = "catalog"
    artifact: Optional[str] = None

    def __init__(
        self,
        regions: List[Region],
        code_to_display: Dict[str, str],
        output_dir: Optional[Path] = None,
        subscription_id: Optional[str] = None,
        workers: int = REGION_FETCH_WORKERS,
        warnings: Optional[List[str]] = None,
    ):
        self.regions = regions
        self.code_to_display = code_to_display
        self.output_dir = Path(output_dir) if output_dir else None
        self.subscription_id = subscription_id
        self.workers = max(1, workers)
        self.warnings = warnings if warnings is not None else []

    def _warn(self, msg: str, *args: Any) -> None:
        logger.warning(msg, *args)
        self.warnings.append(msg % args if args else msg)

    def fetch_listing(self, fetch: Callable[..., Any]) -> Any:
        """Run a subscription-wide listing; a failed listing leaves the catalog empty."""
        try:
            return fetch(subscription_id=self.subscription_id)
        except CredentialError:
            raise
        except Exception as e:
            self._warn("%s catalog: listing failed, continuing without it: %s", self.label, e)
            return None

    def display_name(self, code: str) -> str:
        return display_name_for(code, self.code_to_display) or code

    def build(self) -> List[Any]:
        raise NotImplementedError

    def run(self) -> List[Any]:
        logger.info("Importing %s catalog", self.label)
        catalog = self.build()
        if not catalog:
            self._warn("%s catalog is empty", self.label)
        if self.output_dir and self.artifact:
            write_json(self.output_dir / self.artifact, catalog)
        return catalog


class RegionalCatalogImporter(CatalogImporter):
    """Importer issuing one request per canonical (non-global) region."""

    def fetch_region(self, region: Region) -> Any:
        raise NotImplementedError

    def fold(self, region: Region, raw: Any) -> None:
        raise NotImplementedError

    def result(self) -> List[Any]:
        raise NotImplementedError

    def _fetch(self, job: Tuple[int, int, Region]) -> _Fetched:
        index, total, region = job
        try:
            return _Fetched(index, total, region, self.fetch_region(region), None)
        except CredentialError:
            raise
        except Exception as e:
            return _Fetched(index, total, region, None, e)

    def _fetch_all(self) -> List[_Fetched]:
        jobs = list(with_progress(target_regions(self.regions)))
        if self.workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                return list(pool.map(self._fetch, jobs))
        return [self._fetch(job) for job in jobs]

    def build(self) -> List[Any]:
        for fetched in self._fetch_all():
            if fetched.error is not None:
                self._warn(
                    "[%d/%d] %s catalog: skipping region %s: %s",
                    fetched.index, fetched.total, self.label, fetched.region.code, fetched.error,
                )
                continue
            logger.debug("[%d/%d] %s catalog: folding %s", fetched.index, fetched.total,
                         self.label, fetched.region.code)
            self.fold(fetched.region, fetched.raw)
        return self.result()


# --------------------------- Providers ---------------------------
class ProviderImporter(CatalogImporter):
    label = "provider"
    artifact = PROVIDERS_FILE

    def build(self) -> List[ProviderCatalogEntry]:
        raw = self.fetch_listing(azure_client.list_providers)
        return normalize_providers(raw)


def normalize_providers(raw: Iterable[Dict[str, Any]]) -> List[ProviderCatalogEntry]:
    entries: List[ProviderCatalogEntry] = []
    for prov in raw or []:
        namespace = prov.get("namespace")
        if not namespace:
            continue
        rtypes = prov.get("resource_types") or prov.get("resourceTypes") or []
        entries.append(ProviderCatalogEntry(
            namespace=namespace,
            resource_types=[
                ProviderResourceType(
                    resource_type=rt.get("resource_type") or rt.get("resourceType"),
                    locations=list(rt.get("locations") or []),
                )
                for rt in rtypes
                if rt.get("resource_type") or rt.get("resourceType")
            ],
        ))
    return entries


# --------------------------- VM sizes ---------------------------
class VmSkuImporter(RegionalCatalogImporter):
    label = "VM SKU"
    artifact = VM_SKUS_FILE

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._acc = VmSkuAccumulator()

    def fetch_region(self, region: Region) -> List[Dict[str, Any]]:
        return azure_client.list_vm_sizes(region.code, subscription_id=self.subscription_id)

    def fold(self, region: Region, raw: List[Dict[str, Any]]) -> None:
        for size in raw or []:
            name = size.get("name")
            if not name:
                continue
            self._acc.upsert(
                name,
                region.display_name,
                number_of_cores=size.get("number_of_cores"),
                memory_in_mb=size.get("memory_in_mb"),
            )

    def result(self) -> List[VmSku]:
        return self._acc.values()


# --------------------------- Storage ---------------------------
def _restricted_locations(raw: Dict[str, Any]) -> set:
    out = set()
    for r in raw.get("restrictions") or []:
        if (r.get("type") or "").lower() != "location":
            continue
        for loc in r.get("values") or []:
            out.add(str(loc).lower())
    return out


class StorageSkuImporter(CatalogImporter):
    label = "storage SKU"
    artifact = STORAGE_SKUS_FILE

    def build(self) -> List[StorageSku]:
        raw = self.fetch_listing(azure_client.list_storage_skus)
        acc = StorageSkuAccumulator()
        for index, total, record in with_progress(raw or []):
            name = record.get("name")
            if not name:
                continue
            restricted = _restricted_locations(record)
            capabilities = {
                c["name"]: c.get("value")
                for c in (record.get("capabilities") or [])
                if c.get("name")
            }
            for code in record.get("locations") or []:
                if str(code).lower() in restricted:
                    logger.debug("[%d/%d] %s restricted in %s", index, total, name, code)
                    continue
                sku = StorageSku(
                    name=name,
                    location=self.display_name(code),
                    tier=record.get("tier"),
                    kind=record.get("kind"),
                    **{k: v for k, v in capabilities.items() if k not in ("name", "location", "tier", "kind")},
                )
                acc.upsert(sku)
        return acc.values()


# --------------------------- SQL ---------------------------
def _dedupe_skus(skus: Iterable[SqlSku]) -> List[SqlSku]:
    seen = set()
    out: List[SqlSku] = []
    for sku in skus:
        key = tuple(
            (field, str(value).lower())
            for field, value in (("name", sku.name), ("tier", sku.tier), ("family", sku.family), ("capacity", sku.capacity))
            if value is not None
        )
        if key in seen:
            continue
        seen.add(key)
        out.append(sku)
    return out


def flatten_database_skus(capabilities: Dict[str, Any]) -> List[SqlSku]:
    """server version -> edition -> service level objective -> sku."""
    skus: List[SqlSku] = []
    for version in (capabilities or {}).get("supportedServerVersions") or []:
        for edition in version.get("supportedEditions") or []:
            for slo in edition.get("supportedServiceLevelObjectives") or []:
                sku = slo.get("sku") or {}
                if not sku.get("name"):
                    continue
                skus.append(SqlSku(
                    name=sku["name"],
                    tier=sku.get("tier") or edition.get("name"),
                    family=sku.get("family"),
                    capacity=sku.get("capacity"),
                ))
    return _dedupe_skus(skus)


def flatten_managed_instance_skus(capabilities: Dict[str, Any]) -> List[SqlSku]:
    """instance version -> edition -> family; the family carries the sku name."""
    skus: List[SqlSku] = []
    for version in (capabilities or {}).get("supportedManagedInstanceVersions") or []:
        for edition in version.get("supportedEditions") or []:
            for family in edition.get("supportedFamilies") or []:
                if not family.get("sku"):
                    continue
                skus.append(SqlSku(
                    name=family["sku"],
                    tier=edition.get("name"),
                    family=family.get("name"),
                ))
    return _dedupe_skus(skus)


class SqlCapabilitiesImporter(RegionalCatalogImporter):
    """Both SQL families read the same per-region capabilities document."""

    entry_model: Any = None

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._entries: List[Any] = []

    @staticmethod
    def flatten(capabilities: Dict[str, Any]) -> List[SqlSku]:
        raise NotImplementedError

    def fetch_region(self, region: Region) -> Dict[str, Any]:
        return azure_client.get_sql_capabilities(region.code, subscription_id=self.subscription_id)

    def fold(self, region: Region, raw: Dict[str, Any]) -> None:
        # an empty tree still pins the region with an empty sku list
        self._entries.append(self.entry_model(
            region=region.display_name,
            region_code=region.code,
            skus=self.flatten(raw),
        ))

    def result(self) -> List[Any]:
        return list(self._entries)


class SqlDatabaseSkuImporter(SqlCapabilitiesImporter):
    label = "SQL database SKU"
    artifact = SQL_DATABASE_SKUS_FILE
    entry_model = SqlDatabaseSkuEntry
    flatten = staticmethod(flatten_database_skus)


class SqlManagedInstanceSkuImporter(SqlCapabilitiesImporter):
    label = "SQL managed instance SKU"
    artifact = SQL_MANAGED_INSTANCE_SKUS_FILE
    entry_model = SqlManagedInstanceSkuEntry
    flatten = staticmethod(flatten_managed_instance_skus)
