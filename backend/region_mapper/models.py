from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --------------------------- Regions ---------------------------
class Region(CamelModel):
    code: str = Field(..., description="Internal region code, e.g. eastus")
    display_name: str = Field(..., description="Human readable name, e.g. East US")
    regional_display_name: Optional[str] = None
    region_type: Optional[str] = None
    region_category: Optional[str] = None
    geography: Optional[str] = None
    geography_group: Optional[str] = None
    physical_location: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    paired_region: Optional[List[str]] = Field(None, description="Bare codes of paired regions")


# --------------------------- Catalogs ---------------------------
class ProviderResourceType(CamelModel):
    resource_type: str
    locations: List[str] = Field(default_factory=list)


class ProviderCatalogEntry(CamelModel):
    namespace: str
    resource_types: List[ProviderResourceType] = Field(default_factory=list)


class VmSku(CamelModel):
    name: str
    regions: List[str] = Field(default_factory=list, description="Display names; insertion ordered, no duplicates")
    number_of_cores: Optional[int] = None
    memory_in_mb: Optional[int] = Field(None, alias="memoryInMB")


class StorageSku(CamelModel):
    # capability name/value pairs are kept as extra top-level fields
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    location: str
    tier: Optional[str] = None
    kind: Optional[str] = None


class SqlSku(CamelModel):
    name: str
    tier: Optional[str] = None
    family: Optional[str] = None
    capacity: Optional[int] = None


class SqlDatabaseSkuEntry(CamelModel):
    region: str
    region_code: str
    skus: List[SqlSku] = Field(default_factory=list)


class SqlManagedInstanceSkuEntry(CamelModel):
    region: str
    region_code: str
    skus: List[SqlSku] = Field(default_factory=list)


class SkuCatalogs(CamelModel):
    vm: List[VmSku] = Field(default_factory=list)
    storage: List[StorageSku] = Field(default_factory=list)
    sql_database: List[SqlDatabaseSkuEntry] = Field(default_factory=list)
    sql_managed_instance: List[SqlManagedInstanceSkuEntry] = Field(default_factory=list)


# --------------------------- Inventory ---------------------------
class RegionAvailability(CamelModel):
    region: str
    available: bool
    skus: Optional[List[Any]] = None


class DeployedResourceSummary(CamelModel):
    resource_type: str = Field(..., description="namespace/type, e.g. microsoft.storage/storageaccounts")
    resource_count: int = 0
    implemented_regions: List[str] = Field(default_factory=list)
    implemented_skus: Optional[List[Any]] = None
    all_regions: Optional[List[RegionAvailability]] = None


class RegionProjection(CamelModel):
    resource_type: str
    resource_count: int = 0
    implemented_regions: List[str] = Field(default_factory=list)
    implemented_skus: Optional[List[Any]] = None
    selected_region: List[RegionAvailability]


class AssessmentResult(CamelModel):
    resources: List[DeployedResourceSummary]
    warnings: List[str] = Field(default_factory=list)
    selected_region: Optional[List[RegionProjection]] = None


# --------------------------- API payloads ---------------------------
class AssessmentRequest(CamelModel):
    inventory: List[Dict[str, Any]]
    target_region: Optional[str] = None


class ProjectionRequest(CamelModel):
    resources: List[DeployedResourceSummary]
    region: str
