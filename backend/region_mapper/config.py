"""Runtime configuration for the region availability mapper.

Values are module-level constants read once from the environment so both the
CLI and the FastAPI app see the same defaults.
"""
import os

# ---------------------------------------------------------------------
# Azure Resource Manager
# ---------------------------------------------------------------------
ARM_ENDPOINT = "https://management.azure.com"
ARM_SCOPE = f"{ARM_ENDPOINT}/.default"

LOCATIONS_API_VERSION = "2022-12-01"
STORAGE_SKUS_API_VERSION = "2023-01-01"
SQL_CAPABILITIES_API_VERSION = "2021-11-01"

HTTP_TIMEOUT_SECONDS = float(os.getenv("REGION_MAPPER_HTTP_TIMEOUT", "30"))

# ---------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------
OUTPUT_DIR = os.getenv("REGION_MAPPER_OUTPUT_DIR", "output")

# 1 keeps per-region catalog fetches sequential.
REGION_FETCH_WORKERS = max(1, int(os.getenv("REGION_MAPPER_WORKERS", "1")))

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")

# Pseudo-region meaning "available everywhere"; never a migration target.
GLOBAL_REGION_MARKER = "global"

# Inventory marker for resources that carry no SKU.
SKU_NOT_APPLICABLE = "N/A"

# ---------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------
REGIONS_FILE = "regions.json"
PROVIDERS_FILE = "providers.json"
VM_SKUS_FILE = "vm_skus.json"
STORAGE_SKUS_FILE = "storage_skus.json"
SQL_DATABASE_SKUS_FILE = "sql_database_skus.json"
SQL_MANAGED_INSTANCE_SKUS_FILE = "sql_managed_instance_skus.json"
AVAILABILITY_MAPPING_FILE = "availability_mapping.json"
PROJECTION_FILE_PREFIX = "availability_mapping_"
PROJECTION_SEPARATOR = "_"
