from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import azure_client, pipeline
from .cache import clear_all_cache
from .config import CORS_ALLOW_ORIGINS
from .errors import CatalogFetchError, CredentialError
from .importers import normalize_providers
from .models import AssessmentRequest, AssessmentResult, ProjectionRequest, ProviderCatalogEntry, RegionProjection
from .projection import project_region

app = FastAPI(title="Azure Region Availability Mapper", version="0.2.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/regions")
def api_regions(subscription_id: str | None = None):
    try:
        regions, _ = pipeline.load_region_directory(subscription_id)
    except CredentialError as e:
        raise HTTPException(503, str(e))
    except CatalogFetchError as e:
        raise HTTPException(502, str(e))
    return [r.to_json_dict() for r in regions]


@app.get("/api/providers/{namespace}")
def api_provider(namespace: str, subscription_id: str | None = None):
    """Supported locations per resource type for one provider namespace (case-insensitive)."""
    try:
        raw = azure_client.list_providers(subscription_id=subscription_id)
    except CredentialError as e:
        raise HTTPException(503, str(e))
    except CatalogFetchError as e:
        raise HTTPException(502, str(e))
    entry: ProviderCatalogEntry | None = next(
        (p for p in normalize_providers(raw) if p.namespace.lower() == namespace.lower()), None
    )
    if entry is None:
        raise HTTPException(404, f"Provider namespace {namespace} not registered")
    return entry.to_json_dict()


@app.post("/api/assessment")
def api_assessment(req: AssessmentRequest):
    """Run the full mapping for an inventory summary against live Azure catalogs.

    Request body: { "inventory": [ {ResourceType, ResourceCount, ResourceSkus, AzureRegions}, ... ],
                    "targetRegion": "West Europe" }
    """
    if not req.inventory:
        raise HTTPException(400, "inventory is required")
    try:
        result: AssessmentResult = pipeline.run_assessment(
            req.inventory,
            target_region=req.target_region,
        )
    except CredentialError as e:
        raise HTTPException(503, str(e))
    if req.target_region and not result.selected_region:
        raise HTTPException(404, f"No entries found for region {req.target_region}")
    return result.to_json_dict()


@app.post("/api/assessment/project")
def api_project(req: ProjectionRequest):
    """Project an existing availability mapping down to one region (exact display name)."""
    projected: List[RegionProjection] = project_region(req.resources, req.region)
    if not projected:
        raise HTTPException(404, f"No entries found for region {req.region}")
    return [p.to_json_dict() for p in projected]


@app.post("/api/cache/clear")
def api_cache_clear():
    """Clear all in-memory caches (forces fresh Azure metadata)."""
    clear_all_cache()
    return {"status": "cleared"}
