import os
import logging
from typing import List, Optional, Dict, Any

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError
from azure.identity import DefaultAzureCredential
from azure.mgmt.subscription import SubscriptionClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.compute import ComputeManagementClient
import httpx

from .cache import ttl_cache
from .config import (
    ARM_ENDPOINT,
    ARM_SCOPE,
    HTTP_TIMEOUT_SECONDS,
    LOCATIONS_API_VERSION,
    SQL_CAPABILITIES_API_VERSION,
    STORAGE_SKUS_API_VERSION,
)
from .errors import CatalogFetchError, CredentialError

logger = logging.getLogger(__name__)


def get_default_credential() -> DefaultAzureCredential:
    # Supports: Azure CLI, Managed Identity, Env Vars (Client ID/Secret), etc.
    return DefaultAzureCredential(
        exclude_interactive_browser_credential=False
    )


def get_subscription_client(credential: Optional[DefaultAzureCredential] = None) -> SubscriptionClient:
    cred = credential or get_default_credential()
    return SubscriptionClient(cred)


@ttl_cache(ttl_seconds=300)
def list_subscriptions() -> List[Dict[str, Any]]:
    client = get_subscription_client()
    subs: List[Dict[str, Any]] = []
    try:
        for s in client.subscriptions.list():
            subs.append({
                "subscription_id": s.subscription_id,
                "display_name": getattr(s, "display_name", None),
                "state": str(getattr(s, "state", "")),
            })
    except ClientAuthenticationError as e:
        raise CredentialError(f"Azure credential rejected: {e}") from e
    return subs


def get_default_subscription_id() -> str:
    env_sub = os.getenv("AZURE_SUBSCRIPTION_ID") or os.getenv("SUBSCRIPTION_ID")
    if env_sub:
        return env_sub

    subs = list_subscriptions()
    if not subs:
        raise CredentialError("No Azure subscription available. Login with 'az login' or set AZURE_SUBSCRIPTION_ID.")
    return subs[0]["subscription_id"]


def get_bearer_token() -> str:
    try:
        return get_default_credential().get_token(ARM_SCOPE).token
    except ClientAuthenticationError as e:
        raise CredentialError(f"Could not acquire an ARM token: {e}") from e


def get_resource_client(subscription_id: Optional[str] = None) -> ResourceManagementClient:
    sub_id = subscription_id or get_default_subscription_id()
    return ResourceManagementClient(get_default_credential(), sub_id)


def get_compute_client(subscription_id: Optional[str] = None) -> ComputeManagementClient:
    sub_id = subscription_id or get_default_subscription_id()
    return ComputeManagementClient(get_default_credential(), sub_id)


def arm_get(path: str, api_version: str) -> Dict[str, Any]:
    """Authenticated GET against the management endpoint.

    ``path`` is relative to the ARM root (``/subscriptions/...``). Paged responses
    are merged: every page's ``value`` ends up in the returned ``value`` list.
    """
    logger.debug("GET %s (api-version=%s)", path, api_version)
    headers = {"Authorization": f"Bearer {get_bearer_token()}"}
    url: Optional[str] = f"{ARM_ENDPOINT}{path}"
    params: Optional[Dict[str, str]] = {"api-version": api_version}
    merged: Optional[Dict[str, Any]] = None
    with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
        while url:
            try:
                resp = client.get(url, headers=headers, params=params)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise CatalogFetchError(path, e.response.status_code, e.response.text[:200]) from e
            except httpx.HTTPError as e:
                raise CatalogFetchError(path, detail=str(e)) from e
            data = resp.json()
            if merged is None:
                merged = data
            else:
                merged.setdefault("value", []).extend(data.get("value") or [])
            # nextLink already carries api-version
            url = data.get("nextLink")
            params = None
    return merged or {}


# --------------------------- Catalog sources ---------------------------
@ttl_cache(ttl_seconds=21600)
def list_locations_raw(subscription_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Raw ARM locations listing, metadata blocks included."""
    sub_id = subscription_id or get_default_subscription_id()
    data = arm_get(f"/subscriptions/{sub_id}/locations", LOCATIONS_API_VERSION)
    return list(data.get("value") or [])


@ttl_cache(ttl_seconds=3600)
def list_providers(subscription_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Every registered provider namespace with its resource types and supported locations."""
    client = get_resource_client(subscription_id)
    out: List[Dict[str, Any]] = []
    try:
        providers = list(client.providers.list())
    except ClientAuthenticationError as e:
        raise CredentialError(f"Azure credential rejected: {e}") from e
    except HttpResponseError as e:
        raise CatalogFetchError("/providers", e.status_code, e.reason or "") from e
    for prov in providers:
        out.append({
            "namespace": prov.namespace,
            "resource_types": [
                {
                    "resource_type": rt.resource_type,
                    "locations": [loc for loc in (rt.locations or []) if loc],
                }
                for rt in (prov.resource_types or [])
                if rt.resource_type
            ],
        })
    return out


@ttl_cache(ttl_seconds=3600)
def list_vm_sizes(location: str, subscription_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """List VM sizes available in a region."""
    compute = get_compute_client(subscription_id)
    try:
        sizes = list(compute.virtual_machine_sizes.list(location))
    except ClientAuthenticationError as e:
        raise CredentialError(f"Azure credential rejected: {e}") from e
    except HttpResponseError as e:
        raise CatalogFetchError(f"/locations/{location}/vmSizes", e.status_code, e.reason or "") from e
    return [
        {
            "name": s.name,
            "number_of_cores": s.number_of_cores,
            "memory_in_mb": s.memory_in_mb,
        }
        for s in sizes
    ]


@ttl_cache(ttl_seconds=3600)
def list_storage_skus(subscription_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Microsoft.Storage SKUs; each record lists every location it is offered in."""
    sub_id = subscription_id or get_default_subscription_id()
    data = arm_get(f"/subscriptions/{sub_id}/providers/Microsoft.Storage/skus", STORAGE_SKUS_API_VERSION)
    return list(data.get("value") or [])


@ttl_cache(ttl_seconds=3600)
def get_sql_capabilities(location: str, subscription_id: Optional[str] = None) -> Dict[str, Any]:
    """SQL capabilities tree (server and managed instance versions) for one region.

    Shared by both SQL importers; the cache makes the second importer free.
    """
    sub_id = subscription_id or get_default_subscription_id()
    return arm_get(
        f"/subscriptions/{sub_id}/providers/Microsoft.Sql/locations/{location}/capabilities",
        SQL_CAPABILITIES_API_VERSION,
    )
