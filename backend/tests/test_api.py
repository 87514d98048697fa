import pytest
from fastapi.testclient import TestClient

from region_mapper.errors import CatalogFetchError, CredentialError
from region_mapper.main import app

from test_pipeline import INVENTORY, LOCATIONS


@pytest.fixture(autouse=True)
def _mock_azure(monkeypatch):
    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", lambda subscription_id=None: LOCATIONS)
    monkeypatch.setattr("region_mapper.azure_client.list_providers", lambda subscription_id=None: [
        {"namespace": "Microsoft.Storage", "resource_types": [
            {"resource_type": "storageAccounts", "locations": ["East US", "West US"]},
        ]},
    ])
    monkeypatch.setattr("region_mapper.azure_client.list_vm_sizes", lambda location, subscription_id=None: [])
    monkeypatch.setattr("region_mapper.azure_client.list_storage_skus", lambda subscription_id=None: [
        {"name": "Standard_LRS", "tier": "Standard", "kind": "StorageV2", "locations": ["eastus"]},
    ])
    monkeypatch.setattr("region_mapper.azure_client.get_sql_capabilities", lambda location, subscription_id=None: {})


def test_healthz():
    client = TestClient(app)
    assert client.get("/api/healthz").json() == {"status": "ok"}


def test_regions():
    client = TestClient(app)
    res = client.get("/api/regions")
    assert res.status_code == 200
    assert [r["code"] for r in res.json()] == ["eastus", "westus"]


def test_provider_lookup_case_insensitive():
    client = TestClient(app)
    res = client.get("/api/providers/microsoft.storage")
    assert res.status_code == 200
    assert res.json()["resourceTypes"][0]["locations"] == ["East US", "West US"]
    assert client.get("/api/providers/Microsoft.Nope").status_code == 404


def test_assessment_with_target_region():
    client = TestClient(app)
    res = client.post("/api/assessment", json={"inventory": INVENTORY[:1], "targetRegion": "West US"})
    assert res.status_code == 200
    data = res.json()
    [selected] = data["selectedRegion"]
    assert selected["selectedRegion"][0]["skus"] == [{"name": "Standard_LRS", "tier": "Standard", "available": False}]
    assert data["resources"][0]["allRegions"][0]["region"] == "East US"


def test_assessment_unknown_region_is_404():
    client = TestClient(app)
    res = client.post("/api/assessment", json={"inventory": INVENTORY[:1], "targetRegion": "Atlantis"})
    assert res.status_code == 404


def test_assessment_requires_inventory():
    client = TestClient(app)
    assert client.post("/api/assessment", json={"inventory": []}).status_code == 400


def test_assessment_credential_error(monkeypatch):
    def no_token(subscription_id=None):
        raise CredentialError("Could not acquire an ARM token")

    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", no_token)
    client = TestClient(app)
    res = client.post("/api/assessment", json={"inventory": INVENTORY[:1]})
    assert res.status_code == 503


def test_project_endpoint():
    client = TestClient(app)
    mapping = client.post("/api/assessment", json={"inventory": INVENTORY[:1]}).json()["resources"]
    res = client.post("/api/assessment/project", json={"resources": mapping, "region": "East US"})
    assert res.status_code == 200
    assert res.json()[0]["selectedRegion"][0]["skus"][0]["available"] is True
    empty = client.post("/api/assessment/project", json={"resources": mapping, "region": "east us"})
    assert empty.status_code == 404


def test_failed_catalog_lookups_are_502(monkeypatch):
    def unavailable(subscription_id=None):
        raise CatalogFetchError("/subscriptions/sub-1234/locations", 503, "ServiceUnavailable")

    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", unavailable)
    monkeypatch.setattr("region_mapper.azure_client.list_providers", unavailable)
    client = TestClient(app)
    assert client.get("/api/regions").status_code == 502
    assert client.get("/api/providers/Microsoft.Storage").status_code == 502
    # the full assessment degrades to warnings instead of failing
    res = client.post("/api/assessment", json={"inventory": INVENTORY[:1]})
    assert res.status_code == 200
    assert "Region directory is empty" in res.json()["warnings"]
