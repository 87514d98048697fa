import json

import pytest

from region_mapper import cli
from region_mapper.errors import CatalogFetchError
from region_mapper.pipeline import run_assessment

LOCATIONS = [
    {"id": "/subscriptions/sub-1234/locations/westus", "name": "westus", "displayName": "West US",
     "metadata": {"pairedRegion": [{"name": "eastus", "id": "/subscriptions/sub-1234/locations/eastus"}]}},
    {"id": "/subscriptions/sub-1234/locations/eastus", "name": "eastus", "displayName": "East US",
     "metadata": {"pairedRegion": [{"name": "westus", "id": "/subscriptions/sub-1234/locations/westus"}]}},
]

INVENTORY = [
    {"ResourceType": "microsoft.storage/storageaccounts", "ResourceCount": 1,
     "ResourceSkus": [{"name": "Standard_LRS", "tier": "Standard"}], "AzureRegions": ["eastus"]},
    {"ResourceType": "microsoft.network/virtualnetworks", "ResourceCount": 3,
     "ResourceSkus": "N/A", "AzureRegions": ["eastus"]},
    {"ResourceType": "microsoft.unknown/widgets", "ResourceCount": 1,
     "ResourceSkus": ["N/A"], "AzureRegions": ["eastus"]},
]


@pytest.fixture(autouse=True)
def _mock_azure(monkeypatch):
    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", lambda subscription_id=None: LOCATIONS)
    monkeypatch.setattr("region_mapper.azure_client.list_providers", lambda subscription_id=None: [
        {"namespace": "Microsoft.Storage", "resource_types": [
            {"resource_type": "storageAccounts", "locations": ["East US", "West US"]},
        ]},
        {"namespace": "Microsoft.Network", "resource_types": [
            {"resource_type": "virtualNetworks", "locations": ["East US"]},
        ]},
    ])
    monkeypatch.setattr("region_mapper.azure_client.list_vm_sizes", lambda location, subscription_id=None: [])
    monkeypatch.setattr("region_mapper.azure_client.list_storage_skus", lambda subscription_id=None: [
        {"name": "Standard_LRS", "tier": "Standard", "kind": "StorageV2", "locations": ["eastus"]},
    ])
    monkeypatch.setattr("region_mapper.azure_client.get_sql_capabilities", lambda location, subscription_id=None: {})


def _region(record, name):
    return next(r for r in record["allRegions"] if r["region"] == name)


def test_storage_scenario_end_to_end(tmp_path):
    result = run_assessment(INVENTORY, output_dir=tmp_path)

    mapping = json.loads((tmp_path / "availability_mapping.json").read_text(encoding="utf-8"))
    storage = mapping[0]
    assert storage["implementedRegions"] == ["East US"]
    assert _region(storage, "East US") == {
        "region": "East US", "available": True,
        "skus": [{"name": "Standard_LRS", "tier": "Standard", "available": True}],
    }
    assert _region(storage, "West US") == {
        "region": "West US", "available": True,
        "skus": [{"name": "Standard_LRS", "tier": "Standard", "available": False}],
    }

    vnet = mapping[1]
    assert "implementedSkus" not in vnet
    assert _region(vnet, "West US") == {"region": "West US", "available": False}

    # unknown namespace: written, but without allRegions
    assert "allRegions" not in mapping[2]
    assert any("microsoft.unknown" in w for w in result.warnings)


def test_all_artifacts_written(tmp_path):
    run_assessment(INVENTORY, output_dir=tmp_path)
    names = {p.name for p in tmp_path.iterdir()}
    assert names == {
        "regions.json",
        "providers.json",
        "vm_skus.json",
        "storage_skus.json",
        "sql_database_skus.json",
        "sql_managed_instance_skus.json",
        "availability_mapping.json",
    }
    regions = json.loads((tmp_path / "regions.json").read_text(encoding="utf-8"))
    assert "/subscriptions/" not in json.dumps(regions)
    assert regions[0]["pairedRegion"] == ["westus"]


def test_target_region_projection():
    result = run_assessment(INVENTORY, target_region="West US")
    assert [p.resource_type for p in result.selected_region] == [
        "microsoft.storage/storageaccounts",
        "microsoft.network/virtualnetworks",
    ]


def test_cli_writes_projection_and_csv(tmp_path):
    inv = tmp_path / "summary.json"
    inv.write_text(json.dumps(INVENTORY), encoding="utf-8")
    out = tmp_path / "out"
    rc = cli.main(["--inventory", str(inv), "--output-dir", str(out), "--target-region", "East US", "--csv"])
    assert rc == cli.EXIT_OK
    assert (out / "availability_mapping_East_US.json").is_file()
    assert (out / "availability_mapping_East_US.csv").is_file()


def test_cli_missing_inventory(tmp_path):
    rc = cli.main(["--inventory", str(tmp_path / "nope.json"), "--output-dir", str(tmp_path / "out")])
    assert rc == cli.EXIT_FATAL
    assert not (tmp_path / "out").exists()


def test_cli_empty_projection(tmp_path, capsys):
    inv = tmp_path / "summary.json"
    inv.write_text(json.dumps(INVENTORY), encoding="utf-8")
    out = tmp_path / "out"
    rc = cli.main(["--inventory", str(inv), "--output-dir", str(out), "--target-region", "Atlantis"])
    assert rc == cli.EXIT_NO_ENTRIES
    assert "No entries found for region Atlantis" in capsys.readouterr().err
    assert not list(out.glob("availability_mapping_*"))


def test_failed_storage_listing_still_writes_mapping(monkeypatch, tmp_path):
    def busy(subscription_id=None):
        raise CatalogFetchError("/providers/Microsoft.Storage/skus", 503, "busy")

    monkeypatch.setattr("region_mapper.azure_client.list_storage_skus", busy)
    result = run_assessment(INVENTORY, output_dir=tmp_path)

    mapping = json.loads((tmp_path / "availability_mapping.json").read_text(encoding="utf-8"))
    assert _region(mapping[0], "East US")["skus"] == [{"name": "Standard_LRS", "tier": "Standard", "available": False}]
    assert any("storage SKU catalog: listing failed" in w for w in result.warnings)


def test_cli_survives_failed_storage_listing(monkeypatch, tmp_path):
    def busy(subscription_id=None):
        raise CatalogFetchError("/providers/Microsoft.Storage/skus", 503, "busy")

    monkeypatch.setattr("region_mapper.azure_client.list_storage_skus", busy)
    inv = tmp_path / "summary.json"
    inv.write_text(json.dumps(INVENTORY), encoding="utf-8")
    out = tmp_path / "out"
    rc = cli.main(["--inventory", str(inv), "--output-dir", str(out), "--target-region", "East US"])
    assert rc == cli.EXIT_OK
    assert (out / "availability_mapping.json").is_file()


def _assert_mapping_without_regions(result, out):
    assert "Region directory is empty" in result.warnings
    mapping = json.loads((out / "availability_mapping.json").read_text(encoding="utf-8"))
    assert [r["resourceType"] for r in mapping] == [r["ResourceType"] for r in INVENTORY]
    assert all(not r.get("allRegions") for r in mapping)


def test_empty_region_directory_still_writes_mapping(monkeypatch, tmp_path):
    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", lambda subscription_id=None: [])
    result = run_assessment(INVENTORY, output_dir=tmp_path)
    _assert_mapping_without_regions(result, tmp_path)


def test_failed_region_listing_is_treated_as_empty(monkeypatch, tmp_path):
    def broken(subscription_id=None):
        raise CatalogFetchError("/subscriptions/sub-1234/locations", 500, "InternalServerError")

    monkeypatch.setattr("region_mapper.azure_client.list_locations_raw", broken)
    result = run_assessment(INVENTORY, output_dir=tmp_path)
    _assert_mapping_without_regions(result, tmp_path)
    assert any("Region listing failed" in w for w in result.warnings)
