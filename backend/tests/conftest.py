import pytest

from region_mapper.cache import clear_all_cache
from region_mapper.regions import build_region_directory

SUB = "00000000-1111-2222-3333-444444444444"


def _loc(code, display, paired=None, **meta):
    md = {
        "regionType": "Physical",
        "regionCategory": "Recommended",
        "geography": meta.pop("geography", "United States"),
        "geographyGroup": "US",
        "physicalLocation": meta.pop("physical", "Virginia"),
        "latitude": "37.3719",
        "longitude": "-79.8164",
        "homeLocation": "https://example.invalid",
    }
    if paired:
        md["pairedRegion"] = [{"name": paired, "id": f"/subscriptions/{SUB}/locations/{paired}"}]
    return {
        "id": f"/subscriptions/{SUB}/locations/{code}",
        "name": code,
        "displayName": display,
        "regionalDisplayName": f"(US) {display}",
        "metadata": md,
    }


RAW_LOCATIONS = [
    _loc("westus", "West US", paired="eastus", physical="California"),
    _loc("eastus", "East US", paired="westus"),
    {"id": f"/subscriptions/{SUB}/locations/global", "name": "global", "displayName": "Global",
     "metadata": {"regionType": "Logical"}},
    _loc("swedencentral", "Sweden Central", geography="Sweden", physical="Gävle"),
]


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_all_cache()
    yield
    clear_all_cache()


@pytest.fixture
def raw_locations():
    return [dict(r) for r in RAW_LOCATIONS]


@pytest.fixture
def directory(raw_locations):
    return build_region_directory(raw_locations)


@pytest.fixture
def regions(directory):
    return directory[0]


@pytest.fixture
def code_map(directory):
    return directory[1]
