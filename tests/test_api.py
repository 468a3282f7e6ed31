import pytest
from unittest.mock import patch
from httpx import AsyncClient, ASGITransport

from nearby_search import main
from nearby_search.core.config import settings
from nearby_search.recall.fetcher import RetryingFetcher

from fakes import FakeResponse, FakeSession, RecordingSleep, feature_collection, geoapify_feature

MOCK_FEATURES = [
    geoapify_feature("far", "Far Kebab", 51.5400, -0.0754, datasource={"raw": {"cuisine": "kebab"}}),
    geoapify_feature("near", "Near Grill", 51.5100, -0.0754),
]


async def get(path, params=None):
    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.get(path, params=params)


def scripted(engine, outcomes):
    session = FakeSession(outcomes)
    return (
        patch.object(engine, "session_factory", lambda: session),
        patch.object(engine, "fetcher", RetryingFetcher(sleep=RecordingSleep())),
        session,
    )


@pytest.mark.asyncio
async def test_food_search_pipeline():
    factory_patch, fetcher_patch, session = scripted(
        main.food_search,
        [
            FakeResponse(200, feature_collection(*MOCK_FEATURES)),
            FakeResponse(200, feature_collection()),
            FakeResponse(200, feature_collection()),
        ],
    )
    with patch.object(settings, "GEOAPIFY_API_KEY", "test-key"), factory_patch, fetcher_patch:
        response = await get("/api/food", {"latitude": "51.5055", "longitude": "-0.0754"})

    assert response.status_code == 200
    data = response.json()

    assert data["count"] == 2
    assert data["searchLocation"] == {"lat": 51.5055, "lng": -0.0754}
    assert data["radiusMeters"] == 4828
    assert data["searchStrategies"] == {"strict": 2, "category": 0, "cuisine": 0, "merged": 2}
    assert "message" not in data

    foods = data["foods"]
    assert [f["name"] for f in foods] == ["Near Grill", "Far Kebab"]
    assert foods[0]["distanceKm"] < foods[1]["distanceKm"]
    assert foods[1]["cuisine"] == "kebab"
    assert "cuisine" not in foods[0]
    assert "openingHours" not in foods[0]
    assert session.calls[0]["params"]["apiKey"] == "test-key"


@pytest.mark.asyncio
async def test_food_search_all_tiers_failing_is_empty_200():
    factory_patch, fetcher_patch, session = scripted(
        main.food_search, [FakeResponse(503) for _ in range(9)]
    )
    with patch.object(settings, "GEOAPIFY_API_KEY", "test-key"), factory_patch, fetcher_patch:
        response = await get(
            "/api/food", {"latitude": "51.5055", "longitude": "-0.0754", "radius": "8000"}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["foods"] == []
    assert data["count"] == 0
    assert data["radiusMeters"] == 8000
    assert data["message"].startswith("No halal food places found")
    assert data["searchStrategies"]["merged"] == 0
    assert len(session.calls) == 9


@pytest.mark.asyncio
async def test_food_search_with_broken_features_is_200():
    broken = [None, {"properties": {"name": "Half"}, "geometry": {"coordinates": [-0.07]}}]
    factory_patch, fetcher_patch, _ = scripted(
        main.food_search,
        [
            FakeResponse(200, feature_collection(*broken, MOCK_FEATURES[1])),
            FakeResponse(200, feature_collection(None)),
            FakeResponse(200, feature_collection()),
        ],
    )
    with patch.object(settings, "GEOAPIFY_API_KEY", "test-key"), factory_patch, fetcher_patch:
        response = await get("/api/food", {"latitude": "51.5055", "longitude": "-0.0754"})

    assert response.status_code == 200
    data = response.json()
    assert [f["name"] for f in data["foods"]] == ["Near Grill"]
    assert data["searchStrategies"] == {"strict": 1, "category": 0, "cuisine": 0, "merged": 1}


@pytest.mark.asyncio
async def test_food_search_without_api_key_is_500():
    with patch.object(settings, "GEOAPIFY_API_KEY", ""):
        response = await get("/api/food", {"latitude": "51.5", "longitude": "-0.07"})

    assert response.status_code == 500
    assert response.json() == {"error": "Geoapify API key not configured"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, message",
    [
        ({"longitude": "-0.07"}, "Missing required parameters: latitude, longitude"),
        ({"latitude": "51.5"}, "Missing required parameters: latitude, longitude"),
        ({"latitude": "abc", "longitude": "-0.07"}, "Invalid latitude. Must be between -90 and 90"),
        ({"latitude": "91", "longitude": "-0.07"}, "Invalid latitude. Must be between -90 and 90"),
        ({"latitude": "51.5", "longitude": "-181"}, "Invalid longitude. Must be between -180 and 180"),
        ({"latitude": "51.5", "longitude": "-0.07", "radius": "0"}, "Invalid radius. Must be between 0 and 50000 meters"),
        ({"latitude": "51.5", "longitude": "-0.07", "radius": "50001"}, "Invalid radius. Must be between 0 and 50000 meters"),
        ({"latitude": "51.5", "longitude": "-0.07", "radius": "far"}, "Invalid radius. Must be between 0 and 50000 meters"),
    ],
)
async def test_food_search_validation(params, message):
    with patch.object(settings, "GEOAPIFY_API_KEY", "test-key"), patch.object(
        main.food_search, "session_factory"
    ) as factory:
        response = await get("/api/food", params)

    assert response.status_code == 400
    assert response.json() == {"error": message}
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_mosque_search_pipeline():
    payload = {
        "elements": [
            {"type": "node", "id": 1, "lat": 51.5175, "lon": -0.0716, "tags": {"name": "East London Mosque"}},
            {"type": "node", "id": 2, "lat": 51.5080, "lon": -0.0754, "tags": {"addr:street": "Tooley Street"}},
        ]
    }
    factory_patch, fetcher_patch, session = scripted(
        main.mosque_search, [FakeResponse(200, payload)]
    )
    with factory_patch, fetcher_patch:
        response = await get(
            "/api/mosques", {"latitude": "51.5055", "longitude": "-0.0754", "radius": "2000"}
        )

    assert response.status_code == 200
    data = response.json()
    assert [m["name"] for m in data["mosques"]] == ["Mosque near Tooley Street", "East London Mosque"]
    assert data["mosques"][1]["id"] == "node/1"
    assert data["searchStrategies"] == {"strict": 2, "merged": 2}
    assert session.calls[0]["method"] == "POST"


@pytest.mark.asyncio
async def test_mosque_search_needs_no_api_key():
    factory_patch, fetcher_patch, _ = scripted(
        main.mosque_search, [FakeResponse(200, {"elements": []})]
    )
    with patch.object(settings, "GEOAPIFY_API_KEY", ""), factory_patch, fetcher_patch:
        response = await get("/api/mosques", {"latitude": "0", "longitude": "0"})

    assert response.status_code == 200
    data = response.json()
    assert data["mosques"] == []
    assert data["message"].startswith("No mosques found")


@pytest.mark.asyncio
async def test_health():
    with patch.object(settings, "GEOAPIFY_API_KEY", "test-key"):
        response = await get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["geoapifyConfigured"] is True
