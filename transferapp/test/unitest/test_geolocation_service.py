import httpx
import pytest
from unittest.mock import AsyncMock

from core.exceptions import GeocodingError
from services.geolocation_service import AddressResolver, LocationParams, MapboxService
from wizard._state import Coordinate


def mapbox(handler):
    return MapboxService(token="pk.test", timeout=1.0, transport=httpx.MockTransport(handler))


def feature(lon, lat, name):
    return {"center": [lon, lat], "place_name": name}


@pytest.mark.asyncio
async def test_forward_geocode_parses_features():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"features": [feature(115.1668, -8.7467, "Ngurah Rai International Airport, Bali")]})

    results = await mapbox(handler).forward_geocode("Ngurah Rai Airport")

    assert results == [LocationParams(latitude=-8.7467, longitude=115.1668, place="Ngurah Rai International Airport, Bali")]
    assert seen["url"].params["access_token"] == "pk.test"
    assert seen["url"].params["limit"] == "1"


@pytest.mark.asyncio
async def test_forward_geocode_http_error_raises_geocoding_error():
    with pytest.raises(GeocodingError) as info:
        await mapbox(lambda request: httpx.Response(401, json={"message": "Not Authorized"})).forward_geocode("Kuta")
    assert info.value.details["status_code"] == 401


@pytest.mark.asyncio
async def test_reverse_geocode_returns_top_feature():
    handler = lambda request: httpx.Response(200, json={"features": [feature(115.26, -8.50, "Ubud Palace"), feature(1, 1, "other")]})
    location = await mapbox(handler).reverse_geocode(-8.50, 115.26)
    assert location.place == "Ubud Palace"


@pytest.mark.asyncio
async def test_reverse_geocode_empty():
    location = await mapbox(lambda request: httpx.Response(200, json={"features": []})).reverse_geocode(1, 1)
    assert location is None


@pytest.mark.asyncio
async def test_resolve_returns_coordinate():
    geocoder = AsyncMock()
    geocoder.forward_geocode.return_value = [LocationParams(latitude=-8.7467, longitude=115.1668, place="Airport")]

    coordinate = await AddressResolver(geocoder).resolve("  Airport ")

    assert coordinate == Coordinate(latitude=-8.7467, longitude=115.1668)
    geocoder.forward_geocode.assert_awaited_once_with("Airport", limit=1)


@pytest.mark.asyncio
@pytest.mark.parametrize("address", ["", "   ", None])
async def test_resolve_empty_input_skips_lookup(address):
    geocoder = AsyncMock()

    assert await AddressResolver(geocoder).resolve(address) is None
    geocoder.forward_geocode.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_failure_returns_none(caplog):
    geocoder = AsyncMock()
    geocoder.forward_geocode.side_effect = GeocodingError("Mapbox API Error")

    assert await AddressResolver(geocoder).resolve("Kuta") is None
    assert geocoder.forward_geocode.await_count == 1
    assert "Geocoding failed" in caplog.text


@pytest.mark.asyncio
async def test_resolve_no_results_returns_none():
    geocoder = AsyncMock()
    geocoder.forward_geocode.return_value = []

    assert await AddressResolver(geocoder).resolve("Nowhere street 0") is None


@pytest.mark.asyncio
async def test_resolve_origin_point_is_unresolved():
    geocoder = AsyncMock()
    geocoder.forward_geocode.return_value = [LocationParams(latitude=0, longitude=0, place="Null Island")]

    assert await AddressResolver(geocoder).resolve("Null Island") is None


@pytest.mark.asyncio
async def test_describe_pin():
    geocoder = AsyncMock()
    geocoder.reverse_geocode.return_value = LocationParams(latitude=-8.5, longitude=115.26, place="Ubud Palace")

    assert await AddressResolver(geocoder).describe(Coordinate(latitude=-8.5, longitude=115.26)) == "Ubud Palace"


@pytest.mark.asyncio
async def test_describe_failure_returns_none():
    geocoder = AsyncMock()
    geocoder.reverse_geocode.side_effect = GeocodingError("boom")

    assert await AddressResolver(geocoder).describe(Coordinate(latitude=-8.5, longitude=115.26)) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [[], "upstream busy", {"features": "none"}])
async def test_forward_geocode_non_object_body(payload):
    with pytest.raises(GeocodingError):
        await mapbox(lambda request: httpx.Response(200, json=payload)).forward_geocode("Kuta")


@pytest.mark.asyncio
async def test_resolve_non_object_body_returns_none():
    resolver = AddressResolver(mapbox(lambda request: httpx.Response(200, json=["Kuta"])))
    assert await resolver.resolve("Kuta Beach") is None


@pytest.mark.asyncio
async def test_suggest_returns_every_match():
    seen = {}

    def handler(request):
        seen["limit"] = request.url.params["limit"]
        return httpx.Response(200, json={"features": [
            feature(115.1686, -8.7180, "Kuta Beach, Bali"),
            feature(115.1700, -8.7200, "Kuta Square, Bali"),
        ]})

    suggestions = await AddressResolver(mapbox(handler)).suggest("Kuta", limit=4)

    assert [s.place for s in suggestions] == ["Kuta Beach, Bali", "Kuta Square, Bali"]
    assert suggestions[0].latitude == -8.7180
    assert seen["limit"] == "4"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "Ku", "  K  ", None])
async def test_suggest_short_query_skips_lookup(query):
    geocoder = AsyncMock()

    assert await AddressResolver(geocoder).suggest(query) == []
    geocoder.forward_geocode.assert_not_awaited()


@pytest.mark.asyncio
async def test_suggest_failure_returns_empty_list(caplog):
    geocoder = AsyncMock()
    geocoder.forward_geocode.side_effect = GeocodingError("Mapbox API Error")

    assert await AddressResolver(geocoder).suggest("Kuta") == []
    assert "Address suggestions failed" in caplog.text


@pytest.mark.asyncio
async def test_suggest_drops_origin_point():
    geocoder = AsyncMock()
    geocoder.forward_geocode.return_value = [
        LocationParams(latitude=0, longitude=0, place="Null Island"),
        LocationParams(latitude=-8.5069, longitude=115.2625, place="Ubud Palace"),
    ]

    suggestions = await AddressResolver(geocoder).suggest("Ubud")

    assert [s.place for s in suggestions] == ["Ubud Palace"]
    geocoder.forward_geocode.assert_awaited_once_with("Ubud", limit=5)
