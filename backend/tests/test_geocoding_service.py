"""
Places Backend: Geocoding Service Tests
=========================================

What:  Tests for StaticGeocoder and GoogleGeocoder.
How:   GoogleGeocoder talks to an httpx.MockTransport; tenacity's wait is
       replaced with wait_none() so retries run instantly.

What we test:
    ✅ Static provider returns the fixed point for any address
    ✅ Google OK response → coordinates of the first result
    ✅ ZERO_RESULTS / other statuses → GeocodeError, no retry
    ✅ 5xx and transport errors are retried, then GeocodeError
    ✅ 4xx is not retried
    ✅ get_geocoder() honours settings.geocoder_provider
"""

import httpx
import pytest
from tenacity import wait_none

from app.config import settings
from app.exceptions import GeocodeError
from app.schemas.place import Coordinates
from app.services.geocoding_service import (
    DEFAULT_COORDINATES,
    GoogleGeocoder,
    StaticGeocoder,
    get_geocoder,
)


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Retries without backoff sleeps."""
    monkeypatch.setattr(GoogleGeocoder._fetch_with_retry.retry, "wait", wait_none())


def google_with(handler) -> GoogleGeocoder:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleGeocoder(api_key="test-key", base_url="https://geo.test/json", client=client)


class CallCounter:
    """MockTransport handler that counts calls and replays a fixed answer."""

    def __init__(self, status_code=200, payload=None, error=None):
        self.calls = 0
        self.status_code = status_code
        self.payload = payload
        self.error = error
        self.last_request = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.last_request = request
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)


class TestStaticGeocoder:

    @pytest.mark.asyncio
    async def test_any_address_resolves_to_fixed_point(self):
        geocoder = StaticGeocoder()
        first = await geocoder.resolve("20 W 34th St, New York")
        second = await geocoder.resolve("anywhere at all")

        assert first == DEFAULT_COORDINATES
        assert second == DEFAULT_COORDINATES
        assert first.lat == 40.7484474
        assert first.lng == -73.9871516

    @pytest.mark.asyncio
    async def test_returns_a_copy(self):
        """Callers cannot mutate the shared default."""
        coords = await StaticGeocoder().resolve("x")
        coords.lat = 0.0
        assert DEFAULT_COORDINATES.lat == 40.7484474

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await StaticGeocoder().health_check() is True


class TestGoogleGeocoder:

    @pytest.mark.asyncio
    async def test_ok_returns_first_result(self):
        handler = CallCounter(payload={
            "status": "OK",
            "results": [
                {"geometry": {"location": {"lat": 48.8584, "lng": 2.2945}}},
                {"geometry": {"location": {"lat": 0.0, "lng": 0.0}}},
            ],
        })

        coords = await google_with(handler).resolve("Champ de Mars, Paris")

        assert coords == Coordinates(lat=48.8584, lng=2.2945)
        assert handler.calls == 1
        assert handler.last_request.url.params["address"] == "Champ de Mars, Paris"
        assert handler.last_request.url.params["key"] == "test-key"

    @pytest.mark.asyncio
    async def test_zero_results_not_retried(self):
        handler = CallCounter(payload={"status": "ZERO_RESULTS", "results": []})

        with pytest.raises(GeocodeError) as exc_info:
            await google_with(handler).resolve("nowhere")

        assert handler.calls == 1
        assert exc_info.value.message == "Could not find location for the specified address."
        assert exc_info.value.context["provider_status"] == "ZERO_RESULTS"
        assert exc_info.value.address == "nowhere"

    @pytest.mark.asyncio
    async def test_denied_status_is_geocode_error(self):
        handler = CallCounter(payload={"status": "REQUEST_DENIED", "results": []})

        with pytest.raises(GeocodeError) as exc_info:
            await google_with(handler).resolve("somewhere")

        assert exc_info.value.context["provider_status"] == "REQUEST_DENIED"

    @pytest.mark.asyncio
    async def test_server_error_retried_then_fails(self):
        handler = CallCounter(status_code=503, payload={})

        with pytest.raises(GeocodeError, match="temporarily unavailable"):
            await google_with(handler).resolve("somewhere")

        assert handler.calls == settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_transport_error_retried_then_fails(self):
        handler = CallCounter(error=httpx.ConnectError("connection refused"))

        with pytest.raises(GeocodeError) as exc_info:
            await google_with(handler).resolve("somewhere")

        assert handler.calls == settings.retry_max_attempts
        assert exc_info.value.context["attempts"] == settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self):
        """A 5xx followed by OK succeeds on the second attempt."""
        answers = [
            httpx.Response(502, json={}),
            httpx.Response(200, json={
                "status": "OK",
                "results": [{"geometry": {"location": {"lat": 1.5, "lng": 2.5}}}],
            }),
        ]

        def handler(request):
            return answers.pop(0)

        coords = await google_with(handler).resolve("somewhere")

        assert coords == Coordinates(lat=1.5, lng=2.5)
        assert answers == []

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        handler = CallCounter(status_code=400, payload={"error_message": "bad"})

        with pytest.raises(GeocodeError) as exc_info:
            await google_with(handler).resolve("somewhere")

        assert handler.calls == 1
        assert exc_info.value.context["error_type"] == "HTTPStatusError"

    @pytest.mark.asyncio
    async def test_health_check_requires_key(self):
        assert await GoogleGeocoder(api_key="k").health_check() is True
        assert await GoogleGeocoder(api_key="").health_check() is False


class TestGetGeocoder:

    def test_static_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "geocoder_provider", "static")
        assert isinstance(get_geocoder(), StaticGeocoder)

    def test_google_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "geocoder_provider", "google")
        monkeypatch.setattr(settings, "google_maps_api_key", "abc")
        geocoder = get_geocoder()
        assert isinstance(geocoder, GoogleGeocoder)
        assert geocoder.api_key == "abc"
