"""
Places Backend: Geocoder Implementations
==========================================

What:  Resolves addresses to coordinates for new places.
How:   StaticGeocoder returns a fixed point; GoogleGeocoder calls the Google
       Geocoding API with httpx, retrying transport failures with tenacity.
Who:   Selected once by get_geocoder() from settings.geocoder_provider.

Resilience Strategy (GoogleGeocoder):
    1. Tenacity retry with exponential backoff + jitter, transport errors only
    2. Per-request timeout from settings.geocoder_timeout
    3. "No match" answers are not retried: they raise GeocodeError at once
"""

import logging
import time
import uuid
from typing import Optional

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import GeocodeError
from app.schemas.place import Coordinates
from app.services.geocoding_base import Geocoder

logger = logging.getLogger(__name__)

# Empire State Building; every address maps here with the static provider
DEFAULT_COORDINATES = Coordinates(lat=40.7484474, lng=-73.9871516)


def _is_transient(exc: BaseException) -> bool:
    """Transport failures and 5xx answers get another attempt; 4xx do not."""
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


class StaticGeocoder(Geocoder):
    """Deterministic geocoder: every address resolves to the same point."""

    def __init__(self, coordinates: Coordinates = DEFAULT_COORDINATES):
        self.coordinates = coordinates

    async def resolve(self, address: str) -> Coordinates:
        logger.debug("Static geocode for %r → %s", address, self.coordinates)
        return self.coordinates.model_copy()

    async def health_check(self) -> bool:
        return True


class GoogleGeocoder(Geocoder):
    """
    Google Geocoding API client.

    Response handling:
        status OK            → first result's geometry.location
        status ZERO_RESULTS  → GeocodeError (address has no match)
        any other status     → GeocodeError with the provider's status
        transport error      → retried, then GeocodeError
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.base_url = base_url or settings.google_geocode_url
        # Injected in tests (httpx.MockTransport); otherwise one per call
        self._client = client

    async def resolve(self, address: str) -> Coordinates:
        request_id = str(uuid.uuid4())[:8]
        logger.info("[%s] Geocoding address (%d chars)", request_id, len(address))

        try:
            payload = await self._fetch_with_retry(address, request_id)
        except RetryError as e:
            cause = e.last_attempt.exception() if e.last_attempt else None
            logger.error("[%s] All geocoding retries exhausted: %s", request_id, cause)
            raise GeocodeError(
                message="Address lookup is temporarily unavailable. Please try again later.",
                address=address,
                context={"request_id": request_id, "attempts": settings.retry_max_attempts},
            )
        except (httpx.HTTPError, ValueError) as e:
            # ValueError: body was not JSON
            logger.error("[%s] Geocoding request failed: %s", request_id, e)
            raise GeocodeError(
                message="Address lookup is temporarily unavailable. Please try again later.",
                address=address,
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        status = payload.get("status")
        results = payload.get("results") or []
        if status != "OK" or not results:
            logger.warning("[%s] Geocoding returned status=%s", request_id, status)
            raise GeocodeError(
                address=address,
                context={"request_id": request_id, "provider_status": status},
            )

        location = results[0]["geometry"]["location"]
        return Coordinates(lat=location["lat"], lng=location["lng"])

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _fetch_with_retry(self, address: str, request_id: str) -> dict:
        """
        One HTTP round trip to the Geocoding API, wrapped by tenacity.

        5xx responses raise HTTPStatusError and are retried; the JSON body
        of a 200 response is returned as-is for status interpretation.
        """
        start_time = time.time()
        params = {"address": address, "key": self.api_key}

        if self._client is not None:
            response = await self._client.get(self.base_url, params=params)
        else:
            async with httpx.AsyncClient(timeout=settings.geocoder_timeout) as client:
                response = await client.get(self.base_url, params=params)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "[%s] Geocoding API answered %d in %.0fms",
            request_id,
            response.status_code,
            duration_ms,
        )
        response.raise_for_status()
        return response.json()

    async def health_check(self) -> bool:
        # No free probe endpoint; a configured key is the best local signal
        return bool(self.api_key)


def get_geocoder() -> Geocoder:
    """Build the geocoder named by settings.geocoder_provider."""
    if settings.geocoder_provider == "google":
        return GoogleGeocoder()
    return StaticGeocoder()


# ── Singleton Instance ────────────────────────────────────────────────────
geocoder = get_geocoder()
