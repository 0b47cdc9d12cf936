"""OpenRouteService directions client with bounded retry on transient errors.

One ``request_route`` call maps to one logical directions request. Rate-limit
(429) and server (5xx) responses are retried with exponential backoff; every
other failure is terminal for the call and raised as ``RoutingProviderError``.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

import polyline_codec
from errors import RoutingProviderError
from models import Coordinate, Path, RoutingOptions, RoutingProfile

logger = logging.getLogger(__name__)

# -- Provider --------------------------------------------------------------
DEFAULT_BASE_URL: str = "https://api.openrouteservice.org"
DEFAULT_PROFILE: RoutingProfile = RoutingProfile.CYCLING_REGULAR
REQUEST_TIMEOUT_S: float = 30.0

# -- Retry -----------------------------------------------------------------
# Total attempts per request, including the first one.
MAX_REQUEST_ATTEMPTS: int = 3
BACKOFF_BASE_S: float = 1.0         # 1s, 2s, 4s, ...
BACKOFF_CAP_S: float = 5.0

Sleep = Callable[[float], Awaitable[Any]]


def resolve_profile(profile: str | RoutingProfile) -> RoutingProfile:
    """Returns ``profile`` as a ``RoutingProfile``, or the default if unknown.

    An unknown profile is not an error: the request still goes out with
    ``cycling-regular`` and a warning is logged.
    """
    try:
        return RoutingProfile(profile)
    except ValueError:
        logger.warning(
            "Invalid routing profile %r, falling back to %r",
            profile,
            DEFAULT_PROFILE.value,
        )
        return DEFAULT_PROFILE


def backoff_delay(attempt: int) -> float:
    """Returns the wait in seconds after failed attempt number ``attempt``."""
    return min(BACKOFF_BASE_S * 2 ** (attempt - 1), BACKOFF_CAP_S)


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _provider_message(response: httpx.Response) -> str | None:
    """Pulls the human-readable error message out of an ORS error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if body.get("message"):
        return str(body["message"])
    return None


class DirectionsClient:
    """Async client for the OpenRouteService v2 directions endpoint.

    Args:
        api_key: ORS API key. Read from ``ORS_API_KEY`` if omitted.
        base_url: Provider root URL. Read from ``ORS_BASE_URL`` if omitted.
        http_client: Optional pre-constructed ``httpx.AsyncClient``. A client
            passed in is never closed by this object.
        sleep: Coroutine used for backoff waits. Tests pass a recorder.
        timeout: Per-request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
        timeout: float = REQUEST_TIMEOUT_S,
    ):
        self.api_key = (
            api_key if api_key is not None else os.environ.get("ORS_API_KEY", "")
        )
        self.base_url = (
            base_url or os.environ.get("ORS_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep

    async def __aenter__(self) -> "DirectionsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request_route(
        self,
        start: Coordinate,
        end: Coordinate | None,
        profile: str | RoutingProfile = DEFAULT_PROFILE,
        options: RoutingOptions | None = None,
    ) -> Path:
        """Requests one route and returns its (lng, lat) path.

        For a round trip only ``start`` is sent and the provider builds the
        loop; otherwise the route runs from ``start`` to ``end``.

        Raises:
            ValueError: If ``end`` is missing for a point-to-point request.
            RoutingProviderError: On a terminal provider failure or when
                retries are exhausted.
            NoGeometryError: If the response carries no route geometry.
        """
        resolved = resolve_profile(profile)
        options = options or RoutingOptions()
        if options.round_trip is not None:
            coordinates = [list(start)]
        else:
            if end is None:
                raise ValueError("end is required unless a round trip is requested.")
            coordinates = [list(start), list(end)]

        body = {
            "coordinates": coordinates,
            "options": options.model_dump(exclude_none=True),
        }
        payload = await self._post_with_retry(resolved, body)
        return polyline_codec.decode(payload)

    async def _post_with_retry(
        self, profile: RoutingProfile, body: dict[str, Any]
    ) -> dict[str, Any]:
        url = f"{self.base_url}/v2/directions/{profile.value}"
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
        }

        for attempt in range(1, MAX_REQUEST_ATTEMPTS + 1):
            try:
                response = await self._client.post(url, json=body, headers=headers)
            except httpx.RequestError as exc:
                logger.error("Directions request to %s failed: %s", url, exc)
                raise RoutingProviderError(
                    f"OpenRouteService request failed: {exc}"
                ) from exc

            if response.is_success:
                try:
                    return response.json()
                except ValueError as exc:
                    logger.error(
                        "Directions provider returned a non-JSON %d body",
                        response.status_code,
                    )
                    raise RoutingProviderError(
                        "OpenRouteService request failed: response was not valid JSON",
                        status_code=response.status_code,
                    ) from exc

            if _is_retryable(response.status_code) and attempt < MAX_REQUEST_ATTEMPTS:
                delay = backoff_delay(attempt)
                logger.info(
                    "Directions provider returned %d, retrying in %.0fs "
                    "(attempt %d/%d)",
                    response.status_code,
                    delay,
                    attempt,
                    MAX_REQUEST_ATTEMPTS,
                )
                await self._sleep(delay)
                continue

            message = _provider_message(response) or "Unknown error"
            logger.error(
                "Directions provider error %d for %s: %s",
                response.status_code,
                profile.value,
                message,
            )
            raise RoutingProviderError(
                f"OpenRouteService request failed: {message}",
                status_code=response.status_code,
            )

        # The loop always returns or raises on the final attempt.
        raise RoutingProviderError("OpenRouteService request failed: Unknown error")
