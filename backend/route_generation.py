"""Hike and bike route generation pipeline.

Three-step async pipeline:
  1.  Geocode the destination once (Google Maps geocoder).
  2.  Search for a path, retrying the whole search up to 3 times:
        hike -> a single-day round-trip loop of 5-15 km,
        bike -> a two-day point-to-point ride ending at the destination.
  3.  Split the path into days and encode it for the client.

OpenRouteService (via ``directions.DirectionsClient``) provides all routing.
"""

import asyncio
import logging
import os

import googlemaps

from directions import DirectionsClient, Sleep
from errors import (
    LocationNotFoundError,
    RouteGenerationError,
    RouteGenerationExhaustedError,
    UnsupportedActivityTypeError,
)
from models import ActivityType, Coordinate, GenerationRequest, GenerationResult, Path
from polyline_codec import encode_path
from route_search import find_loop, find_two_day_route
from segmentation import total_distance

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Generation rules
# ---------------------------------------------------------------------------

# Whole-search attempts per request. The geocode result is reused.
MAX_GENERATION_ATTEMPTS: int = 3
# Wait after failed attempt N is N times this, except after the last one.
ATTEMPT_BACKOFF_S: float = 1.0

# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


async def generate(
    request: GenerationRequest,
    *,
    maps_client: googlemaps.Client | None = None,
    directions_client: DirectionsClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> GenerationResult:
    """Generates a hike or bike route around ``request.destination``.

    Args:
        request: Destination and activity type.
        maps_client: Optional pre-constructed Google Maps client used for
            geocoding. Created from ``GOOGLE_MAPS_API_KEY`` if omitted.
        directions_client: Optional pre-constructed directions client.
            Created from ``ORS_API_KEY`` if omitted, and closed on return.
        sleep: Coroutine used for the waits between attempts.

    Returns:
        A ``GenerationResult`` with the full path, its day split and length.

    Raises:
        UnsupportedActivityTypeError: If the activity is not hike or bike.
        ValueError: If the destination is empty or no Google Maps key is set.
        LocationNotFoundError: If the destination cannot be geocoded.
        RouteGenerationExhaustedError: If every attempt failed.
    """
    try:
        activity = ActivityType(request.activity_type)
    except ValueError:
        raise UnsupportedActivityTypeError(
            'Unsupported type. Choose "hike" or "bike".'
        ) from None

    logger.info(
        "Route generation started: %s (%s)", request.destination, activity.value
    )

    _maps = maps_client or googlemaps.Client(
        key=os.environ.get("GOOGLE_MAPS_API_KEY", "")
    )
    origin = await geocode(_maps, request.destination)
    logger.info("Geocoded destination: %f, %f", origin[0], origin[1])

    owns_directions = directions_client is None
    _directions = directions_client or DirectionsClient()
    try:
        path, path_days = await _search_with_retry(
            _directions, activity, origin, request.destination, sleep
        )
    finally:
        if owns_directions:
            await _directions.aclose()

    distance_km = total_distance(path)
    logger.info(
        "Route generation complete: %.1fkm over %d day(s)",
        distance_km,
        len(path_days),
    )

    return GenerationResult(
        destination=request.destination,
        activity_type=activity.value,
        path=path,
        path_days=path_days,
        total_distance_km=distance_km,
        encoded_path=encode_path(path),
        encoded_path_days=[encode_path(day) for day in path_days],
    )


# ---------------------------------------------------------------------------
# Step 1: Geocoding
# ---------------------------------------------------------------------------


async def geocode(maps_client: googlemaps.Client, location: str) -> Coordinate:
    """Returns (lng, lat) for the given place name or coordinate string.

    If ``location`` is already in `lat,lng` format the values are parsed
    directly without a network call.
    """
    location = location.strip()
    if not location:
        raise ValueError("destination must not be empty.")

    # Try to parse "lat,lng" directly.
    parts = location.split(",")
    if len(parts) == 2:
        try:
            return float(parts[1].strip()), float(parts[0].strip())
        except ValueError:
            pass

    result = maps_client.geocode(location)
    if not result:
        raise LocationNotFoundError(f"Location not found: {location!r}")
    loc = result[0]["geometry"]["location"]
    return float(loc["lng"]), float(loc["lat"])


# ---------------------------------------------------------------------------
# Step 2: Path search with retry
# ---------------------------------------------------------------------------


async def _search_once(
    directions: DirectionsClient, activity: ActivityType, origin: Coordinate
) -> tuple[Path, list[Path]]:
    """Runs the activity's search once and returns (path, path_days)."""
    if activity is ActivityType.HIKE:
        loop = await find_loop(directions, origin)
        return loop.path, [loop.path]
    ride = await find_two_day_route(directions, origin)
    return ride.path, ride.days


async def _search_with_retry(
    directions: DirectionsClient,
    activity: ActivityType,
    origin: Coordinate,
    destination: str,
    sleep: Sleep,
) -> tuple[Path, list[Path]]:
    last_error: RouteGenerationError | None = None
    for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
        logger.info(
            "Route generation attempt %d for %s (%s)",
            attempt,
            destination,
            activity.value,
        )
        try:
            path, path_days = await _search_once(directions, activity, origin)
        except RouteGenerationError as exc:
            last_error = exc
            logger.warning("Attempt %d failed: %s", attempt, exc)
        else:
            if len(path) >= 2:
                logger.info("Route generated on attempt %d", attempt)
                return path, path_days
            logger.warning(
                "Attempt %d returned a %d-point path", attempt, len(path)
            )

        if attempt < MAX_GENERATION_ATTEMPTS:
            await sleep(ATTEMPT_BACKOFF_S * attempt)

    logger.error("All %d route generation attempts failed", MAX_GENERATION_ATTEMPTS)
    raise RouteGenerationExhaustedError(
        str(last_error)
        if last_error is not None
        else (
            f"Could not generate route after {MAX_GENERATION_ATTEMPTS} attempts. "
            "Please try a different destination or try again later."
        )
    )
