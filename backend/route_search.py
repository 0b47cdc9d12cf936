"""Candidate searches that turn the directions provider into a usable route.

Hiking: try a ranked list of round-trip loop lengths until one comes back
inside the 5-15 km window.

Biking: try a ring of start points around the destination, from far to
near, until a point-to-point ride splits into two acceptable days.

Candidates are tried strictly one after another so the first acceptable
result stops the search and no provider quota is spent past it. A candidate
that fails is an expected outcome, reported as a rejected candidate rather than
an exception; only exhausting every candidate raises.
"""

import logging
from typing import Protocol

from errors import (
    NoBikeRouteFoundError,
    NoGeometryError,
    NoLoopFoundError,
    RoutingProviderError,
)
from geo import project_point
from models import (
    Coordinate,
    LoopResult,
    Path,
    RoundTripOptions,
    RoutingOptions,
    RoutingProfile,
    TwoDayRoute,
)
from segmentation import split_by_days, total_distance

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Search rules
# ---------------------------------------------------------------------------

# -- Hiking loops ----------------------------------------------------------
# Ordered by how likely the provider is to return an in-window loop, not
# numerically.
LOOP_CANDIDATE_KM: tuple[int, ...] = (10, 12, 8, 14, 6, 5, 15)
LOOP_MIN_KM: float = 5.0
LOOP_MAX_KM: float = 15.0
LOOP_WAYPOINT_COUNT: int = 3

# -- Two-day bike routes ---------------------------------------------------
# Distance from the destination to the candidate start point. Far offsets first:
# they are the ones that can fill two riding days.
BIKE_OFFSETS_KM: tuple[int, ...] = (60, 45, 35, 25, 15)
BIKE_BEARINGS_DEG: tuple[int, ...] = (0, 90, 180, 270, 45, 135, 225, 315)
BIKE_DAY_COUNT: int = 2
BIKE_DAY_TARGET_KM: float = 60.0
BIKE_DAY_TOLERANCE_KM: float = 5.0
# Accepted regardless of day balance when the whole ride is this short.
BIKE_TOTAL_MAX_KM: float = 130.0


class RouteProvider(Protocol):
    async def request_route(
        self,
        start: Coordinate,
        end: Coordinate | None,
        profile: str | RoutingProfile = ...,
        options: RoutingOptions | None = ...,
    ) -> Path: ...


async def _fetch(
    directions: RouteProvider,
    start: Coordinate,
    end: Coordinate | None,
    profile: RoutingProfile,
    options: RoutingOptions | None = None,
) -> tuple[Path | None, str]:
    """Requests one route, turning provider failures into a rejection reason.

    Returns:
        Tuple of (path, reason). ``path`` is None when the request failed,
        and ``reason`` then describes why.
    """
    try:
        path = await directions.request_route(start, end, profile, options)
    except (RoutingProviderError, NoGeometryError) as exc:
        return None, str(exc)
    return path, ""


# ---------------------------------------------------------------------------
# Hiking
# ---------------------------------------------------------------------------


async def _try_loop_length(
    directions: RouteProvider, origin: Coordinate, length_km: int
) -> tuple[LoopResult | None, str]:
    """Asks for one round-trip loop of ``length_km`` and checks its length."""
    options = RoutingOptions(
        round_trip=RoundTripOptions(
            length=round(length_km * 1000), points=LOOP_WAYPOINT_COUNT
        )
    )
    path, reason = await _fetch(
        directions, origin, None, RoutingProfile.FOOT_HIKING, options
    )
    if path is None:
        return None, reason

    distance = total_distance(path)
    if not LOOP_MIN_KM <= distance <= LOOP_MAX_KM:
        return None, (
            f"loop is {distance:.1f} km "
            f"(window: {LOOP_MIN_KM:.0f}-{LOOP_MAX_KM:.0f} km)"
        )
    return LoopResult(path=path, distance_km=distance), ""


async def find_loop(directions: RouteProvider, origin: Coordinate) -> LoopResult:
    """Returns the first hiking loop from ``origin`` within 5-15 km.

    Raises:
        NoLoopFoundError: If no candidate length gives an in-window loop.
    """
    for length_km in LOOP_CANDIDATE_KM:
        loop, reason = await _try_loop_length(directions, origin, length_km)
        if loop is not None:
            logger.info(
                "Loop candidate %dkm accepted: %.1fkm", length_km, loop.distance_km
            )
            return loop
        logger.warning("Loop candidate %dkm rejected: %s", length_km, reason)

    raise NoLoopFoundError(
        "Could not generate a loop hike between 5-15 km. Try another location."
    )


# ---------------------------------------------------------------------------
# Biking
# ---------------------------------------------------------------------------


def bike_start_candidates(
    destination: Coordinate,
) -> list[tuple[int, int, Coordinate]]:
    """Returns (offset_km, bearing_deg, start) in probing order."""
    return [
        (offset, bearing, project_point(destination, offset, bearing))
        for offset in BIKE_OFFSETS_KM
        for bearing in BIKE_BEARINGS_DEG
    ]


async def _try_bike_start(
    directions: RouteProvider, start: Coordinate, destination: Coordinate
) -> tuple[TwoDayRoute | None, str]:
    """Routes ``start`` to ``destination`` and applies the acceptance rules.

    A ride whose two days both stay within target plus tolerance is accepted
    first; failing that, any ride short enough in total is accepted.
    """
    path, reason = await _fetch(
        directions, start, destination, RoutingProfile.CYCLING_REGULAR
    )
    if path is None:
        return None, reason

    total_km = total_distance(path)
    if total_km <= 0:
        return None, "route has zero length"

    days = split_by_days(path, BIKE_DAY_COUNT)
    day_limit = BIKE_DAY_TARGET_KM + BIKE_DAY_TOLERANCE_KM
    if all(total_distance(day) <= day_limit for day in days):
        return TwoDayRoute(path=path, days=days, total_km=total_km), ""
    if total_km <= BIKE_TOTAL_MAX_KM:
        return TwoDayRoute(path=path, days=days, total_km=total_km), ""
    return None, f"route is {total_km:.1f} km with an unbalanced day split"


async def find_two_day_route(
    directions: RouteProvider, destination: Coordinate
) -> TwoDayRoute:
    """Returns the first acceptable two-day bike route ending at ``destination``.

    Raises:
        NoBikeRouteFoundError: If every candidate start point is rejected.
    """
    for offset_km, bearing, start in bike_start_candidates(destination):
        route, reason = await _try_bike_start(directions, start, destination)
        if route is not None:
            logger.info(
                "Bike start %dkm @ %d° accepted: %.1fkm",
                offset_km,
                bearing,
                route.total_km,
            )
            return route
        logger.warning(
            "Bike start %dkm @ %d° rejected: %s", offset_km, bearing, reason
        )

    raise NoBikeRouteFoundError(
        "Could not find a two-day bike route near destination. "
        "Try another place."
    )
