"""Exception types raised by the route generation pipeline.

Every terminal failure surfaces as one of these, each carrying a message that
is safe to show to the rider as-is.
"""


class RouteGenerationError(Exception):
    """Base class for all route generation failures."""


class LocationNotFoundError(RouteGenerationError, ValueError):
    """The geocoder returned no match for the destination."""


class UnsupportedActivityTypeError(RouteGenerationError, ValueError):
    """The activity type is neither ``hike`` nor ``bike``."""


class RoutingProviderError(RouteGenerationError):
    """The directions provider failed terminally or retries ran out."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NoGeometryError(RouteGenerationError):
    """The directions response held neither an encoded line nor coordinates."""


class NoLoopFoundError(RouteGenerationError):
    """No loop length candidate produced a hike within the distance window."""


class NoBikeRouteFoundError(RouteGenerationError):
    """No candidate start point produced an acceptable two-day bike route."""


class RouteGenerationExhaustedError(RouteGenerationError):
    """Every top-level generation attempt failed."""
