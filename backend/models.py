"""Pydantic request and response models for the TrailForge backend."""

from enum import Enum

from pydantic import BaseModel, Field

# (longitude, latitude), the axis order used by OpenRouteService.
Coordinate = tuple[float, float]
Path = list[Coordinate]


class RoutingProfile(str, Enum):
    """Travel modes advertised by the directions provider."""

    CYCLING_REGULAR = "cycling-regular"
    FOOT_HIKING = "foot-hiking"
    DRIVING_CAR = "driving-car"
    DRIVING_HGV = "driving-hgv"


class ActivityType(str, Enum):
    """Activities a route can be generated for."""

    HIKE = "hike"
    BIKE = "bike"


# ---------------------------------------------------------------------------
# Directions request options
# ---------------------------------------------------------------------------


class RoundTripOptions(BaseModel):
    """Asks the provider for a loop starting and ending at the first point."""

    length: int
    """Target loop length in metres."""

    points: int = 3
    """Number of generated points the provider routes the loop through."""

    seed: int | None = None
    """Randomisation seed; the provider picks one when omitted."""


class RoutingOptions(BaseModel):
    """The ``options`` object sent with a directions request."""

    round_trip: RoundTripOptions | None = None


# ---------------------------------------------------------------------------
# Route generation models
# ---------------------------------------------------------------------------


class GenerationRequest(BaseModel):
    """What the rider or hiker wants a route for."""

    destination: str
    """Place name or 'lat,lng' string to build the route around."""

    activity_type: str
    """Either 'hike' or 'bike'. Validated by the pipeline, not here."""


class LoopResult(BaseModel):
    """A single-day hiking loop."""

    path: Path
    distance_km: float


class TwoDayRoute(BaseModel):
    """A point-to-point bike route split into two riding days."""

    path: Path
    days: list[Path]
    total_km: float


class GenerationResult(BaseModel):
    """The complete result of a route generation request."""

    destination: str
    activity_type: str

    path: Path
    """Full route as (lng, lat) points, start to end."""

    path_days: list[Path]
    """The route split into days; consecutive days share their boundary."""

    total_distance_km: float
    """Haversine length of ``path`` in kilometres."""

    encoded_path: str = ""
    """``path`` as a Google-encoded polyline."""

    encoded_path_days: list[str] = Field(default_factory=list)
    """Each entry of ``path_days`` as a Google-encoded polyline."""


# ---------------------------------------------------------------------------
# Geocoding models
# ---------------------------------------------------------------------------


class GeocodeRequest(BaseModel):
    """Request body for the /geocode endpoint."""

    destination: str


class GeocodeResponse(BaseModel):
    """Coordinates of the best geocoder match."""

    lng: float
    lat: float


# ---------------------------------------------------------------------------
# Enrichment models
# ---------------------------------------------------------------------------


class EnrichRequest(BaseModel):
    """A generated route to be turned into a travel guide."""

    destination: str
    activity_type: str
    path: Path
    path_days: list[Path]
    weather_daily: list[dict] | None = None
    """Optional per-day forecast passed through to the prompt verbatim."""


class GuideSegment(BaseModel):
    name: str = ""
    description: str = ""
    difficulty: str = ""
    highlights: list[str] = Field(default_factory=list)


class PointOfInterest(BaseModel):
    name: str = ""
    type: str = ""
    description: str = ""
    coordinates: list[float] = Field(default_factory=list)


class FoodStop(BaseModel):
    name: str = ""
    type: str = ""
    description: str = ""


class PhotoSpot(BaseModel):
    name: str = ""
    description: str = ""
    best_time: str = ""


class RouteGuide(BaseModel):
    """LLM-written travel guide for a generated route.

    Every collection defaults to empty so a partial or fallback guide is
    still a valid response.
    """

    title: str
    overview: str
    best_windows: list[str] = Field(default_factory=list)
    segments: list[GuideSegment] = Field(default_factory=list)
    pois: list[PointOfInterest] = Field(default_factory=list)
    safety_tips: list[str] = Field(default_factory=list)
    gear_checklist: list[str] = Field(default_factory=list)
    food_stops: list[FoodStop] = Field(default_factory=list)
    photo_spots: list[PhotoSpot] = Field(default_factory=list)
