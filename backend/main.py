"""TrailForge backend service.

Exposes endpoints for destination geocoding, hike and bike route generation,
and LLM travel-guide enrichment of generated routes.
"""

import logging
import os

import googlemaps
from fastapi import FastAPI, HTTPException

import enrichment
import route_generation
from errors import (
    LocationNotFoundError,
    RouteGenerationError,
    UnsupportedActivityTypeError,
)
from models import (
    EnrichRequest,
    GenerationRequest,
    GenerationResult,
    GeocodeRequest,
    GeocodeResponse,
    RouteGuide,
)

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title="TrailForge Backend",
    description="Multi-day hiking and biking route generation.",
    version="0.1.0",
)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint used to verify the service is live."""
    return {"status": "ok"}


@app.post("/geocode", response_model=GeocodeResponse)
async def geocode(request: GeocodeRequest) -> GeocodeResponse:
    """Resolves a destination name to lng/lat coordinates.

    Raises:
        HTTPException 400: If destination is empty.
        HTTPException 404: If the destination could not be geocoded.
        HTTPException 502: If the upstream Google Maps API call fails.
    """
    if not request.destination.strip():
        raise HTTPException(
            status_code=400,
            detail="destination must not be empty.",
        )
    try:
        gmaps = googlemaps.Client(
            key=os.environ.get("GOOGLE_MAPS_API_KEY", ""),
        )
        lng, lat = await route_generation.geocode(gmaps, request.destination)
        return GeocodeResponse(lng=lng, lat=lat)
    except LocationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logging.exception("geocode failed")
        raise HTTPException(
            status_code=502,
            detail="Geocoding failed. Please try again.",
        ) from exc


@app.post("/generate-route", response_model=GenerationResult)
async def generate_route(request: GenerationRequest) -> GenerationResult:
    """Generates a hike loop or a two-day bike route around a destination.

    Runs a three-step pipeline:
    1. Geocodes the destination.
    2. Searches OpenRouteService for a loop (hike) or a two-day ride (bike),
       retrying the search up to 3 times.
    3. Splits the path into days and encodes it.

    Args:
        request: ``GenerationRequest`` with destination and activity type.

    Returns:
        ``GenerationResult`` with the path, its day split, and total distance.

    Raises:
        HTTPException 400: If destination is empty or the type is unsupported.
        HTTPException 404: If the destination could not be geocoded.
        HTTPException 502: If no route could be generated.
    """
    if not request.destination.strip():
        raise HTTPException(
            status_code=400,
            detail="destination must not be empty.",
        )
    try:
        return await route_generation.generate(request)
    except UnsupportedActivityTypeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LocationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RouteGenerationError as exc:
        logging.exception("route_generation.generate exhausted")
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logging.exception("route_generation.generate failed")
        raise HTTPException(
            status_code=502,
            detail="Failed to generate route. Please try again.",
        ) from exc


@app.post("/enrich-route", response_model=RouteGuide)
async def enrich_route(request: EnrichRequest) -> RouteGuide:
    """Writes a travel guide for an already generated route.

    Falls back to a generic guide when Claude is unavailable, so this
    endpoint only fails on invalid input.

    Raises:
        HTTPException 400: If destination, path or day paths are empty.
    """
    if not request.destination.strip():
        raise HTTPException(
            status_code=400,
            detail="destination must not be empty.",
        )
    if not request.path or not request.path_days:
        raise HTTPException(
            status_code=400,
            detail="path and path_days must not be empty.",
        )
    return await enrichment.enrich(request)
