"""Geometry decoding for directions provider responses.

OpenRouteService returns route geometry in one of two shapes depending on the
endpoint flavour:

  * JSON:    ``routes[0].geometry`` is a Google-encoded polyline string whose
             points decode latitude first.
  * GeoJSON: ``features[0].geometry.coordinates`` is already a list of
             ``[lng, lat]`` (optionally ``[lng, lat, elevation]``) arrays.

Both are normalised to a list of (lng, lat) tuples.
"""

from typing import Any

from errors import NoGeometryError
from models import Path


def decode(payload: Any) -> Path:
    """Returns the (lng, lat) path carried by a directions response.

    Raises:
        NoGeometryError: If neither geometry shape is present, or the one
            present is malformed.
    """
    if not isinstance(payload, dict):
        raise NoGeometryError("Routing provider response is not a JSON object.")

    encoded = (_first(payload.get("routes")) or {}).get("geometry")
    if isinstance(encoded, str):
        try:
            points = decode_polyline(encoded)
        except IndexError:
            raise NoGeometryError(
                "Routing provider returned a truncated encoded polyline."
            ) from None
        return [(lng, lat) for lat, lng in points]

    geometry = (_first(payload.get("features")) or {}).get("geometry")
    coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coordinates, list):
        raise NoGeometryError("No geometry found in routing provider response.")
    return [_position(point) for point in coordinates]


def _first(items: Any) -> dict[str, Any] | None:
    """Returns ``items[0]`` when ``items`` is a non-empty list led by a dict."""
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _position(point: Any) -> tuple[float, float]:
    """Returns (lng, lat) from a GeoJSON position, dropping any elevation."""
    if (
        not isinstance(point, (list, tuple))
        or len(point) < 2
        or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool)
            for v in point[:2]
        )
    ):
        raise NoGeometryError(
            f"Malformed coordinate in routing provider response: {point!r}"
        )
    return float(point[0]), float(point[1])


def decode_polyline(encoded: str) -> list[tuple[float, float]]:
    """Decodes a Google-encoded polyline string to a list of (lat, lng) points.

    Implements the standard Google polyline encoding algorithm.
    See: https://developers.google.com/maps/documentation/utilities/polylinealgorithm
    """
    result: list[tuple[float, float]] = []
    index = 0
    lat = 0
    lng = 0

    while index < len(encoded):
        # Decode latitude delta.
        shift = 0
        value = 0
        while True:
            b = ord(encoded[index]) - 63
            index += 1
            value |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        lat += ~(value >> 1) if (value & 1) else (value >> 1)

        # Decode longitude delta.
        shift = 0
        value = 0
        while True:
            b = ord(encoded[index]) - 63
            index += 1
            value |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        lng += ~(value >> 1) if (value & 1) else (value >> 1)

        result.append((lat / 1e5, lng / 1e5))

    return result


def encode_polyline(coordinates: list[tuple[float, float]]) -> str:
    """Encodes a list of (lat, lng) tuples into a Google-encoded polyline."""
    encoded: list[str] = []
    prev_lat = 0
    prev_lng = 0

    for lat, lng in coordinates:
        lat_e5 = round(lat * 1e5)
        lng_e5 = round(lng * 1e5)

        for delta in (lat_e5 - prev_lat, lng_e5 - prev_lng):
            value = ~(delta << 1) if delta < 0 else (delta << 1)
            while value >= 0x20:
                encoded.append(chr((0x20 | (value & 0x1F)) + 63))
                value >>= 5
            encoded.append(chr(value + 63))

        prev_lat = lat_e5
        prev_lng = lng_e5

    return "".join(encoded)


def encode_path(path: Path) -> str:
    """Encodes a (lng, lat) path, swapping to the polyline's lat-first order."""
    return encode_polyline([(lat, lng) for lng, lat in path])
