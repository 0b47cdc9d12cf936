"""Travel-guide enrichment for generated routes.

Claude receives the route's headline facts (destination, activity, number of
days, distance, optional weather) and writes a structured guide: title,
overview, day segments, points of interest, safety tips, gear, food stops and
photo spots.

Enrichment is decoration on top of a route that already exists, so it never
fails the request: a missing API key, an API error or an unparseable reply
all produce the fallback guide instead.
"""

import json
import logging
import os
import re
from typing import Any

from anthropic import AsyncAnthropic

from models import EnrichRequest, RouteGuide
from segmentation import total_distance

logger = logging.getLogger(__name__)

# Claude model used for guide writing.
ENRICH_MODEL: str = "claude-haiku-4-5-20251001"
ENRICH_MAX_TOKENS: int = 2000

_JSON_SYSTEM_PROMPT = (
    "You are a travel guide API. You respond with ONLY valid JSON - no "
    "markdown, no explanation, no commentary. Your entire response must be a "
    "single JSON object."
)

_GUIDE_PROMPT = """\
Create a travel guide for a {activity_type} route in {destination}.

Route info: {total_days} days, {total_km:.1f} km
{weather}
Return ONLY a JSON object with exactly this shape:

{{
  "title": "Route title",
  "overview": "Brief description",
  "best_windows": ["tip1", "tip2"],
  "segments": [{{"name": "name", "description": "desc", "difficulty": "easy", \
"highlights": ["h1", "h2"]}}],
  "pois": [{{"name": "name", "type": "type", "description": "desc", \
"coordinates": [0, 0]}}],
  "safety_tips": ["tip1", "tip2"],
  "gear_checklist": ["item1", "item2"],
  "food_stops": [{{"name": "name", "type": "type", "description": "desc"}}],
  "photo_spots": [{{"name": "name", "description": "desc", "best_time": "time"}}]
}}
"""

_LIST_FIELDS = (
    "best_windows",
    "segments",
    "pois",
    "safety_tips",
    "gear_checklist",
    "food_stops",
    "photo_spots",
)


async def enrich(
    request: EnrichRequest,
    *,
    claude_client: AsyncAnthropic | None = None,
) -> RouteGuide:
    """Returns a travel guide for the route in ``request``.

    Args:
        request: The generated route plus optional daily weather.
        claude_client: Optional pre-constructed Anthropic client. Created from
            ``ANTHROPIC_API_KEY`` if omitted; without either, the fallback
            guide is returned straight away.
    """
    api_key = os.environ.get("ANTHROPIC_API_KEY", "")
    if claude_client is None and not api_key:
        logger.warning("ANTHROPIC_API_KEY not set; returning fallback guide")
        return fallback_guide(request.destination, request.activity_type)
    _claude = claude_client or AsyncAnthropic(api_key=api_key)

    prompt = _GUIDE_PROMPT.format(
        activity_type=request.activity_type,
        destination=request.destination,
        total_days=len(request.path_days),
        total_km=total_distance(request.path),
        weather=(
            f"Weather: {json.dumps(request.weather_daily)}\n"
            if request.weather_daily
            else ""
        ),
    )

    try:
        logger.info("Requesting route guide from Claude for %s", request.destination)
        response = await _claude.messages.create(
            model=ENRICH_MODEL,
            max_tokens=ENRICH_MAX_TOKENS,
            system=_JSON_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        raw = response.content[0].text.strip()
    except Exception:  # noqa: BLE001
        logger.exception("Route guide request failed; returning fallback guide")
        return fallback_guide(request.destination, request.activity_type)

    parsed = _extract_json_object(raw)
    if parsed is None:
        logger.warning("Route guide was not valid JSON: %s", raw[:200])
        return fallback_guide(request.destination, request.activity_type)

    return _sanitize(parsed, request.destination, request.activity_type)


def fallback_guide(destination: str, activity_type: str) -> RouteGuide:
    """Returns the generic guide used whenever Claude cannot provide one."""
    return RouteGuide(
        title=f"{destination} {activity_type} route",
        overview=(
            f"A {activity_type} route in {destination}. Enjoy your adventure!"
        ),
    )


def _extract_json_object(text: str) -> dict[str, Any] | None:
    """Extracts a JSON object from text that may contain extra commentary.

    Tries the whole string, then a fenced ```json block, then the widest
    ``{...}`` span.
    """
    text = text.strip()
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except (json.JSONDecodeError, ValueError):
        pass

    for pattern in (r"```json\s*(\{.*?\})\s*```", r"(\{.*\})"):
        match = re.search(pattern, text, re.DOTALL)
        if not match:
            continue
        try:
            parsed = json.loads(match.group(1))
            if isinstance(parsed, dict):
                return parsed
        except (json.JSONDecodeError, ValueError):
            pass

    return None


def _sanitize(
    parsed: dict[str, Any], destination: str, activity_type: str
) -> RouteGuide:
    """Builds a guide from Claude's JSON, defaulting anything malformed."""
    fallback = fallback_guide(destination, activity_type)
    fields: dict[str, Any] = {
        "title": parsed.get("title") or fallback.title,
        "overview": parsed.get("overview") or fallback.overview,
    }
    # Accept the camelCase spelling too.
    if "best_windows" not in parsed and "bestWindows" in parsed:
        parsed["best_windows"] = parsed["bestWindows"]
    for name in _LIST_FIELDS:
        value = parsed.get(name)
        fields[name] = value if isinstance(value, list) else []

    try:
        return RouteGuide.model_validate(fields)
    except ValueError:
        logger.warning("Route guide failed validation; returning fallback guide")
        return fallback
