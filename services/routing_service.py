"""
Route acquisition on top of OpenStreetMap services: Nominatim (geocoding)
and OSRM (routing).

Everything the matching engine knows about geography comes through
RouteProvider, so tests can swap in a fake or an httpx.MockTransport.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import httpx

from config import (
    GEOCODE_CACHE_TTL_MINUTES,
    HTTP_TIMEOUT_SECONDS,
    NOMINATIM_URL,
    OSM_USER_AGENT,
    OSRM_URL,
)
from services.exceptions import LocationNotFound, RouteUnavailable
from utils.logger import setup_api_logger

logger = setup_api_logger()

Coordinate = Tuple[float, float]

# OSRM only ships car/bike/foot profiles; public transport and flights are
# approximated with the car route.
OSRM_PROFILES = {
    "car": "car",
    "cycling": "bike",
    "walking": "foot",
    "bus": "car",
    "train": "car",
    "flight": "car",
}

COST_PER_KM = {
    "car": 0.5,
    "cycling": 0.0,
    "walking": 0.0,
    "bus": 0.15,
    "train": 0.25,
    "flight": 0.8,
}
DEFAULT_COST_PER_KM = 0.3
CHEAPEST_DISCOUNT = 0.8

COMPASS = ["north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest"]


@dataclass
class RouteResult:
    polyline: List[Coordinate]
    distance_m: float
    duration_s: float
    instructions: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ResolvedRoute:
    origin: Coordinate
    destination: Coordinate
    polyline: List[Coordinate]
    distance_m: Optional[float]
    duration_s: Optional[float]
    cost: Optional[float]
    mode: str
    instructions: List[Dict[str, Any]] = field(default_factory=list)


def _mode_value(mode) -> str:
    return getattr(mode, "value", mode) or ""


def osrm_profile(mode) -> str:
    return OSRM_PROFILES.get(_mode_value(mode).lower(), "car")


def estimate_cost(distance_m: float, mode, optimization=None) -> float:
    """Flat per-km fare estimate; 'cheapest' applies a 20% discount."""
    rate = COST_PER_KM.get(_mode_value(mode).lower(), DEFAULT_COST_PER_KM)
    cost = (distance_m / 1000) * rate
    if _mode_value(optimization) == "cheapest":
        cost = cost * CHEAPEST_DISCOUNT
    return cost


def compass_direction(bearing: Optional[float]) -> str:
    index = int(round((bearing or 0) / 45)) % 8
    return COMPASS[index]


def format_maneuver(maneuver: Dict[str, Any], road_name: Optional[str]) -> str:
    """Turn an OSRM maneuver into a human readable instruction."""
    name = road_name or "the road"
    kind = maneuver.get("type")
    modifier = maneuver.get("modifier")

    if kind == "depart":
        return f"Head {compass_direction(maneuver.get('bearing_after'))} on {name}"
    if kind == "arrive":
        return "Arrive at your destination"
    if kind == "turn":
        turns = {
            "left": "Turn left onto",
            "right": "Turn right onto",
            "sharp left": "Sharp left onto",
            "sharp right": "Sharp right onto",
            "slight left": "Slight left onto",
            "slight right": "Slight right onto",
        }
        return f"{turns.get(modifier, 'Turn onto')} {name}"
    if kind == "continue":
        return f"Continue on {name}"
    if kind == "merge":
        return f"Merge onto {name}"
    if kind == "on ramp":
        return f"Take the ramp onto {name}"
    if kind == "off ramp":
        return f"Take the exit onto {name}"
    if kind == "fork":
        if modifier in ("left", "right"):
            return f"Keep {modifier} at the fork onto {name}"
        return f"Continue at the fork onto {name}"
    if kind in ("roundabout", "rotary"):
        return f"At the roundabout, take exit {maneuver.get('exit') or 1} onto {name}"
    if kind == "end of road":
        if modifier in ("left", "right"):
            return f"At the end of the road, turn {modifier} onto {name}"
        return f"At the end of the road, continue onto {name}"
    return f"Continue on {name}"


def _extract_instructions(route: Dict[str, Any]) -> List[Dict[str, Any]]:
    legs = route.get("legs") or []
    if not legs:
        return []
    instructions = []
    for step in legs[0].get("steps") or []:
        maneuver = step.get("maneuver")
        if not maneuver:
            continue
        instructions.append({
            "distance": step.get("distance", 0),
            "duration": step.get("duration", 0),
            "instruction": format_maneuver(maneuver, step.get("name")),
            "name": step.get("name") or "Unnamed road",
            "type": maneuver.get("type"),
        })
    return instructions


class RouteProvider:
    """Geocoding + routing client.

    `transport` is handed to every httpx.AsyncClient this provider opens,
    which is how tests plug in httpx.MockTransport.
    """

    def __init__(
        self,
        nominatim_url: str = NOMINATIM_URL,
        osrm_url: str = OSRM_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        user_agent: str = OSM_USER_AGENT,
        cache_ttl: timedelta = timedelta(minutes=GEOCODE_CACHE_TTL_MINUTES),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.nominatim_url = nominatim_url.rstrip("/")
        self.osrm_url = osrm_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self.cache_ttl = cache_ttl
        self.transport = transport
        self._cache: Dict[str, Tuple[Coordinate, datetime]] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, headers=self.headers, transport=self.transport)

    def _get_cache(self, key: str) -> Optional[Coordinate]:
        if key in self._cache:
            value, expiry = self._cache[key]
            if datetime.now() < expiry:
                return value
            del self._cache[key]
        return None

    def _set_cache(self, key: str, value: Coordinate):
        self._cache[key] = (value, datetime.now() + self.cache_ttl)

    async def geocode(self, location: str) -> Coordinate:
        """Resolve free text to the best-match (lat, lon)."""
        query = (location or "").strip()
        if not query:
            raise LocationNotFound("Empty location")

        cache_key = query.lower()
        cached = self._get_cache(cache_key)
        if cached:
            return cached

        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.nominatim_url}/search",
                    params={"q": query, "format": "json", "limit": 1},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Nominatim error for %r: %s", query, e)
            raise LocationNotFound(f"Unable to geocode '{query}'") from e

        if not data:
            logger.warning("Nominatim returned no results for %r", query)
            raise LocationNotFound(f"Unable to geocode '{query}'")

        try:
            coords = (float(data[0]["lat"]), float(data[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed Nominatim result for %r: %s", query, e)
            raise LocationNotFound(f"Unable to geocode '{query}'") from e

        self._set_cache(cache_key, coords)
        return coords

    async def route(self, start: Coordinate, end: Coordinate, mode) -> RouteResult:
        """Route between two (lat, lon) points; polyline comes back as (lat, lon)."""
        profile = osrm_profile(mode)
        # OSRM expects lon,lat
        coords = f"{start[1]},{start[0]};{end[1]},{end[0]}"
        url = f"{self.osrm_url}/route/v1/{profile}/{coords}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
            "alternatives": "false",
        }

        try:
            async with self._client() as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("OSRM API error: %s", e)
            raise RouteUnavailable() from e

        if not isinstance(data, dict) or data.get("code") != "Ok" or not data.get("routes"):
            logger.warning("OSRM returned no route: %s", data.get("code") if isinstance(data, dict) else data)
            raise RouteUnavailable()

        route = data["routes"][0]
        try:
            polyline = [(float(c[1]), float(c[0])) for c in route["geometry"]["coordinates"]]
            result = RouteResult(
                polyline=polyline,
                distance_m=float(route["distance"]),
                duration_s=float(route["duration"]),
                instructions=_extract_instructions(route),
            )
        except (KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning("Malformed OSRM route: %s", e)
            raise RouteUnavailable() from e
        return result

    async def resolve_route(self, origin: str, destination: str, mode, optimization=None,
                            require_route: bool = True) -> ResolvedRoute:
        """Geocode both ends, then route between them.

        Raises LocationNotFound if either end cannot be geocoded and
        RouteUnavailable if no route comes back. With require_route=False a
        routing failure yields an empty polyline and no distance instead.
        """
        start = await self.geocode(origin)
        end = await self.geocode(destination)
        try:
            route = await self.route(start, end, mode)
        except RouteUnavailable:
            if require_route:
                raise
            logger.warning("No route from %r to %r, continuing without geometry", origin, destination)
            return ResolvedRoute(
                origin=start,
                destination=end,
                polyline=[],
                distance_m=None,
                duration_s=None,
                cost=None,
                mode=_mode_value(mode),
            )
        return ResolvedRoute(
            origin=start,
            destination=end,
            polyline=route.polyline,
            distance_m=route.distance_m,
            duration_s=route.duration_s,
            cost=estimate_cost(route.distance_m, mode, optimization),
            mode=_mode_value(mode),
            instructions=route.instructions,
        )

    async def plan_routes(self, boarding_points: List[str], destination: str, mode, optimization=None) -> List[ResolvedRoute]:
        """Main route from the first boarding point plus one route per extra
        boarding point. Extra points that fail are left out."""
        start = await self.geocode(boarding_points[0])
        end = await self.geocode(destination)

        routes: List[ResolvedRoute] = []
        try:
            main = await self.route(start, end, mode)
            routes.append(ResolvedRoute(
                origin=start,
                destination=end,
                polyline=main.polyline,
                distance_m=main.distance_m,
                duration_s=main.duration_s,
                cost=estimate_cost(main.distance_m, mode, optimization),
                mode=_mode_value(mode),
                instructions=main.instructions,
            ))
        except RouteUnavailable:
            logger.warning("No main route from %r to %r", boarding_points[0], destination)

        for point in boarding_points[1:]:
            try:
                point_coords = await self.geocode(point)
                extra = await self.route(point_coords, end, mode)
            except (LocationNotFound, RouteUnavailable):
                logger.warning("Skipping boarding point %r", point)
                continue
            routes.append(ResolvedRoute(
                origin=point_coords,
                destination=end,
                polyline=extra.polyline,
                distance_m=extra.distance_m,
                duration_s=extra.duration_s,
                cost=estimate_cost(extra.distance_m, mode),
                mode=_mode_value(mode),
                instructions=extra.instructions,
            ))

        if not routes:
            raise RouteUnavailable()
        return routes


route_provider = RouteProvider()


def get_route_provider() -> RouteProvider:
    return route_provider
