"""
Stage 2 — Route cost estimation.

Input: origin + destination Address
Output: Route {distance_km, duration_minutes, estimated_toll_cost, ...}

Primary path: Google Distance Matrix (driving, live traffic).
Graceful fallback: if the provider fails for ANY reason (no key, quota,
denial, timeout, no route) the postcode-distance formula is used instead.
The quote NEVER fails because the routing provider is down; fallback routes
carry a warning so staff can re-check the distance when they call.
"""

import logging
import math
import re
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import httpx

from .config import settings
from .quote_record import Address, Route

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

FALLBACK_WARNING = "Using estimated values - API unavailable"
FALLBACK_TRAFFIC = "estimated (fallback)"

# Fallback formula constants (Sydney metro)
FALLBACK_BASE_KM = 5.0
FALLBACK_KM_PER_POSTCODE = 0.28
FALLBACK_MAX_KM = 150.0
FALLBACK_MINUTES_PER_KM = 1.8
FALLBACK_TRAFFIC_FACTOR = 1.2
FALLBACK_UNKNOWN_KM = 25
FALLBACK_UNKNOWN_MINUTES = 45

# Toll heuristic — Class B (truck) tolls, Sydney motorways
TOLL_LONG_DISTANCE_KM = 40
TOLL_LONG_DISTANCE = 25.0       # M4 / M7
TOLL_MEDIUM_DISTANCE_KM = 20
TOLL_MEDIUM_DISTANCE = 12.0     # one major toll road
TOLL_ZONES = [
    # (low, high, cost)
    (2000, 2010, 8.0),          # CBD — Eastern Distributor / Cross City Tunnel
    (2060, 2120, 4.0),          # North Shore — Lane Cove Tunnel
    (2150, 2770, 15.0),         # Western Sydney — M4 corridor
]
TOLL_CAP = 50.0


# --- Provider result type ---

@dataclass
class RouteOk:
    distance_km: int
    duration_minutes: int
    traffic_conditions: str = "live"


@dataclass
class RouteErr:
    reason: str


RouteLookup = Union[RouteOk, RouteErr]


class GoogleDistanceMatrixProvider:
    """
    Async Distance Matrix client. Never raises — every failure is a RouteErr.
    """

    def __init__(self, api_key: str = None, timeout: float = None, transport=None):
        self.api_key = settings.GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self.timeout = settings.ROUTING_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    async def lookup(self, origin: str, destination: str) -> RouteLookup:
        if not self.api_key:
            return RouteErr("routing provider not configured")

        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "driving",
            "units": "metric",
            "departure_time": str(int(time.time()) + 60),
            "traffic_model": "best_guess",
            "key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(DISTANCE_MATRIX_URL, params=params)
            if response.status_code != 200:
                return RouteErr(f"HTTP {response.status_code}")
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            return RouteErr(f"request failed: {e}")

        return self._parse_response(data)

    def _parse_response(self, data) -> RouteLookup:
        if not isinstance(data, dict):
            return RouteErr("malformed response")
        status = data.get("status")
        if status != "OK":
            return RouteErr(f"Distance Matrix API error: {status}")
        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError):
            return RouteErr("malformed response")
        if not isinstance(element, dict):
            return RouteErr("malformed response")
        if element.get("status") != "OK":
            return RouteErr(f"Route calculation failed: {element.get('status')}")

        try:
            distance_km = round_half_up(element["distance"]["value"] / 1000)
            duration = element.get("duration_in_traffic") or element["duration"]
            duration_minutes = round_half_up(duration["value"] / 60)
        except (KeyError, TypeError):
            return RouteErr("malformed response")

        traffic = "live" if element.get("duration_in_traffic") else "estimated"
        return RouteOk(distance_km, duration_minutes, traffic)


# --- Pure helpers ---

def round_half_up(value: float) -> int:
    """12.5 -> 13. Python's round() would give 12."""
    return int(math.floor(value + 0.5))


def extract_postcode(text: str) -> Optional[int]:
    """First four-digit run in an address string, or None."""
    match = re.search(r"\d{4}", text or "")
    return int(match.group(0)) if match else None


def _postcode_of(address: Address) -> Optional[int]:
    if address.postcode and len(address.postcode) == 4 and address.postcode.isdigit():
        return int(address.postcode)
    return extract_postcode(address.full_address)


def fallback_distance(origin_postcode: Optional[int], dest_postcode: Optional[int]) -> tuple[int, int]:
    """
    Postcode-difference distance estimate -> (distance_km, duration_minutes).

    Sydney postcodes climb roughly outward from the CBD, so ~0.28 km per
    postcode unit is a workable average. Capped at 150 km.
    """
    if origin_postcode is None or dest_postcode is None:
        return FALLBACK_UNKNOWN_KM, FALLBACK_UNKNOWN_MINUTES

    diff = abs(origin_postcode - dest_postcode)
    km = min(FALLBACK_BASE_KM + diff * FALLBACK_KM_PER_POSTCODE, FALLBACK_MAX_KM)
    base_minutes = round_half_up(km * FALLBACK_MINUTES_PER_KM)
    minutes = round_half_up(base_minutes * FALLBACK_TRAFFIC_FACTOR)
    return round_half_up(km), minutes


def fallback_route(origin: str, destination: str) -> RouteOk:
    km, minutes = fallback_distance(extract_postcode(origin), extract_postcode(destination))
    return RouteOk(km, minutes, FALLBACK_TRAFFIC)


def _as_postcode_int(postcode) -> Optional[int]:
    try:
        return int(str(postcode).strip())
    except (TypeError, ValueError):
        return None


def estimate_toll_cost(distance_km: float, origin_postcode, dest_postcode) -> float:
    """Additive toll heuristic, capped at TOLL_CAP."""
    origin = _as_postcode_int(origin_postcode)
    dest = _as_postcode_int(dest_postcode)

    tolls = 0.0
    if distance_km > TOLL_LONG_DISTANCE_KM:
        tolls += TOLL_LONG_DISTANCE
    elif distance_km > TOLL_MEDIUM_DISTANCE_KM:
        tolls += TOLL_MEDIUM_DISTANCE

    for low, high, cost in TOLL_ZONES:
        if any(pc is not None and low <= pc <= high for pc in (origin, dest)):
            tolls += cost

    return min(tolls, TOLL_CAP)


def is_weekend(move_date) -> bool:
    """Saturday or Sunday. Accepts a date or an ISO date string."""
    if move_date is None:
        return False
    if isinstance(move_date, datetime):
        move_date = move_date.date()
    if not isinstance(move_date, date):
        try:
            move_date = date.fromisoformat(str(move_date).strip()[:10])
        except ValueError:
            return False
    return move_date.weekday() >= 5


class RouteCostEstimator:
    """
    Stage 2 of the pipeline.

    Wraps a routing provider and turns its answer (or the fallback) into a
    Route with toll cost attached.
    """

    def __init__(self, provider=None):
        self.provider = provider or GoogleDistanceMatrixProvider()

    async def estimate(self, origin: Address, destination: Address) -> Route:
        origin_text = origin.full_address
        dest_text = destination.full_address

        try:
            result = await self.provider.lookup(origin_text, dest_text)
        except Exception as e:
            logger.exception("Routing provider raised")
            result = RouteErr(f"provider error: {e}")
        warning = None
        if isinstance(result, RouteErr):
            logger.warning(
                "Routing provider failed (%s) — falling back to postcode estimate", result.reason
            )
            km, minutes = fallback_distance(_postcode_of(origin), _postcode_of(destination))
            result = RouteOk(km, minutes, FALLBACK_TRAFFIC)
            warning = FALLBACK_WARNING

        toll = estimate_toll_cost(result.distance_km, origin.postcode, destination.postcode)
        return Route(
            distance_km=result.distance_km,
            duration_minutes=result.duration_minutes,
            estimated_toll_cost=toll,
            traffic_conditions=result.traffic_conditions,
            calculated_at=datetime.utcnow(),
            warning=warning,
        )
