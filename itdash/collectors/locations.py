"""
City/state to timezone resolution for office locations
"""

from functools import lru_cache
from typing import Dict, Optional, Tuple

import geonamescache

# Zone used for any city that can't be resolved
DEFAULT_TIMEZONE = "America/Denver"
DEFAULT_LOCATION = ("", DEFAULT_TIMEZONE)

# Offices missing from the geonames city list
CITY_OVERRIDES = {
    "Greenwood Village CO": ("CO", "America/Denver"),
    "Abilene TX": ("TX", "America/Chicago"),
    "Tyler TX": ("TX", "America/Chicago"),
    "Rock Springs WY": ("WY", "America/Denver"),
}


@lru_cache(maxsize=1)
def _geonames() -> geonamescache.GeonamesCache:
    return geonamescache.GeonamesCache()


@lru_cache(maxsize=1)
def _state_codes() -> Dict[str, str]:
    """Lower-cased US state code or name -> two-letter code"""
    codes = {}
    for code, state in _geonames().get_us_states().items():
        codes[code.lower()] = code
        codes[state["name"].lower()] = code
    return codes


def normalize_state(state: Optional[str]) -> Optional[str]:
    """Two-letter code for ``"CO"``, ``"co"`` or ``"Colorado"``; None otherwise"""
    if not state:
        return None
    return _state_codes().get(state.strip().lower())


def city_state_key(city: str, state: Optional[str]) -> str:
    """``"City ST"`` when a two-letter state is given, else just the city"""
    city = city.strip()
    if state and len(state.strip()) == 2:
        return f"{city} {state.strip().upper()}"
    return city


def _find_city(city: str, state_code: Optional[str]) -> Optional[dict]:
    matches = []
    for entry in _geonames().get_cities_by_name(city):
        matches.extend(entry.values())
    if state_code:
        matches = [m for m in matches if m["countrycode"] == "US" and m["admin1code"] == state_code]
    if not matches:
        return None
    # US offices first, then the biggest city of that name
    return max(matches, key=lambda m: (m["countrycode"] == "US", m.get("population", 0)))


@lru_cache(maxsize=1024)
def lookup_location(city: str, state: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """Return ``(state, timezone)`` for a city, or None when unknown.

    ``state`` may be a two-letter code, a full US state name or empty.
    """
    city = city.strip()
    state_code = normalize_state(state)

    match = _find_city(city, state_code)
    if match is not None:
        found_state = match["admin1code"] if match["countrycode"] == "US" else ""
        return found_state, match.get("timezone") or DEFAULT_TIMEZONE

    return CITY_OVERRIDES.get(city_state_key(city, state_code))
