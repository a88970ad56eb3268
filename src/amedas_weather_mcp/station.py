import logging
from math import atan2, cos, radians, sin, sqrt
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from amedas_weather_mcp.config import Config
from amedas_weather_mcp.fetch import build_url, fetch_object_map
from amedas_weather_mcp.models import Station

# Get logger for this module
logger = logging.getLogger("amedas_weather.station")


class StationDirectoryLoader:
    """Loads the AMeDAS station table"""

    TABLE_PATH = "const/amedastable.json"

    def __init__(self, client: httpx.AsyncClient, settings: Config):
        self._client = client
        self._settings = settings

    async def load(self) -> Dict[str, Station]:
        """Fetch the station table keyed by station ID"""
        url = build_url(self._settings.base_url, self.TABLE_PATH)
        try:
            table = await fetch_object_map(self._client, url)
        except Exception as e:
            logger.error(f"Failed to load station table: {str(e)}")
            raise

        stations = parse_station_table(table)
        logger.info(f"Successfully loaded {len(stations)} stations")
        return stations


def parse_station_table(table: Dict[str, Dict[str, Any]]) -> Dict[str, Station]:
    """Build stations from decoded table entries, skipping incomplete ones"""
    stations = {}
    for station_id, entry in table.items():
        station = _parse_station(station_id, entry)
        if station is None:
            logger.debug(f"Skipping incomplete station entry {station_id}")
            continue
        stations[station_id] = station
    return stations


def _parse_station(station_id: str, entry: Dict[str, Any]) -> Optional[Station]:
    name_local = entry.get("kjName")
    name_romanized = entry.get("enName")
    if not isinstance(name_local, str) or not isinstance(name_romanized, str):
        return None

    latitude = _degrees_minutes(entry.get("lat"))
    longitude = _degrees_minutes(entry.get("lon"))
    if latitude is None or longitude is None:
        return None

    try:
        return Station(
            station_id=station_id,
            name_local=name_local,
            name_romanized=name_romanized,
            latitude=latitude,
            longitude=longitude,
        )
    except ValidationError:
        return None


def _degrees_minutes(raw: Any) -> Optional[float]:
    if not isinstance(raw, list) or len(raw) != 2:
        return None
    if not all(isinstance(part, (int, float)) and not isinstance(part, bool) for part in raw):
        return None
    degrees, minutes = raw
    return degrees + minutes / 60


def search_stations(stations: Dict[str, Station], query: str) -> List[Station]:
    """Stations whose ID or either name contains the query"""
    needle = query.strip().casefold()
    if not needle:
        return []

    matches = [
        station
        for station in stations.values()
        if needle in station.station_id
        or needle in station.name_local.casefold()
        or needle in station.name_romanized.casefold()
    ]
    return sorted(matches, key=lambda station: station.station_id)


def find_nearest_station(stations: Dict[str, Station], latitude: float, longitude: float) -> Station:
    """Find the nearest station to given coordinates"""
    if not stations:
        raise ValueError("No stations available. Load the station table first.")

    def calculate_distance(station: Station) -> float:
        """Calculate distance using Haversine formula"""
        lat1, lon1 = radians(latitude), radians(longitude)
        lat2, lon2 = radians(station.latitude), radians(station.longitude)

        dlat = lat2 - lat1
        dlon = lon2 - lon1
        a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
        c = 2 * atan2(sqrt(a), sqrt(1 - a))

        # Earth's radius in kilometers
        R = 6371.0

        return R * c

    nearest_station = min(stations.values(), key=calculate_distance)

    logger.info(f"Found nearest station: {nearest_station.name_romanized} ({nearest_station.station_id})")
    return nearest_station
