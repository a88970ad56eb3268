import logging
from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar, Union

import httpx

from amedas_weather_mcp.errors import HTTPError, ParseError, WrongURL
from amedas_weather_mcp.models import Observation

logger = logging.getLogger("amedas_weather.fetch")

T = TypeVar("T", int, float)

# Upstream field name -> (Observation attribute, value type)
OBSERVATION_FIELDS = {
    "temp": ("temperature", float),
    "precipitation1h": ("precipitation_1h", float),
    "precipitation10m": ("precipitation_10m", float),
    "windDirection": ("wind_direction", int),
    "wind": ("wind_speed", float),
    "sun1h": ("sunshine_1h", float),
    "humidity": ("humidity", float),
    "pressure": ("pressure", float),
    "snow": ("snow_depth", float),
}


def build_url(base_url: str, path: str) -> httpx.URL:
    """Join a path onto the configured base URL"""
    try:
        url = httpx.URL(f"{base_url.rstrip('/')}/{path.lstrip('/')}")
    except httpx.InvalidURL as e:
        raise WrongURL(f"Invalid request URL for {path}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise WrongURL(f"Invalid request URL: {url}")
    return url


async def fetch_response(client: httpx.AsyncClient, url: httpx.URL) -> httpx.Response:
    logger.info(f"load: {url}")
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"HTTP error for {url}: {str(e)}")
        raise HTTPError(f"Request to {url} failed: {str(e)}") from e
    return response


async def fetch_text(client: httpx.AsyncClient, url: httpx.URL) -> str:
    response = await fetch_response(client, url)
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Response from {url} is not UTF-8 text") from e


async def fetch_object_map(client: httpx.AsyncClient, url: httpx.URL) -> Dict[str, Dict[str, Any]]:
    """Fetch a JSON document shaped as an object of objects"""
    response = await fetch_response(client, url)
    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"json parse error for {url}: {str(e)}")
        raise ParseError(f"Response from {url} is not valid JSON") from e
    return decode_object_map(data, source=str(url))


def decode_object_map(data: Any, source: str = "response") -> Dict[str, Dict[str, Any]]:
    if not isinstance(data, dict) or not all(isinstance(entry, dict) for entry in data.values()):
        raise ParseError(f"Unexpected document shape in {source}")
    return data


def parse_flagged_value(raw: Any, kind: Type[T] = float) -> Optional[T]:
    """Decode an upstream ``[value, flag]`` pair.

    The value is usable only when the flag is 0. Anything else, including a
    malformed pair, yields ``None``.
    """
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        return None

    value, flag = raw
    if isinstance(flag, bool) or not isinstance(flag, (int, float)) or flag != 0:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None

    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            return None
        return int(value)
    return float(value)


def build_observation(station_id: str, timestamp: datetime, fields: Dict[str, Any]) -> Observation:
    values: Dict[str, Union[int, float, None]] = {}
    for name, (attribute, kind) in OBSERVATION_FIELDS.items():
        values[attribute] = parse_flagged_value(fields.get(name), kind)

    direction = values["wind_direction"]
    if direction is not None and not 0 <= direction <= 16:
        logger.debug(f"Discarding wind direction {direction} for station {station_id}")
        values["wind_direction"] = None

    return Observation(station_id=station_id, timestamp=timestamp, **values)
