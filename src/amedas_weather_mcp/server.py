import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Union

import httpx
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from amedas_weather_mcp.classifier import all_classification_keys, classify, has_valid_data, rank_observations
from amedas_weather_mcp.config import config
from amedas_weather_mcp.errors import LoadError
from amedas_weather_mcp.models import Element, Station
from amedas_weather_mcp.series import elements_present, hourly_rows
from amedas_weather_mcp.station import find_nearest_station, search_stations
from amedas_weather_mcp.weather import AmedasService

load_dotenv()

# Set up logging
log_dir = Path("logs")
log_dir.mkdir(exist_ok=True)
log_file = log_dir / "amedas_weather.log"

logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(log_file),
        logging.StreamHandler(),
    ],
)

logger = logging.getLogger("amedas_weather")

client = httpx.AsyncClient(timeout=config.request_timeout)
service = AmedasService(client, config)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Close the shared HTTP client when the server shuts down"""
    try:
        yield
    finally:
        await client.aclose()
        logger.info("Closed HTTP client")


mcp = FastMCP(
    "AMeDAS Weather",
    instructions="Japanese AMeDAS weather station observations and map marker classification",
    log_level=config.log_level.upper(),
    port=config.port,
    lifespan=lifespan,
)


async def _ensure_loaded() -> None:
    if service.stations and service.snapshot is not None:
        return
    stations_error, snapshot_error = await service.load_startup()
    if snapshot_error is not None:
        raise snapshot_error
    if stations_error is not None:
        raise stations_error


def _parse_element(name: str) -> Element:
    try:
        return Element(name)
    except ValueError:
        choices = ", ".join(element.value for element in Element)
        raise ValueError(f"Unknown element '{name}'. Choose one of: {choices}") from None


# Tools
@mcp.tool()
async def reload_observations() -> Dict[str, Any]:
    """Reload the station table and the latest nationwide snapshot"""
    stations_error, snapshot_error = await service.load_startup()
    return {
        "stations": len(service.stations),
        "timestamp": service.snapshot.timestamp.isoformat() if service.snapshot else None,
        "errors": [str(error) for error in (stations_error, snapshot_error) if error is not None],
    }


@mcp.tool()
async def get_station_markers(element: str = "temperature") -> Union[List[Dict[str, Any]], str]:
    """
    Map markers for every station in the latest snapshot

    Args:
        element: One of temperature, precipitation, wind, sunshine, humidity, pressure, snow_depth
    """
    try:
        selected = _parse_element(element)
        await _ensure_loaded()
    except (LoadError, ValueError) as e:
        logger.error(f"Error building markers: {str(e)}")
        return f"Error: Unable to load observations. {str(e)}"

    markers = []
    for observation in service.snapshot.observations:
        station = service.stations.get(observation.station_id)
        key = classify(observation, selected)
        if station is None or key is None or not has_valid_data(observation, selected):
            continue
        markers.append(
            {
                "station_id": station.station_id,
                "latitude": station.latitude,
                "longitude": station.longitude,
                "identifier": key.identifier,
                "text": observation.text(selected),
            }
        )
    return markers


@mcp.tool()
async def get_ranking(element: str = "temperature", limit: int = 30) -> Union[List[Dict[str, str]], str]:
    """
    Stations with the highest values in the latest snapshot

    Args:
        element: Element to rank by
        limit: Maximum number of stations
    """
    try:
        selected = _parse_element(element)
        await _ensure_loaded()
    except (LoadError, ValueError) as e:
        logger.error(f"Error building ranking: {str(e)}")
        return f"Error: Unable to load observations. {str(e)}"

    return [
        {"station": service.station_name(observation.station_id), "value": observation.text(selected)}
        for observation in rank_observations(service.snapshot.observations, selected, limit)
    ]


@mcp.tool()
async def get_station_series(station_id: str) -> Union[Dict[str, Any], str]:
    """
    Hourly observations over the last 24 hours for one station

    Args:
        station_id: AMeDAS station ID, e.g. 44132
    """
    try:
        await _ensure_loaded()
        series = await service.load_station_series(station_id)
    except LoadError as e:
        logger.error(f"Error getting series for {station_id}: {str(e)}")
        return f"Error: Unable to get observations for station {station_id}. {str(e)}"

    elements = elements_present(series)
    return {
        "station": service.station_name(station_id),
        "elements": [element.title for element in elements],
        "rows": [
            {
                "time": observation.timestamp.strftime("%H:%M"),
                **{element.title: observation.text(element) for element in elements},
            }
            for observation in hourly_rows(series)
        ],
    }


@mcp.tool()
async def find_stations(query: str) -> Union[List[Station], str]:
    """
    Search stations by ID, Japanese name or romanized name

    Args:
        query: Search term
    """
    try:
        await _ensure_loaded()
    except LoadError as e:
        return f"Error: Unable to load stations. {str(e)}"
    return search_stations(service.stations, query)


@mcp.tool()
async def get_nearest_station(latitude: float, longitude: float) -> Union[Station, str]:
    """
    Find the nearest AMeDAS station to given coordinates

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    try:
        await _ensure_loaded()
        return find_nearest_station(service.stations, latitude, longitude)
    except (LoadError, ValueError) as e:
        return f"Error: {str(e)}"


@mcp.tool()
def list_marker_identifiers() -> List[str]:
    """Every marker identifier a renderer needs a glyph for"""
    return [key.identifier for key in all_classification_keys()]


if __name__ == "__main__":
    mcp.run()
