import logging
from datetime import datetime
from typing import Any, Dict

import httpx

from amedas_weather_mcp.config import Config
from amedas_weather_mcp.errors import ParseError
from amedas_weather_mcp.fetch import build_observation, build_url, fetch_object_map, fetch_text
from amedas_weather_mcp.models import Snapshot

logger = logging.getLogger("amedas_weather.snapshot")


class SnapshotLoader:
    """Loads the nationwide observation map for one timestamp"""

    LATEST_TIME_PATH = "data/latest_time.txt"
    MAP_PATH = "data/map/{timestamp}00.json"

    def __init__(self, client: httpx.AsyncClient, settings: Config):
        self._client = client
        self._settings = settings

    async def resolve_latest_timestamp(self) -> datetime:
        """Timestamp of the most recent published snapshot"""
        url = build_url(self._settings.base_url, self.LATEST_TIME_PATH)
        text = await fetch_text(self._client, url)
        timestamp = parse_latest_time(text, self._settings)
        logger.info(f"parsed date: {timestamp.isoformat()}")
        return timestamp

    async def load_snapshot(self, timestamp: datetime) -> Snapshot:
        local_time = self._settings.localize(timestamp)
        path = self.MAP_PATH.format(timestamp=local_time.strftime("%Y%m%d%H%M"))
        url = build_url(self._settings.base_url, path)
        try:
            document = await fetch_object_map(self._client, url)
        except Exception as e:
            logger.error(f"Failed to load snapshot for {local_time.isoformat()}: {str(e)}")
            raise

        snapshot = parse_snapshot(document, local_time)
        logger.info(f"Loaded snapshot {local_time.isoformat()} with {len(snapshot.observations)} stations")
        return snapshot

    async def load_latest(self) -> Snapshot:
        timestamp = await self.resolve_latest_timestamp()
        return await self.load_snapshot(timestamp)


def parse_latest_time(text: str, settings: Config) -> datetime:
    """Parse the ISO-8601 body of the latest-time endpoint into the fixed zone"""
    raw = text.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        timestamp = datetime.fromisoformat(raw)
    except ValueError as e:
        logger.error(f"date parse error. {raw!r}")
        raise ParseError(f"Invalid latest timestamp: {raw!r}") from e

    return settings.localize(timestamp)


def parse_snapshot(document: Dict[str, Dict[str, Any]], timestamp: datetime) -> Snapshot:
    observations = tuple(
        build_observation(station_id, timestamp, fields) for station_id, fields in document.items()
    )
    return Snapshot(timestamp=timestamp, observations=observations)
