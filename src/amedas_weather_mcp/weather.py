import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import httpx

from amedas_weather_mcp.config import Config
from amedas_weather_mcp.errors import LoadError
from amedas_weather_mcp.models import Observation, Snapshot, Station
from amedas_weather_mcp.series import SeriesAggregator
from amedas_weather_mcp.snapshot import SnapshotLoader
from amedas_weather_mcp.station import StationDirectoryLoader

logger = logging.getLogger("amedas_weather.service")


class AmedasService:
    """Service for fetching and holding AMeDAS observation data

    Holds the most recently completed station table, snapshot and station
    series. Each is replaced wholesale when a load finishes.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Config):
        self.settings = settings
        self.directory_loader = StationDirectoryLoader(client, settings)
        self.snapshot_loader = SnapshotLoader(client, settings)
        self.series_aggregator = SeriesAggregator(client, settings)

        self.stations: Dict[str, Station] = {}
        self.snapshot: Optional[Snapshot] = None
        self.series: Dict[str, List[Observation]] = {}

    async def refresh_stations(self) -> Dict[str, Station]:
        stations = await self.directory_loader.load()
        self.stations = stations
        return stations

    async def refresh_snapshot(self) -> Snapshot:
        snapshot = await self.snapshot_loader.load_latest()
        self.snapshot = snapshot
        return snapshot

    async def load_startup(self) -> Tuple[Optional[LoadError], Optional[LoadError]]:
        """Load the station table and the latest snapshot concurrently.

        Returns the error of each load (or None), so one failing does not
        discard the other's result.
        """
        results = await asyncio.gather(self.refresh_stations(), self.refresh_snapshot(), return_exceptions=True)

        errors = []
        for name, result in zip(("stations", "snapshot"), results):
            if isinstance(result, LoadError):
                logger.error(f"Startup load of {name} failed: {str(result)}")
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                errors.append(None)
        return errors[0], errors[1]

    async def load_station_series(self, station_id: str, anchor: Optional[datetime] = None) -> List[Observation]:
        """Load the trailing series for a station, anchored on the last snapshot time by default"""
        if anchor is None:
            if self.snapshot is None:
                await self.refresh_snapshot()
            anchor = self.snapshot.timestamp

        series = await self.series_aggregator.load_series(station_id, anchor)
        self.series[station_id] = series
        return series

    def station_name(self, station_id: str) -> str:
        station = self.stations.get(station_id)
        if station is None:
            return station_id
        return f"{station.name_local}({station_id})"
