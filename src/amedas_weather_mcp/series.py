import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Sequence

import httpx

from amedas_weather_mcp.classifier import has_valid_data
from amedas_weather_mcp.config import Config
from amedas_weather_mcp.errors import ParseError
from amedas_weather_mcp.fetch import build_observation, build_url, fetch_object_map
from amedas_weather_mcp.models import Element, Observation

logger = logging.getLogger("amedas_weather.series")


class SeriesAggregator:
    """Builds a rolling time series for one station from fixed 3-hour window files"""

    WINDOW_PATH = "data/point/{station_id}/{window}.json"

    def __init__(self, client: httpx.AsyncClient, settings: Config):
        self._client = client
        self._settings = settings

    def window_starts(self, anchor: datetime) -> List[datetime]:
        """Window start times, newest first, ending at the boundary at or before ``anchor``"""
        span = timedelta(hours=self._settings.series_window_hours)
        seconds = span.total_seconds()
        epoch = self._settings.localize(anchor).timestamp()
        start = datetime.fromtimestamp(epoch - epoch % seconds, tz=self._settings.tzinfo)
        return [start - i * span for i in range(self._settings.series_window_count)]

    async def load_series(self, station_id: str, anchor: datetime) -> List[Observation]:
        """Observations for the trailing period, oldest first.

        Any failed window fails the whole call; the other in-flight windows are
        cancelled and nothing partial is returned.
        """
        starts = self.window_starts(anchor)
        logger.info(f"Loading {len(starts)} windows for station {station_id} from {starts[-1].isoformat()}")

        tasks = [asyncio.ensure_future(self._load_window(station_id, start)) for start in starts]
        try:
            windows = await asyncio.gather(*tasks)
        except BaseException as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Failed to load series for station {station_id}: {str(e)}")
            raise

        series = merge_windows(windows, self._settings.series_max_samples)
        logger.info(f"Loaded {len(series)} observations for station {station_id}")
        return series

    async def _load_window(self, station_id: str, start: datetime) -> List[Observation]:
        path = self.WINDOW_PATH.format(station_id=station_id, window=start.strftime("%Y%m%d_%H"))
        url = build_url(self._settings.base_url, path)
        document = await fetch_object_map(self._client, url)
        return parse_window(station_id, document, self._settings)


def parse_window(station_id: str, document: Dict[str, Dict[str, Any]], settings: Config) -> List[Observation]:
    observations = []
    for key, fields in document.items():
        try:
            timestamp = datetime.strptime(key, "%Y%m%d%H%M%S").replace(tzinfo=settings.tzinfo)
        except ValueError as e:
            raise ParseError(f"Invalid timestamp key {key!r} for station {station_id}") from e
        observations.append(build_observation(station_id, timestamp, fields))
    return observations


def merge_windows(windows: Iterable[Sequence[Observation]], limit: int) -> List[Observation]:
    """Flatten, dedupe on (station, timestamp), sort ascending and keep the newest ``limit``"""
    merged: Dict[Any, Observation] = {}
    for window in windows:
        for observation in window:
            merged[observation.key] = observation
    series = sorted(merged.values(), key=lambda observation: observation.timestamp)
    if limit <= 0:
        return []
    return series[-limit:]


def hourly_rows(series: Sequence[Observation], limit: int = 24) -> List[Observation]:
    """On-the-hour samples, newest first"""
    return [observation for observation in reversed(series) if observation.is_on_the_hour][:limit]


def elements_present(series: Iterable[Observation]) -> List[Element]:
    """Elements with valid data anywhere in the series, in display order"""
    series = list(series)
    return [element for element in Element if any(has_valid_data(observation, element) for observation in series)]
