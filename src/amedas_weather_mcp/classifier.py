"""Value classifier.

Maps an observation's value for one element onto a discrete bucket and wraps
it in a :class:`ClassificationKey` that a renderer can map to a glyph. Nothing
in here performs I/O.
"""

import math
from bisect import bisect_right
from typing import Dict, Iterable, List, NamedTuple, Optional

from amedas_weather_mcp.models import ClassificationKey, Element, Observation, Shape


class BucketTable(NamedTuple):
    """Ascending lower bounds; bucket ``i`` covers ``[lower[i], lower[i + 1])``.

    The last bucket ends at ``upper``, inclusive only when ``upper_inclusive``.
    """

    lower: tuple
    upper: float = math.inf
    upper_inclusive: bool = False

    @property
    def size(self) -> int:
        return len(self.lower)

    def bucket(self, value: float) -> Optional[int]:
        if math.isnan(value) or math.isinf(value):
            return None
        if value > self.upper or (value == self.upper and not self.upper_inclusive):
            return None
        index = bisect_right(self.lower, value) - 1
        if index < 0:
            return None
        return index


BUCKET_TABLES: Dict[Element, BucketTable] = {
    Element.TEMPERATURE: BucketTable((-math.inf, -10, 0, 5, 10, 15, 20, 25, 30, 35)),
    Element.PRECIPITATION: BucketTable((0, 1, 4, 16, 32)),
    Element.WIND: BucketTable((0, 5, 10, 15, 20, 25)),
    Element.SUNSHINE: BucketTable((0, 20, 40), upper=60, upper_inclusive=True),
    Element.HUMIDITY: BucketTable((0, 50, 75), upper=100, upper_inclusive=True),
    Element.PRESSURE: BucketTable((-math.inf,)),
    Element.SNOW_DEPTH: BucketTable((0, 5, 20, 50, 100, 150, 200, 300)),
}

WIND_DIRECTION_COUNT = 17


def shape_for(element: Element) -> Shape:
    return Shape.ARROW if element is Element.WIND else Shape.CIRCLE


def classification_value(observation: Observation, element: Element) -> Optional[float]:
    """Value fed to the bucket table; sunshine is classified in minutes"""
    value = observation.value(element)
    if value is not None and element is Element.SUNSHINE:
        return value * 60
    return value


def classify_value(element: Element, value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return BUCKET_TABLES[element].bucket(value)


def classify(observation: Observation, element: Element) -> Optional[ClassificationKey]:
    """Classification key for one element, or None when there is nothing to draw"""
    bucket = classify_value(element, classification_value(observation, element))
    if bucket is None:
        return None

    if element is not Element.WIND:
        return ClassificationKey(element=element, shape=Shape.CIRCLE, bucket=bucket)

    direction = observation.wind_direction
    if direction is None:
        return None
    return _wind_key(bucket, direction)


def _wind_key(bucket: int, direction: int) -> ClassificationKey:
    # calm has no heading to rotate to
    if direction == 0:
        return ClassificationKey(element=Element.WIND, shape=Shape.CIRCLE, bucket=bucket)
    return ClassificationKey(element=Element.WIND, shape=Shape.ARROW, bucket=bucket, direction=direction)


def has_valid_data(observation: Observation, element: Element) -> bool:
    if element is Element.PRECIPITATION:
        return observation.precipitation_1h is not None and observation.precipitation_1h > 0
    if element is Element.WIND:
        direction = observation.wind_direction
        if direction is None or not 0 <= direction < WIND_DIRECTION_COUNT:
            return False
        return observation.wind_speed is not None
    return observation.value(element) is not None


def all_classification_keys() -> List[ClassificationKey]:
    """Every key the classifier can produce, in a stable order"""
    keys = []
    for element, table in BUCKET_TABLES.items():
        if shape_for(element) is Shape.CIRCLE:
            keys.extend(ClassificationKey(element=element, shape=Shape.CIRCLE, bucket=bucket) for bucket in range(table.size))
        else:
            for direction in range(WIND_DIRECTION_COUNT):
                keys.extend(_wind_key(bucket, direction) for bucket in range(table.size))
    return keys


def rank_observations(observations: Iterable[Observation], element: Element, limit: int = 30) -> List[Observation]:
    """Observations with valid data, highest value first"""
    candidates = [observation for observation in observations if has_valid_data(observation, element)]
    candidates.sort(key=lambda observation: (-observation.value(element), observation.station_id))
    return candidates[:limit]
