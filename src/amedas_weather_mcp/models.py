from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Index 0 is calm; 1..16 run clockwise from north-north-east to north.
WIND_DIRECTIONS = (
    "静穏", "北北東", "北東", "東北東", "東",
    "東南東", "南東", "南南東", "南",
    "南南西", "南西", "西南西", "西",
    "西北西", "北西", "北北西", "北",
)


class Element(str, Enum):
    TEMPERATURE = "temperature"
    PRECIPITATION = "precipitation"
    WIND = "wind"
    SUNSHINE = "sunshine"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    SNOW_DEPTH = "snow_depth"

    @property
    def title(self) -> str:
        return ELEMENT_TITLES[self]

    @property
    def unit(self) -> str:
        return ELEMENT_UNITS[self]

    def next(self) -> "Element":
        """Next element in display order, wrapping around"""
        members = list(Element)
        return members[(members.index(self) + 1) % len(members)]


ELEMENT_TITLES = {
    Element.TEMPERATURE: "気温",
    Element.PRECIPITATION: "降水量",
    Element.WIND: "風向風速",
    Element.SUNSHINE: "日照",
    Element.HUMIDITY: "湿度",
    Element.PRESSURE: "気圧",
    Element.SNOW_DEPTH: "積雪深",
}

ELEMENT_UNITS = {
    Element.TEMPERATURE: "℃",
    Element.PRECIPITATION: "mm/h",
    Element.WIND: "m/s",
    Element.SUNSHINE: "h",
    Element.HUMIDITY: "%",
    Element.PRESSURE: "hPa",
    Element.SNOW_DEPTH: "cm",
}


class Shape(str, Enum):
    CIRCLE = "circle"
    ARROW = "arrow"


class Station(BaseModel):
    model_config = ConfigDict(frozen=True)

    station_id: str
    name_local: str
    name_romanized: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Observation(BaseModel):
    """One timestamped reading at a station.

    Every measurement is optional; ``None`` means the station did not report a
    usable value, which is not the same as a reported zero.
    """

    model_config = ConfigDict(frozen=True)

    station_id: str
    timestamp: datetime
    temperature: Optional[float] = None
    precipitation_1h: Optional[float] = None
    precipitation_10m: Optional[float] = None
    wind_direction: Optional[int] = Field(None, ge=0, le=16)
    wind_speed: Optional[float] = None
    sunshine_1h: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    snow_depth: Optional[float] = None

    @property
    def key(self) -> Tuple[str, datetime]:
        return (self.station_id, self.timestamp)

    @property
    def is_on_the_hour(self) -> bool:
        return self.timestamp.minute == 0

    @property
    def wind_direction_text(self) -> Optional[str]:
        if self.wind_direction is None:
            return None
        return WIND_DIRECTIONS[self.wind_direction]

    def value(self, element: Element) -> Optional[float]:
        """Raw reported value for an element, in the element's unit"""
        if element is Element.TEMPERATURE:
            return self.temperature
        if element is Element.PRECIPITATION:
            return self.precipitation_1h
        if element is Element.WIND:
            return self.wind_speed
        if element is Element.SUNSHINE:
            return self.sunshine_1h
        if element is Element.HUMIDITY:
            return self.humidity
        if element is Element.PRESSURE:
            return self.pressure
        return self.snow_depth

    def text(self, element: Element) -> str:
        value = self.value(element)
        if value is None:
            return "-"
        if element is Element.WIND:
            if self.wind_direction_text is None:
                return "-"
            return f"{self.wind_direction_text} {value:.1f}{element.unit}"
        if element in (Element.HUMIDITY, Element.SNOW_DEPTH):
            return f"{value:.0f}{element.unit}"
        return f"{value:.1f}{element.unit}"


class ClassificationKey(BaseModel):
    """Renderer-facing bucket for one element of one observation"""

    model_config = ConfigDict(frozen=True)

    element: Element
    shape: Shape
    bucket: int = Field(..., ge=0)
    direction: Optional[int] = Field(None, ge=1, le=16)

    @property
    def identifier(self) -> str:
        parts = [self.element.value, self.shape.value]
        if self.direction is not None:
            parts.append(str(self.direction))
        parts.append(str(self.bucket))
        return ":".join(parts)


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    observations: Tuple[Observation, ...]
