from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from amedas_weather_mcp.models import WIND_DIRECTIONS, Element, Observation

JST = ZoneInfo("Asia/Tokyo")


def observation(**fields):
    return Observation(station_id="44132", timestamp=datetime(2023, 6, 19, 3, 0, tzinfo=JST), **fields)


@pytest.mark.parametrize(
    "fields, element, text",
    [
        ({"temperature": 22.5}, Element.TEMPERATURE, "22.5℃"),
        ({"precipitation_1h": 3.2}, Element.PRECIPITATION, "3.2mm/h"),
        ({"precipitation_1h": 0.0}, Element.PRECIPITATION, "0.0mm/h"),
        ({"wind_direction": 10, "wind_speed": 4.1}, Element.WIND, "南西 4.1m/s"),
        ({"wind_direction": 0, "wind_speed": 0.3}, Element.WIND, "静穏 0.3m/s"),
        ({"wind_speed": 4.1}, Element.WIND, "-"),
        ({"sunshine_1h": 0.8}, Element.SUNSHINE, "0.8h"),
        ({"humidity": 65.0}, Element.HUMIDITY, "65%"),
        ({"pressure": 1012.34}, Element.PRESSURE, "1012.3hPa"),
        ({"snow_depth": 12.0}, Element.SNOW_DEPTH, "12cm"),
    ],
)
def test_text(fields, element, text):
    assert observation(**fields).text(element) == text


def test_text_absent_values():
    empty = observation()
    assert [empty.text(element) for element in Element] == ["-"] * len(Element)


def test_wind_direction_text():
    assert len(WIND_DIRECTIONS) == 17
    assert observation(wind_direction=0).wind_direction_text == "静穏"
    assert observation(wind_direction=4).wind_direction_text == "東"
    assert observation(wind_direction=16).wind_direction_text == "北"
    assert observation().wind_direction_text is None


def test_element_next_cycles():
    assert Element.TEMPERATURE.next() is Element.PRECIPITATION
    assert Element.PRESSURE.next() is Element.SNOW_DEPTH
    assert Element.SNOW_DEPTH.next() is Element.TEMPERATURE

    element = Element.WIND
    for _ in Element:
        element = element.next()
    assert element is Element.WIND


def test_element_title_and_unit():
    assert Element.TEMPERATURE.title == "気温"
    assert Element.WIND.title == "風向風速"
    assert Element.SNOW_DEPTH.unit == "cm"


def test_observation_key_and_hour():
    sample = observation(temperature=1.0)
    assert sample.key == ("44132", datetime(2023, 6, 19, 3, 0, tzinfo=JST))
    assert sample.is_on_the_hour
    assert not Observation(station_id="1", timestamp=datetime(2023, 6, 19, 3, 10, tzinfo=JST)).is_on_the_hour
