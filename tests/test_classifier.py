import math
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from amedas_weather_mcp.classifier import (
    all_classification_keys,
    classify,
    classify_value,
    has_valid_data,
    rank_observations,
)
from amedas_weather_mcp.models import ClassificationKey, Element, Observation, Shape

JST = ZoneInfo("Asia/Tokyo")
NOW = datetime(2023, 6, 19, 3, 0, tzinfo=JST)


def observation(station_id="44132", **fields):
    return Observation(station_id=station_id, timestamp=NOW, **fields)


@pytest.mark.parametrize(
    "element, value, bucket",
    [
        (Element.TEMPERATURE, 34.999, 8),
        (Element.TEMPERATURE, 35.0, 9),
        (Element.TEMPERATURE, -10.0, 1),
        (Element.TEMPERATURE, -10.001, 0),
        (Element.TEMPERATURE, -40.0, 0),
        (Element.TEMPERATURE, 22.5, 6),
        (Element.PRECIPITATION, 0.0, 0),
        (Element.PRECIPITATION, 0.999, 0),
        (Element.PRECIPITATION, 1.0, 1),
        (Element.PRECIPITATION, 120.0, 4),
        (Element.WIND, 24.999, 4),
        (Element.WIND, 25.0, 5),
        (Element.SUNSHINE, 60.0, 2),
        (Element.SUNSHINE, 19.999, 0),
        (Element.HUMIDITY, 100.0, 2),
        (Element.HUMIDITY, 49.999, 0),
        (Element.HUMIDITY, 50.0, 1),
        (Element.PRESSURE, 1013.2, 0),
        (Element.SNOW_DEPTH, 4.9, 0),
        (Element.SNOW_DEPTH, 300.0, 7),
    ],
)
def test_classify_value_boundaries(element, value, bucket):
    assert classify_value(element, value) == bucket


@pytest.mark.parametrize(
    "element, value",
    [
        (Element.TEMPERATURE, None),
        (Element.TEMPERATURE, math.nan),
        (Element.PRECIPITATION, -0.5),
        (Element.SUNSHINE, 60.5),
        (Element.HUMIDITY, 100.1),
        (Element.WIND, math.inf),
    ],
)
def test_classify_value_no_data(element, value):
    assert classify_value(element, value) is None


def test_sunshine_is_classified_in_minutes():
    assert classify(observation(sunshine_1h=0.3), Element.SUNSHINE).bucket == 0
    assert classify(observation(sunshine_1h=0.5), Element.SUNSHINE).bucket == 1
    assert classify(observation(sunshine_1h=1.0), Element.SUNSHINE).bucket == 2


def test_circle_elements():
    key = classify(observation(temperature=22.5), Element.TEMPERATURE)
    assert key == ClassificationKey(element=Element.TEMPERATURE, shape=Shape.CIRCLE, bucket=6)
    assert key.identifier == "temperature:circle:6"
    assert classify(observation(), Element.TEMPERATURE) is None


def test_wind_arrow_and_calm():
    arrow = classify(observation(wind_direction=8, wind_speed=12.0), Element.WIND)
    assert arrow.shape is Shape.ARROW
    assert arrow.direction == 8
    assert arrow.bucket == 2
    assert arrow.identifier == "wind:arrow:8:2"

    calm = classify(observation(wind_direction=0, wind_speed=0.3), Element.WIND)
    assert calm.shape is Shape.CIRCLE
    assert calm.direction is None
    assert calm.bucket == 0

    assert classify(observation(wind_speed=3.0), Element.WIND) is None
    assert classify(observation(wind_direction=4), Element.WIND) is None


def test_precipitation_zero_classifies_but_is_not_valid_data():
    zero = observation(precipitation_1h=0.0)
    assert classify(zero, Element.PRECIPITATION).bucket == 0
    assert has_valid_data(zero, Element.PRECIPITATION) is False
    assert has_valid_data(observation(precipitation_1h=0.5), Element.PRECIPITATION) is True


def test_has_valid_data():
    assert has_valid_data(observation(temperature=0.0), Element.TEMPERATURE)
    assert not has_valid_data(observation(), Element.HUMIDITY)
    assert has_valid_data(observation(wind_direction=0, wind_speed=0.0), Element.WIND)
    assert not has_valid_data(observation(wind_speed=2.0), Element.WIND)


def test_all_classification_keys():
    keys = all_classification_keys()
    identifiers = [key.identifier for key in keys]

    assert len(keys) == (10 + 5 + 3 + 3 + 1 + 8) + 17 * 6
    assert len(set(identifiers)) == len(identifiers)
    assert identifiers == [key.identifier for key in all_classification_keys()]
    assert "wind:arrow:16:5" in identifiers
    assert "wind:circle:0" in identifiers


def test_every_classified_key_is_enumerated():
    identifiers = {key.identifier for key in all_classification_keys()}
    samples = [
        observation(temperature=-20.0, precipitation_1h=40.0, sunshine_1h=0.9, humidity=80.0, pressure=1000.0, snow_depth=500.0),
        observation(temperature=38.0, precipitation_1h=2.0, sunshine_1h=0.0, humidity=10.0, snow_depth=0.0),
    ]
    samples += [observation(wind_direction=d, wind_speed=float(d * 2)) for d in range(17)]

    for sample in samples:
        for element in Element:
            key = classify(sample, element)
            if key is not None:
                assert key.identifier in identifiers


def test_rank_observations():
    observations = [
        observation("A", temperature=30.1),
        observation("B", temperature=35.2),
        observation("C"),
        observation("D", temperature=30.1),
        observation("E", temperature=-3.0),
    ]
    ranked = rank_observations(observations, Element.TEMPERATURE, limit=3)
    assert [o.station_id for o in ranked] == ["B", "A", "D"]

    rain = rank_observations(
        [observation("A", precipitation_1h=0.0), observation("B", precipitation_1h=1.5)],
        Element.PRECIPITATION,
    )
    assert [o.station_id for o in rain] == ["B"]
