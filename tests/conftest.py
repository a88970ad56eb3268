import pytest

from amedas_weather_mcp.config import Config

BASE_URL = "https://www.jma.go.jp/bosai/amedas"


@pytest.fixture
def settings():
    return Config(base_url=BASE_URL, timezone="Asia/Tokyo")
