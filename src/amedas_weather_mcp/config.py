from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    base_url: str = "https://www.jma.go.jp/bosai/amedas"
    timezone: str = "Asia/Tokyo"
    request_timeout: float = 10.0
    series_window_count: int = 9
    series_window_hours: int = 3
    series_max_samples: int = 144
    port: int = 8001
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def localize(self, timestamp: datetime) -> datetime:
        """Express a timestamp in the fixed zone; naive values are taken as already in it"""
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=self.tzinfo)
        return timestamp.astimezone(self.tzinfo)


config = Config()
