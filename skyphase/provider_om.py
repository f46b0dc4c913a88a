import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

import requests

from skyphase import config
from skyphase.data_store import WeatherCache
from skyphase.utils import to_instant

logger = logging.getLogger("skyphase")


class WeatherType(str, Enum):
    CLEAR = "clear"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    RAIN = "rain"
    SNOW = "snow"
    STORM = "storm"


@dataclass(frozen=True)
class WeatherData:
    temperature: int
    weather_type: WeatherType
    weather_description: str
    last_updated: datetime
    is_real_weather: bool

    def to_dict(self) -> dict:
        d = asdict(self)
        d["weather_type"] = self.weather_type.value
        d["last_updated"] = self.last_updated.isoformat()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "WeatherData":
        return cls(
            temperature=int(d["temperature"]),
            weather_type=WeatherType(d["weather_type"]),
            weather_description=d["weather_description"],
            last_updated=to_instant(d["last_updated"]),
            is_real_weather=bool(d["is_real_weather"]),
        )


def map_weather_code(code: int) -> Tuple[WeatherType, str]:
    """Open-Meteo WMO weather code -> (type, description)"""
    if code == 0:
        return WeatherType.CLEAR, "Clear sky"
    if code <= 3:
        if code == 1:
            return WeatherType.CLOUDY, "Mainly clear"
        if code == 2:
            return WeatherType.CLOUDY, "Partly cloudy"
        return WeatherType.OVERCAST, "Overcast"
    if code <= 48:
        return WeatherType.OVERCAST, "Foggy"
    if code <= 55:
        return WeatherType.RAIN, "Drizzle"
    if code <= 65:
        return WeatherType.RAIN, "Rain"
    if code <= 77:
        return WeatherType.SNOW, "Snow"
    if code <= 82:
        return WeatherType.RAIN, "Rain showers"
    if code <= 86:
        return WeatherType.SNOW, "Snow showers"
    if code <= 99:
        return WeatherType.STORM, "Thunderstorm"
    return WeatherType.CLEAR, "Unknown"


def fallback_weather(now: Optional[datetime] = None) -> WeatherData:
    return WeatherData(
        temperature=20,
        weather_type=WeatherType.CLEAR,
        weather_description="Weather unavailable",
        last_updated=now or datetime.now(timezone.utc),
        is_real_weather=False,
    )


def _om_to_weather(om_json: dict, now: datetime) -> WeatherData:
    current = om_json["current_weather"]
    weather_type, description = map_weather_code(int(current["weathercode"]))
    return WeatherData(
        temperature=int(round(float(current["temperature"]))),
        weather_type=weather_type,
        weather_description=description,
        last_updated=now,
        is_real_weather=True,
    )


def _load_offline(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    logger.info("[provider] offline sample %s keys=%s", path, sorted(data))
    return data


def _request_open_meteo(lat: float, lon: float, session=None) -> dict:
    params = {
        "latitude": lat,
        "longitude": lon,
        "current_weather": "true",
    }
    http = session or requests
    r = http.get(config.WEATHER_API_URL, params=params, timeout=config.REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def fetch_current_weather(
    lat: float,
    lon: float,
    cache: Optional[WeatherCache] = None,
    session=None,
    now: Optional[datetime] = None,
) -> WeatherData:
    """
    current conditions for lat/lon. serves `cache` when it holds a fresh
    reading for (roughly) the same spot; otherwise asks Open-Meteo.
    never raises: any failure yields fallback_weather(), which is not cached.
    """
    now = to_instant(now) or datetime.now(timezone.utc)
    mode = "OFFLINE" if config.OFFLINE_TESTING else "ONLINE"
    logger.info("[provider] mode=%s lat=%.4f lon=%.4f", mode, lat, lon)

    if cache is not None:
        cached = cache.get(lat, lon, now=now)
        if cached is not None:
            logger.info("[provider] using cached weather data")
            return WeatherData.from_dict(cached)

    try:
        if config.OFFLINE_TESTING:
            test_path = os.path.join(os.path.dirname(__file__), "data", "open_meteo_sample.json")
            om_json = _load_offline(test_path)
        else:
            om_json = _request_open_meteo(lat, lon, session=session)
        weather = _om_to_weather(om_json, now)
    except (requests.exceptions.RequestException, OSError, KeyError, TypeError, ValueError) as e:
        logger.error("Open-Meteo fetch failed: %s", e)
        return fallback_weather(now)

    logger.info(
        "[provider] %s %d C (%s)", weather.weather_type.value, weather.temperature, weather.weather_description
    )
    if cache is not None:
        cache.put(weather.to_dict(), lat, lon, now=now)
    return weather
