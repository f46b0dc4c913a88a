from __future__ import annotations

import sys
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from skyphase import config  # noqa: E402
from skyphase import provider_om  # noqa: E402
from skyphase.data_store import WeatherCache  # noqa: E402
from skyphase.provider_om import (  # noqa: E402
    WeatherData,
    WeatherType,
    fetch_current_weather,
    map_weather_code,
)

NOW = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)


class _FakeResponse:
    def __init__(self, status_code=200, json_data=None):
        self.status_code = status_code
        self._json_data = json_data or {}

    def json(self):
        return self._json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(SimpleNamespace(url=url, params=params, timeout=timeout))
        if self.error is not None:
            raise self.error
        return self.response


def open_meteo_payload(temperature=17.6, code=61):
    return {"current_weather": {"temperature": temperature, "weathercode": code, "windspeed": 9.0}}


def sample_weather(now=NOW):
    return WeatherData(
        temperature=12,
        weather_type=WeatherType.SNOW,
        weather_description="Snow",
        last_updated=now,
        is_real_weather=True,
    )


class WeatherCodeTable(unittest.TestCase):
    def test_codes(self):
        cases = {
            0: (WeatherType.CLEAR, "Clear sky"),
            1: (WeatherType.CLOUDY, "Mainly clear"),
            2: (WeatherType.CLOUDY, "Partly cloudy"),
            3: (WeatherType.OVERCAST, "Overcast"),
            45: (WeatherType.OVERCAST, "Foggy"),
            51: (WeatherType.RAIN, "Drizzle"),
            63: (WeatherType.RAIN, "Rain"),
            73: (WeatherType.SNOW, "Snow"),
            80: (WeatherType.RAIN, "Rain showers"),
            85: (WeatherType.SNOW, "Snow showers"),
            95: (WeatherType.STORM, "Thunderstorm"),
            120: (WeatherType.CLEAR, "Unknown"),
        }
        for code, expected in cases.items():
            with self.subTest(code=code):
                self.assertEqual(map_weather_code(code), expected)


class WeatherCacheTests(unittest.TestCase):
    def test_hit_within_ttl_and_tolerance(self):
        cache = WeatherCache(ttl=timedelta(minutes=30))
        cache.put(sample_weather().to_dict(), 40.7128, -74.0060, now=NOW)
        hit = cache.get(40.7150, -74.0100, now=NOW + timedelta(minutes=29))
        self.assertEqual(WeatherData.from_dict(hit), sample_weather())

    def test_expired(self):
        cache = WeatherCache(ttl=timedelta(minutes=30))
        cache.put(sample_weather().to_dict(), 40.7128, -74.0060, now=NOW)
        self.assertIsNone(cache.get(40.7128, -74.0060, now=NOW + timedelta(minutes=31)))

    def test_moved_too_far(self):
        cache = WeatherCache()
        cache.put(sample_weather().to_dict(), 40.7128, -74.0060, now=NOW)
        self.assertIsNone(cache.get(40.7328, -74.0060, now=NOW))
        self.assertIsNone(cache.get(40.7128, -73.9800, now=NOW))

    def test_clear(self):
        cache = WeatherCache()
        cache.put(sample_weather().to_dict(), 1.0, 2.0, now=NOW)
        cache.clear()
        self.assertIsNone(cache.get(1.0, 2.0, now=NOW))

    def test_file_persistence(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cache" / "weather.json"
            WeatherCache(path=path).put(sample_weather().to_dict(), 1.0, 2.0, now=NOW)
            self.assertTrue(path.exists())

            restored = WeatherCache(path=path).get(1.0, 2.0, now=NOW + timedelta(minutes=5))
            self.assertEqual(WeatherData.from_dict(restored), sample_weather())

            WeatherCache(path=path).clear()
            self.assertFalse(path.exists())

    def test_corrupt_file_is_a_miss(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "weather.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("skyphase", level="ERROR"):
                self.assertIsNone(WeatherCache(path=path).get(1.0, 2.0, now=NOW))


class FetchCurrentWeather(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.object(config, "OFFLINE_TESTING", False)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_maps_response(self):
        session = _FakeSession(_FakeResponse(json_data=open_meteo_payload(17.6, 61)))
        weather = fetch_current_weather(40.7128, -74.0060, session=session, now=NOW)
        self.assertEqual(weather, WeatherData(18, WeatherType.RAIN, "Rain", NOW, True))

        call = session.calls[0]
        self.assertEqual(call.url, config.WEATHER_API_URL)
        self.assertEqual(call.params["current_weather"], "true")
        self.assertEqual(call.params["latitude"], 40.7128)

    def test_second_call_uses_cache(self):
        cache = WeatherCache()
        session = _FakeSession(_FakeResponse(json_data=open_meteo_payload()))
        first = fetch_current_weather(40.7128, -74.0060, cache=cache, session=session, now=NOW)
        second = fetch_current_weather(
            40.7128, -74.0060, cache=cache, session=session, now=NOW + timedelta(minutes=10)
        )
        self.assertEqual(first, second)
        self.assertEqual(len(session.calls), 1)

    def test_http_error_gives_fallback_and_is_not_cached(self):
        cache = WeatherCache()
        session = _FakeSession(_FakeResponse(status_code=503))
        with self.assertLogs("skyphase", level="ERROR"):
            weather = fetch_current_weather(1.0, 2.0, cache=cache, session=session, now=NOW)
        self.assertFalse(weather.is_real_weather)
        self.assertEqual(weather.temperature, 20)
        self.assertEqual(weather.weather_type, WeatherType.CLEAR)
        self.assertEqual(weather.weather_description, "Weather unavailable")
        self.assertIsNone(cache.get(1.0, 2.0, now=NOW))

    def test_connection_error_gives_fallback(self):
        session = _FakeSession(error=requests.exceptions.ConnectionError("offline"))
        weather = fetch_current_weather(1.0, 2.0, session=session, now=NOW)
        self.assertFalse(weather.is_real_weather)

    def test_malformed_payload_gives_fallback(self):
        session = _FakeSession(_FakeResponse(json_data={"hourly": {}}))
        weather = fetch_current_weather(1.0, 2.0, session=session, now=NOW)
        self.assertFalse(weather.is_real_weather)

    def test_default_transport_is_requests(self):
        response = _FakeResponse(json_data=open_meteo_payload(3.2, 0))
        with mock.patch.object(provider_om.requests, "get", return_value=response) as fake_get:
            weather = fetch_current_weather(1.0, 2.0, now=NOW)
        fake_get.assert_called_once()
        self.assertEqual(weather.weather_type, WeatherType.CLEAR)
        self.assertEqual(weather.temperature, 3)

    def test_offline_sample(self):
        with mock.patch.object(config, "OFFLINE_TESTING", True):
            weather = fetch_current_weather(40.7128, -74.0060, now=NOW)
        self.assertTrue(weather.is_real_weather)
        self.assertEqual(weather.temperature, 26)
        self.assertEqual(weather.weather_description, "Partly cloudy")


if __name__ == "__main__":
    unittest.main(verbosity=2)
