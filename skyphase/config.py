import logging
import os

logger = logging.getLogger("skyphase")


def _env_number(name, default, cast=float):
    """numeric env override; unreadable values keep the default"""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("ignoring %s=%r, using %r", name, raw, default)
        return default


# fallback observer when no location is given (New York)
DEFAULT_LATITUDE = _env_number("SKYPHASE_LATITUDE", 40.7128)
DEFAULT_LONGITUDE = _env_number("SKYPHASE_LONGITUDE", -74.0060)
DEFAULT_TIMEZONE = os.environ.get("SKYPHASE_TIMEZONE", "America/New_York")

WEATHER_API_URL = os.environ.get("SKYPHASE_WEATHER_URL", "https://api.open-meteo.com/v1/forecast")
REQUEST_TIMEOUT = _env_number("SKYPHASE_REQUEST_TIMEOUT", 10.0)

WEATHER_CACHE_MINUTES = _env_number("SKYPHASE_WEATHER_CACHE_MINUTES", 30, cast=int)
# ~1km, moving further than this invalidates the cached reading
WEATHER_CACHE_TOLERANCE = 0.01
WEATHER_CACHE_PATH = os.environ.get("SKYPHASE_WEATHER_CACHE_PATH", "")

# when true the provider reads data/open_meteo_sample.json instead of the network
OFFLINE_TESTING = os.environ.get("SKYPHASE_OFFLINE", "").lower() in ("1", "true", "yes")

LOG_FILE = os.environ.get("SKYPHASE_LOG_FILE", "output.log")
