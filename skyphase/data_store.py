import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import RLock
from typing import Optional, Union

from skyphase import config
from skyphase.utils import to_instant

logger = logging.getLogger("skyphase")


class WeatherCache:
    """
    last weather reading (a plain dict) keyed by location, owned by the caller.
    a reading is served while it is younger than `ttl` and the requested
    location is within `tolerance` degrees of where it was taken.
    with `path` set the entry also survives restarts as a small json file.
    """

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        tolerance: float = config.WEATHER_CACHE_TOLERANCE,
        path: Union[str, Path, None] = None,
    ):
        self.ttl = ttl if ttl is not None else timedelta(minutes=config.WEATHER_CACHE_MINUTES)
        self.tolerance = tolerance
        self.path = Path(path) if path else None
        self._entry: Optional[dict] = None
        self._lock = RLock()

    def get(self, latitude: float, longitude: float, now: Optional[datetime] = None) -> Optional[dict]:
        now = to_instant(now) or datetime.now(timezone.utc)
        with self._lock:
            entry = self._entry if self._entry is not None else self._read()
            if entry is None:
                return None

            if now - entry["timestamp"] > self.ttl:
                logger.info("weather cache expired (stored %s)", entry["timestamp"].isoformat())
                return None
            if (
                abs(entry["latitude"] - latitude) > self.tolerance
                or abs(entry["longitude"] - longitude) > self.tolerance
            ):
                logger.info("weather cache location mismatch, ignoring")
                return None

            return dict(entry["data"])

    def put(self, data: dict, latitude: float, longitude: float, now: Optional[datetime] = None) -> None:
        now = to_instant(now) or datetime.now(timezone.utc)
        with self._lock:
            self._entry = {
                "data": dict(data),
                "timestamp": now,
                "latitude": latitude,
                "longitude": longitude,
            }
            self._write()

    def clear(self) -> None:
        with self._lock:
            self._entry = None
            if self.path is not None and self.path.exists():
                try:
                    self.path.unlink()
                except OSError as e:
                    logger.error("could not remove weather cache %s: %s", self.path, e)
        logger.info("weather cache cleared")

    def _read(self) -> Optional[dict]:
        if self.path is None or not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            entry = {
                "data": raw["data"],
                "timestamp": datetime.fromisoformat(raw["timestamp"]),
                "latitude": float(raw["latitude"]),
                "longitude": float(raw["longitude"]),
            }
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("error reading weather cache %s: %s", self.path, e)
            return None
        self._entry = entry
        return entry

    def _write(self) -> None:
        if self.path is None:
            return
        entry = dict(self._entry)
        entry["timestamp"] = entry["timestamp"].isoformat()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(entry, f, indent=4, default=str)
        except (OSError, TypeError) as e:
            logger.error("error caching weather data to %s: %s", self.path, e)
