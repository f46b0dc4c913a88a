import math
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

InstantLike = Union[datetime, date, str, int, float, None]


# simple run-time status banner
def log(msg):
    now = datetime.now().strftime("%H:%M:%S")
    print(f"[{now}] {msg}")


@dataclass(frozen=True)
class Location:
    """Observer position in decimal degrees (not range checked)."""

    latitude: float
    longitude: float

    @classmethod
    def parse(cls, coords: str) -> "Location":
        """'lat,lon' -> Location, same format as the config file uses"""
        lat, lon = [float(x) for x in coords.split(",")]
        return cls(latitude=lat, longitude=lon)


def get_zone(tz: Union[str, tzinfo, None]) -> tzinfo:
    """str zone name or tzinfo -> tzinfo, None means UTC"""
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def to_instant(value: InstantLike) -> Optional[datetime]:
    """
    coerce anything time-like into an aware datetime.
    naive values are read as UTC. returns None for the invalid instant
    (None, unparseable strings, NaN/inf, out-of-range timestamps).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_instant(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def is_valid_instant(value: InstantLike) -> bool:
    return to_instant(value) is not None


def normalize_azimuth(degrees: float) -> float:
    """fold any angle into [0, 360); NaN stays NaN"""
    result = degrees % 360.0
    # -1e-15 % 360.0 rounds to 360.0
    if result >= 360.0:
        result -= 360.0
    return result


def format_time(value: InstantLike, tz: Union[str, tzinfo, None] = None) -> str:
    """'h:mm AM' in the given zone, 'Unknown' when the instant is invalid"""
    instant = to_instant(value)
    if instant is None:
        return "Unknown"
    if tz is not None:
        instant = instant.astimezone(get_zone(tz))
    return instant.strftime("%I:%M %p").lstrip("0")
