# skyphase/moon_utils.py
import math
from dataclasses import dataclass
from datetime import timezone

import ephem
from astral import LocationInfo
from astral import moon

from skyphase.utils import InstantLike, normalize_azimuth, to_instant

# below this altitude the moon is treated as hidden
VISIBLE_ALTITUDE = -6.0

MOON_PHASE_LABELS = [
    (0.03, "New Moon"),
    (0.22, "Waxing Crescent"),
    (0.28, "First Quarter"),
    (0.47, "Waxing Gibbous"),
    (0.53, "Full Moon"),
    (0.72, "Waning Gibbous"),
    (0.78, "Third Quarter"),
    (0.97, "Waning Crescent"),
]


@dataclass(frozen=True)
class MoonPosition:
    azimuth: float
    altitude: float
    phase: float  # 0 new, 0.5 full, wraps at 1
    illumination: float  # lit fraction of the disk, 0..1
    visible: bool


def get_moon_illumination(when):
    """(phase, illuminated fraction) from the moon/sun ecliptic longitude gap"""
    instant = to_instant(when)
    if instant is None:
        return math.nan, math.nan

    stamp = ephem.Date(instant.astimezone(timezone.utc).replace(tzinfo=None))
    m = ephem.Moon(stamp)
    s = ephem.Sun(stamp)

    elongation = float(ephem.Ecliptic(m).lon) - float(ephem.Ecliptic(s).lon)
    phase = (elongation / (2 * math.pi)) % 1.0
    if phase >= 1.0:
        phase = 0.0
    return phase, min(1.0, max(0.0, float(m.moon_phase)))


def get_moon_position(when: InstantLike, latitude: float, longitude: float) -> MoonPosition:
    instant = to_instant(when)
    if instant is None:
        nan = math.nan
        return MoonPosition(azimuth=nan, altitude=nan, phase=nan, illumination=nan, visible=False)

    # astral reads the wall clock fields, so hand it UTC
    utc = instant.astimezone(timezone.utc)
    obs = LocationInfo(latitude=latitude, longitude=longitude).observer
    altitude = moon.elevation(obs, utc)
    phase, illumination = get_moon_illumination(utc)

    return MoonPosition(
        azimuth=normalize_azimuth(moon.azimuth(obs, utc)),
        altitude=altitude,
        phase=phase,
        illumination=illumination,
        visible=altitude > VISIBLE_ALTITUDE,
    )


def get_moon_phase_label(phase):
    for upper, label in MOON_PHASE_LABELS:
        if phase < upper:
            return label
    return "New Moon"
