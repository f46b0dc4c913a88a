# skyphase/sun_utils.py
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Union

from astral import Depression, LocationInfo
from astral import sun as astral_sun

from skyphase.utils import InstantLike, get_zone, normalize_azimuth, to_instant

logger = logging.getLogger("skyphase")

# local clock times used when the ephemeris has no answer for the day
FALLBACK_CLOCK = {
    "sunrise": time(6, 0),
    "sunset": time(18, 0),
    "solar_noon": time(12, 0),
    "dawn": time(5, 30),
    "dusk": time(18, 30),
    "nautical_dawn": time(5, 0),
    "nautical_dusk": time(19, 0),
    "astronomical_dawn": time(5, 0),
    "astronomical_dusk": time(19, 0),
}

NAUTICAL_TO_ASTRONOMICAL = timedelta(minutes=60)
SUN_TO_ASTRONOMICAL = timedelta(minutes=90)
DAWN_WINDOW = timedelta(hours=1)
EVENING_WINDOW = timedelta(hours=1)

# calendar date used when the requested day itself is unusable
EPOCH_DAY = date(1970, 1, 1)


class TimeOfDay(str, Enum):
    NIGHT = "night"
    ASTRONOMICAL_TWILIGHT = "astronomical-twilight"
    NAUTICAL_TWILIGHT = "nautical-twilight"
    CIVIL_TWILIGHT = "civil-twilight"
    DAWN = "dawn"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    DUSK = "dusk"


TIME_OF_DAY_LABELS: Dict[TimeOfDay, str] = {
    TimeOfDay.NIGHT: "Night",
    TimeOfDay.ASTRONOMICAL_TWILIGHT: "Astronomical Twilight",
    TimeOfDay.NAUTICAL_TWILIGHT: "Nautical Twilight",
    TimeOfDay.CIVIL_TWILIGHT: "Civil Twilight",
    TimeOfDay.DAWN: "Dawn",
    TimeOfDay.MORNING: "Morning",
    TimeOfDay.MIDDAY: "Midday",
    TimeOfDay.AFTERNOON: "Afternoon",
    TimeOfDay.EVENING: "Evening",
    TimeOfDay.DUSK: "Dusk",
}


@dataclass(frozen=True)
class SunPosition:
    azimuth: float  # degrees clockwise from north, [0, 360)
    altitude: float  # degrees above the horizon, [-90, 90]


@dataclass(frozen=True)
class SunTimes:
    """The nine solar events of one local calendar day."""

    sunrise: datetime
    sunset: datetime
    solar_noon: datetime
    dawn: datetime  # civil
    dusk: datetime  # civil
    nautical_dawn: datetime
    nautical_dusk: datetime
    astronomical_dawn: datetime
    astronomical_dusk: datetime


@dataclass(frozen=True)
class RelevantTwilight:
    kind: str  # "dawn" or "dusk"
    civil: datetime
    nautical: datetime
    astronomical: datetime


def _observer(latitude: float, longitude: float):
    return LocationInfo(latitude=latitude, longitude=longitude).observer


def get_sun_position(when: InstantLike, latitude: float, longitude: float) -> SunPosition:
    """sun azimuth/altitude in degrees; NaN fields when the instant is invalid"""
    instant = to_instant(when)
    if instant is None:
        return SunPosition(azimuth=float("nan"), altitude=float("nan"))

    utc = instant.astimezone(timezone.utc)
    obs = _observer(latitude, longitude)
    azimuth = normalize_azimuth(astral_sun.azimuth(obs, utc))
    altitude = astral_sun.elevation(obs, utc)
    return SunPosition(azimuth=azimuth, altitude=altitude)


def _local_day(day: InstantLike, zone: tzinfo) -> Optional[date]:
    if isinstance(day, date) and not isinstance(day, datetime):
        return day
    instant = to_instant(day)
    if instant is None:
        return None
    return instant.astimezone(zone).date()


def _shift(value: Optional[datetime], delta: timedelta) -> Optional[datetime]:
    return value + delta if value is not None else None


def _first_valid(candidates: Iterable[Optional[datetime]]) -> Optional[datetime]:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def get_sun_times(
    day: InstantLike,
    latitude: float,
    longitude: float,
    tz: Union[str, tzinfo, None] = "UTC",
) -> SunTimes:
    """
    sunrise, sunset, solar noon and the three dawn/dusk pairs for the local
    calendar day of `day` in `tz`.

    Any event the sun never reaches that day (polar summer/winter) is
    replaced by a fixed local clock time. Astronomical dawn/dusk fall back
    through nautical twilight -/+ 60 min and sunrise/sunset -/+ 90 min
    before using the fixed time. Never raises.
    """
    zone = get_zone(tz)
    target = _local_day(day, zone)
    raw: Dict[str, Optional[datetime]] = dict.fromkeys(FALLBACK_CLOCK)

    if target is None:
        logger.debug("invalid day %r, using fixed fallbacks on %s", day, EPOCH_DAY)
        target = EPOCH_DAY
    else:
        obs = _observer(latitude, longitude)

        def attempt(name: str, func: Callable[..., datetime], **kwargs) -> Optional[datetime]:
            # astral raises ValueError when the sun never reaches the angle
            try:
                return func(obs, date=target, tzinfo=zone, **kwargs)
            except ValueError as e:
                logger.debug("%s undefined on %s at %.4f,%.4f: %s", name, target, latitude, longitude, e)
                return None

        raw.update(
            sunrise=attempt("sunrise", astral_sun.sunrise),
            sunset=attempt("sunset", astral_sun.sunset),
            solar_noon=attempt("solar_noon", astral_sun.noon),
            dawn=attempt("dawn", astral_sun.dawn, depression=Depression.CIVIL),
            dusk=attempt("dusk", astral_sun.dusk, depression=Depression.CIVIL),
            nautical_dawn=attempt("nautical_dawn", astral_sun.dawn, depression=Depression.NAUTICAL),
            nautical_dusk=attempt("nautical_dusk", astral_sun.dusk, depression=Depression.NAUTICAL),
            astronomical_dawn=attempt("astronomical_dawn", astral_sun.dawn, depression=Depression.ASTRONOMICAL),
            astronomical_dusk=attempt("astronomical_dusk", astral_sun.dusk, depression=Depression.ASTRONOMICAL),
        )

    def fixed(name: str) -> datetime:
        return datetime.combine(target, FALLBACK_CLOCK[name], tzinfo=zone)

    resolved = {name: _first_valid([value, fixed(name)]) for name, value in raw.items()}

    resolved["astronomical_dawn"] = _first_valid([
        raw["astronomical_dawn"],
        _shift(raw["nautical_dawn"], -NAUTICAL_TO_ASTRONOMICAL),
        _shift(raw["sunrise"], -SUN_TO_ASTRONOMICAL),
        fixed("astronomical_dawn"),
    ])
    resolved["astronomical_dusk"] = _first_valid([
        raw["astronomical_dusk"],
        _shift(raw["nautical_dusk"], NAUTICAL_TO_ASTRONOMICAL),
        _shift(raw["sunset"], SUN_TO_ASTRONOMICAL),
        fixed("astronomical_dusk"),
    ])

    return SunTimes(**resolved)


def get_time_of_day(when: InstantLike, sun_times: SunTimes) -> TimeOfDay:
    """
    classify an instant against one day's solar events.
    upper bounds are exclusive, so an instant equal to a boundary belongs
    to the later phase. the invalid instant is night.
    """
    now = to_instant(when)
    if now is None:
        return TimeOfDay.NIGHT

    t = sun_times
    if now < t.astronomical_dawn:
        return TimeOfDay.NIGHT
    if now < t.nautical_dawn:
        return TimeOfDay.ASTRONOMICAL_TWILIGHT
    if now < t.dawn:
        return TimeOfDay.NAUTICAL_TWILIGHT
    if now < t.sunrise:
        return TimeOfDay.CIVIL_TWILIGHT
    if now < t.sunrise + DAWN_WINDOW:
        return TimeOfDay.DAWN

    morning = t.sunrise + (t.solar_noon - t.sunrise) / 2
    afternoon = t.solar_noon + (t.sunset - t.solar_noon) / 2

    if now < morning:
        return TimeOfDay.MORNING
    if now < afternoon:
        return TimeOfDay.MIDDAY
    if now < t.sunset - EVENING_WINDOW:
        return TimeOfDay.AFTERNOON
    if now < t.sunset:
        return TimeOfDay.EVENING
    if now < t.dusk:
        return TimeOfDay.CIVIL_TWILIGHT
    if now < t.nautical_dusk:
        return TimeOfDay.NAUTICAL_TWILIGHT
    if now < t.astronomical_dusk:
        return TimeOfDay.ASTRONOMICAL_TWILIGHT

    return TimeOfDay.NIGHT


def get_relevant_twilight(when: InstantLike, sun_times: SunTimes) -> RelevantTwilight:
    """dawn set while it is night, otherwise the dusk set"""
    now = to_instant(when)
    is_night = now is not None and (now < sun_times.astronomical_dawn or now > sun_times.astronomical_dusk)

    if is_night:
        return RelevantTwilight(
            kind="dawn",
            civil=sun_times.dawn,
            nautical=sun_times.nautical_dawn,
            astronomical=sun_times.astronomical_dawn,
        )
    return RelevantTwilight(
        kind="dusk",
        civil=sun_times.dusk,
        nautical=sun_times.nautical_dusk,
        astronomical=sun_times.astronomical_dusk,
    )


def get_time_of_day_label(time_of_day) -> str:
    try:
        return TIME_OF_DAY_LABELS[TimeOfDay(time_of_day)]
    except ValueError:
        return "Unknown"
