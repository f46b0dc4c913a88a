import argparse
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from skyphase import config
from skyphase import scene
from skyphase.data_store import WeatherCache
from skyphase.moon_utils import get_moon_phase_label, get_moon_position
from skyphase.provider_om import fetch_current_weather
from skyphase.sun_utils import (
    get_relevant_twilight,
    get_sun_position,
    get_sun_times,
    get_time_of_day,
    get_time_of_day_label,
)
from skyphase.utils import Location, format_time, get_zone, is_valid_instant, log, to_instant


def build_sky_report(now, location: Location, tz=None) -> Dict[str, object]:
    """sun, twilight, day phase and moon for one instant at one place"""
    instant = to_instant(now)
    if instant is None:
        raise ValueError(f"invalid instant: {now!r}")
    now = instant
    zone = get_zone(tz)
    lat, lon = location.latitude, location.longitude

    sun_position = get_sun_position(now, lat, lon)
    sun_times = get_sun_times(now, lat, lon, tz=zone)
    time_of_day = get_time_of_day(now, sun_times)
    moon_position = get_moon_position(now, lat, lon)

    logging.info(
        "Report lat=%.4f lon=%.4f at %s: %s, sun alt=%.2f az=%.2f",
        lat, lon, now.isoformat(), time_of_day.value, sun_position.altitude, sun_position.azimuth,
    )

    return {
        "time": now,
        "timezone": zone,
        "location": location,
        "sun_position": sun_position,
        "sun_times": sun_times,
        "time_of_day": time_of_day,
        "time_of_day_label": get_time_of_day_label(time_of_day),
        "relevant_twilight": get_relevant_twilight(now, sun_times),
        "moon_position": moon_position,
        "moon_phase_label": get_moon_phase_label(moon_position.phase),
        "background": scene.get_background_gradient(time_of_day),
        "horizon": scene.get_horizon_svg(time_of_day),
        "sun_color": scene.get_sun_color(sun_position.altitude),
    }


def format_sky_report(report: Dict[str, object]) -> str:
    """render the report as the info panel text"""
    zone = report["timezone"]
    loc = report["location"]
    sun = report["sun_position"]
    times = report["sun_times"]
    moon = report["moon_position"]
    upcoming = report["relevant_twilight"]

    def t(value):
        return format_time(value, zone)

    lines: List[str] = [
        report["time_of_day_label"],
        f"{loc.latitude:.4f}°, {loc.longitude:.4f}°",
        f"Current Time   {report['time'].astimezone(zone).strftime('%I:%M:%S %p').lstrip('0')}",
        f"Sunrise        {t(times.sunrise)}",
        f"Sunset         {t(times.sunset)}",
        "Twilight Times",
        f"  Civil         {t(times.dawn)} - {t(times.dusk)}",
        f"  Nautical      {t(times.nautical_dawn)} - {t(times.nautical_dusk)}",
        f"  Astronomical  {t(times.astronomical_dawn)} - {t(times.astronomical_dusk)}",
        f"Upcoming {upcoming.kind}: civil {t(upcoming.civil)}, nautical {t(upcoming.nautical)}, "
        f"astronomical {t(upcoming.astronomical)}",
        "Sun Position",
        f"  Altitude: {sun.altitude:.2f}°  Azimuth: {sun.azimuth:.2f}°",
        "Moon",
        f"  {report['moon_phase_label']} ({moon.illumination * 100:.0f}% lit), "
        f"altitude {moon.altitude:.2f}° {'visible' if moon.visible else 'below horizon'}",
    ]
    weather = report.get("weather")
    if weather is not None:
        source = "" if weather.is_real_weather else " (fallback)"
        lines.append(f"Weather        {weather.temperature}°C {weather.weather_description}{source}")
    return "\n".join(lines)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="skyphase", description="sun, moon and time-of-day for a location")
    parser.add_argument("--lat", type=float, default=config.DEFAULT_LATITUDE)
    parser.add_argument("--lon", type=float, default=config.DEFAULT_LONGITUDE)
    parser.add_argument("--location", default=None, help="'lat,lon', overrides --lat/--lon")
    parser.add_argument("--tz", default=config.DEFAULT_TIMEZONE, help="IANA zone name for displayed times")
    parser.add_argument("--at", default=None, help="ISO-8601 instant, defaults to now")
    parser.add_argument("--weather", action="store_true", help="also fetch current weather")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """build one report for the configured (or given) location and print it"""
    logging.basicConfig(
        filename=config.LOG_FILE,
        level=logging.INFO,
        format="%(asctime)s: %(levelname)s: %(message)s",
    )
    args = _parse_args(argv)

    now = datetime.now(timezone.utc)
    if args.at and is_valid_instant(args.at):
        now = to_instant(args.at)
    elif args.at:
        log(f"could not read time '{args.at}', using now")

    location = Location.parse(args.location) if args.location else Location(args.lat, args.lon)
    log(f"building sky report lat={location.latitude} lon={location.longitude} tz={args.tz}")
    report = build_sky_report(now, location, tz=args.tz)

    if args.weather:
        cache = WeatherCache(path=config.WEATHER_CACHE_PATH or None)
        report["weather"] = fetch_current_weather(location.latitude, location.longitude, cache=cache)

    print(format_sky_report(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
