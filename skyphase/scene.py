"""Presentation lookups derived from the time of day and sun position."""
from typing import Dict, Tuple

from skyphase.sun_utils import SunPosition, TimeOfDay

BACKGROUND_GRADIENTS: Dict[TimeOfDay, str] = {
    TimeOfDay.NIGHT: "linear-gradient(to bottom, #0F1016 0%, #1A1F2C 100%)",
    TimeOfDay.ASTRONOMICAL_TWILIGHT: "linear-gradient(to bottom, #1A1F2C 0%, #221F26 100%)",
    TimeOfDay.NAUTICAL_TWILIGHT: "linear-gradient(to bottom, #221F26 0%, #403E43 100%)",
    TimeOfDay.CIVIL_TWILIGHT: "linear-gradient(to bottom, #403E43 0%, #E5DEFF 100%)",
    TimeOfDay.DAWN: "linear-gradient(180deg, #F97316 0%, #FEC6A1 100%)",
    TimeOfDay.MORNING: "linear-gradient(to bottom, #FEC6A1 0%, #33C3F0 100%)",
    TimeOfDay.MIDDAY: "linear-gradient(to bottom, #0EA5E9 0%, #33C3F0 100%)",
    TimeOfDay.AFTERNOON: "linear-gradient(to bottom, #33C3F0 0%, #FEC6A1 100%)",
    TimeOfDay.EVENING: "linear-gradient(180deg, #FEC6A1 0%, #F97316 100%)",
    TimeOfDay.DUSK: "linear-gradient(to bottom, #ea384c 0%, #E5DEFF 100%)",
}

DARK_PHASES = (
    TimeOfDay.NIGHT,
    TimeOfDay.ASTRONOMICAL_TWILIGHT,
    TimeOfDay.NAUTICAL_TWILIGHT,
)

HORIZON_FRACTION = 0.6  # horizon line, fraction of viewport height
SCREEN_MARGIN = 30  # px kept between the sun and the top/bottom edges


def get_background_gradient(time_of_day) -> str:
    try:
        return BACKGROUND_GRADIENTS[TimeOfDay(time_of_day)]
    except ValueError:
        return BACKGROUND_GRADIENTS[TimeOfDay.MIDDAY]


def get_horizon_svg(time_of_day) -> str:
    if time_of_day in DARK_PHASES:
        return "/mountain-night.svg"
    return "/mountain-day.svg"


def get_sun_screen_point(position: SunPosition, width: float, height: float) -> Tuple[float, float]:
    """
    place the sun in a width x height viewport.
    altitude -30..90 maps upward from the horizon over 80% of the height,
    azimuth 0..360 maps left to right. y is clamped so the disk stays on screen.
    """
    if width == 0 or height == 0:
        return 0.0, 0.0

    horizon_y = height * HORIZON_FRACTION
    altitude_normalized = (position.altitude + 30) / 120
    y = horizon_y - altitude_normalized * height * 0.8
    x = width * (position.azimuth / 360)
    return x, max(SCREEN_MARGIN, min(height - SCREEN_MARGIN, y))


def get_sun_color(altitude: float) -> str:
    if altitude > 10:
        return "yellow"
    if altitude > 0:
        return "orange"
    return "amber"
