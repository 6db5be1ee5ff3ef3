"""
Station profiles for the simulated broadcasts.

    JJY 60 kHz  (Hagane-yama)      20000 Hz audio carrier, HIGH-first pulses
    JJY 40 kHz  (Otakadoya-yama)   13333 Hz audio carrier, HIGH-first pulses
    WWVB 60 kHz (Fort Collins)     20000 Hz audio carrier, LOW-first pulses + BPSK
"""

from typing import Union

from ..interfaces.synthesis_state import Station, StationProfile
from .symbol_table import JJY_LAYOUT, WWVB_LAYOUT, Symbol
from .timecode_constants import (
    JJY_CARRIER_40KHZ,
    JJY_CARRIER_60KHZ,
    JJY_LOW_ATTENUATION,
    MARK_WIDTH,
    ONE_WIDTH,
    WWVB_CARRIER,
    WWVB_LOW_ATTENUATION,
    ZERO_WIDTH,
)

# HIGH-first: a marker is the shortest pulse
JJY_WIDTHS = {
    Symbol.MARK: MARK_WIDTH,
    Symbol.ONE: ONE_WIDTH,
    Symbol.ZERO: ZERO_WIDTH,
}

# LOW-first: the carrier reduction is the pulse, so a marker is the longest
WWVB_WIDTHS = {
    Symbol.MARK: ZERO_WIDTH,
    Symbol.ONE: ONE_WIDTH,
    Symbol.ZERO: MARK_WIDTH,
}

JJY_60KHZ = StationProfile(
    station=Station.JJY,
    label="JJY 60 kHz",
    layout=JJY_LAYOUT,
    carrier_hz=JJY_CARRIER_60KHZ,
    low_attenuation=JJY_LOW_ATTENUATION,
    leading_high=True,
    widths=JJY_WIDTHS,
)

JJY_40KHZ = StationProfile(
    station=Station.JJY,
    label="JJY 40 kHz",
    layout=JJY_LAYOUT,
    carrier_hz=JJY_CARRIER_40KHZ,
    low_attenuation=JJY_LOW_ATTENUATION,
    leading_high=True,
    widths=JJY_WIDTHS,
)

WWVB = StationProfile(
    station=Station.WWVB,
    label="WWVB 60 kHz",
    layout=WWVB_LAYOUT,
    carrier_hz=WWVB_CARRIER,
    low_attenuation=WWVB_LOW_ATTENUATION,
    leading_high=False,
    widths=WWVB_WIDTHS,
    phase_modulated=True,
    fields_in_utc=True,
)


def station_profile(station: Union[str, Station], fukushima: bool = False) -> StationProfile:
    """
    Look up a profile.

    Args:
        station: "jjy" or "wwvb"
        fukushima: Simulate the 40 kHz JJY transmitter (JJY only)
    """
    if not isinstance(station, Station):
        try:
            station = Station(str(station).lower())
        except ValueError:
            choices = ', '.join(s.value for s in Station)
            raise ValueError(f"Unknown station: {station} (choose from {choices})") from None

    if station is Station.WWVB:
        return WWVB
    return JJY_40KHZ if fukushima else JJY_60KHZ
