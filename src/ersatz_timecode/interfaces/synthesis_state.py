"""
Synthesis Data Models

These dataclasses define the contract between the encoder, the waveform
scheduler and the audio sink. StationProfile is a constant description of
one broadcast protocol; SynthesisState is the single mutable value owned by
the scheduler and written only from the audio callback thread.
"""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Dict

from ..timing.calendar_bits import CalendarTimestamp
from ..timing.civil_time import UTC, CivilZone
from ..timing.symbol_table import FrameLayout, Symbol


class Station(str, Enum):
    """Simulated time-signal station."""
    JJY = "jjy"
    WWVB = "wwvb"


@dataclass(frozen=True)
class StationProfile:
    """
    Everything the scheduler needs to know about one protocol.

    ``widths`` give the fraction of each second spent in the leading
    amplitude state: HIGH for JJY, LOW for WWVB.
    """
    station: Station
    label: str
    layout: FrameLayout
    carrier_hz: Fraction
    low_attenuation: float
    leading_high: bool
    widths: Dict[Symbol, Fraction]
    phase_modulated: bool = False
    fields_in_utc: bool = False      # WWVB sends UTC fields, JJY sends civil time

    def timestamp(self, epoch: int, zone: CivilZone) -> CalendarTimestamp:
        """Calendar timestamp for ``epoch`` as this station encodes it."""
        if self.fields_in_utc:
            return CalendarTimestamp.at(epoch, UTC, dst_zone=zone)
        return CalendarTimestamp.at(epoch, zone)

    def to_dict(self) -> dict:
        return {
            'station': self.station.value,
            'label': self.label,
            'carrier_hz': float(self.carrier_hz),
            'low_attenuation': self.low_attenuation,
            'leading_state': 'HIGH' if self.leading_high else 'LOW',
            'widths': {s.name: float(w) for s, w in self.widths.items()},
            'phase_modulated': self.phase_modulated,
        }


@dataclass
class SynthesisState:
    """
    Running position of the sample clock.

    Mutated only by WaveformScheduler.fill().
    """
    timestamp: CalendarTimestamp
    sample_index: int                 # samples already emitted this second
    wt_index: int                     # next wavetable read position
    threshold: int                    # samples of leading state this second
    phase_offset: int = 0             # 0 or the 180° rotation (WWVB)
    seconds_advanced: int = field(default=0)

    def to_dict(self) -> dict:
        return {
            'epoch': self.timestamp.epoch,
            'timestamp': str(self.timestamp),
            'sample_index': self.sample_index,
            'wt_index': self.wt_index,
            'threshold': self.threshold,
            'phase_offset': self.phase_offset,
            'seconds_advanced': self.seconds_advanced,
        }
