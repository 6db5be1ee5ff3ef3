"""
Wavetable Synthesizer

Precomputes one period of the audio carrier so that the audio callback
never evaluates a sine. The table length L is the smallest length holding
a whole number of carrier cycles at the sample rate, so back-to-back
repetitions form a continuous tone:

    L * carrier / sample_rate  is an integer

    e.g. 20 kHz at 48 kHz: 20000/48000 = 5/12  ->  L = 12 (5 cycles)

HIGH is full scale, LOW is HIGH scaled by the station's attenuation. For
WWVB a rotation of the read index by ``phase_index`` samples is a 180°
phase reversal (L/2 for odd cycle counts).
"""

import logging
from fractions import Fraction
from typing import Optional, Union

import numpy as np

from .timecode_constants import MAX_WAVETABLE_SIZE

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """A carrier / sample-rate combination the synthesizer cannot honour."""


def wavetable_size(carrier_hz: Union[Fraction, float, int], sample_rate: int,
                   max_size: int = MAX_WAVETABLE_SIZE) -> int:
    """Smallest table length containing a whole number of carrier cycles."""
    ratio = Fraction(carrier_hz) / Fraction(sample_rate)
    if ratio <= 0:
        raise ConfigurationError(f"Carrier must be positive, got {float(carrier_hz)} Hz")
    if ratio >= Fraction(1, 2):
        raise ConfigurationError(
            f"Carrier {float(carrier_hz):.1f} Hz is at or above Nyquist for {sample_rate} Hz")
    size = ratio.denominator
    if size > max_size:
        raise ConfigurationError(
            f"Carrier {float(carrier_hz):.3f} Hz needs a {size}-sample table at "
            f"{sample_rate} Hz (limit {max_size})")
    return size


def half_cycle_rotation(size: int, cycles: int) -> Optional[int]:
    """Read-index rotation equal to a 180° shift, or None if none exists."""
    for rotation in range(size):
        # rotation * cycles / size must be an odd number of half cycles
        if (2 * rotation * cycles) % (2 * size) == size:
            return rotation
    return None


class Wavetable:
    """HIGH/LOW carrier tables plus one-second tiled runs for slicing."""

    def __init__(
        self,
        carrier_hz: Union[Fraction, float, int],
        sample_rate: int,
        low_attenuation: float,
        require_phase_rotation: bool = False,
        dtype=np.float32,
    ):
        """
        Build the tables.

        Args:
            carrier_hz: Audio carrier frequency (exact Fraction preferred)
            sample_rate: Output sample rate in Hz
            low_attenuation: LOW amplitude as a fraction of HIGH
            require_phase_rotation: Fail if no 180° rotation exists (WWVB)
            dtype: Sample type of the tables
        """
        if not 0.0 <= low_attenuation < 1.0:
            raise ConfigurationError(f"LOW attenuation must be in [0, 1), got {low_attenuation}")

        self.carrier_hz = Fraction(carrier_hz)
        self.sample_rate = int(sample_rate)
        self.size = wavetable_size(self.carrier_hz, self.sample_rate)
        self.cycles = int(self.size * self.carrier_hz / self.sample_rate)
        self.low_attenuation = low_attenuation

        self.phase_index = half_cycle_rotation(self.size, self.cycles)
        if require_phase_rotation and self.phase_index is None:
            raise ConfigurationError(
                f"No 180° rotation in a {self.size}-sample table of {self.cycles} cycles")

        cycles_per_sample = float(self.carrier_hz / self.sample_rate)
        n = np.arange(self.size)
        high = np.sin(2.0 * np.pi * cycles_per_sample * n)
        low = high * low_attenuation

        self.dtype = np.dtype(dtype)
        if np.issubdtype(self.dtype, np.integer):
            # Integer sinks get full-scale PCM
            scale = np.iinfo(self.dtype).max
            high = np.round(high * scale)
            low = np.round(low * scale)
        self.high = high.astype(self.dtype)
        self.low = low.astype(self.dtype)

        # Tiled far enough that any in-second span starting at any index is
        # one contiguous slice
        run_length = self.sample_rate + self.size
        self.high_run = np.resize(self.high, run_length)
        self.low_run = np.resize(self.low, run_length)

        for table in (self.high, self.low, self.high_run, self.low_run):
            table.setflags(write=False)

        logger.debug(
            f"Wavetable: {float(self.carrier_hz):.3f} Hz @ {self.sample_rate} Hz, "
            f"{self.size} samples / {self.cycles} cycles, phase index {self.phase_index}")

    def run(self, high: bool) -> np.ndarray:
        return self.high_run if high else self.low_run
