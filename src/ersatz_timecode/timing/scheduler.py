#!/usr/bin/env python3
"""
Sample Clock / Waveform Scheduler

================================================================================
PURPOSE
================================================================================
Turn the per-second symbol stream into a continuous carrier, one audio
callback at a time. The scheduler is called from the audio sink's real-time
thread with a buffer of arbitrary length and must fill all of it without
blocking.

================================================================================
TIMING WITHIN ONE SECOND
================================================================================
    sample 0          phase_delay        threshold             sample_rate
    │                 │ (WWVB: 100 ms)   │                     │
    ├─────────────────┼──────────────────┼─────────────────────┤
    │ leading state (HIGH for JJY, LOW for WWVB) │ trailing state │

    threshold = width(symbol) * sample_rate, fixed for the whole second
    phase_delay: WWVB only; the wavetable read index is reset to 0 or to the
                 180° rotation according to the phase bit of the second

A fill() call is split into segments at these three boundaries. Each segment
is a single slice copy from a pre-tiled wavetable run, so the per-sample
work is done by numpy and the protocol is consulted once per boundary:

    - at sample_rate: timestamp = epoch + 1, new threshold from the
      Second Symbol Table
    - at phase_delay (WWVB): one Phase-Overlay lookup

Nothing is iterated per elapsed second; a buffer spanning several seconds
simply crosses several boundaries.
"""

import logging
import time
from typing import Optional

import numpy as np

from ..interfaces.synthesis_state import StationProfile, SynthesisState
from .calendar_bits import CalendarTimestamp
from .civil_time import CivilZone
from .phase_overlay import phase_symbol
from .timecode_constants import NANOSECONDS_PER_SECOND, PHASE_SHIFT_DELAY
from .wavetable import ConfigurationError, Wavetable

logger = logging.getLogger(__name__)


class WaveformScheduler:
    """Owns the SynthesisState and renders audio from it."""

    def __init__(
        self,
        profile: StationProfile,
        wavetable: Wavetable,
        timestamp: CalendarTimestamp,
        sample_index: int = 0,
        wt_index: Optional[int] = None,
    ):
        """
        Initialize the sample clock.

        Args:
            profile: Station protocol description
            wavetable: Precomputed carrier tables at the output sample rate
            timestamp: Calendar second being emitted
            sample_index: Samples of that second already elapsed
            wt_index: Wavetable position (default: aligned to sample_index)
        """
        self.profile = profile
        self.wavetable = wavetable
        self.sample_rate = wavetable.sample_rate

        self.thresholds = {}
        for symbol, width in profile.widths.items():
            samples = width * self.sample_rate
            if samples.denominator != 1:
                raise ConfigurationError(
                    f"{self.sample_rate} Hz cannot represent a {float(width):.1f} s pulse exactly")
            self.thresholds[symbol] = int(samples)

        self.phase_delay: Optional[int] = None
        if profile.phase_modulated:
            if wavetable.phase_index is None:
                raise ConfigurationError(
                    f"{profile.label} needs a wavetable with a 180° rotation")
            delay = PHASE_SHIFT_DELAY * self.sample_rate
            if delay.denominator != 1:
                raise ConfigurationError(
                    f"{self.sample_rate} Hz cannot place the phase shift exactly")
            self.phase_delay = int(delay)

        if not 0 <= sample_index < self.sample_rate:
            raise ValueError(f"sample_index must be in [0, {self.sample_rate}), got {sample_index}")
        if wt_index is None:
            wt_index = sample_index % wavetable.size

        self._lead = wavetable.run(profile.leading_high)
        self._trail = wavetable.run(not profile.leading_high)

        self.state = SynthesisState(
            timestamp=timestamp,
            sample_index=sample_index,
            wt_index=wt_index % wavetable.size,
            threshold=self.threshold_for(timestamp),
        )

    @classmethod
    def from_clock(
        cls,
        profile: StationProfile,
        wavetable: Wavetable,
        zone: CivilZone,
        now_ns: Optional[int] = None,
    ) -> 'WaveformScheduler':
        """
        Start the sample clock at the current (or given) absolute time.

        The sub-second part of ``now_ns`` sets the in-second sample index so
        the first emitted sample lines up with true time.
        """
        if now_ns is None:
            now_ns = time.time_ns()
        epoch, nsec = divmod(int(now_ns), NANOSECONDS_PER_SECOND)
        sample_index = nsec * wavetable.sample_rate // NANOSECONDS_PER_SECOND
        timestamp = profile.timestamp(epoch, zone)
        logger.debug(f"Sample clock start: {timestamp} + {sample_index} samples")
        return cls(profile, wavetable, timestamp, sample_index=sample_index)

    def threshold_for(self, ts: CalendarTimestamp) -> int:
        """Samples of leading amplitude state for the second of ``ts``."""
        return self.thresholds[self.profile.layout.symbol(ts)]

    @property
    def timestamp(self) -> CalendarTimestamp:
        return self.state.timestamp

    def fill(self, out: np.ndarray) -> None:
        """
        Write len(out) consecutive samples into ``out``.

        ``out`` is either 1-D (frames) or 2-D (frames, channels); every
        channel receives the same signal.
        """
        st = self.state
        size = self.wavetable.size
        rate = self.sample_rate
        phase_delay = self.phase_delay
        stereo = out.ndim == 2
        n = out.shape[0]
        pos = 0

        while pos < n:
            idx = st.sample_index
            if idx == phase_delay:
                self._apply_phase()

            if idx < st.threshold:
                run, boundary = self._lead, st.threshold
            else:
                run, boundary = self._trail, rate
            if phase_delay is not None and idx < phase_delay < boundary:
                boundary = phase_delay

            count = min(n - pos, boundary - idx)
            segment = run[st.wt_index:st.wt_index + count]
            if stereo:
                out[pos:pos + count] = segment[:, np.newaxis]
            else:
                out[pos:pos + count] = segment

            pos += count
            st.wt_index = (st.wt_index + count) % size
            st.sample_index = idx + count
            if st.sample_index >= rate:
                self._next_second()

    def advance(self, n_frames: int) -> np.ndarray:
        """Render ``n_frames`` mono samples into a new array."""
        if n_frames < 1:
            raise ValueError(f"n_frames must be >= 1, got {n_frames}")
        out = np.empty(n_frames, dtype=self.wavetable.dtype)
        self.fill(out)
        return out

    def _apply_phase(self) -> None:
        st = self.state
        st.phase_offset = self.wavetable.phase_index if phase_symbol(st.timestamp) else 0
        st.wt_index = st.phase_offset

    def _next_second(self) -> None:
        st = self.state
        st.timestamp = st.timestamp.next_second()
        st.sample_index = 0
        st.threshold = self.threshold_for(st.timestamp)
        st.seconds_advanced += 1
