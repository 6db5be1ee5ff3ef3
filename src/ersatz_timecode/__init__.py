"""
ersatz-timecode: Longwave Time Signal Simulator

This package renders the JJY and WWVB longwave time codes as an audio
waveform. Played through a sound card, the harmonic at the real carrier
frequency is strong enough to set a nearby radio-controlled clock.

Architecture:
    wall clock → WaveformScheduler → sounddevice OutputStream

The scheduler is driven by the audio callback. It consults the per-second
symbol table (and, for WWVB, the phase-overlay encoder) once per second and
otherwise copies precomputed wavetable samples.

Version: 1.0.0
"""

__version__ = "1.0.0"

from .interfaces.synthesis_state import (
    Station,
    StationProfile,
    SynthesisState,
)

__all__ = [
    "Station",
    "StationProfile",
    "SynthesisState",
    "__version__",
]
