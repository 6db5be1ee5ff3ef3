#!/usr/bin/env python3
"""
JJY/WWVB Shared Constants - Central Reference for Time Code Synthesis

================================================================================
PURPOSE
================================================================================
Single source of truth for the frame layouts, pulse widths, carrier variants
and phase-modulation tables used by the encoder and the waveform scheduler.

================================================================================
STATION PARAMETERS
================================================================================
JJY - NICT, Japan
    Otakadoya-yama (Fukushima): 40 kHz
    Hagane-yama (Kyushu):       60 kHz
    Amplitude code: carrier HIGH at the start of each second, then LOW
    Civil time: JST (UTC+9), no DST

WWVB - NIST, Fort Collins, Colorado, USA
    Frequency: 60 kHz
    Amplitude code: carrier LOW (-17 dB) at the start of each second, then HIGH
    Phase code: 180° BPSK overlay, one phase bit per second
    Civil time: UTC, with DST status bits for U.S. receivers

================================================================================
AUDIO CARRIER
================================================================================
A sound card cannot emit 40/60 kHz, but a 48 kHz DAC driven with a tone at
one third of the real frequency leaks a usable harmonic at the real one.

    ┌──────────────┬───────────────┬────────────┬────────┐
    │ Variant      │ Audio carrier │ Table size │ Cycles │
    ├──────────────┼───────────────┼────────────┼────────┤
    │ JJY 60 kHz   │ 20000 Hz      │ 12         │ 5      │
    │ JJY 40 kHz   │ 13333.3 Hz    │ 18         │ 5      │
    │ WWVB 60 kHz  │ 20000 Hz      │ 12         │ 5      │
    └──────────────┴───────────────┴────────────┴────────┘

================================================================================
PULSE WIDTHS (fraction of one second spent in the leading state)
================================================================================
    Symbol │ JJY (HIGH first) │ WWVB (LOW first)
    ───────┼──────────────────┼─────────────────
    MARK   │ 0.2 s            │ 0.8 s
    ONE    │ 0.5 s            │ 0.5 s
    ZERO   │ 0.8 s            │ 0.2 s

================================================================================
REFERENCES
================================================================================
- NICT, "Standard Frequency and Time Signal Emission" (JJY time code format)
- NIST Special Publication 250-67, "NIST Time and Frequency Radio Stations"
- NIST, "Enhanced WWVB Broadcast Format" (phase modulation), Tables 11-12
"""

from fractions import Fraction
from typing import Dict, FrozenSet, Tuple

# =============================================================================
# SAMPLE CLOCK
# =============================================================================

DEFAULT_SAMPLE_RATE = 48000  # Hz
DEFAULT_BLOCKSIZE = 512      # frames per audio callback
NANOSECONDS_PER_SECOND = 1_000_000_000

# Longest wavetable accepted before the carrier/rate pair is rejected
MAX_WAVETABLE_SIZE = 4800

# =============================================================================
# FRAME LAYOUT (common to JJY and WWVB amplitude codes)
# =============================================================================

SECONDS_PER_FRAME = 60
LEAP_SECOND = 60

# Position markers P0..P5 and the frame reference marker
MARKER_SECONDS: FrozenSet[int] = frozenset({0, 9, 19, 29, 39, 49, 59})

# Pulse widths as fractions of a second
MARK_WIDTH = Fraction(1, 5)
ONE_WIDTH = Fraction(1, 2)
ZERO_WIDTH = Fraction(4, 5)

# =============================================================================
# CARRIER VARIANTS
# =============================================================================

# (audio carrier Hz, LOW table attenuation)
JJY_CARRIER_60KHZ = Fraction(20000)
JJY_CARRIER_40KHZ = Fraction(40000, 3)
WWVB_CARRIER = Fraction(20000)

JJY_LOW_ATTENUATION = 0.1
WWVB_LOW_ATTENUATION = 0.02

# =============================================================================
# CIVIL TIME
# =============================================================================

JST_OFFSET_SECONDS = 9 * 3600
SECONDS_PER_DAY = 86400
MINUTES_PER_DAY = 1440

# =============================================================================
# WWVB DUT1 / LEAP SECOND
# =============================================================================

# Host clocks are leap-second-naive, so these never change
LEAP_SECOND_PENDING = False
DUT1_POSITIVE = True
DUT1_MAGNITUDE_TENTHS = 0

# =============================================================================
# WWVB PHASE MODULATION
# =============================================================================

# Phase bits are applied 100 ms into each second
PHASE_SHIFT_DELAY = Fraction(1, 10)

# Minutes (mod 30) carrying the extended six-minute sync sequence
SIX_MINUTE_WINDOW = range(10, 17)

# 127-bit half-hour sequence (Table 11) and 106-bit fixed timing word
# (Table 12), each packed LSB-first into two 64-bit words
HALF_HOUR_SEQ_BITS: Tuple[int, int] = (0x34BD771E648AB67F, 0xB5037C1610E8C4E5)
FIXED_TIMING_WORD: Tuple[int, int] = (0x42A5CB431D9A6B8B, 0x0000009207FB6B47)

SYNC_SEQUENCE_LENGTH = 127
FIXED_TIMING_WORD_LENGTH = 106

# U.S. DST rules currently in force: second Sunday of March to first
# Sunday of November, 2:00 local time (seconds 53-58)
DST_RULE_BITS: Dict[int, bool] = {
    53: False,
    54: True,
    55: True,
    56: False,
    57: True,
    58: True,
}

# Time-signal sync word, seconds 0-12 (SYNC_T)
PHASE_SYNC_ONES: FrozenSet[int] = frozenset({2, 3, 4, 6, 7, 9})
PHASE_SYNC_ZEROS: FrozenSet[int] = frozenset({0, 1, 5, 8, 10, 11, 12})
