#!/usr/bin/env python3
"""
WWVB Phase-Overlay Encoder - one BPSK phase bit per second

================================================================================
PURPOSE
================================================================================
WWVB transmits a second, independent time code by reversing the carrier
phase 180° for "1" bits. The amplitude code is unaffected. This module
computes that phase bit for any CalendarTimestamp; the scheduler applies it
100 ms into the second by rotating the wavetable index.

================================================================================
REGULAR MINUTES (minute % 30 not in 10..16)
================================================================================
    Second   │ Content
    ─────────┼────────────────────────────────────────────────────
    0-12     │ SYNC_T word: 0 0 1 1 1 0 1 1 0 1 0 0 0
    13-17    │ Hamming parity (odd) over minute-of-century bits 1-25
    18       │ minute-of-century bit 25
    19       │ minute-of-century bit 0
    20-28    │ minute-of-century bits 24..16
    29       │ 0
    30-38    │ minute-of-century bits 15..7
    39       │ 0
    40-46    │ minute-of-century bits 6..0
    47-52    │ DST / leap-second composite (no leap second pending)
    53-58    │ DST rules in effect (fixed: current U.S. rules)
    59, 60   │ 0

The minute of century is a 26-bit count of minutes since 00:00 UTC on
January 1 of the first year of the century.

================================================================================
SIX-MINUTE WINDOWS (minute % 30 in 10..16)
================================================================================
The whole window carries a 360-bit sequence: 127 bits of a half-hour
sync sequence, a fixed 106-bit timing word, then the same 127 bits in
reverse. The starting offset into the sync sequence is the half-hour
sequence index, which depends on the hour, the minute and whether DST
changes at either UTC day boundary.

    (dst at day end, dst at day start) │ offset added to hour*4 + minute//17
    ───────────────────────────────────┼────────────────────────────────────
    (no,  no )                         │ +1
    (yes, yes)                         │ +2
    (yes, no )  DST begins today       │ +1 (h<=3), +81 (h<=10), +2
    (no,  yes)  DST ends today         │ +2 (h<=3), +82 (h<=10), +1

================================================================================
REFERENCES
================================================================================
- NIST, "Enhanced WWVB Broadcast Format", Rev. 1.01 (2013)
"""

from functools import lru_cache
from typing import Callable, Dict, List, Sequence, Tuple

from .calendar_bits import CalendarTimestamp, is_gregorian_leap
from .timecode_constants import (
    DST_RULE_BITS,
    FIXED_TIMING_WORD,
    HALF_HOUR_SEQ_BITS,
    MINUTES_PER_DAY,
    PHASE_SYNC_ONES,
    PHASE_SYNC_ZEROS,
    SECONDS_PER_FRAME,
    SIX_MINUTE_WINDOW,
    SYNC_SEQUENCE_LENGTH,
)

# Minute-of-century bits protected by the Hamming overlay
HAMMING_DATA_BITS = range(1, 26)
# Parity seconds 13..17 cover parity positions 4..0
HAMMING_SECONDS = range(13, 18)

# Second at which the ascending sync lookup starts
FIXED_TIMING_WORD_START = SYNC_SEQUENCE_LENGTH
MIRROR_START = 233

# (last hour of band, offset) bands keyed by (dst_at_day_end, dst_at_day_start)
HALF_HOUR_OFFSETS: Dict[Tuple[bool, bool], Tuple[Tuple[int, int], ...]] = {
    (False, False): ((23, 1),),
    (True, True): ((23, 2),),
    (True, False): ((3, 1), (10, 81), (23, 2)),
    (False, True): ((3, 2), (10, 82), (23, 1)),
}


# =============================================================================
# MINUTE OF CENTURY
# =============================================================================

@lru_cache(maxsize=8)
def century_days_before(year: int) -> int:
    """Days from January 1 of the century's first year to January 1 of ``year``."""
    first_year = year - year % 100
    return sum(366 if is_gregorian_leap(y) else 365 for y in range(first_year, year))


def minute_of_century(ts: CalendarTimestamp) -> int:
    days = century_days_before(ts.year) + ts.yday - 1
    return days * MINUTES_PER_DAY + ts.hour * 60 + ts.minute


def time_bit_index(second: int) -> int:
    """Minute-of-century bit carried by a time-region second."""
    if second >= 40:
        return 46 - second
    if second >= 30:
        return 45 - second
    if second >= 20:
        return 44 - second
    if second == 19:
        return 0
    # second 18
    return 25


def time_bit_second(index: int) -> int:
    """Second carrying minute-of-century bit ``index`` (1..25)."""
    if index <= 6:
        return 46 - index
    if index <= 15:
        return 45 - index
    if index <= 24:
        return 44 - index
    return 18


def time_literal(second: int, moc: int) -> bool:
    return bool((moc >> time_bit_index(second)) & 1)


def hamming_bit(second: int, moc: int) -> bool:
    """Odd-parity Hamming bit sent at ``second`` (13..17)."""
    mask = 1 << (17 - second)
    parity = True
    for index in HAMMING_DATA_BITS:
        if index & mask:
            parity ^= time_literal(time_bit_second(index), moc)
    return parity


# =============================================================================
# SIX-MINUTE SYNC WINDOWS
# =============================================================================

def table_bit(words: Sequence[int], index: int) -> bool:
    """Bit ``index`` of a table packed LSB-first into 64-bit words."""
    return bool((words[index // 64] >> (index % 64)) & 1)


def half_hour_sequence(hour: int, minute: int, dst_end: bool, dst_start: bool) -> int:
    base = hour * 4 + minute // 17
    for last_hour, offset in HALF_HOUR_OFFSETS[(dst_end, dst_start)]:
        if hour <= last_hour:
            return base + offset
    raise ValueError(f"Hour out of range: {hour}")


def window_position(ts: CalendarTimestamp) -> int:
    """Seconds elapsed in the ten-minute sub-frame."""
    return (ts.minute % 10) * 60 + ts.second


def sync_index(frame_second: int, seq: int) -> int:
    """Index into the 127-bit sync sequence (only outside the timing word)."""
    if frame_second < FIXED_TIMING_WORD_START:
        return (seq - 1 + frame_second) % SYNC_SEQUENCE_LENGTH
    return (seq + 358 - frame_second) % SYNC_SEQUENCE_LENGTH


def six_minute_bit(ts: CalendarTimestamp) -> bool:
    frame_second = window_position(ts)
    if FIXED_TIMING_WORD_START <= frame_second < MIRROR_START:
        return table_bit(FIXED_TIMING_WORD, frame_second - FIXED_TIMING_WORD_START)
    seq = half_hour_sequence(ts.hour, ts.minute, ts.dst_at_day_end, ts.dst_at_day_start)
    return table_bit(HALF_HOUR_SEQ_BITS, sync_index(frame_second, seq))


def in_six_minute_window(ts: CalendarTimestamp) -> bool:
    return ts.minute % 30 in SIX_MINUTE_WINDOW


# =============================================================================
# REGULAR MINUTES
# =============================================================================

def _constant(value: bool) -> Callable[[CalendarTimestamp], bool]:
    return lambda ts: value


def _time_bit(ts: CalendarTimestamp) -> bool:
    return time_literal(ts.second, minute_of_century(ts))


def _hamming(ts: CalendarTimestamp) -> bool:
    return hamming_bit(ts.second, minute_of_century(ts))


def _dst_changes_today(ts: CalendarTimestamp) -> bool:
    return ts.dst_at_day_end != ts.dst_at_day_start


def _dst_off_all_day(ts: CalendarTimestamp) -> bool:
    return not (ts.dst_at_day_end or ts.dst_at_day_start)


def _dst_at_day_end(ts: CalendarTimestamp) -> bool:
    return ts.dst_at_day_end


def _dst_at_day_start(ts: CalendarTimestamp) -> bool:
    return ts.dst_at_day_start


def _build_regular_rules() -> Tuple[Callable[[CalendarTimestamp], bool], ...]:
    rules: List[Callable[[CalendarTimestamp], bool]] = [_constant(False)] * (SECONDS_PER_FRAME + 1)
    for second in PHASE_SYNC_ONES:
        rules[second] = _constant(True)
    for second in PHASE_SYNC_ZEROS:
        rules[second] = _constant(False)
    for second in HAMMING_SECONDS:
        rules[second] = _hamming
    for second in (18, 19, *range(20, 29), *range(30, 39), *range(40, 47)):
        rules[second] = _time_bit
    # Leap-second composite collapses to DST status when none is pending
    rules[47] = _dst_changes_today
    rules[48] = _dst_off_all_day
    rules[50] = _dst_changes_today
    rules[51] = _dst_at_day_end
    rules[52] = _dst_at_day_start
    for second, value in DST_RULE_BITS.items():
        rules[second] = _constant(value)
    return tuple(rules)


REGULAR_RULES = _build_regular_rules()


def phase_symbol(ts: CalendarTimestamp) -> bool:
    """Phase bit for the second of ``ts``; True means 180° reversed."""
    if in_six_minute_window(ts):
        return six_minute_bit(ts)
    return REGULAR_RULES[ts.second](ts)


def phase_frame(ts: CalendarTimestamp) -> List[bool]:
    """All 60 phase bits of the minute containing ``ts``."""
    return [phase_symbol(ts.replace_second(s)) for s in range(SECONDS_PER_FRAME)]
