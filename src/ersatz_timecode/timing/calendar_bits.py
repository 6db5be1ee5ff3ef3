#!/usr/bin/env python3
"""
Calendar Bit Functions - one time-code bit per callable

================================================================================
PURPOSE
================================================================================
Map a CalendarTimestamp to the individual bits carried by the JJY and WWVB
amplitude codes. Every bit function is a pure callable:

    bit(ts: CalendarTimestamp) -> bool

and the Second Symbol Table refers to them by value.

================================================================================
BCD-LIKE WEIGHTING
================================================================================
Numeric fields are sent as a descending cascade of weighted bits, MSB first.
For a two-digit field V the cascade is

    V >= 40, (V % 40) >= 20, (V % 20) >= 10,
    (V % 10) >= 8, ((V % 10) % 8) >= 4, ((V % 10) % 4) >= 2, V % 2

which is exactly the 8-4-2-1 weighting of each decimal digit. Both stations
use the same weights for the same field:

    Field        │ Weights
    ─────────────┼──────────────────────────────────────
    minute       │ 40 20 10 8 4 2 1
    hour         │ 20 10 8 4 2 1
    day of year  │ 200 100 80 40 20 10 8 4 2 1
    year (2 dig) │ 80 40 20 10 8 4 2 1
    weekday      │ 4 2 1

================================================================================
PARITY
================================================================================
JJY carries even parity over the hour bits (PA1, second 36) and over the
minute bits (PA2, second 37). Parity is folded from the other bit functions,
never recomputed from the raw field, so it always agrees with what is sent.

================================================================================
DST AND LEAP YEAR
================================================================================
WWVB second 55 is the Gregorian leap-year flag of the UTC year. Seconds 57
and 58 report whether DST is in effect, in the configured civil zone, at the
end (23:59:59 UTC) and at the start (00:00:00 UTC) of the current UTC day.
Both are taken at absolute instants, so a DST transition at the moment of
evaluation cannot make the answer ambiguous.

Leap seconds are not announced: the host clock is leap-second-naive.
"""

import operator
from dataclasses import dataclass, field
from functools import cached_property, reduce
from typing import Iterable, Mapping, Tuple

from .civil_time import UTC, CivilZone, utc_day_bounds
from .timecode_constants import LEAP_SECOND_PENDING


@dataclass(frozen=True)
class CalendarTimestamp:
    """
    One whole second of civil time.

    Fields are expressed in ``zone``; DST predicates are answered by
    ``dst_zone``. WWVB uses UTC fields with the receiver's local DST zone,
    JJY uses JST (or local) fields and never consults DST.
    """
    epoch: int
    year: int
    yday: int
    hour: int
    minute: int
    second: int
    weekday: int
    zone: CivilZone = field(default=UTC, compare=False, repr=False)
    dst_zone: CivilZone = field(default=UTC, compare=False, repr=False)

    @classmethod
    def at(cls, epoch: int, zone: CivilZone = UTC,
           dst_zone: CivilZone = None) -> 'CalendarTimestamp':
        """Derive the timestamp for POSIX second ``epoch``."""
        epoch = int(epoch)
        f = zone.fields(epoch)
        return cls(
            epoch=epoch,
            year=f.year,
            yday=f.yday,
            hour=f.hour,
            minute=f.minute,
            second=f.second,
            weekday=f.weekday,
            zone=zone,
            dst_zone=dst_zone if dst_zone is not None else zone,
        )

    def next_second(self) -> 'CalendarTimestamp':
        return CalendarTimestamp.at(self.epoch + 1, self.zone, self.dst_zone)

    def replace_second(self, second: int) -> 'CalendarTimestamp':
        """Same minute, different second (for frame rendering)."""
        return CalendarTimestamp.at(self.epoch - self.second + second,
                                    self.zone, self.dst_zone)

    @property
    def year2(self) -> int:
        return self.year % 100

    @cached_property
    def dst_at_day_start(self) -> bool:
        start, _ = utc_day_bounds(self.epoch)
        return self.dst_zone.isdst(start)

    @cached_property
    def dst_at_day_end(self) -> bool:
        _, end = utc_day_bounds(self.epoch)
        return self.dst_zone.isdst(end)

    def __str__(self) -> str:
        return (f"{self.year:04d}-{self.yday:03d} "
                f"{self.hour:02d}:{self.minute:02d}:{self.second:02d} "
                f"{self.zone.name}")


# =============================================================================
# BCD-LIKE DECOMPOSITION
# =============================================================================

def bcd_bit(value: int, weight: int) -> bool:
    """Bit of ``value`` carrying ``weight`` (1, 2, 4, 8, 10, 20, ... 200)."""
    decade = 1
    while weight >= decade * 10:
        decade *= 10
    return bool(((value // decade) % 10) & (weight // decade))


def bcd_value(bits: Mapping[int, bool]) -> int:
    """Reassemble a field value from ``{weight: bit}``."""
    return sum(weight for weight, bit in bits.items() if bit)


class FieldBit:
    """Weighted bit of one numeric CalendarTimestamp field."""

    __slots__ = ('field', 'weight')

    def __init__(self, field_name: str, weight: int):
        self.field = field_name
        self.weight = weight

    def __call__(self, ts: CalendarTimestamp) -> bool:
        return bcd_bit(getattr(ts, self.field), self.weight)

    @property
    def label(self) -> str:
        return f"{self.field}[{self.weight}]"

    def __repr__(self) -> str:
        return f"FieldBit({self.field!r}, {self.weight})"


def field_bits(field_name: str, weights: Iterable[int]) -> Tuple[FieldBit, ...]:
    return tuple(FieldBit(field_name, w) for w in weights)


MINUTE_BITS = field_bits('minute', (40, 20, 10, 8, 4, 2, 1))
HOUR_BITS = field_bits('hour', (20, 10, 8, 4, 2, 1))
YDAY_BITS = field_bits('yday', (200, 100, 80, 40, 20, 10, 8, 4, 2, 1))
YEAR_BITS = field_bits('year2', (80, 40, 20, 10, 8, 4, 2, 1))
WEEKDAY_BITS = field_bits('weekday', (4, 2, 1))


def minute_bit(weight: int) -> FieldBit:
    return _lookup(MINUTE_BITS, weight)


def hour_bit(weight: int) -> FieldBit:
    return _lookup(HOUR_BITS, weight)


def yday_bit(weight: int) -> FieldBit:
    return _lookup(YDAY_BITS, weight)


def year_bit(weight: int) -> FieldBit:
    return _lookup(YEAR_BITS, weight)


def weekday_bit(weight: int) -> FieldBit:
    return _lookup(WEEKDAY_BITS, weight)


def _lookup(bits: Tuple[FieldBit, ...], weight: int) -> FieldBit:
    for bit in bits:
        if bit.weight == weight:
            return bit
    raise ValueError(f"No {bits[0].field} bit with weight {weight}")


# =============================================================================
# PARITY
# =============================================================================

class ParityBit:
    """Even parity (XOR fold) over a fixed set of other bit functions."""

    __slots__ = ('name', 'members')

    def __init__(self, name: str, members: Iterable):
        self.name = name
        self.members = tuple(members)

    def __call__(self, ts: CalendarTimestamp) -> bool:
        return reduce(operator.xor, (bool(bit(ts)) for bit in self.members), False)

    @property
    def label(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"ParityBit({self.name!r}, {len(self.members)} bits)"


# PA1 covers JJY seconds 12-18 (14 is fixed zero), PA2 seconds 1-8 (4 is fixed zero)
HOUR_PARITY = ParityBit('PA1', HOUR_BITS)
MINUTE_PARITY = ParityBit('PA2', MINUTE_BITS)


# =============================================================================
# CALENDAR PREDICATES
# =============================================================================

def is_gregorian_leap(year: int) -> bool:
    return year % 4 == 0 and ((year % 100 == 0) == (year % 400 == 0))


def is_leap_year(ts: CalendarTimestamp) -> bool:
    return is_gregorian_leap(ts.year)


def dst_at_day_end(ts: CalendarTimestamp) -> bool:
    return ts.dst_at_day_end


def dst_at_day_start(ts: CalendarTimestamp) -> bool:
    return ts.dst_at_day_start


def leap_second_pending(ts: CalendarTimestamp) -> bool:
    # No leap-second table is available to a POSIX clock
    return LEAP_SECOND_PENDING


def leap_second_positive(ts: CalendarTimestamp) -> bool:
    return LEAP_SECOND_PENDING


def bit_label(bit) -> str:
    """Short display name for any bit callable."""
    return getattr(bit, 'label', None) or getattr(bit, '__name__', repr(bit))
