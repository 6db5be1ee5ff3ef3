#!/usr/bin/env python3
"""
Second Symbol Table - per-second rules of the 60-second amplitude frame

Each second of the minute is described by exactly one rule variant:

    Mark            - frame / position marker
    FixedZero       - reserved or constant-zero position
    FixedOne        - constant-one position (WWVB DUT1 sign)
    Variable(bit)   - value of a calendar bit function

A FrameLayout holds the 60 rules for one station and classifies any
timestamp into MARK, ZERO or ONE. Second 60 (a leap second) is treated as
a marker; the host clock never produces it.

Minutes that carry an alternate layout on air (JJY minutes 15 and 45 with
the call sign and service notices) are sent with the normal layout;
receivers ignore those positions during those minutes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Sequence

from . import calendar_bits as cb
from .calendar_bits import CalendarTimestamp
from .timecode_constants import LEAP_SECOND, MARKER_SECONDS, SECONDS_PER_FRAME

logger = logging.getLogger(__name__)


class Symbol(str, Enum):
    """Amplitude-coded value of one second."""
    MARK = "M"
    ZERO = "0"
    ONE = "1"


@dataclass(frozen=True)
class Mark:
    def resolve(self, ts: CalendarTimestamp) -> Symbol:
        return Symbol.MARK


@dataclass(frozen=True)
class FixedZero:
    def resolve(self, ts: CalendarTimestamp) -> Symbol:
        return Symbol.ZERO


@dataclass(frozen=True)
class FixedOne:
    def resolve(self, ts: CalendarTimestamp) -> Symbol:
        return Symbol.ONE


@dataclass(frozen=True)
class Variable:
    bit: Callable[[CalendarTimestamp], bool]

    def resolve(self, ts: CalendarTimestamp) -> Symbol:
        return Symbol.ONE if self.bit(ts) else Symbol.ZERO


MARK = Mark()
FIXED_ZERO = FixedZero()
FIXED_ONE = FixedOne()


class FrameLayout:
    """Total mapping from second-of-minute to rule variant."""

    def __init__(self, name: str, variables: Dict[int, object],
                 fixed_zero: Sequence[int], fixed_one: Sequence[int] = ()):
        rules: List[object] = [None] * SECONDS_PER_FRAME
        for second in MARKER_SECONDS:
            rules[second] = MARK
        for second in fixed_zero:
            rules[second] = self._claim(rules, second, FIXED_ZERO)
        for second in fixed_one:
            rules[second] = self._claim(rules, second, FIXED_ONE)
        for second, bit in variables.items():
            rules[second] = self._claim(rules, second, Variable(bit))

        missing = [s for s, rule in enumerate(rules) if rule is None]
        if missing:
            raise ValueError(f"{name} layout leaves seconds {missing} undefined")

        self.name = name
        self.rules = tuple(rules)
        logger.debug(f"{name} layout: {len(variables)} variable, "
                     f"{len(fixed_zero)} fixed-zero, {len(fixed_one)} fixed-one seconds")

    @staticmethod
    def _claim(rules, second, rule):
        if rules[second] is not None:
            raise ValueError(f"Second {second} is assigned twice")
        return rule

    def rule(self, second: int):
        if second == LEAP_SECOND:
            return MARK
        return self.rules[second]

    def symbol(self, ts: CalendarTimestamp) -> Symbol:
        """Symbol sent during the second of ``ts``."""
        return self.rule(ts.second).resolve(ts)

    def frame_symbols(self, ts: CalendarTimestamp) -> List[Symbol]:
        """All 60 symbols of the minute containing ``ts``."""
        return [self.symbol(ts.replace_second(s)) for s in range(SECONDS_PER_FRAME)]

    def describe(self, second: int) -> str:
        rule = self.rule(second)
        if isinstance(rule, Variable):
            return cb.bit_label(rule.bit)
        return type(rule).__name__

    def __repr__(self) -> str:
        return f"FrameLayout({self.name!r})"


def format_frame(symbols: Sequence[Symbol], group: int = 10) -> str:
    """Render a frame as text, e.g. ``M0010000 1M...``."""
    text = ''.join(s.value for s in symbols)
    return ' '.join(text[i:i + group] for i in range(0, len(text), group))


# =============================================================================
# JJY
# =============================================================================

JJY_LAYOUT = FrameLayout(
    'JJY',
    variables={
        1: cb.minute_bit(40), 2: cb.minute_bit(20), 3: cb.minute_bit(10),
        5: cb.minute_bit(8), 6: cb.minute_bit(4), 7: cb.minute_bit(2), 8: cb.minute_bit(1),
        12: cb.hour_bit(20), 13: cb.hour_bit(10),
        15: cb.hour_bit(8), 16: cb.hour_bit(4), 17: cb.hour_bit(2), 18: cb.hour_bit(1),
        22: cb.yday_bit(200), 23: cb.yday_bit(100),
        25: cb.yday_bit(80), 26: cb.yday_bit(40), 27: cb.yday_bit(20), 28: cb.yday_bit(10),
        30: cb.yday_bit(8), 31: cb.yday_bit(4), 32: cb.yday_bit(2), 33: cb.yday_bit(1),
        36: cb.HOUR_PARITY,
        37: cb.MINUTE_PARITY,
        41: cb.year_bit(80), 42: cb.year_bit(40), 43: cb.year_bit(20), 44: cb.year_bit(10),
        45: cb.year_bit(8), 46: cb.year_bit(4), 47: cb.year_bit(2), 48: cb.year_bit(1),
        50: cb.weekday_bit(4), 51: cb.weekday_bit(2), 52: cb.weekday_bit(1),
        53: cb.leap_second_pending,
        54: cb.leap_second_positive,
    },
    fixed_zero=(4, 10, 11, 14, 20, 21, 24, 34, 35, 38, 40, 55, 56, 57, 58),
)


# =============================================================================
# WWVB
# =============================================================================

# DUT1 is reported as +0.0 s: sign bits 36-38 = 1 0 1, magnitude 40-43 = 0
WWVB_LAYOUT = FrameLayout(
    'WWVB',
    variables={
        1: cb.minute_bit(40), 2: cb.minute_bit(20), 3: cb.minute_bit(10),
        5: cb.minute_bit(8), 6: cb.minute_bit(4), 7: cb.minute_bit(2), 8: cb.minute_bit(1),
        12: cb.hour_bit(20), 13: cb.hour_bit(10),
        15: cb.hour_bit(8), 16: cb.hour_bit(4), 17: cb.hour_bit(2), 18: cb.hour_bit(1),
        22: cb.yday_bit(200), 23: cb.yday_bit(100),
        25: cb.yday_bit(80), 26: cb.yday_bit(40), 27: cb.yday_bit(20), 28: cb.yday_bit(10),
        30: cb.yday_bit(8), 31: cb.yday_bit(4), 32: cb.yday_bit(2), 33: cb.yday_bit(1),
        45: cb.year_bit(80), 46: cb.year_bit(40), 47: cb.year_bit(20), 48: cb.year_bit(10),
        50: cb.year_bit(8), 51: cb.year_bit(4), 52: cb.year_bit(2), 53: cb.year_bit(1),
        55: cb.is_leap_year,
        56: cb.leap_second_pending,
        57: cb.dst_at_day_end,
        58: cb.dst_at_day_start,
    },
    fixed_zero=(4, 10, 11, 14, 20, 21, 24, 34, 35, 37, 40, 41, 42, 43, 44, 54),
    fixed_one=(36, 38),
)
